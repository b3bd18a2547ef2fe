"""Request pipelines composing generation, download, pinning and cleanup.

Each public method of :class:`AvatarPipeline` is one linear pipeline::

    generate_avatar:  validate -> generate -> download
    pin_avatar:       validate -> locate image -> pin image -> pin metadata
    clean_storage:    validate -> delete image

Progress is tracked on a :class:`PipelineRun`, which moves through
``VALIDATING -> RUNNING -> SUCCEEDED | FAILED`` and records the name of every
completed step.  The first error ends the run; nothing already done is rolled
back.  In particular, an image pinned before a failed metadata pin stays
pinned and its content id is not reported to the caller.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from avatarpin.core.config import AvatarPinConfig
from avatarpin.core.errors import AvatarPinError, ValidationError
from avatarpin.core.fetcher import ImageFetcher
from avatarpin.core.generator import ImageGenerator
from avatarpin.core.metadata import DEFAULT_ATTRIBUTES, MetadataBuilder
from avatarpin.core.pinning import PinningClient
from avatarpin.core.storage import LocalImageStore, validate_name

logger = logging.getLogger(__name__)

IMAGE_DISPLAY_NAME = "Generated Image"


class RunState(str, enum.Enum):
    VALIDATING = "validating"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class PipelineRun:
    """State of one pipeline execution.

    Attributes:
        pipeline: Name of the pipeline, used in log messages.
        state: Current state.
        completed: Names of the steps that finished successfully, in order.
        failed_step: Name of the step that raised, if any.
        error: The error that ended the run, if any.
    """

    pipeline: str
    state: RunState = RunState.VALIDATING
    completed: list[str] = field(default_factory=list)
    failed_step: str | None = None
    error: Exception | None = None

    @contextmanager
    def step(self, name: str) -> Iterator[None]:
        """Run one named step, recording its outcome on the run."""
        if name != "validate":
            self.state = RunState.RUNNING
        try:
            yield
        except Exception as exc:
            self.state = RunState.FAILED
            self.failed_step = name
            self.error = exc
            message = f"{self.pipeline}: step '{name}' failed: {exc}"
            if isinstance(exc, AvatarPinError) and exc.status_code < 500:
                logger.warning(message)
            else:
                logger.error(message, exc_info=exc)
            raise
        self.completed.append(name)

    def succeed(self) -> None:
        self.state = RunState.SUCCEEDED
        logger.info(f"{self.pipeline}: succeeded ({' -> '.join(self.completed)})")


@dataclass(frozen=True)
class GeneratedAvatar:
    name: str
    image_url: str
    file_path: Path


@dataclass(frozen=True)
class PinnedAvatar:
    name: str
    image_content_id: str
    image_ipfs_url: str
    metadata_content_id: str
    metadata_ipfs_url: str


class AvatarPipeline:
    """Compose the service's collaborators into the three request pipelines.

    Attributes:
        generator (ImageGenerator): Image-synthesis client.
        fetcher (ImageFetcher): Downloads generated images.
        store (LocalImageStore): Local transient storage.
        pinning (PinningClient): Pinata client.
        metadata (MetadataBuilder): Builds and pins metadata documents.
    """

    def __init__(
        self,
        generator: ImageGenerator,
        fetcher: ImageFetcher,
        store: LocalImageStore,
        pinning: PinningClient,
        metadata: MetadataBuilder,
    ) -> None:
        self.generator = generator
        self.fetcher = fetcher
        self.store = store
        self.pinning = pinning
        self.metadata = metadata

    @classmethod
    def from_config(cls, config: AvatarPinConfig, http: httpx.AsyncClient) -> AvatarPipeline:
        """Wire every collaborator from configuration around one shared HTTP client.

        Args:
            config: Application configuration.
            http: HTTP client used for image downloads and pinning.
        """
        store = LocalImageStore(config.storage_dir)
        pinning = PinningClient(
            http,
            config.pinata_jwt.get_secret_value() if config.pinata_jwt else None,
            api_url=config.pinata_api_url,
            gateway=config.ipfs_gateway_url,
            retries=config.max_retries,
            backoff=config.retry_backoff,
        )
        return cls(
            generator=ImageGenerator.from_config(config),
            fetcher=ImageFetcher(
                http,
                store,
                retries=config.max_retries,
                backoff=config.retry_backoff,
                deadline=config.request_timeout,
            ),
            store=store,
            pinning=pinning,
            metadata=MetadataBuilder(store, pinning),
        )

    async def aclose(self) -> None:
        await self.generator.aclose()

    async def generate_avatar(
        self, name: str | None, run: PipelineRun | None = None
    ) -> GeneratedAvatar:
        """Generate an avatar image and save it as ``<name>.png``.

        Raises:
            ValidationError: If *name* is missing or unusable.
            GenerationError: If the synthesis call fails.
            DownloadError: If the image cannot be fetched or saved.
        """
        run = run or PipelineRun("generate-avatar")

        with run.step("validate"):
            name = validate_name(name)

        logger.info(f"Generating avatar for name: {name}")
        with run.step("generate"):
            image_url = await self.generator.generate()
        logger.info(f"Avatar image URL received: {image_url}")

        with run.step("download"):
            file_path = await self.fetcher.download(image_url, name)
        logger.info(f"Image downloaded and saved at: {file_path}")

        run.succeed()
        return GeneratedAvatar(name=name, image_url=image_url, file_path=file_path)

    async def pin_avatar(
        self,
        name: str | None,
        description: str | None,
        run: PipelineRun | None = None,
    ) -> PinnedAvatar:
        """Pin ``<name>.png`` and an NFT metadata document that references it.

        Raises:
            ValidationError: If *name* or *description* is missing, or
                *name* is unusable.
            NotFoundError: If ``<name>.png`` does not exist.
            PinError: If either pin fails.
            StorageError: If the metadata document cannot be written.
        """
        run = run or PipelineRun("create-nft-pin-metadata")

        with run.step("validate"):
            if not name or not description:
                raise ValidationError("Missing required fields: name or description.")
            name = validate_name(name)

        logger.info(f"Creating NFT metadata for: {name}")
        with run.step("locate"):
            image_path = self.store.require_image(name)

        with run.step("pin-image"):
            logger.info(f"Pinning image to IPFS for: {name}")
            image_pin = await self.pinning.pin(image_path, IMAGE_DISPLAY_NAME)
            image_ipfs_url = self.pinning.gateway_url(image_pin.content_id)
        logger.info(f"Image pinned at URL: {image_ipfs_url}")

        with run.step("pin-metadata"):
            metadata_pin = await self.metadata.build_and_pin(
                image_ipfs_url, name, description, DEFAULT_ATTRIBUTES
            )
            metadata_ipfs_url = self.pinning.gateway_url(metadata_pin.content_id)
        logger.info(f"Metadata pinned at URL: {metadata_ipfs_url}")

        run.succeed()
        return PinnedAvatar(
            name=name,
            image_content_id=image_pin.content_id,
            image_ipfs_url=image_ipfs_url,
            metadata_content_id=metadata_pin.content_id,
            metadata_ipfs_url=metadata_ipfs_url,
        )

    async def clean_storage(self, name: str | None, run: PipelineRun | None = None) -> Path:
        """Delete ``<name>.png`` from local storage.

        Raises:
            ValidationError: If *name* is missing or unusable.
            NotFoundError: If the file does not exist.
            StorageError: If the file cannot be removed.
        """
        run = run or PipelineRun("server-storage-clean")

        with run.step("validate"):
            if not name:
                raise ValidationError("Missing required fields: name.")
            name = validate_name(name)

        logger.info(f"Attempting to delete image file for: {name}")
        with run.step("delete"):
            path = self.store.delete_image(name)
        logger.info(f"Successfully deleted local image file: {path}")

        run.succeed()
        return path
