"""Core functionality for the avatar pipeline.

- **AvatarPinConfig** / **config**: Pydantic Settings configuration
  (``AVATARPIN_`` prefix).
- **ImageGenerator**: OpenAI Images client returning a hosted image URL.
- **ImageFetcher**: streams a hosted image into local storage.
- **LocalImageStore**: name validation and atomic file handling in the
  storage directory.
- **PinningClient**: Pinata uploads and IPFS gateway URLs.
- **MetadataBuilder**: NFT metadata documents, pinned through the client.
- **AvatarPipeline**: the generate, pin and clean request pipelines.

Usage Example
-------------
    import httpx

    from avatarpin.core import AvatarPipeline, config

    async with httpx.AsyncClient(timeout=config.request_timeout) as http:
        pipeline = AvatarPipeline.from_config(config, http)
        avatar = await pipeline.generate_avatar("alice")
        pinned = await pipeline.pin_avatar("alice", "A playful avatar")
        await pipeline.clean_storage("alice")
"""

from avatarpin.core.config import AvatarPinConfig, config
from avatarpin.core.errors import (
    AvatarPinError,
    DownloadError,
    GenerationError,
    NotFoundError,
    PinError,
    StorageError,
    ValidationError,
)
from avatarpin.core.fetcher import ImageFetcher
from avatarpin.core.generator import ImageGenerator
from avatarpin.core.metadata import DEFAULT_ATTRIBUTES, Attribute, MetadataBuilder, NFTMetadata
from avatarpin.core.pinning import PinningClient, PinResult, gateway_url
from avatarpin.core.pipeline import AvatarPipeline, PipelineRun, RunState
from avatarpin.core.storage import LocalImageStore, validate_name

__all__ = [
    "AvatarPinConfig",
    "config",
    "AvatarPinError",
    "DownloadError",
    "GenerationError",
    "NotFoundError",
    "PinError",
    "StorageError",
    "ValidationError",
    "ImageFetcher",
    "ImageGenerator",
    "DEFAULT_ATTRIBUTES",
    "Attribute",
    "MetadataBuilder",
    "NFTMetadata",
    "PinningClient",
    "PinResult",
    "gateway_url",
    "AvatarPipeline",
    "PipelineRun",
    "RunState",
    "LocalImageStore",
    "validate_name",
]
