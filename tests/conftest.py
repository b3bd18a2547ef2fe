"""Shared pytest fixtures for Avatar Pin tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import httpx
import pytest

from avatarpin.core.config import AvatarPinConfig
from avatarpin.core.errors import GenerationError
from avatarpin.core.fetcher import ImageFetcher
from avatarpin.core.metadata import MetadataBuilder
from avatarpin.core.pinning import PinningClient
from avatarpin.core.pipeline import AvatarPipeline
from avatarpin.core.storage import LocalImageStore

IMAGE_URL = "https://images.example/generated/alice.png"
PINATA_URL = "https://api.pinata.test"
PIN_ENDPOINT = f"{PINATA_URL}/pinning/pinFileToIPFS"

# Not a real PNG, but the pipeline never inspects image content.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 8


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> AvatarPinConfig:
    """Create a test configuration with a temporary storage directory.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        AvatarPinConfig instance for testing
    """
    return AvatarPinConfig(
        _env_file=None,
        storage_dir=temp_dir / "storage",
        openai_api_key="sk-test",
        openai_base_url="https://openai.test/v1",
        pinata_jwt="jwt-test",
        pinata_api_url=PINATA_URL,
        max_retries=0,
        retry_backoff=0.0,
    )


@pytest.fixture
def store(test_config: AvatarPinConfig) -> LocalImageStore:
    return LocalImageStore(test_config.storage_dir)


class FakeGenerator:
    """Stand-in for ImageGenerator that records calls."""

    def __init__(self, url: str = IMAGE_URL, error: Exception | None = None) -> None:
        self.url = url
        self.error = error
        self.calls = 0

    async def generate(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.url

    async def aclose(self) -> None:
        pass


class FakeServices:
    """Scripted image host and Pinata API behind an ``httpx.MockTransport``.

    Attributes:
        image_bytes: Body served for ``IMAGE_URL``.
        content_ids: Content ids returned by successive pins.
        pin_status: Status returned by the pin endpoint.
        pin_statuses: Per-call statuses overriding ``pin_status``, in call order.
        pin_requests: Every request received by the pin endpoint.
        image_requests: Every request received by the image host.
    """

    def __init__(self) -> None:
        self.image_bytes = PNG_BYTES
        self.image_status = 200
        self.content_ids = ["Qm1", "Qm2"]
        self.pin_status = 200
        self.pin_statuses: list[int] = []
        self.pin_requests: list[httpx.Request] = []
        self.image_requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == IMAGE_URL:
            self.image_requests.append(request)
            return httpx.Response(self.image_status, content=self.image_bytes)
        if url == PIN_ENDPOINT:
            self.pin_requests.append(request)
            index = len(self.pin_requests) - 1
            status = self.pin_statuses[index] if index < len(self.pin_statuses) else self.pin_status
            if status != 200:
                return httpx.Response(status, text="upstream says no")
            content_id = self.content_ids[index]
            return httpx.Response(
                200,
                json={
                    "IpfsHash": content_id,
                    "PinSize": len(request.content),
                    "Timestamp": "2024-01-01T00:00:00.000Z",
                },
            )
        return httpx.Response(404, text=f"unexpected {url}")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def pinned_metadata(self, index: int) -> dict:
        """Return the JSON document uploaded by the *index*-th pin request."""
        body = self.pin_requests[index].content
        file_part = body.index(b'filename="')
        start = body.index(b"\r\n\r\n", file_part) + 4
        end = body.index(b"\r\n--", start)
        return json.loads(body[start:end])


@pytest.fixture
def fake_services() -> FakeServices:
    return FakeServices()


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def pipeline(
    test_config: AvatarPinConfig,
    store: LocalImageStore,
    fake_services: FakeServices,
    fake_generator: FakeGenerator,
) -> AvatarPipeline:
    """AvatarPipeline with a fake generator and mocked HTTP collaborators."""
    http = fake_services.client()
    pinning = PinningClient(
        http,
        "jwt-test",
        api_url=test_config.pinata_api_url,
        gateway=test_config.ipfs_gateway_url,
    )
    return AvatarPipeline(
        generator=fake_generator,
        fetcher=ImageFetcher(http, store),
        store=store,
        pinning=pinning,
        metadata=MetadataBuilder(store, pinning),
    )


@pytest.fixture
def failing_generator() -> FakeGenerator:
    return FakeGenerator(error=GenerationError("Image generation failed: connection refused"))
