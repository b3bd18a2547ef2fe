"""NFT metadata documents for pinned avatars.

The document follows the common ERC-721 metadata layout::

    {
      "name": "alice",
      "description": "...",
      "image": "https://ipfs.io/ipfs/Qm...",
      "attributes": [{"trait_type": "Category", "value": "Art"}, ...]
    }

It is written to a per-build JSON file in the storage directory, pinned, and
the file is removed again once the upload has finished.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from avatarpin.core.pinning import PinningClient, PinResult
from avatarpin.core.storage import LocalImageStore

logger = logging.getLogger(__name__)

METADATA_DISPLAY_NAME = "NFT Metadata"


class Attribute(BaseModel):
    """A single trait record."""

    trait_type: str
    value: str


class NFTMetadata(BaseModel):
    """An NFT metadata document."""

    name: str
    description: str
    image: str = Field(..., description="Gateway URL of the pinned image.")
    attributes: list[Attribute] = Field(default_factory=list)


DEFAULT_ATTRIBUTES: tuple[Attribute, ...] = (
    Attribute(trait_type="Category", value="Art"),
    Attribute(trait_type="Style", value="Generated"),
    Attribute(trait_type="Model", value="Open-AI-dalle-3"),
)


class MetadataBuilder:
    """Build NFT metadata documents and pin them."""

    def __init__(self, store: LocalImageStore, pinning: PinningClient) -> None:
        self._store = store
        self._pinning = pinning

    async def build_and_pin(
        self,
        image_url: str,
        name: str,
        description: str,
        attributes: list[Attribute] | tuple[Attribute, ...] = DEFAULT_ATTRIBUTES,
    ) -> PinResult:
        """Write the metadata document for an image and pin it.

        Args:
            image_url: Gateway URL of the already pinned image.
            name: Display name of the NFT.
            description: NFT description.
            attributes: Trait records; defaults to :data:`DEFAULT_ATTRIBUTES`.

        Returns:
            Pin result of the metadata document.

        Raises:
            StorageError: If the document cannot be written.
            PinError: If pinning the document fails.
        """
        document = NFTMetadata(
            name=name,
            description=description,
            image=image_url,
            attributes=list(attributes),
        )
        path = self._store.write_json(self._store.metadata_path(), document.model_dump())
        try:
            return await self._pinning.pin(path, METADATA_DISPLAY_NAME)
        finally:
            self._store.discard(path)
