"""Pydantic request and response models for the Avatar Pin API.

Request fields are optional at the schema level: a missing or empty field
is reported by the pipeline's validation step as a 400 with the service's
own message rather than as FastAPI's generic 422.

Response field names keep the camelCase keys existing clients read
(``filePath``, ``imageIPFSUrl``, ``metadataIPFSUrl``).

Models
------
AvatarRequest
    Payload for ``POST /generate-avatar-openAI`` and
    ``POST /server-storage-clean``.
NFTPinRequest
    Payload for ``POST /create-nft-pin-metadata``.
GenerateResponse, PinResponse, CleanResponse
    Success bodies of the three endpoints.
ErrorResponse
    Body of every 4xx and 5xx response.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AvatarRequest(BaseModel):
    """Request body naming an avatar.

    Attributes:
        name: Avatar name; also the stem of the local ``<name>.png`` file.
    """

    name: str | None = Field(
        default=None,
        description="Avatar name, used as the image file stem and NFT name.",
    )


class NFTPinRequest(BaseModel):
    """Request body for ``POST /create-nft-pin-metadata``.

    Attributes:
        name: Avatar name of a previously generated image.
        description: Description stored in the NFT metadata.
    """

    name: str | None = Field(
        default=None,
        description="Avatar name of a previously generated image.",
    )
    description: str | None = Field(
        default=None,
        description="Description stored in the NFT metadata document.",
    )


class GenerateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    file_path: str = Field(..., alias="filePath")


class PinResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    image_ipfs_url: str = Field(..., alias="imageIPFSUrl")
    metadata_ipfs_url: str = Field(..., alias="metadataIPFSUrl")


class CleanResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Failure body.

    Client errors (400, 404) carry ``message``; downstream failures (500)
    carry ``error``.
    """

    success: bool = False
    message: str | None = None
    error: str | None = None
