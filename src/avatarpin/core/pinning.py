"""Pinata client for pinning files to IPFS.

A pin is a single multipart upload of one file plus two JSON side-channel
fields:

- ``pinataMetadata``: ``{"name": <display name>}``, shown in the Pinata UI.
- ``pinataOptions``: ``{"cidVersion": 0}``, which requests a legacy CIDv0
  (``Qm...``) content identifier.

The upload is authenticated with a bearer JWT.  The response's ``IpfsHash``
is the content identifier; :func:`gateway_url` turns it into a public link.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from avatarpin.core.errors import PinError
from avatarpin.core.retry import call_with_retry

logger = logging.getLogger(__name__)

PIN_FILE_ENDPOINT = "/pinning/pinFileToIPFS"
CID_VERSION = 0


class PinResult(BaseModel):
    """Parsed response of a successful ``pinFileToIPFS`` call.

    Only ``content_id`` is consumed by the pipeline; the other fields are
    kept for logging.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    content_id: str = Field(..., alias="IpfsHash", min_length=1)
    pin_size: int | None = Field(default=None, alias="PinSize")
    timestamp: str | None = Field(default=None, alias="Timestamp")


def gateway_url(content_id: str, gateway: str = "https://ipfs.io") -> str:
    """Return the public gateway URL for *content_id*.

    The identifier is inserted verbatim.

    >>> gateway_url("Qm1")
    'https://ipfs.io/ipfs/Qm1'
    """
    return f"{gateway.rstrip('/')}/ipfs/{content_id}"


class PinningClient:
    """Upload local files to Pinata.

    Attributes:
        _http (httpx.AsyncClient): Shared HTTP client.
        _jwt (str | None): Bearer token, ``None`` when not configured.
        api_url (str): Base URL of the Pinata API.
        gateway (str): Base URL of the public IPFS gateway.
        retries (int): Retries after a transport failure.
        backoff (float): Initial retry backoff in seconds.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        jwt: str | None,
        *,
        api_url: str = "https://api.pinata.cloud",
        gateway: str = "https://ipfs.io",
        retries: int = 0,
        backoff: float = 0.5,
    ) -> None:
        self._http = http
        self._jwt = jwt
        self.api_url = api_url.rstrip("/")
        self.gateway = gateway
        self.retries = retries
        self.backoff = backoff

    def gateway_url(self, content_id: str) -> str:
        return gateway_url(content_id, self.gateway)

    async def pin(self, file_path: Path, display_name: str) -> PinResult:
        """Pin the file at *file_path* under *display_name*.

        Args:
            file_path: Local file to upload.
            display_name: Name recorded in the pin's metadata.

        Returns:
            The parsed pin response.

        Raises:
            PinError: If no JWT is configured, the file cannot be read, the
                request fails, or Pinata answers with a non-2xx status or an
                unexpected body.  Upstream status and body are kept on the
                exception.
        """
        if not self._jwt:
            raise PinError("Pinata JWT is not configured.")

        try:
            response = await call_with_retry(
                lambda: self._upload(Path(file_path), display_name),
                retries=self.retries,
                backoff=self.backoff,
                retry_on=(httpx.TransportError,),
                label="Pinata upload",
            )
        except httpx.HTTPError as exc:
            raise PinError(f"Pinning request failed: {exc}") from exc
        except OSError as exc:
            raise PinError(f"Could not read {Path(file_path).name}: {exc}") from exc

        if not response.is_success:
            body = response.text
            raise PinError(
                f"Pinning failed with status {response.status_code}: {body}",
                status=response.status_code,
                body=body,
            )

        try:
            result = PinResult.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            raise PinError(
                f"Unexpected pinning response: {response.text}",
                status=response.status_code,
                body=response.text,
            ) from exc

        logger.info(f"Pinned {display_name!r} as {result.content_id}")
        return result

    async def _upload(self, file_path: Path, display_name: str) -> httpx.Response:
        with open(file_path, "rb") as handle:
            return await self._http.post(
                f"{self.api_url}{PIN_FILE_ENDPOINT}",
                headers={"Authorization": f"Bearer {self._jwt}"},
                files={"file": (file_path.name, handle, "application/octet-stream")},
                data={
                    "pinataMetadata": json.dumps({"name": display_name}),
                    "pinataOptions": json.dumps({"cidVersion": CID_VERSION}),
                },
            )
