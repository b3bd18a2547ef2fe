"""Download generated images into local storage."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx

from avatarpin.core.errors import DownloadError
from avatarpin.core.retry import call_with_retry
from avatarpin.core.storage import LocalImageStore

logger = logging.getLogger(__name__)


class ImageFetcher:
    """Stream a remote image to ``<name>.png`` in the image store.

    The response body is written chunk by chunk to a temporary file that is
    renamed over the final path only once the whole body has been received
    and flushed.  An existing file with the same name is replaced.

    Attributes:
        _http (httpx.AsyncClient): Shared HTTP client.
        _store (LocalImageStore): Destination store.
        retries (int): Retries after a transport failure.
        backoff (float): Initial retry backoff in seconds.
        deadline (float | None): Limit in seconds on each whole attempt,
            headers and body included.  ``None`` disables it.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        store: LocalImageStore,
        *,
        retries: int = 0,
        backoff: float = 0.5,
        deadline: float | None = None,
    ) -> None:
        self._http = http
        self._store = store
        self.retries = retries
        self.backoff = backoff
        self.deadline = deadline

    async def download(self, url: str, name: str) -> Path:
        """Fetch *url* and save it as the image for *name*.

        Args:
            url: Remote image URL.
            name: Avatar name; the file is saved as ``<name>.png``.

        Returns:
            Absolute path of the saved image.

        Raises:
            ValidationError: If *name* is not a usable file stem.
            DownloadError: If the URL is unusable, the fetch fails or runs past
                the deadline, the server answers with a non-2xx status, or the
                file cannot be written.
        """
        target = self._store.image_path(name)

        try:
            await call_with_retry(
                lambda: asyncio.wait_for(self._fetch_to(url, target), self.deadline),
                retries=self.retries,
                backoff=self.backoff,
                retry_on=(httpx.TransportError,),
                label="Image download",
            )
        except httpx.HTTPStatusError as exc:
            raise DownloadError(
                f"Image download failed with status {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
            raise DownloadError(f"Image download failed: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise DownloadError(
                f"Image download did not finish within {self.deadline} seconds"
            ) from exc
        except OSError as exc:
            raise DownloadError(f"Could not save image to {target.name}: {exc}") from exc

        return target

    async def _fetch_to(self, url: str, target: Path) -> None:
        async with self._http.stream("GET", url) as response:
            response.raise_for_status()
            with self._store.atomic_write(target) as handle:
                async for chunk in response.aiter_bytes():
                    handle.write(chunk)
