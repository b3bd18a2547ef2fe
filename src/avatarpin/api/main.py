"""Avatar Pin - FastAPI Application.

This module is the single entry point for the web service.  It defines the
FastAPI ``app`` instance, the three REST routes, the error handlers, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Configuration** comes from :data:`avatarpin.core.config.config`
  (``AVATARPIN_*`` environment variables and ``.env``).
- **Collaborators** (OpenAI client, Pinata client, image store) are wired
  once at startup into an :class:`~avatarpin.core.pipeline.AvatarPipeline`
  that shares one ``httpx.AsyncClient``, and handed to routes through the
  :func:`get_pipeline` dependency.
- **Errors** raised by the pipeline derive from
  :class:`~avatarpin.core.errors.AvatarPinError` and are rendered by a single
  exception handler: 400/404 as ``{success: false, message}``, 500 as
  ``{success: false, error}``.
- **Generated images** live in the storage directory, which is also served
  at ``/static`` when ``serve_static`` is enabled.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
POST      ``/generate-avatar-openAI``   Generate an avatar and save it locally
POST      ``/create-nft-pin-metadata``  Pin the image and its NFT metadata
POST      ``/server-storage-clean``     Delete the local image
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    avatarpin

Direct invocation::

    python -m avatarpin.api.main
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from avatarpin import __version__
from avatarpin.api.models import (
    AvatarRequest,
    CleanResponse,
    ErrorResponse,
    GenerateResponse,
    NFTPinRequest,
    PinResponse,
)
from avatarpin.core.config import config
from avatarpin.core.errors import AvatarPinError
from avatarpin.core.pipeline import AvatarPipeline
from avatarpin.core.storage import IMAGE_SUFFIX

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Application lifecycle.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared HTTP client and pipeline, and close them on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    async with httpx.AsyncClient(timeout=config.request_timeout) as http:
        app.state.pipeline = AvatarPipeline.from_config(config, http)
        logger.info(f"Avatar pipeline ready (storage: {config.storage_dir.resolve()})")

        yield

        await app.state.pipeline.aclose()
        logger.info("Avatar pipeline closed on shutdown.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Avatar Pin",
    description="Generate avatar images and pin them with NFT metadata to IPFS.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ImageFiles(StaticFiles):
    """Static files restricted to finished ``*.png`` images.

    Download temp files (hidden ``.part`` siblings) and transient metadata
    documents share the storage directory but are never served.
    """

    def lookup_path(self, path: str) -> tuple[str, os.stat_result | None]:
        name = os.path.basename(path)
        if name.startswith(".") or not name.endswith(IMAGE_SUFFIX):
            return "", None
        return super().lookup_path(path)


if config.serve_static:
    app.mount("/static", ImageFiles(directory=str(config.storage_dir)), name="static")


def get_pipeline(request: Request) -> AvatarPipeline:
    """Return the pipeline created by :func:`lifespan`."""
    return request.app.state.pipeline


# ---------------------------------------------------------------------------
# Error handlers.
# ---------------------------------------------------------------------------


def _error_body(status_code: int, text: str) -> dict:
    if status_code < 500:
        return ErrorResponse(message=text).model_dump(exclude_none=True)
    return ErrorResponse(error=text).model_dump(exclude_none=True)


@app.exception_handler(AvatarPinError)
async def handle_pipeline_error(request: Request, exc: AvatarPinError) -> JSONResponse:
    """Render a pipeline error as the service's JSON error body.

    The failing pipeline step has already logged the error.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, exc.message),
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as 400 rather than FastAPI's 422."""
    logger.info(f"{request.url.path} rejected malformed body: {exc.errors()}")
    return JSONResponse(status_code=400, content=_error_body(400, "Invalid request body."))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error in {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=_error_body(500, str(exc)))


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.post("/generate-avatar-openAI", response_model=GenerateResponse)
async def generate_avatar(
    req: AvatarRequest,
    pipeline: AvatarPipeline = Depends(get_pipeline),
) -> GenerateResponse:
    """Generate an avatar image and save it as ``<name>.png``.

    Args:
        req: Validated :class:`AvatarRequest` payload.

    Returns:
        ``{success, message, filePath}`` with the absolute path of the image.

    Raises:
        ValidationError: 400 for a missing or unusable name.
        GenerationError: 500 when the synthesis service fails.
        DownloadError: 500 when the image cannot be fetched or saved.
    """
    avatar = await pipeline.generate_avatar(req.name)
    return GenerateResponse(
        message="Image generated and saved successfully.",
        file_path=str(avatar.file_path),
    )


@app.post("/create-nft-pin-metadata", response_model=PinResponse)
async def create_nft_pin_metadata(
    req: NFTPinRequest,
    pipeline: AvatarPipeline = Depends(get_pipeline),
) -> PinResponse:
    """Pin a generated image, then pin NFT metadata referencing it.

    Args:
        req: Validated :class:`NFTPinRequest` payload.

    Returns:
        ``{success, message, imageIPFSUrl, metadataIPFSUrl}``.

    Raises:
        ValidationError: 400 for a missing name or description.
        NotFoundError: 404 when ``<name>.png`` does not exist.
        PinError: 500 when either pin fails.
        StorageError: 500 when the metadata document cannot be written.
    """
    pinned = await pipeline.pin_avatar(req.name, req.description)
    return PinResponse(
        message="Image and metadata successfully pinned to IPFS.",
        image_ipfs_url=pinned.image_ipfs_url,
        metadata_ipfs_url=pinned.metadata_ipfs_url,
    )


@app.post("/server-storage-clean", response_model=CleanResponse)
async def server_storage_clean(
    req: AvatarRequest,
    pipeline: AvatarPipeline = Depends(get_pipeline),
) -> CleanResponse:
    """Delete ``<name>.png`` from local storage.

    Raises:
        ValidationError: 400 for a missing name.
        NotFoundError: 404 when the file does not exist.
        StorageError: 500 when the file cannot be removed.
    """
    await pipeline.clean_storage(req.name)
    return CleanResponse(message="Image Successfully removed.")


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Configure logging and launch the uvicorn ASGI server.

    Reads host and port from :data:`~avatarpin.core.config.config`
    (``AVATARPIN_SERVER_HOST`` / ``AVATARPIN_SERVER_PORT``).  Defaults to
    ``0.0.0.0:3000``.

    This function is registered as the ``avatarpin`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Server is running on port {config.server_port}")

    uvicorn.run(
        "avatarpin.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
