"""Exception hierarchy for the avatar pipeline.

Every error raised by a pipeline step derives from :class:`AvatarPinError`
and carries the HTTP status the API layer reports for it.  Client mistakes
map to 4xx; every downstream failure maps to 500 and is distinguishable to
the caller only by its message.
"""

from __future__ import annotations


class AvatarPinError(Exception):
    """Base class for all avatar pipeline errors.

    Attributes:
        message: Human-readable description returned to the caller.
        status_code: HTTP status reported by the API layer.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AvatarPinError):
    """A required request field is missing or unusable."""

    status_code = 400


class NotFoundError(AvatarPinError):
    """An expected local file does not exist."""

    status_code = 404


class GenerationError(AvatarPinError):
    """The image-synthesis service failed or returned no usable image."""


class DownloadError(AvatarPinError):
    """Fetching the generated image or writing it to disk failed."""


class PinError(AvatarPinError):
    """The pinning service rejected the upload or could not be reached.

    Attributes:
        status: Upstream HTTP status, or ``None`` for transport failures.
        body: Upstream response body, when one was received.
    """

    def __init__(self, message: str, status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class StorageError(AvatarPinError):
    """A local file could not be written, read or deleted."""
