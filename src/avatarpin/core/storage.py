"""Local transient storage for generated avatars.

The storage directory is the only hand-off medium between the generate
endpoint and the pin endpoint: the first writes ``<name>.png``, the second
reads it, and the cleanup endpoint removes it.  There is no ownership
arbitration, so the last writer for a given name wins.

Two guarantees are provided on top of the plain filesystem:

- ``name`` is checked against an allow-list before it becomes a path
  segment, so a caller cannot address files outside the storage directory.
- writes go through :meth:`LocalImageStore.atomic_write`, which writes to a
  hidden temporary sibling and renames it into place only after the data is
  flushed to disk.  A reader therefore sees either the previous complete file
  or the new complete file, never a truncated one.
"""

from __future__ import annotations

import json
import logging
import os
import re
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from avatarpin.core.errors import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

# Letters, digits, space, underscore, dot and dash; must start with a letter
# or digit so hidden files and relative segments are impossible, and must not
# end with a space.
NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9 _.-]{0,127}(?<! )$")

IMAGE_SUFFIX = ".png"


def validate_name(name: str | None) -> str:
    """Return *name* unchanged, or raise if it cannot be used as a file stem.

    Args:
        name: Caller-supplied avatar name.

    Returns:
        The name itself.

    Raises:
        ValidationError: If the name is empty, contains characters outside
            the allow-list, starts or ends with a space, or contains ``..``.
    """
    if not name:
        raise ValidationError("Missing required 'name' in the body.")
    if not NAME_PATTERN.fullmatch(name) or ".." in name:
        raise ValidationError(
            "Invalid 'name': use letters, digits, spaces, '_', '.' or '-' (max 128 characters)."
        )
    return name


class LocalImageStore:
    """File-backed store for avatar images and transient metadata documents.

    Attributes:
        root: Directory holding every file managed by the store.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def image_path(self, name: str) -> Path:
        """Return the deterministic path of the image for *name*."""
        return self.root / f"{validate_name(name)}{IMAGE_SUFFIX}"

    def exists(self, name: str) -> bool:
        return self.image_path(name).is_file()

    def require_image(self, name: str) -> Path:
        """Return the image path for *name*, raising if no file is there.

        Raises:
            NotFoundError: If ``<name>.png`` does not exist.
        """
        path = self.image_path(name)
        if not path.is_file():
            logger.info(f"File not found at path: {path}")
            raise NotFoundError("Image file not found. Ensure the file path is correct.")
        return path

    @contextmanager
    def atomic_write(self, target: Path) -> Iterator[BinaryIO]:
        """Open a temporary file that replaces *target* when the block exits cleanly.

        The data is flushed and fsynced before the rename.  If the block
        raises, the temporary file is removed and *target* is left untouched.

        Args:
            target: Final path of the file.

        Yields:
            A binary file handle for the temporary file.
        """
        tmp_path = target.with_name(f".{target.name}.{uuid.uuid4().hex}.part")
        try:
            with open(tmp_path, "wb") as handle:
                yield handle
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, target)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def write_json(self, path: Path, document: dict) -> Path:
        """Serialize *document* to *path* with 2-space indentation.

        Raises:
            StorageError: If the file cannot be written.
        """
        data = json.dumps(document, indent=2).encode("utf-8")
        try:
            with self.atomic_write(path) as handle:
                handle.write(data)
        except OSError as exc:
            raise StorageError(f"Failed to write {path.name}: {exc}") from exc
        return path

    def metadata_path(self) -> Path:
        """Return a fresh, per-build path for an NFT metadata document."""
        return self.root / f"nft-metadata-{uuid.uuid4().hex}.json"

    def delete_image(self, name: str) -> Path:
        """Delete the image for *name*.

        Returns:
            The path that was removed.

        Raises:
            NotFoundError: If the file does not exist.
            StorageError: If the file exists but cannot be removed.
        """
        path = self.image_path(name)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            logger.info(f"No file to delete at path: {path}")
            raise NotFoundError(
                "Image file not found. Ensure the file path is correct."
            ) from exc
        except OSError as exc:
            raise StorageError("Failed to delete file") from exc
        return path

    def discard(self, path: Path) -> None:
        """Remove a transient file, logging instead of raising on failure."""
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning(f"Could not remove transient file {path}: {exc}")
