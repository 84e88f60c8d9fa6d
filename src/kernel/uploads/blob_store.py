"""
Local filesystem blob store for uploaded images.

Files land directly under ``base_dir`` with the name chosen by the caller.
Returned paths are ``base_dir/<name>``, the same string later handed back
to ``delete``.
"""

import os
import tempfile
from pathlib import Path
from typing import Protocol

from src.kernel.errors import StoreError
from src.logging_config import get_logger

logger = get_logger(__name__)


class BlobStore(Protocol):
    def store(self, name: str, data: bytes) -> str:
        """Save bytes under ``name`` and return the stored path."""
        ...

    def delete(self, path: str) -> None:
        """Remove a stored path. Raises FileNotFoundError if absent."""
        ...


class LocalBlobStore:
    """Blob store backed by a single local directory."""

    def __init__(self, base_dir: str | Path, *, create_dirs: bool = True) -> None:
        self.base_dir = Path(base_dir)
        if create_dirs:
            self.base_dir.mkdir(parents=True, exist_ok=True)

    def _resolve(self, name: str) -> Path:
        path = (self.base_dir / name).resolve()
        if not path.is_relative_to(self.base_dir.resolve()):
            raise StoreError("Refusing to touch a path outside the upload directory", blob_name=name)
        return path

    def store(self, name: str, data: bytes) -> str:
        """
        Write ``data`` atomically: a temp file in the same directory is
        renamed into place, so a failed write never leaves a partial file.
        """
        target = self._resolve(name)
        fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=".upload-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, target)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            logger.exception("Blob write failed", extra={"blob_name": name})
            raise StoreError("Could not store upload") from e

        return str(self.base_dir / name)

    def delete(self, path: str) -> None:
        target = self._resolve(Path(path).name)
        target.unlink()

    def exists(self, path: str) -> bool:
        return self._resolve(Path(path).name).exists()
