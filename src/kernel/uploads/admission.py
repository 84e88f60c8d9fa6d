"""
Upload admission filter.

Decides whether an incoming image may be stored, before any byte reaches
the blob store:

- declared MIME type must be in the allow-list
- size must not exceed the configured ceiling
- the stored name is a fresh random token plus the type's extension;
  the client filename is never used
"""

import asyncio
import uuid
from dataclasses import dataclass
from typing import Dict, Optional

from src.kernel.errors import AdmissionError
from src.kernel.uploads.blob_store import BlobStore
from src.logging_config import get_logger

logger = get_logger(__name__)

MIME_TYPE_EXTENSIONS: Dict[str, str] = {
    "image/png": "png",
    "image/jpg": "jpg",
    "image/jpeg": "jpeg",
}

DEFAULT_MAX_UPLOAD_BYTES = 500_000


@dataclass(frozen=True)
class StoredAsset:
    """Reference to an admitted, stored upload."""

    path: str
    content_type: str
    size_bytes: int


def extension_for(content_type: Optional[str]) -> Optional[str]:
    """Extension for an allowed MIME type, or None."""
    if not content_type:
        return None
    return MIME_TYPE_EXTENSIONS.get(content_type.split(";", 1)[0].strip().lower())


def generate_asset_name(extension: str) -> str:
    return f"{uuid.uuid4().hex}.{extension}"


class UploadAdmissionFilter:
    """Gatekeeper between the request body and the blob store."""

    def __init__(self, store: BlobStore, max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES):
        self.store = store
        self.max_bytes = max_bytes

    def check(self, content_type: Optional[str], size_bytes: int) -> str:
        """
        Validate type and size without storing.

        Returns:
            The extension to store under

        Raises:
            AdmissionError: If the type is not allowed or the payload is too large
        """
        extension = extension_for(content_type)
        if extension is None:
            raise AdmissionError(
                f"Invalid mime type '{content_type}'. "
                f"Allowed: {', '.join(MIME_TYPE_EXTENSIONS)}"
            )
        if size_bytes > self.max_bytes:
            raise AdmissionError(
                f"File too large: {size_bytes} bytes exceeds the {self.max_bytes} byte limit"
            )
        if size_bytes == 0:
            raise AdmissionError("Uploaded file is empty")
        return extension

    async def admit(
        self,
        content_type: Optional[str],
        filename: Optional[str],
        data: bytes,
    ) -> StoredAsset:
        """Check the upload and, if accepted, store it under a fresh name."""
        extension = self.check(content_type, len(data))
        name = generate_asset_name(extension)

        path = await asyncio.to_thread(self.store.store, name, data)

        logger.info(
            "Upload admitted",
            extra={"asset_path": path, "client_filename": filename, "size_bytes": len(data)},
        )
        return StoredAsset(path=path, content_type=content_type or "", size_bytes=len(data))

    async def discard(self, path: str) -> None:
        """Best-effort removal of a stored asset. Never raises."""
        await discard_asset(self.store, path)


async def discard_asset(store: BlobStore, path: Optional[str]) -> None:
    """Delete a stored asset, logging (not raising) any failure."""
    if not path:
        return
    try:
        await asyncio.to_thread(store.delete, path)
    except Exception:
        logger.warning("Could not delete stored asset", exc_info=True, extra={"asset_path": path})
    else:
        logger.info("Stored asset deleted", extra={"asset_path": path})
