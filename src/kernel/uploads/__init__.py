"""
Uploads - admission filter and blob storage for place images.
"""

from src.kernel.uploads.admission import (
    MIME_TYPE_EXTENSIONS,
    StoredAsset,
    UploadAdmissionFilter,
    discard_asset,
    extension_for,
)
from src.kernel.uploads.blob_store import BlobStore, LocalBlobStore

__all__ = [
    "MIME_TYPE_EXTENSIONS",
    "StoredAsset",
    "UploadAdmissionFilter",
    "discard_asset",
    "extension_for",
    "BlobStore",
    "LocalBlobStore",
]
