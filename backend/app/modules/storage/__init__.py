"""
Storage Module - document files on local disk
"""

from .blob_storage import (
    BlobStorage,
    StoredBlob,
    IncomingFile,
    content_type_for,
    get_blob_storage,
    CONTENT_TYPES,
    DEFAULT_CONTENT_TYPE,
)

__all__ = [
    "BlobStorage",
    "StoredBlob",
    "IncomingFile",
    "content_type_for",
    "get_blob_storage",
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
]
