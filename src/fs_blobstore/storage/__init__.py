"""Storage package: the blob store contract and its filesystem implementation."""

from .base import AsyncBlobStore, BlobStore, TryReadResult
from .factory import make_blob_store
from .fs import FileSystemBlobStore

__all__ = [
    "AsyncBlobStore",
    "BlobStore",
    "FileSystemBlobStore",
    "TryReadResult",
    "make_blob_store",
]
