"""Crash-safe, key-addressed blob storage on the local filesystem."""

from .cancellation import CancellationToken
from .constants import VERSION
from .errors import (
    BlobStoreError,
    ConfigError,
    InvalidArgumentError,
    InvalidKeyError,
    OperationCancelledError,
)
from .storage import (
    AsyncBlobStore,
    BlobStore,
    FileSystemBlobStore,
    TryReadResult,
    make_blob_store,
)

__version__ = VERSION

__all__ = [
    "AsyncBlobStore",
    "BlobStore",
    "BlobStoreError",
    "CancellationToken",
    "ConfigError",
    "FileSystemBlobStore",
    "InvalidArgumentError",
    "InvalidKeyError",
    "OperationCancelledError",
    "TryReadResult",
    "make_blob_store",
]
