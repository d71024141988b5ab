"""Custom exceptions for fs-blobstore.

Missing blobs and create conflicts are reported as results (``None`` /
``False``), never raised. Filesystem failures surface as the builtin
``OSError`` family, unmodified.
"""


class BlobStoreError(RuntimeError):
    """Base class for all blob store errors."""
    pass


# Argument Errors
class InvalidArgumentError(BlobStoreError, ValueError):
    """A required argument was missing or unusable."""
    pass


class InvalidKeyError(InvalidArgumentError):
    """Blob key is empty, reserved, or contains forbidden characters."""

    def __init__(self, key, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid blob key {key!r}: {reason}")


# Cancellation
class OperationCancelledError(BlobStoreError):
    """Operation was cancelled through its cancellation token."""

    def __init__(self, message: str = "Operation was cancelled"):
        super().__init__(message)


# Configuration Errors
class ConfigError(BlobStoreError):
    """Base class for configuration errors."""
    pass
