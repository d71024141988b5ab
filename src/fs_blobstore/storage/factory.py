"""Factory for creating blob storage instances."""

from .fs import FileSystemBlobStore
from ..config import StoreSettings
from ..errors import ConfigError


def make_blob_store(settings: StoreSettings) -> FileSystemBlobStore:
    """
    Create blob store instance based on settings.

    Args:
        settings: Store configuration

    Returns:
        Store with its base directory created

    Raises:
        ConfigError: If configuration is invalid
        NotImplementedError: If provider is not supported
    """
    if settings.provider == "fs":
        if not settings.base_path:
            raise ConfigError(
                "base_path required for filesystem storage "
                "(set it in fs-blobstore.yaml or FS_BLOBSTORE_PATH)"
            )
        return FileSystemBlobStore.get_or_create(settings.base_path, fsync=settings.fsync)

    raise NotImplementedError(f"Provider {settings.provider} not supported")
