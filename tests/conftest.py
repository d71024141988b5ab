"""Shared test fixtures and utilities."""

import pytest

from fs_blobstore.storage import FileSystemBlobStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's store configuration out of the tests."""
    for name in ("FS_BLOBSTORE_PATH", "FS_BLOBSTORE_FSYNC", "FS_BLOBSTORE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def blob_dir(tmp_path):
    """Directory used as the store root."""
    return tmp_path / "blobs"


@pytest.fixture
def store(blob_dir):
    """A fresh filesystem blob store."""
    return FileSystemBlobStore.get_or_create(blob_dir)


@pytest.fixture
def writer_of():
    """Factory fixture returning a writer that emits fixed bytes."""
    def _writer_of(data: bytes):
        def _write(stream, token):
            stream.write(data)
        return _write
    return _writer_of


@pytest.fixture
def listing():
    """Sorted file names in a directory, temp files included."""
    def _listing(path):
        return sorted(p.name for p in path.iterdir())
    return _listing
