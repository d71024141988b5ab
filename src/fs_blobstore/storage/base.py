"""Capability protocols for keyed blob storage implementations."""

from dataclasses import dataclass
from typing import (
    Awaitable,
    BinaryIO,
    Callable,
    Generic,
    Optional,
    Protocol,
    TypeVar,
    Union,
)

from ..cancellation import CancellationToken

T = TypeVar("T")

# Caller-supplied content producer: receives the write handle and the token
BlobWriter = Callable[[BinaryIO, CancellationToken], None]
AsyncBlobWriter = Callable[[BinaryIO, CancellationToken], Awaitable[None]]
AnyBlobWriter = Union[BlobWriter, AsyncBlobWriter]


@dataclass(frozen=True)
class TryReadResult(Generic[T]):
    """Outcome of a try-read: ``success`` is True exactly when ``value`` is set."""
    success: bool
    value: Optional[T] = None

    @classmethod
    def found(cls, value: T) -> "TryReadResult[T]":
        return cls(True, value)

    @classmethod
    def not_found(cls) -> "TryReadResult[T]":
        return cls(False, None)

    def __bool__(self) -> bool:
        return self.success


class BlobStore(Protocol):
    """
    Protocol for synchronous keyed blob stores.

    Absence and create conflicts are results, not errors. I/O failures
    propagate as ``OSError``.
    """

    def exists(self, key: str) -> bool:
        """Check whether a blob is stored under ``key``."""
        ...

    def read(self, key: str) -> Optional[BinaryIO]:
        """
        Open a blob for reading.

        Returns:
            Readable handle owned by the caller, or None if absent
        """
        ...

    def try_read(self, key: str) -> TryReadResult[BinaryIO]:
        """Like ``read`` but reports the outcome as a ``TryReadResult``."""
        ...

    def write(
        self,
        key: str,
        overwrite: bool,
        writer: BlobWriter,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        """
        Write a blob atomically.

        Returns:
            True if the content was committed, False if the key already
            existed and ``overwrite`` was False
        """
        ...

    def delete(self, key: str) -> bool:
        """Delete a blob. Returns True only if something was removed."""
        ...


class ReadableBlobs(Protocol):
    """Async existence and read capability."""

    async def exists_async(
        self, key: str, token: Optional[CancellationToken] = None
    ) -> bool:
        ...

    async def try_read_async(
        self, key: str, token: Optional[CancellationToken] = None
    ) -> TryReadResult[BinaryIO]:
        ...


class DeletableBlobs(Protocol):
    """Async delete capability."""

    async def delete_async(
        self, key: str, token: Optional[CancellationToken] = None
    ) -> bool:
        ...


class UpdatableBlobs(Protocol):
    """Async create-or-replace capability."""

    async def update_async(
        self,
        key: str,
        writer: AnyBlobWriter,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        """Write ``key``, replacing any existing content."""
        ...


class AsyncBlobStore(ReadableBlobs, DeletableBlobs, UpdatableBlobs, Protocol):
    """
    Generic capability contract consumed by code that does not care where
    blobs live.

    Every call checks its cancellation token before touching storage.
    """
    pass
