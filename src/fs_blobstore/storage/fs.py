"""Filesystem blob storage implementation.

Every key is stored as one file directly under ``base_path``; the file name
is the key itself. Writes go to a uniquely named temp file in the same
directory and are committed with a single rename, so readers see either
the previous complete content or the new complete content.
"""

import asyncio
import errno
import inspect
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union

from ..cancellation import CancellationToken
from ..errors import InvalidArgumentError
from ..keys import temp_name_for, validate_key
from ..utils import fsync_dir
from .base import AnyBlobWriter, BlobWriter, TryReadResult

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# errno values meaning "this filesystem can't hard link", not a real failure
_NO_LINK_ERRNOS = frozenset(
    code for code in (
        getattr(errno, "EPERM", None),
        getattr(errno, "ENOTSUP", None),
        getattr(errno, "EOPNOTSUPP", None),
        getattr(errno, "ENOSYS", None),
        getattr(errno, "EMLINK", None),
    )
    if code is not None
)


def _token(token: Optional[CancellationToken]) -> CancellationToken:
    return token if token is not None else CancellationToken.none()


def _is_async_writer(writer) -> bool:
    return inspect.iscoroutinefunction(writer) or inspect.iscoroutinefunction(
        getattr(writer, "__call__", None)
    )


def _copy_from(source: Path) -> BlobWriter:
    """Writer that streams ``source`` into the sink, honouring the token per chunk."""
    def writer(stream: BinaryIO, token: CancellationToken) -> None:
        with open(source, "rb") as src:
            for chunk in iter(lambda: src.read(CHUNK_SIZE), b""):
                token.raise_if_cancelled()
                stream.write(chunk)
    return writer


@dataclass(frozen=True)
class FileSystemBlobStore:
    """
    Flat, key-addressed blob store on the local filesystem.

    Layout: base_path/<key>. Temp files live next to their target as
    ``<stem>.<hex token><suffix>`` and never outlast a write.

    There is no in-process locking; concurrent writers to the same key are
    serialized only by the filesystem's rename and link semantics.

    Attributes:
        base_path: Directory holding one file per blob
        fsync: Flush data and directory entries to stable storage on commit
    """
    base_path: Path
    fsync: bool = True

    @classmethod
    def get_or_create(
        cls, base_path: Union[str, Path, None], fsync: bool = True
    ) -> "FileSystemBlobStore":
        """
        Create a store rooted at ``base_path``, creating the directory if needed.

        Safe to call repeatedly; stores for the same path compare equal.

        Args:
            base_path: Directory for blob files
            fsync: Whether commits fsync file data and the directory

        Returns:
            Ready-to-use store

        Raises:
            InvalidArgumentError: If base_path is missing
            OSError: If the directory cannot be created
        """
        if base_path is None or (isinstance(base_path, str) and not base_path):
            raise InvalidArgumentError("base_path is required")

        path = Path(base_path)
        path.mkdir(parents=True, exist_ok=True)
        return cls(path, fsync=fsync)

    def resolve(self, key: str) -> Path:
        """
        Map a key to its file path without touching the filesystem.

        Raises:
            InvalidKeyError: If the key is not a valid single file name
        """
        return self.base_path / validate_key(key)

    # ---- Reads ------------------------------------------------------------

    def exists(self, key: str) -> bool:
        # os.path.isfile reports False for any OSError (name too long, EACCES)
        return os.path.isfile(self.resolve(key))

    def read(self, key: str) -> Optional[BinaryIO]:
        """
        Open a blob for shared, read-only access.

        The caller owns the returned handle and must close it, preferably
        with ``with store.read(key) as f:``.

        Returns:
            Handle positioned at offset 0, or None if no blob exists

        Raises:
            InvalidKeyError: If the key is invalid
            OSError: For failures other than absence (permissions, fd exhaustion)
        """
        path = self.resolve(key)
        if not path.is_file():
            return None

        try:
            return open(path, "rb")
        except FileNotFoundError:
            # Deleted between the check and the open
            return None

    def try_read(self, key: str) -> TryReadResult[BinaryIO]:
        stream = self.read(key)
        if stream is None:
            return TryReadResult.not_found()
        return TryReadResult.found(stream)

    def read_bytes(self, key: str) -> Optional[bytes]:
        """Read a whole blob into memory, or None if absent."""
        stream = self.read(key)
        if stream is None:
            return None
        with stream:
            return stream.read()

    def get_file(self, key: str, dest: Union[str, Path]) -> bool:
        """
        Copy a blob to a local file.

        The destination is replaced atomically, so a failed copy never
        leaves a truncated file behind.

        Returns:
            True if copied, False if the blob does not exist
        """
        stream = self.read(key)
        if stream is None:
            return False

        dest = Path(dest)
        tmp = None
        try:
            with stream:
                dest.parent.mkdir(parents=True, exist_ok=True)
                with tempfile.NamedTemporaryFile(
                    mode="wb",
                    delete=False,
                    dir=dest.parent,
                    prefix=f".{dest.name}.tmp-",
                    suffix=""
                ) as f:
                    tmp = Path(f.name)
                    for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
                        f.write(chunk)
                    f.flush()
                    if self.fsync:
                        os.fsync(f.fileno())
            os.replace(tmp, dest)
        except BaseException:
            if tmp is not None:
                tmp.unlink(missing_ok=True)
            raise
        return True

    # ---- Writes -----------------------------------------------------------

    def write(
        self,
        key: str,
        overwrite: bool,
        writer: BlobWriter,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        """
        Atomically write a blob from a caller-supplied writer.

        Protocol:
        1. Write everything to a fresh temp file in the target's directory
        2. Flush and fsync the temp file
        3. Commit with one rename (overwrite) or an exclusive hard link
           (create), so no reader ever sees partial content
        4. Remove the temp file if it is still there, whatever happened

        Args:
            key: Blob key
            overwrite: Replace existing content if True; otherwise leave an
                existing blob untouched and return False
            writer: Called as ``writer(stream, token)`` to produce the content
            token: Cancellation token, checked on entry and passed to writer

        Returns:
            True if the content was committed, False if the key existed and
            overwrite was False

        Raises:
            InvalidArgumentError: If writer is missing or the key is invalid
            OperationCancelledError: If cancelled on entry or by the writer
            OSError: If the filesystem fails
        """
        token = self._check_entry(writer, token)
        path = self.resolve(key)
        tmp = self._prepare(path)

        if not overwrite and path.exists():
            logger.debug("Blob %s already exists, not writing", key)
            return False

        try:
            with self._open_temp(tmp) as stream:
                result = writer(stream, token)
                if inspect.isawaitable(result):
                    close = getattr(result, "close", None)
                    if close is not None:
                        close()
                    raise InvalidArgumentError("writer is asynchronous; use write_async")
                self._flush(stream)
            return self._commit(tmp, path, overwrite)
        finally:
            self._discard(tmp)

    def create(
        self,
        key: str,
        writer: BlobWriter,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        return self.write(key, False, writer, token)

    def create_or_update(
        self,
        key: str,
        writer: BlobWriter,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        return self.write(key, True, writer, token)

    def write_bytes(self, key: str, data: bytes, overwrite: bool = True) -> bool:
        """Write in-memory content through the atomic write protocol."""
        return self.write(key, overwrite, lambda stream, _token: stream.write(data))

    def put_file(
        self,
        key: str,
        source: Union[str, Path],
        overwrite: bool = True,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        """Stream a local file into the store under ``key``."""
        return self.write(key, overwrite, _copy_from(Path(source)), token)

    # ---- Delete -----------------------------------------------------------

    def delete(self, key: str) -> bool:
        """
        Delete a blob.

        Never raises for I/O problems: a blob that cannot be removed is
        reported the same way as a missing one.

        Returns:
            True if the blob was removed, False otherwise

        Raises:
            InvalidKeyError: If the key is invalid
        """
        path = self.resolve(key)
        try:
            if not os.path.isfile(path):
                return False
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Could not delete blob %s: %s", key, e)
            return False
        return True

    # ---- Async capability adapters ----------------------------------------

    async def exists_async(
        self, key: str, token: Optional[CancellationToken] = None
    ) -> bool:
        _token(token).raise_if_cancelled()
        return await asyncio.to_thread(self.exists, key)

    async def try_read_async(
        self, key: str, token: Optional[CancellationToken] = None
    ) -> TryReadResult[BinaryIO]:
        _token(token).raise_if_cancelled()
        return await asyncio.to_thread(self.try_read, key)

    async def delete_async(
        self, key: str, token: Optional[CancellationToken] = None
    ) -> bool:
        _token(token).raise_if_cancelled()
        return await asyncio.to_thread(self.delete, key)

    async def update_async(
        self,
        key: str,
        writer: AnyBlobWriter,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        return await self.write_async(key, True, writer, token)

    async def create_async(
        self,
        key: str,
        writer: AnyBlobWriter,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        return await self.write_async(key, False, writer, token)

    async def create_or_update_async(
        self,
        key: str,
        writer: AnyBlobWriter,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        return await self.write_async(key, True, writer, token)

    async def write_async(
        self,
        key: str,
        overwrite: bool,
        writer: AnyBlobWriter,
        token: Optional[CancellationToken] = None,
    ) -> bool:
        """
        Async variant of ``write``.

        An ``async def`` writer is awaited on the event loop. Any other
        callable runs in a worker thread, and if it hands back an awaitable
        (a lambda or ``functools.partial`` around a coroutine function) that
        is awaited too before the content is committed. The filesystem steps
        around the writer always run in worker threads.
        """
        token = self._check_entry(writer, token)
        path = self.resolve(key)
        tmp = await asyncio.to_thread(self._prepare, path)

        if not overwrite and await asyncio.to_thread(path.exists):
            logger.debug("Blob %s already exists, not writing", key)
            return False

        try:
            stream = await asyncio.to_thread(self._open_temp, tmp)
            with stream:
                if _is_async_writer(writer):
                    result = writer(stream, token)
                else:
                    result = await asyncio.to_thread(writer, stream, token)
                if inspect.isawaitable(result):
                    await result
                await asyncio.to_thread(self._flush, stream)
            return await asyncio.to_thread(self._commit, tmp, path, overwrite)
        finally:
            await asyncio.to_thread(self._discard, tmp)

    # ---- Protocol steps ---------------------------------------------------

    def _check_entry(self, writer, token: Optional[CancellationToken]) -> CancellationToken:
        if writer is None or not callable(writer):
            raise InvalidArgumentError("writer must be a callable")
        token = _token(token)
        token.raise_if_cancelled()
        return token

    def _prepare(self, path: Path) -> Path:
        """Ensure the target directory exists and pick a temp path beside the target."""
        path.parent.mkdir(parents=True, exist_ok=True)
        return path.with_name(temp_name_for(path.name))

    def _open_temp(self, tmp: Path) -> BinaryIO:
        # "x" fails if the path exists, so the temp file belongs to this write alone
        return open(tmp, "xb")

    def _flush(self, stream: BinaryIO) -> None:
        stream.flush()
        if self.fsync:
            os.fsync(stream.fileno())

    def _commit(self, tmp: Path, path: Path, overwrite: bool) -> bool:
        if overwrite:
            os.replace(tmp, path)
        elif not self._commit_exclusive(tmp, path):
            logger.debug("Blob %s appeared during write, discarding new content", path.name)
            return False

        if self.fsync:
            fsync_dir(path.parent)
        logger.debug("Committed blob %s", path.name)
        return True

    def _commit_exclusive(self, tmp: Path, path: Path) -> bool:
        """
        Publish ``tmp`` at ``path`` only if nothing is there yet.

        A hard link fails atomically when the target exists. Filesystems
        without hard links fall back to check-then-rename, where two racing
        creators may both pass the check.
        """
        try:
            os.link(tmp, path)
            return True
        except FileExistsError:
            return False
        except OSError as e:
            if e.errno not in _NO_LINK_ERRNOS:
                raise
            logger.debug("Hard links unsupported in %s, using rename", path.parent)

        if path.exists():
            return False
        try:
            # Refuses to replace an existing file on Windows
            os.rename(tmp, path)
        except FileExistsError:
            return False
        return True

    def _discard(self, tmp: Path) -> None:
        try:
            tmp.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove temp file %s: %s", tmp, e)
