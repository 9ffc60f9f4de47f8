# CFGSYNC Repository Manager
# Versioned storage contract with serialized writers and a background queue

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Optional

from cfgsync.errors import InvalidFileSpecError, RepositoryIOError, SyncError, UpdateError
from cfgsync.utils.hashing import content_hash

logger = logging.getLogger(__name__)


def normalize_repo_path(path: str) -> str:
    """
    Validate a repository-relative path.

    Args:
        path: Path using '/' separators.

    Returns:
        The path without a trailing '/'.

    Raises:
        InvalidFileSpecError: If the path is empty, absolute or escapes the repository.
    """
    stripped = path.rstrip("/")
    if not stripped or path.startswith("/") or "\\" in path:
        raise InvalidFileSpecError(f"Invalid repository path: {path!r}")
    for segment in stripped.split("/"):
        if segment in ("", ".", "..", ".git"):
            raise InvalidFileSpecError(f"Invalid repository path: {path!r}")
    return stripped


def parent_paths(path: str) -> list[str]:
    """Return the ancestors of a repository path, nearest last."""
    parts = path.split("/")
    return ["/".join(parts[:i]) for i in range(1, len(parts))]


class RepositoryManager(ABC):
    """
    Durable, versioned storage of configuration files.

    Subclasses implement the primitives (``_connect``, ``_update``, ``_read``,
    ``_write``, ``_delete``, ``_list``). This class serializes readers and
    writers with one lock, so a read never observes a working copy in the
    middle of an update. Asynchronous writes and deletes run on a single
    background worker and complete in submission order.

    A write may not turn a file into a directory or a directory into a
    file; backends raise RepositoryIOError instead.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: set[Future] = set()
        self._pending_lock = threading.Lock()
        self._connected = False

    # -- primitives --------------------------------------------------------

    @abstractmethod
    def _connect(self) -> None:
        """Open or create the local working copy. Raises ConnectError."""

    @abstractmethod
    def _update(self) -> None:
        """Synchronize the working copy with the remote. Raises UpdateError."""

    @abstractmethod
    def _read(self, path: str) -> Optional[bytes]:
        """Return the content at path, or None if absent."""

    @abstractmethod
    def _write(self, path: str, content: bytes) -> None:
        """Durably record content at path."""

    @abstractmethod
    def _delete(self, path: str) -> bool:
        """Remove path; return False if there was nothing to remove."""

    @abstractmethod
    def _list(self, prefix: str) -> list[str]:
        """Return immediate child names under prefix."""

    # -- lifecycle ---------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        """Whether the last connect() succeeded."""
        return self._connected

    def connect(self) -> None:
        """
        Open the local working copy of the backing repository.

        Safe to call repeatedly; an open working copy is re-validated.

        Raises:
            ConnectError: If the working copy cannot be opened.
        """
        with self._lock:
            try:
                self._connect()
            except SyncError:
                self._connected = False
                raise
            self._connected = True

    def update(self) -> None:
        """
        Pull the latest remote state into the working copy.

        Queued background writes are flushed first.

        Raises:
            UpdateError: If not connected or the remote cannot be synchronized.
        """
        if not self._connected:
            raise UpdateError("Repository is not connected")
        self.flush()
        with self._lock:
            self._update()

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for queued background operations.

        Args:
            timeout: Maximum seconds to wait (None = no limit).

        Returns:
            True if all queued operations completed.
        """
        with self._pending_lock:
            pending = list(self._pending)
        if not pending:
            return True
        _done, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self) -> None:
        """Finish queued operations and stop the background worker."""
        self.flush()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # -- file operations ---------------------------------------------------

    def read(self, path: str) -> Optional[bytes]:
        """
        Read the content at path.

        Returns:
            Content bytes, or None if nothing is stored at path.

        Raises:
            RepositoryIOError: If not connected or reading fails.
            InvalidFileSpecError: If path is malformed.
        """
        path = normalize_repo_path(path)
        self._require_connected(path)
        try:
            with self._lock:
                return self._read(path)
        except OSError as e:
            raise RepositoryIOError(f"Failed to read {path}: {e}", path=path) from e

    def write(self, path: str, content: bytes, size: int = -1, async_: bool = False) -> Optional[Future]:
        """
        Store content at path.

        Args:
            path: Repository-relative path.
            content: Content bytes.
            size: Number of bytes of content to store (negative = all).
            async_: Queue the write and return immediately.

        Returns:
            A Future completing with the write when async_, else None.

        Raises:
            RepositoryIOError: If not connected or a blocking write fails.
            InvalidFileSpecError: If path is malformed.
        """
        path = normalize_repo_path(path)
        self._require_connected(path)
        data = bytes(content) if size < 0 else bytes(content[:size])

        if async_:
            return self._submit(self._locked_write, path, data)
        self._locked_write(path, data)
        return None

    def delete(self, path: str, async_: bool = False) -> Optional[Future]:
        """
        Remove content at path. Removing a missing path is not an error.

        Args:
            path: Repository-relative path.
            async_: Queue the delete and return immediately.

        Returns:
            A Future completing with the delete when async_, else None.

        Raises:
            RepositoryIOError: If not connected or a blocking delete fails.
            InvalidFileSpecError: If path is malformed.
        """
        path = normalize_repo_path(path)
        self._require_connected(path)

        if async_:
            return self._submit(self._locked_delete, path)
        self._locked_delete(path)
        return None

    def list_sub_file_names(self, prefix: str) -> list[str]:
        """
        List immediate children under a path prefix.

        Returns:
            Sorted child names; empty if the prefix does not exist.

        Raises:
            RepositoryIOError: If not connected or listing fails.
        """
        prefix = normalize_repo_path(prefix)
        self._require_connected(prefix)
        try:
            with self._lock:
                return self._list(prefix)
        except OSError as e:
            raise RepositoryIOError(f"Failed to list {prefix}: {e}", path=prefix) from e

    # -- internals ---------------------------------------------------------

    def _require_connected(self, path: str) -> None:
        if not self._connected:
            raise RepositoryIOError("Repository is not connected", path=path)

    def _locked_write(self, path: str, data: bytes) -> None:
        with self._lock:
            try:
                current = self._read(path)
                if current is not None and content_hash(current) == content_hash(data):
                    logger.debug("Content of %s unchanged, skipping write", path)
                    return
                self._write(path, data)
            except OSError as e:
                raise RepositoryIOError(f"Failed to write {path}: {e}", path=path) from e
        logger.debug("Wrote %s (%d bytes)", path, len(data))

    def _locked_delete(self, path: str) -> None:
        with self._lock:
            try:
                removed = self._delete(path)
            except OSError as e:
                raise RepositoryIOError(f"Failed to delete {path}: {e}", path=path) from e
        if removed:
            logger.debug("Deleted %s", path)

    def _submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        with self._pending_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cfgsync-io")
            future = self._executor.submit(fn, *args)
            self._pending.add(future)
        future.add_done_callback(self._on_done)
        return future

    def _on_done(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.error("Background repository operation failed: %s", future.exception())
