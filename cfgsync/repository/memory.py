# CFGSYNC Memory Repository
# In-process repository backend with a simulated remote

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from cfgsync.errors import ConnectError, RepositoryIOError, UpdateError
from cfgsync.repository.base import RepositoryManager, parent_paths

logger = logging.getLogger(__name__)


@dataclass
class MemoryRemote:
    """
    Shared remote state for memory repositories.

    Several MemoryRepositoryManager instances attached to the same remote
    behave like working copies of one remote repository.
    """

    files: dict[str, bytes] = field(default_factory=dict)
    reachable: bool = True
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class MemoryRepositoryManager(RepositoryManager):
    """
    Repository kept in a dict, optionally synchronized with a MemoryRemote.

    Update applies the same conflict policy as the git backend: a path
    changed both locally and remotely (to different content) since the last
    synchronization fails the whole update and leaves local state untouched.
    """

    def __init__(self, remote: Optional[MemoryRemote] = None):
        super().__init__()
        self.remote = remote
        self._files: dict[str, bytes] = {}
        self._base: dict[str, bytes] = {}
        self._opened = False

    @property
    def files(self) -> dict[str, bytes]:
        """Snapshot of the local working copy."""
        with self._lock:
            return dict(self._files)

    def _connect(self) -> None:
        if self._opened:
            return
        if self.remote is not None:
            with self.remote.lock:
                if not self.remote.reachable:
                    raise ConnectError("Remote repository is unreachable")
                self._files = dict(self.remote.files)
        self._base = dict(self._files)
        self._opened = True

    def _update(self) -> None:
        if self.remote is None:
            return

        with self.remote.lock:
            if not self.remote.reachable:
                raise UpdateError("Remote repository is unreachable")

            remote_files = self.remote.files
            conflicts: list[str] = []
            merged: dict[str, bytes] = {}

            for path in sorted(set(self._files) | set(remote_files) | set(self._base)):
                base = self._base.get(path)
                local = self._files.get(path)
                theirs = remote_files.get(path)
                local_changed = local != base
                remote_changed = theirs != base

                if local_changed and remote_changed and local != theirs:
                    conflicts.append(path)
                    continue

                chosen = theirs if remote_changed else local
                if chosen is not None:
                    merged[path] = chosen

            if conflicts:
                raise UpdateError(f"Conflicting changes in: {', '.join(conflicts)}")

            self.remote.files = dict(merged)

        self._files = dict(merged)
        self._base = dict(merged)
        logger.debug("Synchronized %d files with memory remote", len(merged))

    def _read(self, path: str) -> Optional[bytes]:
        return self._files.get(path)

    def _write(self, path: str, content: bytes) -> None:
        prefix = path + "/"
        if any(key.startswith(prefix) for key in self._files):
            raise RepositoryIOError(f"Cannot write {path}: a directory exists at that path", path=path)
        for parent in parent_paths(path):
            if parent in self._files:
                raise RepositoryIOError(f"Cannot write {path}: {parent} is a file", path=path)
        self._files[path] = content

    def _delete(self, path: str) -> bool:
        prefix = path + "/"
        keys = [k for k in self._files if k == path or k.startswith(prefix)]
        for key in keys:
            del self._files[key]
        return bool(keys)

    def _list(self, prefix: str) -> list[str]:
        start = prefix + "/"
        names = {key[len(start) :].split("/", 1)[0] for key in list(self._files) if key.startswith(start)}
        return sorted(names)
