# CFGSYNC Local Storage
# Directory-backed configuration stores that consult stream providers

import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Optional

from cfgsync.host import StreamProvider
from cfgsync.path_scheme import RoamingScope
from cfgsync.utils.hashing import content_hash
from cfgsync.utils.paths import atomic_write, safe_delete

logger = logging.getLogger(__name__)


class FileBasedStorage:
    """
    A single configuration file with a local copy and provider-backed content.

    Loads prefer the first enabled provider that has content; the provider
    view is cached until ``reset_provider_cache()``. Saves go to the local
    file and to every enabled provider.
    """

    def __init__(self, file_spec: str, local_path: Path, roaming_scope: RoamingScope, manager: "LocalStorageManager"):
        self.file_spec = file_spec
        self.local_path = local_path
        self.roaming_scope = roaming_scope
        self.manager = manager
        self._provider_cache: Optional[bytes] = None
        self._listeners: list[Callable[["FileBasedStorage"], None]] = []

    def on_external_change(self, listener: Callable[["FileBasedStorage"], None]) -> None:
        """Register a callback run when provider content replaces the local copy."""
        self._listeners.append(listener)

    def _read_local(self) -> Optional[bytes]:
        if not self.local_path.is_file():
            return None
        return self.local_path.read_bytes()

    def _load_from_providers(self) -> Optional[bytes]:
        for provider in self.manager.enabled_providers(self.roaming_scope):
            content = provider.load_content(self.file_spec, self.roaming_scope)
            if content is not None:
                return content
        return None

    def load(self) -> Optional[bytes]:
        """
        Load the file content.

        Returns:
            Provider content if available, else the local copy, else None.
        """
        if self._provider_cache is None:
            self._provider_cache = self._load_from_providers()
        if self._provider_cache is not None:
            return self._provider_cache
        return self._read_local()

    def save(self, content: bytes, *, async_: bool = False) -> None:
        """Write the local copy and offer the content to enabled providers."""
        atomic_write(self.local_path, content)
        for provider in self.manager.enabled_providers(self.roaming_scope):
            provider.save_content(self.file_spec, content, len(content), self.roaming_scope, async_)
        self._provider_cache = content

    def delete(self) -> None:
        """Delete the local copy and the provider copies."""
        safe_delete(self.local_path, missing_ok=True)
        for provider in self.manager.enabled_providers(self.roaming_scope):
            provider.delete_file(self.file_spec, self.roaming_scope)
        self._provider_cache = None

    def reset_provider_cache(self) -> None:
        """Forget any cached provider content."""
        self._provider_cache = None

    def update_from_providers(self) -> bool:
        """
        Re-read provider content and replace the local copy if it differs.

        Returns:
            True if the local copy was replaced.
        """
        content = self._load_from_providers()
        self._provider_cache = content
        if content is None:
            return False

        local = self._read_local()
        if local is not None and content_hash(local) == content_hash(content):
            return False

        atomic_write(self.local_path, content)
        logger.debug("Updated %s from settings repository", self.file_spec)
        for listener in list(self._listeners):
            listener(self)
        return True


class LocalStorageManager:
    """
    Configuration stores for one level (application or owner), kept under a
    local directory.

    Stores are materialized on first access; ``storage_file_names()`` lists
    the materialized ones.
    """

    def __init__(self, root: Path):
        self.root = root
        self._providers: dict[RoamingScope, list[StreamProvider]] = {}
        self._storages: dict[str, FileBasedStorage] = {}
        self._lock = threading.Lock()

    def register_stream_provider(self, provider: StreamProvider, roaming_scope: RoamingScope) -> None:
        with self._lock:
            providers = self._providers.setdefault(RoamingScope(roaming_scope), [])
            if provider not in providers:
                providers.append(provider)

    def providers(self, roaming_scope: RoamingScope) -> list[StreamProvider]:
        """Providers registered for a scope."""
        with self._lock:
            return list(self._providers.get(RoamingScope(roaming_scope), []))

    def enabled_providers(self, roaming_scope: RoamingScope) -> list[StreamProvider]:
        """Registered providers for a scope that are currently enabled."""
        return [p for p in self.providers(roaming_scope) if p.is_enabled()]

    def storage_file_names(self) -> list[str]:
        with self._lock:
            return list(self._storages)

    def get_file_storage(
        self, file_spec: str, roaming_scope: RoamingScope = RoamingScope.PER_USER
    ) -> FileBasedStorage:
        """
        Get (materializing if needed) the store for a file spec.

        The roaming scope is fixed when the store is first materialized.
        """
        with self._lock:
            storage = self._storages.get(file_spec)
            if storage is None:
                storage = FileBasedStorage(file_spec, self.root / file_spec, RoamingScope(roaming_scope), self)
                self._storages[file_spec] = storage
            return storage

    def list_sub_files(self, file_spec: str, roaming_scope: RoamingScope = RoamingScope.PER_USER) -> list[str]:
        """Children of a configuration directory, locally and in enabled providers."""
        names: set[str] = set()
        directory = self.root / file_spec
        if directory.is_dir():
            names.update(entry.name for entry in directory.iterdir())
        for provider in self.enabled_providers(roaming_scope):
            names.update(provider.list_sub_files(file_spec, roaming_scope))
        return sorted(names)
