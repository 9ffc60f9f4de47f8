# CFGSYNC Sync Context
# Process-wide synchronization state: settings, repository, status, providers

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from cfgsync.bridge import SyncBridge
from cfgsync.config.loader import load_settings_or_default, save_settings
from cfgsync.config.schema import SyncSettings
from cfgsync.errors import ConnectError, UpdateError
from cfgsync.host import SchemesManager, StorageManager
from cfgsync.owner import PropertiesStore, get_owner_id
from cfgsync.path_scheme import RoamingScope
from cfgsync.refresh import RefreshCoordinator
from cfgsync.repository.base import RepositoryManager
from cfgsync.repository.git import GitRepositoryManager
from cfgsync.status import ConnectionStatus, DirectDispatcher, QueuedDispatcher, StatusListener, StatusModel

logger = logging.getLogger(__name__)

APPLICATION_SCOPES = (RoamingScope.PER_USER, RoamingScope.PER_PLATFORM, RoamingScope.GLOBAL)
OWNER_SCOPES = (RoamingScope.PER_PLATFORM, RoamingScope.PER_USER)


class SyncContext:
    """
    Explicitly constructed synchronization context.

    Created once on host startup and kept for the lifetime of the process;
    the bridges and the refresh coordinator receive it explicitly.

    Args:
        settings_path: Settings file (defaults to the standard location).
        settings: Preloaded settings; skips loading from disk.
        repository: Repository manager (defaults to a git working copy).
        dispatcher: Delivery context for status notifications.
        schemes_manager: Host scheme manager refreshed after connecting.
    """

    def __init__(
        self,
        settings_path: Optional[Path] = None,
        *,
        settings: Optional[SyncSettings] = None,
        repository: Optional[RepositoryManager] = None,
        dispatcher: Optional[DirectDispatcher | QueuedDispatcher] = None,
        schemes_manager: Optional[SchemesManager] = None,
    ):
        self.settings_path = settings_path
        self.settings = settings if settings is not None else load_settings_or_default(settings_path)
        self._repository = repository
        self.status = StatusModel(dispatcher)
        self.refresh = RefreshCoordinator(
            owner_storage_managers=lambda: list(self._owner_managers),
            schemes_manager=schemes_manager,
        )
        self._owner_managers: list[StorageManager] = []
        self._app_bridge: Optional[SyncBridge] = None
        self._cycle = 0
        self._cycle_lock = threading.Lock()

    # -- settings ----------------------------------------------------------

    def load_settings(self) -> SyncSettings:
        """Reload settings from disk; failures fall back to defaults."""
        self.settings = load_settings_or_default(self.settings_path)
        if isinstance(self._repository, GitRepositoryManager):
            self._repository.settings = self.settings
        return self.settings

    def save_settings(self) -> Path:
        """Persist the current settings."""
        return save_settings(self.settings, self.settings_path)

    # -- repository and status --------------------------------------------

    @property
    def repository(self) -> RepositoryManager:
        if self._repository is None:
            self._repository = GitRepositoryManager(self.settings)
        return self._repository

    @property
    def connection_status(self) -> Optional[ConnectionStatus]:
        return self.status.status

    @property
    def status_text(self) -> str:
        return self.status.status_text

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Subscribe to status changes; returns an unsubscribe callable."""
        return self.status.subscribe(listener)

    def connect_and_update(self, *, update: Optional[bool] = None) -> ConnectionStatus:
        """
        Run a connect cycle: connect, optionally update, then reconcile stores.

        Failures are logged and reported through the status; they never
        propagate to the caller.

        Args:
            update: Pull after connecting (defaults to settings.update_on_start).

        Returns:
            The status at the end of the cycle.
        """
        if update is None:
            update = self.settings.update_on_start

        with self._cycle_lock:
            self._cycle += 1
            cycle = self._cycle

        try:
            self.repository.connect()
        except ConnectError as e:
            logger.error("Failed to open settings repository: %s", e)
            self.status.set_status(ConnectionStatus.OPEN_FAILED)
        else:
            self.status.set_status(ConnectionStatus.OPENED)
            if update:
                self._run_update()

        if self.status.is_opened:
            self.refresh.refresh_once(cycle)
        return self.status.status

    def update(self) -> ConnectionStatus:
        """
        Pull remote changes into an opened repository.

        Returns:
            The resulting status (UPDATE_FAILED on failure).
        """
        if self.status.status != ConnectionStatus.OPENED:
            logger.warning("Settings repository is not open, skipping update")
            return self.status.status
        self._run_update()
        return self.status.status

    def _run_update(self) -> None:
        try:
            self.repository.update()
        except UpdateError as e:
            logger.error("Failed to update settings repository: %s", e)
            self.status.set_status(ConnectionStatus.UPDATE_FAILED)

    # -- provider registration ---------------------------------------------

    @property
    def application_bridge(self) -> SyncBridge:
        if self._app_bridge is None:
            self._app_bridge = SyncBridge(self)
        return self._app_bridge

    def register_application_providers(self, storage_manager: StorageManager) -> SyncBridge:
        """
        Attach the repository to the application-level configuration stores.

        Registers one bridge for every roaming scope and runs a connect
        cycle, which reconciles stores that were already loaded.
        """
        self.refresh.app_storage_manager = storage_manager

        bridge = self.application_bridge
        for scope in APPLICATION_SCOPES:
            storage_manager.register_stream_provider(bridge, scope)

        self.connect_and_update()
        return bridge

    def register_owner_providers(self, storage_manager: StorageManager, properties: PropertiesStore) -> SyncBridge:
        """Attach the repository to an owner's (project's) configuration stores."""
        bridge = SyncBridge(self, get_owner_id(properties))
        for scope in OWNER_SCOPES:
            storage_manager.register_stream_provider(bridge, scope)
        self._owner_managers.append(storage_manager)
        return bridge

    def close(self) -> None:
        """Finish queued repository work."""
        if self._repository is not None:
            self._repository.close()
