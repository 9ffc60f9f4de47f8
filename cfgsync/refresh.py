# CFGSYNC Refresh Coordinator
# Reconciles already-loaded configuration stores with the repository

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Optional

from cfgsync.host import ConfigStorage, SchemesManager, StorageManager

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """
    Forces materialized configuration stores to re-read through providers.

    Stores loaded before the repository became available hold local content;
    after a connect cycle they drop their provider cache and update from the
    providers, then the schemes manager refreshes its own state.
    """

    def __init__(
        self,
        app_storage_manager: Optional[StorageManager] = None,
        owner_storage_managers: Optional[Callable[[], Iterable[StorageManager]]] = None,
        schemes_manager: Optional[SchemesManager] = None,
    ):
        self.app_storage_manager = app_storage_manager
        self.owner_storage_managers = owner_storage_managers or (lambda: ())
        self.schemes_manager = schemes_manager
        self._refreshed_cycle: Optional[int] = None
        self._lock = threading.Lock()

    def refresh_once(self, cycle: int) -> bool:
        """
        Refresh unless this connect cycle was already reconciled.

        Args:
            cycle: Connect cycle number.

        Returns:
            True if a refresh ran.
        """
        with self._lock:
            if self._refreshed_cycle == cycle:
                return False
            self._refreshed_cycle = cycle
        self.refresh()
        return True

    def refresh(self) -> int:
        """
        Refresh every materialized store.

        Nothing happens while the application level has no stores yet.

        Returns:
            Number of stores processed successfully.
        """
        if self.app_storage_manager is None:
            return 0

        names = self.app_storage_manager.storage_file_names()
        if not names:
            return 0

        count = _process_storages(self.app_storage_manager, names)
        for manager in self.owner_storage_managers():
            count += _process_storages(manager, manager.storage_file_names())

        if self.schemes_manager is not None:
            self.schemes_manager.update_from_providers()

        logger.debug("Refreshed %d configuration stores from providers", count)
        return count


def _process_storages(manager: StorageManager, names: Iterable[str]) -> int:
    count = 0
    for name in names:
        storage = manager.get_file_storage(name)
        if not isinstance(storage, ConfigStorage):
            continue
        try:
            storage.reset_provider_cache()
            storage.update_from_providers()
            count += 1
        except Exception as e:
            # one broken store must not stop the others
            logger.debug("Failed to refresh %s: %s", name, e)
    return count
