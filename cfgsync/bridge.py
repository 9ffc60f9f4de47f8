# CFGSYNC Synchronization Bridge
# Routes host storage calls into the settings repository

import logging
from typing import TYPE_CHECKING, Optional

from cfgsync.errors import InvalidFileSpecError, RepositoryIOError
from cfgsync.host import StreamProvider
from cfgsync.path_scheme import RoamingScope, build_path

if TYPE_CHECKING:
    from cfgsync.manager import SyncContext

logger = logging.getLogger(__name__)

# Host macro naming the per-owner workspace file
WORKSPACE_FILE = "$WORKSPACE_FILE$"


class SyncBridge(StreamProvider):
    """
    Stream provider backed by the settings repository.

    One instance serves all scopes of a level. Without an owner id it serves
    the application level, where every scope is synchronized and listing and
    deleting are supported. With an owner id only per-platform files and the
    workspace file are loaded from the repository; listing and deleting are
    no-ops.

    Repository failures never propagate to the host: a failed load reports
    no content, so the host falls back to its local copy, and failed saves
    and deletes are logged.
    """

    def __init__(self, context: "SyncContext", owner_id: Optional[str] = None):
        self.context = context
        self.owner_id = owner_id

    @property
    def is_application_level(self) -> bool:
        return self.owner_id is None

    def _path(self, file_spec: str, roaming_scope: RoamingScope) -> str:
        return build_path(file_spec, roaming_scope, self.owner_id)

    def save_content(
        self,
        file_spec: str,
        content: bytes,
        size: int,
        roaming_scope: RoamingScope,
        async_: bool = False,
    ) -> None:
        try:
            self.context.repository.write(self._path(file_spec, roaming_scope), content, size, async_=async_)
        except (RepositoryIOError, InvalidFileSpecError) as e:
            logger.warning("Failed to save %s to settings repository: %s", file_spec, e)

    def load_content(self, file_spec: str, roaming_scope: RoamingScope) -> Optional[bytes]:
        if not self.is_enabled():
            return None
        if not self._is_synchronized(file_spec, roaming_scope):
            return None

        try:
            return self.context.repository.read(self._path(file_spec, roaming_scope))
        except (RepositoryIOError, InvalidFileSpecError) as e:
            logger.warning("Failed to load %s from settings repository: %s", file_spec, e)
            return None

    def _is_synchronized(self, file_spec: str, roaming_scope: RoamingScope) -> bool:
        if self.is_application_level or roaming_scope == RoamingScope.PER_PLATFORM:
            return True
        return file_spec == WORKSPACE_FILE

    def list_sub_files(self, file_spec: str, roaming_scope: RoamingScope) -> list[str]:
        if not self.is_application_level or not self.is_enabled():
            return []
        try:
            return self.context.repository.list_sub_file_names(self._path(file_spec, roaming_scope))
        except (RepositoryIOError, InvalidFileSpecError) as e:
            logger.warning("Failed to list %s in settings repository: %s", file_spec, e)
            return []

    def delete_file(self, file_spec: str, roaming_scope: RoamingScope) -> None:
        if not self.is_application_level:
            return
        try:
            self.context.repository.delete(self._path(file_spec, roaming_scope), async_=True)
        except (RepositoryIOError, InvalidFileSpecError) as e:
            logger.warning("Failed to delete %s from settings repository: %s", file_spec, e)

    def is_enabled(self) -> bool:
        return self.context.status.is_opened

    def current_user_name(self) -> Optional[str]:
        return self.context.settings.login
