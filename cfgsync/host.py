# CFGSYNC Host Contracts
# Interfaces between the host application's configuration storage and cfgsync

from abc import ABC, abstractmethod
from typing import Optional, Protocol, runtime_checkable

from cfgsync.path_scheme import RoamingScope


class StreamProvider(ABC):
    """
    Storage interception contract consumed by the host.

    A host registers providers per roaming scope; every configuration save,
    load, list and delete for that scope is offered to the provider while
    it reports itself enabled.
    """

    @abstractmethod
    def save_content(
        self,
        file_spec: str,
        content: bytes,
        size: int,
        roaming_scope: RoamingScope,
        async_: bool = False,
    ) -> None:
        """Store the content of a configuration file."""

    @abstractmethod
    def load_content(self, file_spec: str, roaming_scope: RoamingScope) -> Optional[bytes]:
        """Return provider content, or None to fall back to local storage."""

    @abstractmethod
    def list_sub_files(self, file_spec: str, roaming_scope: RoamingScope) -> list[str]:
        """List the children of a configuration directory."""

    @abstractmethod
    def delete_file(self, file_spec: str, roaming_scope: RoamingScope) -> None:
        """Delete a configuration file."""

    @abstractmethod
    def is_enabled(self) -> bool:
        """Whether the host should route storage calls to this provider."""

    @abstractmethod
    def current_user_name(self) -> Optional[str]:
        """Identity used to attribute written content."""


@runtime_checkable
class ConfigStorage(Protocol):
    """A materialized configuration store that may cache provider content."""

    def reset_provider_cache(self) -> None: ...

    def update_from_providers(self) -> None: ...


class StorageManager(Protocol):
    """The host's registry of configuration stores for one level (app or owner)."""

    def register_stream_provider(self, provider: StreamProvider, roaming_scope: RoamingScope) -> None: ...

    def storage_file_names(self) -> list[str]: ...

    def get_file_storage(self, file_spec: str) -> Optional[object]: ...


class SchemesManager(Protocol):
    """The host's scheme/template manager holding provider-backed state."""

    def update_from_providers(self) -> None: ...
