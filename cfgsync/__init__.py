"""cfgsync - Settings repository synchronization.

Keeps application and per-project configuration files in a git-backed
settings repository so they roam between machines, platforms and users.
"""

__version__ = "1.0.0"
__author__ = "Equitania Software GmbH"
__email__ = "info@equitania.de"

__all__ = [
    "__version__",
    "SyncContext",
    "SyncBridge",
    "ConnectionStatus",
    "StatusModel",
    "RoamingScope",
    "build_path",
    "GitRepositoryManager",
    "MemoryRepositoryManager",
    "RepositoryManager",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name == "SyncContext":
        from cfgsync.manager import SyncContext

        return SyncContext
    if name == "SyncBridge":
        from cfgsync.bridge import SyncBridge

        return SyncBridge
    if name in ("ConnectionStatus", "StatusModel"):
        from cfgsync import status

        return getattr(status, name)
    if name in ("RoamingScope", "build_path"):
        from cfgsync import path_scheme

        return getattr(path_scheme, name)
    if name in ("GitRepositoryManager", "MemoryRepositoryManager", "RepositoryManager"):
        from cfgsync import repository

        return getattr(repository, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
