# CFGSYNC Errors
# Exception taxonomy for repository synchronization

from typing import Optional


class SyncError(Exception):
    """Base exception for synchronization errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConnectError(SyncError):
    """The local working copy could not be opened, cloned or initialized."""


class UpdateError(SyncError):
    """Connected, but pulling or pushing remote state failed."""


class RepositoryIOError(SyncError):
    """A read, write, delete or list failed on an otherwise healthy repository."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class InvalidFileSpecError(SyncError, ValueError):
    """A file spec or owner id cannot be mapped to a repository path."""
