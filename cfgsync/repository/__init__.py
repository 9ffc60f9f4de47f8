# CFGSYNC Repository Module
# Versioned backing stores for synchronized settings

from cfgsync.repository.base import RepositoryManager, normalize_repo_path
from cfgsync.repository.git import GitRepositoryManager
from cfgsync.repository.memory import MemoryRemote, MemoryRepositoryManager

__all__ = [
    "RepositoryManager",
    "normalize_repo_path",
    "GitRepositoryManager",
    "MemoryRemote",
    "MemoryRepositoryManager",
]
