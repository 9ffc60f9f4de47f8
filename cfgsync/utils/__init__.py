# CFGSYNC Utilities Module
# Helper functions for path handling, hashing and platform detection

from cfgsync.utils.hashing import content_hash
from cfgsync.utils.paths import (
    atomic_write,
    ensure_dir,
    is_temp_file,
    prune_empty_dirs,
    safe_delete,
)
from cfgsync.utils.platform import get_current_platform

__all__ = [
    # Platform
    "get_current_platform",
    # Paths
    "ensure_dir",
    "atomic_write",
    "safe_delete",
    "prune_empty_dirs",
    "is_temp_file",
    # Hashing
    "content_hash",
]
