# CFGSYNC Path Scheme
# Maps (file spec, roaming scope, owner) to a repository-relative path

from enum import Enum
from typing import Optional

from cfgsync.errors import InvalidFileSpecError
from cfgsync.utils.platform import get_current_platform

APP_NAMESPACE = "_app"
OWNERS_NAMESPACE = "_owners"


class RoamingScope(str, Enum):
    """How widely a configuration file is shared."""

    PER_USER = "per_user"
    PER_PLATFORM = "per_platform"
    GLOBAL = "global"


_SCOPE_SEGMENTS: dict[RoamingScope, str] = {
    RoamingScope.PER_USER: "user",
    RoamingScope.PER_PLATFORM: "platform",
    RoamingScope.GLOBAL: "global",
}


def _validate_file_spec(file_spec: str) -> None:
    if not file_spec:
        raise InvalidFileSpecError("File spec must not be empty")
    if file_spec.startswith("/"):
        raise InvalidFileSpecError(f"File spec must be relative: {file_spec!r}")
    if "\\" in file_spec:
        raise InvalidFileSpecError(f"File spec must use '/' separators: {file_spec!r}")

    for segment in file_spec.split("/"):
        if segment in ("", ".", ".."):
            raise InvalidFileSpecError(f"Invalid segment in file spec: {file_spec!r}")


def _validate_owner_id(owner_id: str) -> None:
    if not owner_id or "/" in owner_id or "\\" in owner_id or owner_id in (".", ".."):
        raise InvalidFileSpecError(f"Invalid owner id: {owner_id!r}")


def scope_segment(roaming_scope: RoamingScope, *, platform: Optional[str] = None) -> str:
    """
    Get the repository sub-segment for a roaming scope.

    Args:
        roaming_scope: Roaming scope of the file.
        platform: Platform name for per-platform files (defaults to current).

    Returns:
        Segment string, e.g. "user" or "platform/linux".
    """
    segment = _SCOPE_SEGMENTS[RoamingScope(roaming_scope)]
    if roaming_scope == RoamingScope.PER_PLATFORM:
        segment = f"{segment}/{platform or get_current_platform()}"
    return segment


def build_path(
    file_spec: str,
    roaming_scope: RoamingScope,
    owner_id: Optional[str] = None,
    *,
    platform: Optional[str] = None,
) -> str:
    """
    Build the repository path for a configuration file.

    Application-level files live under ``_app/<scope>/``, owner-level files
    under ``_owners/<owner_id>/<scope>/``. The file spec is kept verbatim
    so two distinct specs never share a path.

    Args:
        file_spec: Logical file identifier supplied by the host.
        roaming_scope: Roaming scope of the file.
        owner_id: Optional owner (project) identifier.
        platform: Platform name for per-platform files (defaults to current).

    Returns:
        Repository-relative path using '/' separators.

    Raises:
        InvalidFileSpecError: If the file spec or owner id is malformed.
    """
    _validate_file_spec(file_spec)

    if owner_id is None:
        namespace = APP_NAMESPACE
    else:
        _validate_owner_id(owner_id)
        namespace = f"{OWNERS_NAMESPACE}/{owner_id}"

    return f"{namespace}/{scope_segment(roaming_scope, platform=platform)}/{file_spec}"
