# CFGSYNC Owner Identifiers
# Stable per-project identifiers persisted in the project directory

import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from cfgsync.utils.paths import atomic_write

logger = logging.getLogger(__name__)

OWNER_ID_KEY = "owner_id"
PROPERTIES_DIR = ".cfgsync"
PROPERTIES_FILE = "properties.yaml"


class PropertiesStore:
    """
    Key/value properties stored as YAML inside an owner directory.

    The file lives at ``<owner_dir>/.cfgsync/properties.yaml``.
    """

    def __init__(self, owner_dir: Path):
        self.path = owner_dir / PROPERTIES_DIR / PROPERTIES_FILE
        self._lock = threading.Lock()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        """Get a property value, or None if unset."""
        value = self._load().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        """Set a property value and persist the file."""
        with self._lock:
            data = self._load()
            data[key] = value
            atomic_write(self.path, yaml.dump(data, default_flow_style=False, sort_keys=True, allow_unicode=True))

    def get_or_set(self, key: str, factory: Callable[[], str]) -> tuple[str, bool]:
        """
        Get a property, storing factory() first if it is unset.

        Returns:
            Tuple of (value, was_created).
        """
        with self._lock:
            data = self._load()
            if data.get(key) is not None:
                return str(data[key]), False
            data[key] = factory()
            atomic_write(self.path, yaml.dump(data, default_flow_style=False, sort_keys=True, allow_unicode=True))
            return data[key], True


def get_owner_id(store: PropertiesStore) -> str:
    """
    Get the owner id, generating and persisting one on first use.

    An existing id is never regenerated.
    """
    owner_id, created = store.get_or_set(OWNER_ID_KEY, lambda: str(uuid.uuid4()))
    if created:
        logger.debug("Generated owner id %s for %s", owner_id, store.path)
    return owner_id
