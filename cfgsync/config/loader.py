# CFGSYNC Configuration Loader
# Load, save, and manage the YAML settings file

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from cfgsync.config.defaults import generate_default_config, get_default_config
from cfgsync.config.schema import SyncSettings
from cfgsync.utils.paths import atomic_write, ensure_dir

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get the cfgsync configuration directory."""
    return Path.home() / ".config" / "cfgsync"


def get_config_path() -> Path:
    """Get the path to the settings file."""
    # Allow override via environment variable
    env_path = os.environ.get("CFGSYNC_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / "config.yaml"


def load_settings(config_path: Optional[Path] = None) -> SyncSettings:
    """
    Load settings from YAML file.

    Args:
        config_path: Optional path to settings file. Uses default if not provided.

    Returns:
        SyncSettings: Validated settings object.

    Raises:
        FileNotFoundError: If settings file doesn't exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValidationError: If settings are invalid.
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"Settings file not found: {config_path}\nRun 'cfgsync config init' to create one.")

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings root must be a mapping: {config_path}")

    return SyncSettings.model_validate(_merge_with_defaults(data))


def load_settings_or_default(config_path: Optional[Path] = None) -> SyncSettings:
    """
    Load settings, falling back to defaults on any failure.

    Startup must never fail because of a broken or missing settings file;
    the failure is logged instead.
    """
    try:
        return load_settings(config_path)
    except FileNotFoundError:
        logger.info("No settings file at %s, using defaults", config_path or get_config_path())
    except (OSError, ValueError, yaml.YAMLError) as e:
        # ValidationError is a ValueError
        logger.error("Failed to load settings from %s, using defaults: %s", config_path or get_config_path(), e)
    return SyncSettings.model_validate(get_default_config())


def save_settings(settings: SyncSettings, config_path: Optional[Path] = None) -> Path:
    """
    Save settings to YAML file.

    Args:
        settings: Settings object to save.
        config_path: Optional path to settings file. Uses default if not provided.

    Returns:
        Path: Path where settings were saved.
    """
    if config_path is None:
        config_path = get_config_path()

    ensure_dir(config_path.parent)

    # Use mode='json' to serialize Enums as their string values
    data = settings.model_dump(exclude_none=True, mode="json")

    atomic_write(config_path, yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True))
    return config_path


def ensure_config_exists(config_path: Optional[Path] = None) -> tuple[Path, bool]:
    """
    Ensure settings file exists, creating default if needed.

    Returns:
        Tuple of (config_path, was_created).
    """
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        return config_path, False

    ensure_dir(config_path.parent)
    config_path.write_text(generate_default_config(), encoding="utf-8")
    return config_path, True


def validate_config_file(config_path: Optional[Path] = None) -> tuple[bool, list[str]]:
    """
    Validate a settings file without loading it into the system.

    Args:
        config_path: Path to settings file to validate.

    Returns:
        Tuple of (is_valid, error_messages).
    """
    if config_path is None:
        config_path = get_config_path()

    errors: list[str] = []

    if not config_path.exists():
        return False, [f"Settings file not found: {config_path}"]

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return False, [f"Invalid YAML syntax: {e}"]

    if data is None:
        return False, ["Settings file is empty"]
    if not isinstance(data, dict):
        return False, ["Settings root must be a mapping"]

    try:
        SyncSettings.model_validate(data)
    except ValidationError as e:
        for error in e.errors():
            loc = " -> ".join(str(l) for l in error["loc"])
            errors.append(f"{loc}: {error['msg']}")
        return False, errors

    if "repository" not in data:
        errors.append("Missing 'repository' section")

    return len(errors) == 0, errors


def _merge_with_defaults(data: dict[str, Any]) -> dict[str, Any]:
    """Merge loaded data with default values for missing keys."""
    result = get_default_config()

    for section in ("repository", "credentials", "output"):
        if isinstance(data.get(section), dict):
            result[section] = {**result[section], **data[section]}

    if "update_on_start" in data:
        result["update_on_start"] = data["update_on_start"]

    return result
