# CFGSYNC Configuration Module
# Handles YAML-based settings loading, validation, and defaults

from cfgsync.config.defaults import DEFAULT_CONFIG, generate_default_config, get_default_config
from cfgsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_settings,
    load_settings_or_default,
    save_settings,
    validate_config_file,
)
from cfgsync.config.schema import CredentialsConfig, OutputConfig, RepositoryConfig, SyncSettings

__all__ = [
    # Schema
    "SyncSettings",
    "RepositoryConfig",
    "CredentialsConfig",
    "OutputConfig",
    # Loader
    "load_settings",
    "load_settings_or_default",
    "save_settings",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "get_default_config",
    "generate_default_config",
]
