# CFGSYNC Default Configuration
# Default settings as Python dict and YAML generator

import copy
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "repository": {
        "url": None,
        "path": "~/.local/share/cfgsync/repository",
        "remote": "origin",
        "branch": None,
        "commit_prefix": "[CFGSYNC]",
        "push_on_update": True,
    },
    "credentials": {
        "login": None,
        "email": None,
    },
    "update_on_start": True,
    "output": {
        "verbose": False,
        "colored": True,
        "log_file": None,
    },
}


def get_default_config() -> dict[str, Any]:
    """Return a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# cfgsync - Settings Repository Configuration
#
# repository.url:    remote git repository holding the synchronized settings
#                    (leave empty to keep a local-only repository)
# repository.path:   local working copy of the repository
# credentials.login: identity recorded as author of synchronized changes
# update_on_start:   pull remote changes when connecting
#
# Access tokens can be set with 'credentials.token'; they are never logged.

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
