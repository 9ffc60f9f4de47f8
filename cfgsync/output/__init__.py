# CFGSYNC Output Module
# Rich console output and logging setup

from cfgsync.output.console import Console, configure_logging

__all__ = [
    "Console",
    "configure_logging",
]
