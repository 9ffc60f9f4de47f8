# CFGSYNC Console Output
# Rich-based console output and logging setup

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console as RichConsole
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from cfgsync.config.schema import SyncSettings
from cfgsync.status import ConnectionStatus

_STATUS_STYLES: dict[Optional[ConnectionStatus], tuple[str, str]] = {
    ConnectionStatus.OPENED: ("green", "●"),
    ConnectionStatus.OPEN_FAILED: ("red", "✗"),
    ConnectionStatus.UPDATE_FAILED: ("yellow", "⚠"),
    None: ("dim", "○"),
}


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Optional[str] = None,
    console: Optional[RichConsole] = None,
) -> logging.Logger:
    """
    Install log handlers on the ``cfgsync`` logger.

    Args:
        verbose: Log at DEBUG instead of INFO.
        log_file: Optional file receiving plain-text log records.
        console: Rich console for the terminal handler (stderr by default).

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger("cfgsync")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=console or RichConsole(stderr=True),
        show_time=verbose,
        show_path=verbose,
        markup=False,
    )
    logger.addHandler(rich_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(file_handler)

    return logger


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for synchronization commands.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
        """
        self.verbose = verbose
        self._console = RichConsole(no_color=not colored, highlight=False)

    @property
    def rich(self) -> RichConsole:
        return self._console

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {message}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{message}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{message}[/blue]")

    def print_connection_status(self, status: Optional[ConnectionStatus], text: str) -> None:
        """Print the repository status line."""
        color, marker = _STATUS_STYLES[status]
        self._console.print(f"[{color}]{marker}[/{color}] [bold]Settings repository:[/bold] {text}")

    def print_settings(self, settings: SyncSettings, config_path: Path) -> None:
        """Print current settings; the token is never shown."""
        table = Table(show_header=False, box=None)
        table.add_column("Key", style="cyan")
        table.add_column("Value")

        repo = settings.repository
        table.add_row("Remote URL", repo.url or "[dim](local only)[/dim]")
        table.add_row("Working copy", repo.path)
        table.add_row("Remote / branch", f"{repo.remote} / {repo.branch or '(default)'}")
        table.add_row("Login", settings.credentials.login or "[dim](not set)[/dim]")
        table.add_row("Token", "[dim]set[/dim]" if settings.credentials.token else "[dim](not set)[/dim]")
        table.add_row("Update on start", "yes" if settings.update_on_start else "no")

        self._console.print(Panel(table, title=f"Settings ({config_path})", border_style="blue"))

    def print_listing(self, file_spec: str, names: list[str]) -> None:
        """Print the children of a configuration directory."""
        if not names:
            self._console.print(f"[dim]No files under {file_spec}[/dim]")
            return
        for name in names:
            self._console.print(f"  {name}", markup=False)
