"""Click-based CLI for cfgsync - settings repository synchronization."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from cfgsync import __version__
from cfgsync.bridge import SyncBridge
from cfgsync.config import (
    ensure_config_exists,
    get_config_path,
    load_settings_or_default,
    save_settings,
    validate_config_file,
)
from cfgsync.errors import SyncError
from cfgsync.manager import SyncContext
from cfgsync.output import Console, configure_logging
from cfgsync.owner import PropertiesStore, get_owner_id
from cfgsync.path_scheme import RoamingScope, build_path
from cfgsync.status import ConnectionStatus

SCOPE_CHOICE = click.Choice([scope.value for scope in RoamingScope])


class CliState:
    """Options shared by all commands."""

    def __init__(self, config_path: Path, verbose: bool):
        self.config_path = config_path
        self.verbose = verbose
        self.console = Console(verbose=verbose)

    def open_context(self, *, update: Optional[bool] = None) -> SyncContext:
        """Create a context and run a connect cycle; exit if the repository cannot be opened."""
        context = SyncContext(self.config_path)
        configure_logging(verbose=self.verbose, log_file=context.settings.output.log_file)
        status = context.connect_and_update(update=update)
        if status == ConnectionStatus.OPEN_FAILED:
            self.console.print_connection_status(status, context.status_text)
            sys.exit(1)
        return context


pass_state = click.make_pass_decorator(CliState)


@click.group()
@click.version_option(version=__version__, prog_name="cfgsync")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Settings file (default: ~/.config/cfgsync/config.yaml or $CFGSYNC_CONFIG)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """cfgsync - keep application settings in a versioned repository.

    Settings saved on one machine are committed to a git repository and
    picked up by every other machine connected to the same remote.

    \b
    Scopes:
      per_user      shared by all machines of the user
      per_platform  shared by machines of the same platform
      global        shared everywhere
    """
    ctx.obj = CliState(config_path or get_config_path(), verbose)


# -- repository commands ----------------------------------------------------


@cli.command()
@click.option("--update/--no-update", default=None, help="Pull remote changes (default: settings update_on_start)")
@pass_state
def status(state: CliState, update: Optional[bool]) -> None:
    """Connect to the settings repository and show its status."""
    context = state.open_context(update=update)
    try:
        state.console.print_connection_status(context.connection_status, context.status_text)
        if context.connection_status != ConnectionStatus.OPENED:
            sys.exit(1)
    finally:
        context.close()


@cli.command()
@pass_state
def update(state: CliState) -> None:
    """Pull remote changes and push local ones."""
    context = state.open_context(update=True)
    try:
        state.console.print_connection_status(context.connection_status, context.status_text)
        if context.connection_status != ConnectionStatus.OPENED:
            sys.exit(1)
        state.console.print_success("Settings repository is up to date")
    finally:
        context.close()


def _bridge(context: SyncContext, owner: Optional[Path]) -> SyncBridge:
    if owner is None:
        return context.application_bridge
    return SyncBridge(context, get_owner_id(PropertiesStore(owner)))


@cli.command()
@click.argument("file_spec")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--scope", "-s", type=SCOPE_CHOICE, default=RoamingScope.PER_USER.value, help="Roaming scope")
@click.option("--owner", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Owner (project) directory")
@click.option("--push", is_flag=True, help="Update the remote after saving")
@pass_state
def put(state: CliState, file_spec: str, source: Path, scope: str, owner: Optional[Path], push: bool) -> None:
    """Save SOURCE into the repository as FILE_SPEC."""
    context = state.open_context(update=False)
    try:
        content = source.read_bytes()
        repo_path = build_path(file_spec, RoamingScope(scope), _bridge(context, owner).owner_id)
        context.repository.write(repo_path, content, len(content))
        state.console.print_success(f"Saved {file_spec} -> {repo_path}")
        if push and context.update() != ConnectionStatus.OPENED:
            state.console.print_error(context.status_text)
            sys.exit(1)
    except SyncError as e:
        state.console.print_error(str(e))
        sys.exit(1)
    finally:
        context.close()


@cli.command()
@click.argument("file_spec")
@click.option("--scope", "-s", type=SCOPE_CHOICE, default=RoamingScope.PER_USER.value, help="Roaming scope")
@click.option("--owner", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Owner (project) directory")
@pass_state
def get(state: CliState, file_spec: str, scope: str, owner: Optional[Path]) -> None:
    """Print the repository content of FILE_SPEC."""
    context = state.open_context()
    try:
        content = _bridge(context, owner).load_content(file_spec, RoamingScope(scope))
        if content is None:
            state.console.print_error(f"No content for {file_spec} ({scope})")
            sys.exit(1)
        click.echo(content, nl=False)
    finally:
        context.close()


@cli.command("ls")
@click.argument("file_spec")
@click.option("--scope", "-s", type=SCOPE_CHOICE, default=RoamingScope.PER_USER.value, help="Roaming scope")
@pass_state
def list_files(state: CliState, file_spec: str, scope: str) -> None:
    """List application-level files under FILE_SPEC."""
    context = state.open_context()
    try:
        names = context.application_bridge.list_sub_files(file_spec, RoamingScope(scope))
        state.console.print_listing(file_spec, names)
    finally:
        context.close()


@cli.command("rm")
@click.argument("file_spec")
@click.option("--scope", "-s", type=SCOPE_CHOICE, default=RoamingScope.PER_USER.value, help="Roaming scope")
@pass_state
def remove(state: CliState, file_spec: str, scope: str) -> None:
    """Delete the application-level file FILE_SPEC."""
    context = state.open_context(update=False)
    try:
        repo_path = build_path(file_spec, RoamingScope(scope))
        repository = context.repository
        if repository.read(repo_path) is None and not repository.list_sub_file_names(repo_path):
            state.console.print_error(f"No content for {file_spec} ({scope})")
            sys.exit(1)
        repository.delete(repo_path)
        state.console.print_success(f"Deleted {file_spec} -> {repo_path}")
    except SyncError as e:
        state.console.print_error(str(e))
        sys.exit(1)
    finally:
        context.close()


@cli.command("owner-id")
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
@pass_state
def owner_id(state: CliState, directory: Path) -> None:
    """Print the stable owner id of a project DIRECTORY, creating it if needed."""
    click.echo(get_owner_id(PropertiesStore(directory)))


# -- settings commands ------------------------------------------------------


@cli.group()
def config() -> None:
    """Manage the cfgsync settings file."""
    pass


@config.command("init")
@pass_state
def config_init(state: CliState) -> None:
    """Create the default settings file."""
    path, created = ensure_config_exists(state.config_path)
    if created:
        state.console.print_success(f"Created {path}")
    else:
        state.console.print_info(f"Settings file already exists: {path}")


@config.command("path")
@pass_state
def config_path_cmd(state: CliState) -> None:
    """Show the settings file location."""
    click.echo(str(state.config_path))


@config.command("show")
@pass_state
def config_show(state: CliState) -> None:
    """Show current settings."""
    settings = load_settings_or_default(state.config_path)
    state.console.print_settings(settings, state.config_path)


@config.command("validate")
@pass_state
def config_validate(state: CliState) -> None:
    """Validate the settings file."""
    ok, errors = validate_config_file(state.config_path)
    if ok:
        state.console.print_success("Settings file is valid")
        return
    for error in errors:
        state.console.print_error(error)
    sys.exit(1)


@config.command("set-login")
@click.argument("login")
@click.option("--email", default=None, help="Email used in commit attribution")
@pass_state
def config_set_login(state: CliState, login: str, email: Optional[str]) -> None:
    """Set the synchronization identity."""
    settings = load_settings_or_default(state.config_path)
    settings.credentials.login = login
    if email:
        settings.credentials.email = email
    save_settings(settings, state.config_path)
    state.console.print_success(f"Login set to {login}")


@config.command("set-url")
@click.argument("url")
@pass_state
def config_set_url(state: CliState, url: str) -> None:
    """Set the remote repository URL."""
    settings = load_settings_or_default(state.config_path)
    settings.repository.url = url
    save_settings(settings, state.config_path)
    state.console.print_success(f"Remote URL set to {url}")


@config.command("set-update-on-start")
@click.argument("enabled", type=click.BOOL)
@pass_state
def config_set_update_on_start(state: CliState, enabled: bool) -> None:
    """Enable or disable pulling remote changes when connecting."""
    settings = load_settings_or_default(state.config_path)
    settings.update_on_start = enabled
    save_settings(settings, state.config_path)
    state.console.print_success(f"update_on_start set to {'true' if enabled else 'false'}")
