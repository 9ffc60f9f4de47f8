# CFGSYNC Configuration Schema
# Pydantic models for the YAML settings file

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_REPOSITORY_PATH = "~/.local/share/cfgsync/repository"


class RepositoryConfig(BaseModel):
    """Backing repository location and versioning options."""

    url: str | None = Field(default=None, description="Remote repository URL (None = local only)")
    path: str = Field(default=DEFAULT_REPOSITORY_PATH, description="Local working copy path")
    remote: str = Field(default="origin", description="Git remote name")
    branch: str | None = Field(default=None, description="Branch to track (None = remote default)")
    commit_prefix: str = Field(default="[CFGSYNC]", description="Commit message prefix")
    push_on_update: bool = Field(default=True, description="Push local commits after a successful update")

    @field_validator("path")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ in path."""
        return str(Path(v).expanduser())


class CredentialsConfig(BaseModel):
    """Synchronization identity used for attribution of written content."""

    login: str | None = Field(default=None, description="Synchronization identity (login)")
    email: str | None = Field(default=None, description="Email used in commit attribution")
    token: str | None = Field(default=None, description="Access token for the remote", repr=False)

    def author(self) -> str | None:
        """Git author string for commits, or None without a login."""
        if not self.login:
            return None
        email = self.email or f"{self.login}@cfgsync.invalid"
        return f"{self.login} <{email}>"


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")
    log_file: str | None = Field(default=None, description="Path to log file")

    @field_validator("log_file")
    @classmethod
    def expand_optional_path(cls, v: str | None) -> str | None:
        """Expand ~ in optional paths."""
        if v is None:
            return None
        return str(Path(v).expanduser())


class SyncSettings(BaseModel):
    """Root settings model for cfgsync."""

    repository: RepositoryConfig = Field(default_factory=RepositoryConfig, description="Repository settings")
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig, description="Identity settings")
    update_on_start: bool = Field(default=True, description="Pull remote state when connecting")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")

    @property
    def login(self) -> str | None:
        return self.credentials.login

    @property
    def repository_path(self) -> Path:
        return Path(self.repository.path)
