# CFGSYNC Test Fixtures
# Pytest fixtures for cfgsync tests

import logging
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
import yaml

from cfgsync.config.schema import SyncSettings
from cfgsync.repository.memory import MemoryRemote, MemoryRepositoryManager
from cfgsync.storage import LocalStorageManager


@pytest.fixture(autouse=True)
def reset_package_logger() -> Generator[None, None, None]:
    """Undo handlers installed by configure_logging so caplog keeps working."""
    yield
    logger = logging.getLogger("cfgsync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("CFGSYNC_CONFIG", raising=False)
    return home


@pytest.fixture
def sample_config(temp_dir: Path) -> dict:
    """Settings dict for a local-only repository inside temp_dir."""
    return {
        "repository": {
            "path": str(temp_dir / "repository"),
            "remote": "origin",
            "commit_prefix": "[SYNC]",
            "push_on_update": True,
        },
        "credentials": {
            "login": "alice",
            "email": "alice@example.com",
        },
        "update_on_start": True,
        "output": {"verbose": False, "colored": False},
    }


@pytest.fixture
def settings(sample_config: dict) -> SyncSettings:
    return SyncSettings.model_validate(sample_config)


@pytest.fixture
def config_file(temp_home: Path, sample_config: dict) -> Path:
    """Create a settings file."""
    config_dir = temp_home / ".config" / "cfgsync"
    config_dir.mkdir(parents=True)
    config_path = config_dir / "config.yaml"

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config, f, default_flow_style=False)

    return config_path


@pytest.fixture
def remote() -> MemoryRemote:
    return MemoryRemote()


@pytest.fixture
def memory_repo(remote: MemoryRemote) -> Generator[MemoryRepositoryManager, None, None]:
    repo = MemoryRepositoryManager(remote)
    yield repo
    repo.close()


@pytest.fixture
def app_storage(temp_dir: Path) -> LocalStorageManager:
    """Application-level store directory."""
    return LocalStorageManager(temp_dir / "app-config")

