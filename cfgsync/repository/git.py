# CFGSYNC Git Repository
# Repository manager backed by a local git working copy

import logging
from pathlib import Path
from typing import Optional

from cfgsync.config.schema import SyncSettings
from cfgsync.errors import ConnectError, RepositoryIOError, UpdateError
from cfgsync.git import operations as git
from cfgsync.git.operations import GitError
from cfgsync.repository.base import RepositoryManager, parent_paths
from cfgsync.utils.paths import atomic_write, is_temp_file, prune_empty_dirs, safe_delete

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"
DEFAULT_COMMITTER = ("cfgsync", "cfgsync@localhost")


class GitRepositoryManager(RepositoryManager):
    """
    Settings repository stored in a git working copy.

    Every write and delete is committed immediately, attributed to the
    configured login. ``update()`` commits anything pending, rebases onto
    the remote branch and pushes. A rebase that hits a conflict is aborted,
    leaving the working copy exactly as it was before the update.
    """

    def __init__(self, settings: SyncSettings):
        super().__init__()
        self.settings = settings

    @property
    def root(self) -> Path:
        """Local working copy directory."""
        return self.settings.repository_path

    @property
    def _remote(self) -> str:
        return self.settings.repository.remote

    def _git_config(self) -> Optional[dict[str, str]]:
        token = self.settings.credentials.token
        if not token:
            return None
        return {"http.extraHeader": f"Authorization: Bearer {token}"}

    def _branch(self) -> str:
        return self.settings.repository.branch or git.get_current_branch(self.root) or DEFAULT_BRANCH

    # -- connect / update --------------------------------------------------

    def _connect(self) -> None:
        url = self.settings.repository.url
        root = self.root

        try:
            if git.is_git_repo(root):
                if url and git.get_remote_url(root, self._remote) != url:
                    logger.info("Setting remote %s to %s", self._remote, url)
                    git.set_remote_url(root, url, self._remote)
            elif root.exists() and any(root.iterdir()):
                raise ConnectError(f"{root} exists and is not a git repository")
            elif url:
                logger.info("Cloning settings repository %s into %s", url, root)
                git.clone_repo(url, root, branch=self.settings.repository.branch, git_config=self._git_config())
            else:
                logger.info("Initializing local settings repository in %s", root)
                git.init_repo(root, branch=self.settings.repository.branch or DEFAULT_BRANCH)

            git.ensure_identity(root, *DEFAULT_COMMITTER)
        except (GitError, OSError) as e:
            raise ConnectError(f"Cannot open settings repository {root}: {e}") from e

    def _update(self) -> None:
        root = self.root
        if not self.settings.repository.url:
            logger.debug("No remote configured, nothing to update")
            return

        try:
            git.stage_all(root)
            git.commit(self._message("Save pending changes"), root, author=self.settings.credentials.author())

            git.fetch(root, remote=self._remote, git_config=self._git_config())
            branch = self._branch()

            if git.remote_branch_exists(root, branch, remote=self._remote):
                self._rebase_onto_remote(branch)

            if self.settings.repository.push_on_update and git.has_commits(root):
                git.push(root, remote=self._remote, branch=branch, set_upstream=True, git_config=self._git_config())
        except GitError as e:
            raise UpdateError(f"Update of settings repository failed: {e}") from e

    def _rebase_onto_remote(self, branch: str) -> None:
        root = self.root
        try:
            git.pull(root, remote=self._remote, branch=branch, rebase=True, git_config=self._git_config())
        except GitError as e:
            if git.rebase_in_progress(root):
                logger.warning("Conflicting changes during update, restoring pre-update state")
                try:
                    git.abort_rebase(root)
                except GitError as abort_error:
                    logger.error("Failed to abort rebase in %s: %s", root, abort_error)
                raise UpdateError(f"Conflicting changes between local and remote settings: {e}") from e
            raise

    # -- file primitives ---------------------------------------------------

    def _message(self, action: str) -> str:
        return f"{self.settings.repository.commit_prefix} {action}"

    def _record(self, path: str, action: str) -> None:
        try:
            git.stage_paths([path], self.root)
            git.commit(self._message(f"{action} {path}"), self.root, author=self.settings.credentials.author())
        except GitError as e:
            # surfaced as RepositoryIOError by the base class
            raise OSError(str(e)) from e

    def _read(self, path: str) -> Optional[bytes]:
        target = self.root / path
        if not target.is_file():
            return None
        return target.read_bytes()

    def _write(self, path: str, content: bytes) -> None:
        target = self.root / path
        if target.is_dir():
            raise RepositoryIOError(f"Cannot write {path}: a directory exists at that path", path=path)
        for parent in parent_paths(path):
            if (self.root / parent).is_file():
                raise RepositoryIOError(f"Cannot write {path}: {parent} is a file", path=path)
        atomic_write(target, content)
        self._record(path, "Update")

    def _delete(self, path: str) -> bool:
        target = self.root / path
        if not safe_delete(target, missing_ok=True):
            return False
        prune_empty_dirs(target.parent, self.root)
        self._record(path, "Delete")
        return True

    def _list(self, prefix: str) -> list[str]:
        directory = self.root / prefix
        if not directory.is_dir():
            return []
        return sorted(
            entry.name
            for entry in directory.iterdir()
            if entry.name != ".git" and not is_temp_file(entry.name)
        )
