# Tests for cfgsync.git.operations
# Git command execution with mocked subprocess calls

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, call, patch

import pytest

from cfgsync.git.operations import (
    GitError,
    _run_git,
    abort_rebase,
    clone_repo,
    commit,
    ensure_identity,
    fetch,
    get_current_branch,
    get_remote_url,
    has_commits,
    init_repo,
    is_git_repo,
    pull,
    push,
    rebase_in_progress,
    remote_branch_exists,
    set_remote_url,
    stage_paths,
)


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=["git"], returncode=returncode, stdout=stdout, stderr=stderr)


class TestGitError:
    """Tests for GitError exception."""

    def test_basic_error(self):
        err = GitError("test message")
        assert err.message == "test message"
        assert err.returncode == 1
        assert err.stderr == ""
        assert str(err) == "test message"

    def test_error_with_details(self):
        err = GitError("failed", returncode=128, stderr="fatal: not a repo")
        assert err.returncode == 128
        assert str(err) == "failed: fatal: not a repo"


class TestRunGit:
    """Tests for _run_git helper."""

    @patch("cfgsync.git.operations.subprocess.run")
    def test_successful_command(self, mock_run):
        mock_run.return_value = _completed(stdout="clean")
        result = _run_git("status")
        assert result.stdout == "clean"
        assert mock_run.call_args[0][0] == ["git", "status"]

    @patch("cfgsync.git.operations.subprocess.run")
    def test_failed_command_raises(self, mock_run):
        mock_run.return_value = _completed(returncode=1, stderr="error\n")
        with pytest.raises(GitError) as exc_info:
            _run_git("bad")
        assert exc_info.value.returncode == 1
        assert exc_info.value.stderr == "error"

    @patch("cfgsync.git.operations.subprocess.run")
    def test_failed_command_no_check(self, mock_run):
        mock_run.return_value = _completed(returncode=1)
        assert _run_git("bad", check=False).returncode == 1

    @patch("cfgsync.git.operations.subprocess.run", side_effect=FileNotFoundError)
    def test_git_not_found(self, mock_run):
        with pytest.raises(GitError, match="git command not found"):
            _run_git("status")

    @patch("cfgsync.git.operations.subprocess.run")
    def test_config_passed_before_command(self, mock_run):
        mock_run.return_value = _completed()
        _run_git("fetch", "origin", git_config={"http.extraHeader": "Authorization: Bearer s3cret"})
        assert mock_run.call_args[0][0] == [
            "git",
            "-c",
            "http.extraHeader=Authorization: Bearer s3cret",
            "fetch",
            "origin",
        ]

    @patch("cfgsync.git.operations.subprocess.run")
    def test_token_redacted_in_error(self, mock_run):
        mock_run.return_value = _completed(returncode=128, stderr="fatal: unable to access")
        with pytest.raises(GitError) as exc_info:
            _run_git("fetch", "origin", git_config={"http.extraHeader": "Authorization: Bearer s3cret"})
        assert "s3cret" not in str(exc_info.value)
        assert "http.extraHeader=***" in str(exc_info.value)


class TestRepositoryQueries:
    """Tests for read-only repository queries."""

    def test_is_git_repo_without_dot_git(self, temp_dir):
        assert not is_git_repo(temp_dir)

    @patch("cfgsync.git.operations._run_git")
    def test_is_git_repo_toplevel(self, mock_git, temp_dir):
        (temp_dir / ".git").mkdir()
        mock_git.return_value = _completed(stdout=f"{temp_dir}\n")
        assert is_git_repo(temp_dir)

    @patch("cfgsync.git.operations._run_git")
    def test_is_git_repo_nested_directory(self, mock_git, temp_dir):
        (temp_dir / "sub" / ".git").mkdir(parents=True)
        mock_git.return_value = _completed(stdout=f"{temp_dir}\n")
        assert not is_git_repo(temp_dir / "sub")

    @patch("cfgsync.git.operations._run_git", side_effect=GitError("broken"))
    def test_is_git_repo_error(self, mock_git, temp_dir):
        (temp_dir / ".git").mkdir()
        assert not is_git_repo(temp_dir)

    @patch("cfgsync.git.operations._run_git")
    def test_has_commits(self, mock_git):
        mock_git.return_value = _completed(returncode=1)
        assert not has_commits(Path("/repo"))

    @patch("cfgsync.git.operations._run_git")
    def test_current_branch_detached(self, mock_git):
        mock_git.return_value = _completed(stdout="HEAD\n")
        assert get_current_branch(Path("/repo")) is None

    @patch("cfgsync.git.operations._run_git")
    def test_current_branch(self, mock_git):
        mock_git.return_value = _completed(stdout="main\n")
        assert get_current_branch(Path("/repo")) == "main"

    @patch("cfgsync.git.operations._run_git")
    def test_remote_url_missing(self, mock_git):
        mock_git.return_value = _completed(returncode=2)
        assert get_remote_url(Path("/repo")) is None

    @patch("cfgsync.git.operations._run_git")
    def test_remote_branch_exists(self, mock_git):
        mock_git.return_value = _completed()
        assert remote_branch_exists(Path("/repo"), "main")
        assert "refs/remotes/origin/main" in mock_git.call_args[0]

    def test_rebase_in_progress(self, temp_dir):
        assert not rebase_in_progress(temp_dir)
        (temp_dir / ".git" / "rebase-merge").mkdir(parents=True)
        assert rebase_in_progress(temp_dir)


class TestCommit:
    """Tests for commit()."""

    def test_invalid_author(self):
        with pytest.raises(GitError, match="Invalid author format"):
            commit("msg", Path("/repo"), author="no-email")

    @patch("cfgsync.git.operations._run_git")
    def test_nothing_staged(self, mock_git):
        mock_git.return_value = _completed(returncode=0)
        assert commit("msg", Path("/repo")) is None
        assert mock_git.call_count == 1

    @patch("cfgsync.git.operations._run_git")
    def test_commit_with_author(self, mock_git):
        mock_git.side_effect = [_completed(returncode=1), _completed(), _completed(stdout="abc123\n")]
        result = commit("msg", Path("/repo"), author="alice <alice@example.com>")
        assert result == "abc123"
        assert mock_git.call_args_list[1] == call(
            "commit", "-m", "msg", "--author", "alice <alice@example.com>", cwd=Path("/repo")
        )


class TestMutations:
    """Tests for commands that change the working copy or remote."""

    @patch("cfgsync.git.operations._run_git")
    def test_stage_paths(self, mock_git):
        stage_paths(["_app/user/a.xml"], Path("/repo"))
        mock_git.assert_called_once_with("add", "-A", "--", "_app/user/a.xml", cwd=Path("/repo"))

    @patch("cfgsync.git.operations._run_git")
    def test_stage_paths_empty(self, mock_git):
        stage_paths([], Path("/repo"))
        mock_git.assert_not_called()

    @patch("cfgsync.git.operations._run_git")
    def test_init_repo_with_branch(self, mock_git, temp_dir):
        init_repo(temp_dir / "new", branch="main")
        assert (temp_dir / "new").is_dir()
        mock_git.assert_called_once_with("init", "-b", "main", cwd=temp_dir / "new")

    @patch("cfgsync.git.operations._run_git")
    def test_clone_repo(self, mock_git, temp_dir):
        config = {"http.extraHeader": "Authorization: Bearer t"}
        clone_repo("https://example.com/r.git", temp_dir / "dest", branch="main", git_config=config)
        mock_git.assert_called_once_with(
            "clone", "-b", "main", "https://example.com/r.git", str(temp_dir / "dest"), git_config=config
        )

    @patch("cfgsync.git.operations._run_git")
    def test_fetch(self, mock_git):
        fetch(Path("/repo"), remote="upstream")
        mock_git.assert_called_once_with("fetch", "upstream", cwd=Path("/repo"), git_config=None)

    @patch("cfgsync.git.operations._run_git")
    def test_pull_rebase(self, mock_git):
        pull(Path("/repo"), branch="main", rebase=True)
        mock_git.assert_called_once_with("pull", "--rebase", "origin", "main", cwd=Path("/repo"), git_config=None)

    @patch("cfgsync.git.operations._run_git")
    def test_push_upstream(self, mock_git):
        push(Path("/repo"), branch="main", set_upstream=True)
        mock_git.assert_called_once_with("push", "-u", "origin", "main", cwd=Path("/repo"), git_config=None)

    @patch("cfgsync.git.operations._run_git")
    def test_abort_rebase(self, mock_git):
        abort_rebase(Path("/repo"))
        mock_git.assert_called_once_with("rebase", "--abort", cwd=Path("/repo"))

    @patch("cfgsync.git.operations.get_remote_url", return_value=None)
    @patch("cfgsync.git.operations._run_git")
    def test_set_remote_url_adds(self, mock_git, mock_url):
        set_remote_url(Path("/repo"), "https://example.com/r.git")
        mock_git.assert_called_once_with("remote", "add", "origin", "https://example.com/r.git", cwd=Path("/repo"))

    @patch("cfgsync.git.operations.get_remote_url", return_value="https://old")
    @patch("cfgsync.git.operations._run_git")
    def test_set_remote_url_changes(self, mock_git, mock_url):
        set_remote_url(Path("/repo"), "https://new")
        mock_git.assert_called_once_with("remote", "set-url", "origin", "https://new", cwd=Path("/repo"))

    @patch("cfgsync.git.operations._run_git")
    def test_ensure_identity_only_when_unset(self, mock_git):
        mock_git.side_effect = [
            _completed(stdout="Existing\n"),
            _completed(returncode=1),
            MagicMock(),
        ]
        ensure_identity(Path("/repo"), "cfgsync", "cfgsync@localhost")
        assert mock_git.call_args_list[-1] == call("config", "user.email", "cfgsync@localhost", cwd=Path("/repo"))
        assert mock_git.call_count == 3
