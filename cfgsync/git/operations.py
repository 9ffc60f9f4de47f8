# CFGSYNC Git Operations
# Git command execution for the repository working copy

import re
import subprocess
from pathlib import Path
from typing import Optional

_AUTHOR_PATTERN = re.compile(r"^[^<>]+ <[^<>\s]+>$")
_SECRET_CONFIG_KEYS = ("http.extraheader",)


class GitError(Exception):
    """Exception raised for git operation errors."""

    def __init__(self, message: str, returncode: int = 1, stderr: str = ""):
        self.message = message
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.message}: {self.stderr}"
        return self.message


def _config_args(git_config: Optional[dict[str, str]]) -> list[str]:
    args: list[str] = []
    for key, value in (git_config or {}).items():
        args.extend(["-c", f"{key}={value}"])
    return args


def _redact(cmd: list[str]) -> list[str]:
    redacted = []
    for arg in cmd:
        key, sep, _value = arg.partition("=")
        if sep and key.lower() in _SECRET_CONFIG_KEYS:
            arg = f"{key}=***"
        redacted.append(arg)
    return redacted


def _run_git(
    *args: str,
    cwd: Optional[Path] = None,
    git_config: Optional[dict[str, str]] = None,
    check: bool = True,
    capture_output: bool = True,
) -> subprocess.CompletedProcess[str]:
    """
    Run a git command.

    Args:
        *args: Git command arguments.
        cwd: Working directory.
        git_config: Extra configuration passed with -c (values never logged).
        check: Whether to raise on non-zero exit.
        capture_output: Whether to capture stdout/stderr.

    Returns:
        CompletedProcess with result.

    Raises:
        GitError: If command fails and check is True.
    """
    cmd = ["git", *_config_args(git_config), *args]
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            check=False,
            capture_output=capture_output,
            text=True,
        )
    except FileNotFoundError:
        raise GitError("git command not found. Is git installed?")

    if check and result.returncode != 0:
        raise GitError(
            f"Git command failed: {' '.join(_redact(cmd))}",
            returncode=result.returncode,
            stderr=result.stderr.strip() if result.stderr else "",
        )
    return result


def is_git_repo(path: Path) -> bool:
    """
    Check if path is the root of a git working copy.

    Args:
        path: Directory to check.

    Returns:
        True if path holds a git repository.
    """
    if not (path / ".git").exists():
        return False
    try:
        result = _run_git("rev-parse", "--show-toplevel", cwd=path)
    except GitError:
        return False
    return Path(result.stdout.strip()).resolve() == path.resolve()


def has_commits(path: Path) -> bool:
    """Check if the current branch has at least one commit."""
    result = _run_git("rev-parse", "--verify", "--quiet", "HEAD", cwd=path, check=False)
    return result.returncode == 0


def get_current_branch(path: Path) -> Optional[str]:
    """
    Get current branch name.

    Args:
        path: Repository path.

    Returns:
        Branch name or None if detached.
    """
    try:
        result = _run_git("rev-parse", "--abbrev-ref", "HEAD", cwd=path)
        branch = result.stdout.strip()
        return None if branch == "HEAD" else branch
    except GitError:
        return None


def get_remote_url(path: Path, remote: str = "origin") -> Optional[str]:
    """
    Get the URL configured for a remote.

    Returns:
        Remote URL or None if the remote is not configured.
    """
    result = _run_git("remote", "get-url", remote, cwd=path, check=False)
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def set_remote_url(path: Path, url: str, remote: str = "origin") -> None:
    """
    Add the remote, or change its URL if it already exists.

    Raises:
        GitError: If git fails.
    """
    if get_remote_url(path, remote) is None:
        _run_git("remote", "add", remote, url, cwd=path)
    else:
        _run_git("remote", "set-url", remote, url, cwd=path)


def stage_paths(paths: list[str], path: Path) -> None:
    """
    Stage additions, modifications and removals of the given paths.

    Args:
        paths: Repository-relative paths.
        path: Repository path.

    Raises:
        GitError: If staging fails.
    """
    if not paths:
        return
    _run_git("add", "-A", "--", *paths, cwd=path)


def stage_all(path: Path) -> None:
    """
    Stage all changes.

    Raises:
        GitError: If staging fails.
    """
    _run_git("add", "-A", cwd=path)


def commit(
    message: str,
    path: Path,
    *,
    author: Optional[str] = None,
) -> Optional[str]:
    """
    Commit staged changes.

    Args:
        message: Commit message.
        path: Repository path.
        author: Optional author string (format: "Name <email>").

    Returns:
        Commit hash, or None if nothing was staged.

    Raises:
        GitError: If the author is malformed or the commit fails.
    """
    if author and not _AUTHOR_PATTERN.match(author):
        raise GitError(f"Invalid author format: {author!r}")

    # Nothing staged, nothing to record
    staged = _run_git("diff", "--cached", "--quiet", cwd=path, check=False)
    if staged.returncode == 0:
        return None

    args = ["commit", "-m", message]
    if author:
        args.extend(["--author", author])

    _run_git(*args, cwd=path)
    result = _run_git("rev-parse", "HEAD", cwd=path)
    return result.stdout.strip()


def init_repo(path: Path, *, branch: Optional[str] = None) -> None:
    """
    Initialize a new git repository.

    Args:
        path: Directory to initialize.
        branch: Optional initial branch name.

    Raises:
        GitError: If git init fails.
    """
    path.mkdir(parents=True, exist_ok=True)
    args = ["init"]
    if branch:
        args.extend(["-b", branch])
    _run_git(*args, cwd=path)


def clone_repo(
    url: str,
    dest: Path,
    *,
    branch: Optional[str] = None,
    depth: Optional[int] = None,
    git_config: Optional[dict[str, str]] = None,
) -> None:
    """
    Clone a repository.

    Args:
        url: Repository URL.
        dest: Destination directory.
        branch: Optional branch to checkout.
        depth: Optional depth for shallow clone.

    Raises:
        GitError: If the clone fails.
    """
    args = ["clone"]

    if branch:
        args.extend(["-b", branch])

    if depth:
        args.extend(["--depth", str(depth)])

    args.extend([url, str(dest)])
    dest.parent.mkdir(parents=True, exist_ok=True)
    _run_git(*args, git_config=git_config)


def fetch(path: Path, *, remote: str = "origin", git_config: Optional[dict[str, str]] = None) -> None:
    """
    Fetch remote changes without merging.

    Raises:
        GitError: If the fetch fails.
    """
    _run_git("fetch", remote, cwd=path, git_config=git_config)


def remote_branch_exists(path: Path, branch: str, *, remote: str = "origin") -> bool:
    """Check if the remote tracking branch exists after a fetch."""
    result = _run_git("rev-parse", "--verify", "--quiet", f"refs/remotes/{remote}/{branch}", cwd=path, check=False)
    return result.returncode == 0


def pull(
    path: Path,
    *,
    remote: str = "origin",
    branch: Optional[str] = None,
    rebase: bool = False,
    git_config: Optional[dict[str, str]] = None,
) -> None:
    """
    Pull changes from remote.

    Args:
        path: Repository path.
        remote: Remote name.
        branch: Branch to pull (uses upstream if not specified).
        rebase: Use rebase instead of merge.

    Raises:
        GitError: If the pull fails (network error, conflict).
    """
    args = ["pull"]
    if rebase:
        args.append("--rebase")
    args.append(remote)
    if branch:
        args.append(branch)
    _run_git(*args, cwd=path, git_config=git_config)


def rebase_in_progress(path: Path) -> bool:
    """Check if an interrupted rebase is pending."""
    git_dir = path / ".git"
    return (git_dir / "rebase-merge").exists() or (git_dir / "rebase-apply").exists()


def abort_rebase(path: Path) -> None:
    """
    Abort an interrupted rebase, restoring the pre-rebase state.

    Raises:
        GitError: If the abort fails.
    """
    _run_git("rebase", "--abort", cwd=path)


def push(
    path: Path,
    *,
    remote: str = "origin",
    branch: Optional[str] = None,
    set_upstream: bool = False,
    git_config: Optional[dict[str, str]] = None,
) -> None:
    """
    Push commits to remote.

    Args:
        path: Repository path.
        remote: Remote name.
        branch: Branch name (uses current if not specified).
        set_upstream: Set upstream tracking.

    Raises:
        GitError: If the push fails.
    """
    args = ["push"]

    if set_upstream:
        args.append("-u")

    args.append(remote)

    if branch:
        args.append(branch)

    _run_git(*args, cwd=path, git_config=git_config)


def ensure_identity(path: Path, name: str, email: str) -> None:
    """
    Configure a repository-local committer identity when none is set.

    Args:
        path: Repository path.
        name: Fallback user.name.
        email: Fallback user.email.

    Raises:
        GitError: If git config fails.
    """
    for key, value in (("user.name", name), ("user.email", email)):
        current = _run_git("config", "--get", key, cwd=path, check=False)
        if current.returncode != 0 or not current.stdout.strip():
            _run_git("config", key, value, cwd=path)
