# CFGSYNC Git Module
# Git operations for the repository working copy

from cfgsync.git.operations import (
    GitError,
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
    stage_all,
    stage_paths,
)

__all__ = [
    "GitError",
    "is_git_repo",
    "has_commits",
    "get_current_branch",
    "get_remote_url",
    "set_remote_url",
    "init_repo",
    "clone_repo",
    "stage_paths",
    "stage_all",
    "commit",
    "ensure_identity",
    "fetch",
    "remote_branch_exists",
    "pull",
    "rebase_in_progress",
    "abort_rebase",
    "push",
]
