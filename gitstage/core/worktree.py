"""Disposable worktrees for replaying a single commit."""

import logging
import tempfile
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from .errors import WorktreeError
from .process import format_failure, run_git_raw

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplayWorktree:
    """A detached worktree holding one commit's changes, uncommitted."""

    path: str
    commit_paths: list[str] = field(default_factory=list)
    actual_subject: str = ""


def _run_or_raise(cwd: str, args: list[str], label: str) -> str:
    result = run_git_raw(cwd, args)
    if result.code != 0:
        raise WorktreeError(f"Failed to {label}: {format_failure(result, args)}")
    return result.stdout


def _dedupe(values: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        if value.strip():
            seen.setdefault(value.strip(), None)
    return list(seen)


def create_replay_worktree(repo_cwd: str, commit: str) -> ReplayWorktree:
    """Check out ``commit``'s parent in a new worktree and replay the commit.

    The commit is cherry-picked with ``-n`` so its changes show up as local
    modifications. If the replay fails the worktree is removed before the
    error propagates.
    """
    # Relative refs like HEAD would resolve differently inside the new worktree.
    commit = _run_or_raise(
        repo_cwd, ["rev-parse", "--verify", f"{commit}^{{commit}}"], f"resolve commit {commit}"
    ).strip()
    parent = _run_or_raise(repo_cwd, ["rev-parse", f"{commit}^"], f"resolve parent for {commit}")
    subject = _run_or_raise(
        repo_cwd, ["show", "-s", "--format=%s", commit], f"read subject for {commit}"
    )
    names = _run_or_raise(
        repo_cwd, ["show", "--name-only", "--pretty=format:", commit], f"read files for {commit}"
    )
    commit_paths = _dedupe(names.split("\n"))
    if not commit_paths:
        raise WorktreeError(f"Commit {commit} has no changed paths to evaluate.")

    path = str(Path(tempfile.gettempdir()) / f"gitstage-eval-{commit[:8]}-{uuid.uuid4()}")
    _run_or_raise(
        repo_cwd,
        ["worktree", "add", "--detach", path, parent.strip()],
        f"create replay worktree for {commit}",
    )
    logger.info("Created replay worktree %s", path)

    try:
        _run_or_raise(path, ["cherry-pick", "-n", commit], f"replay {commit}")
    except Exception as error:
        try:
            remove_worktree(repo_cwd, path)
        except WorktreeError as cleanup_error:
            raise WorktreeError(
                f"{error} Also failed to clean up; remove {path} manually: {cleanup_error}"
            ) from error
        raise

    return ReplayWorktree(path=path, commit_paths=commit_paths, actual_subject=subject.strip())


def remove_worktree(repo_cwd: str, worktree_path: str) -> None:
    """Forcibly remove a worktree."""
    result = run_git_raw(repo_cwd, ["worktree", "remove", "--force", worktree_path])
    if result.code != 0:
        details = result.stderr.strip() or result.stdout.strip() or "unknown error"
        raise WorktreeError(f"Failed to remove worktree {worktree_path}: {details}")
    logger.info("Removed worktree %s", worktree_path)
