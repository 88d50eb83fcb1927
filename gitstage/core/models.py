"""Records produced by the git layer."""

from dataclasses import dataclass, field

STATUS_NAMES = {
    " ": "clean",
    "M": "modified",
    "A": "added",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
    "T": "type changed",
    "U": "unmerged",
    "?": "untracked",
    "!": "ignored",
}


def build_status_label(index_status: str, worktree_status: str) -> str:
    """Describe a porcelain status pair for humans."""
    if index_status == "?" and worktree_status == "?":
        return "untracked"

    parts = []
    if index_status != " ":
        parts.append(f"staged {STATUS_NAMES.get(index_status, index_status)}")
    if worktree_status != " ":
        parts.append(f"unstaged {STATUS_NAMES.get(worktree_status, worktree_status)}")
    return ", ".join(parts) or "clean"


@dataclass(frozen=True)
class ChangedFile:
    """A path with uncommitted changes."""

    path: str
    index_status: str
    worktree_status: str
    staged: bool
    unstaged: bool
    untracked: bool
    status_label: str
    old_path: str | None = None  # For renames and copies

    @classmethod
    def from_status(
        cls,
        path: str,
        index_status: str,
        worktree_status: str,
        old_path: str | None = None,
    ) -> "ChangedFile":
        """Derive the staged/unstaged/untracked flags from a status pair."""
        untracked = index_status == "?" and worktree_status == "?"
        return cls(
            path=path,
            index_status=index_status,
            worktree_status=worktree_status,
            staged=not untracked and index_status != " ",
            unstaged=not untracked and worktree_status != " ",
            untracked=untracked,
            status_label=build_status_label(index_status, worktree_status),
            old_path=old_path,
        )

    @property
    def short_status(self) -> str:
        return f"{self.index_status}{self.worktree_status}".strip() or "??"


@dataclass(frozen=True)
class BranchInfo:
    """Parsed ``## ...`` header of porcelain status output."""

    branch: str
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0


@dataclass(frozen=True)
class RepoSnapshot:
    """Point-in-time view of a repository, rebuilt on every poll."""

    root: str
    branch: str
    upstream: str | None
    ahead: int
    behind: int
    branches: list[str] = field(default_factory=list)
    files: list[ChangedFile] = field(default_factory=list)


@dataclass(frozen=True)
class CommitHistoryEntry:
    hash: str
    short_hash: str
    subject: str
    relative_date: str
    author: str


@dataclass(frozen=True)
class CommitFileChange:
    """A file touched by a commit; renames display as ``old -> new``."""

    path: str
    status: str
    display_path: str


@dataclass(frozen=True)
class StashRef:
    ref: str
    subject: str
