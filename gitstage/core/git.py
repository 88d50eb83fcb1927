"""Git operations module."""

import logging
from concurrent.futures import ThreadPoolExecutor

from ..config.settings import GitOptions
from .errors import GitError, GitValidationError
from .models import (
    ChangedFile,
    CommitFileChange,
    CommitHistoryEntry,
    RepoSnapshot,
)
from .parsers import (
    normalize_branch_name,
    parse_branch_ref_lines,
    parse_commit_file_changes_nul,
    parse_commit_log,
    parse_status_output,
    split_nul_paths,
)
from .process import GitRunner, run_git_raw
from .stash import run_with_stashed_changes, run_with_temporary_stash

logger = logging.getLogger(__name__)

__all__ = [
    "ChangedFile",
    "CommitFileChange",
    "CommitHistoryEntry",
    "GitClient",
    "GitError",
    "RepoSnapshot",
]


def _required(value: str, label: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise GitValidationError(f"{label} is required.")
    return normalized


class GitClient:
    """Git operations for a single repository.

    The repository root is resolved once by :meth:`create`; every command runs
    there through a shared :class:`GitRunner`.
    """

    def __init__(self, root: str, options: GitOptions | None = None, runner: GitRunner | None = None):
        self.root = root
        self.options = options or GitOptions()
        self.runner = runner or GitRunner(root)

    @classmethod
    def create(cls, cwd: str, options: GitOptions | None = None) -> "GitClient":
        """Resolve the repository containing ``cwd``."""
        result = run_git_raw(cwd, ["rev-parse", "--show-toplevel"])
        if result.code != 0:
            raise GitError(result.stderr.strip() or "Current directory is not a git repository.")

        root = result.stdout.strip()
        if not root:
            raise GitError("Failed to resolve git repository root.")
        return cls(root, options)

    def _git(self, args: list[str], expected_codes: tuple[int, ...] = (0,)):
        return self.runner.execute(args, expected_codes=expected_codes)

    @property
    def _whitespace_args(self) -> list[str]:
        return ["-w"] if self.options.hide_whitespace_changes else []

    # Read operations

    def snapshot(self) -> RepoSnapshot:
        """Read branch, tracking and working tree state."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            status_future = pool.submit(
                self._git, ["status", "--porcelain=v1", "-z", "--branch", "--untracked-files=all"]
            )
            branches_future = pool.submit(
                self._git,
                [
                    "for-each-ref",
                    "--sort=-creatordate",
                    "--format=%(refname:short)\t%(creatordate:unix)",
                    "refs/heads",
                ],
            )
            status = parse_status_output(status_future.result().stdout)
            branches = parse_branch_ref_lines(branches_future.result().stdout)

        return RepoSnapshot(
            root=self.root,
            branch=status.branch.branch,
            upstream=status.branch.upstream,
            ahead=status.branch.ahead,
            behind=status.branch.behind,
            branches=branches,
            files=status.files,
        )

    def diff_for_file(self, path: str) -> str:
        """Get the staged and unstaged diff for one path.

        Falls back to a diff against ``/dev/null`` for untracked files. Returns
        an empty string when the path no longer has changes.
        """
        path = _required(path, "File path")
        ws = self._whitespace_args
        with ThreadPoolExecutor(max_workers=2) as pool:
            staged_future = pool.submit(self._git, ["diff", "--cached", "--no-color", *ws, "--", path])
            unstaged_future = pool.submit(self._git, ["diff", "--no-color", *ws, "--", path])
            staged = staged_future.result().stdout
            unstaged = unstaged_future.result().stdout

        sections = []
        if staged.strip():
            sections.append(f"# Staged\n{staged}")
        if unstaged.strip():
            sections.append(f"# Unstaged\n{unstaged}")
        if sections:
            return "\n".join(sections)

        untracked = self._git(
            ["diff", "--no-index", "--no-color", *ws, "--", "/dev/null", path],
            expected_codes=(0, 1),
        )
        if untracked.stdout.strip():
            return untracked.stdout
        if untracked.code != 0 and untracked.stderr.strip():
            raise GitError(untracked.stderr.strip())
        return ""

    def has_working_tree_changes(self) -> bool:
        return bool(self._git(["status", "--porcelain"]).stdout.strip())

    def list_commits(self, limit: int | None = None) -> list[CommitHistoryEntry]:
        """List recent commits, newest first."""
        count = max(limit if limit is not None else self.options.history_limit, 1)
        result = self._git(
            [
                "log",
                f"--max-count={count}",
                "--date=relative",
                "--pretty=format:%H%x1f%h%x1f%s%x1f%ar%x1f%an",
            ]
        )
        return parse_commit_log(result.stdout)

    def list_commit_files(self, commit_hash: str) -> list[CommitFileChange]:
        hash_ = _required(commit_hash, "Commit hash")
        result = self._git(
            ["show", "--format=", "--name-status", "-z", "--find-renames", "--find-copies", hash_]
        )
        return parse_commit_file_changes_nul(result.stdout)

    def diff_for_commit_file(self, commit_hash: str, path: str) -> str:
        hash_ = _required(commit_hash, "Commit hash")
        file_path = _required(path, "Commit file path")
        result = self._git(
            [
                "show",
                "--format=",
                "--patch",
                "--find-renames",
                "--find-copies",
                "--no-color",
                *self._whitespace_args,
                hash_,
                "--",
                file_path,
            ]
        )
        return result.stdout

    # Remote operations

    def fetch(self) -> None:
        self._git(["fetch", "--prune"])

    def pull(self) -> None:
        """Fast-forward only pull."""
        self._git(["pull", "--ff-only"])

    def pull_merge(self) -> None:
        self._git(["pull", "--no-rebase"])

    def pull_fast_forward_preserving_changes(self) -> None:
        run_with_temporary_stash(self.pull, self.runner)

    def pull_merge_preserving_changes(self) -> None:
        """Merge-pull with local edits set aside.

        If the pull stops in a conflicted merge the edits stay stashed; the
        error names the stash so it can be popped once the merge is resolved.
        """
        run_with_temporary_stash(
            self.pull_merge,
            self.runner,
            should_keep_stash_on_error=lambda error: self.is_merge_in_progress(),
        )

    def push(self) -> None:
        """Push the current branch, setting ``origin`` as upstream if needed."""
        head = self._git(["rev-parse", "--verify", "HEAD"], expected_codes=(0, 128))
        if head.code != 0:
            raise GitError("No commits yet. Create a commit before pushing.")

        branch = self._git(["rev-parse", "--abbrev-ref", "HEAD"]).stdout.strip()
        if not branch or branch == "HEAD":
            raise GitError("Cannot push from detached HEAD.")

        upstream = self._git(
            ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"],
            expected_codes=(0, 1, 128),
        )
        if upstream.code == 0:
            self._git(["push"])
            return

        if "origin" not in self._remotes():
            raise GitError("No upstream configured and remote 'origin' was not found.")
        self._git(["push", "--set-upstream", "origin", branch])

    def merge_remote_main(self) -> str:
        """Fetch and merge the remote's main branch; return the merged ref."""
        self.fetch()
        target = self._resolve_remote_main_ref()
        self._git(["merge", "--no-edit", target])
        return target

    def _remotes(self) -> list[str]:
        return [line.strip() for line in self._git(["remote"]).stdout.splitlines() if line.strip()]

    def _resolve_remote_main_ref(self) -> str:
        remote_head = self._git(
            ["symbolic-ref", "--quiet", "refs/remotes/origin/HEAD"], expected_codes=(0, 1, 128)
        )
        if remote_head.code == 0:
            ref = remote_head.stdout.strip().removeprefix("refs/remotes/")
            if ref:
                return ref

        for candidate in ("origin/main", "origin/master"):
            verify = self._git(["rev-parse", "--verify", candidate], expected_codes=(0, 128))
            if verify.code == 0:
                return candidate

        raise GitError(
            "Unable to resolve remote main branch. Expected origin/HEAD, origin/main, or origin/master."
        )

    # Merge conflicts

    def is_merge_in_progress(self) -> bool:
        result = self._git(["rev-parse", "-q", "--verify", "MERGE_HEAD"], expected_codes=(0, 1))
        return result.code == 0

    def list_merge_conflict_paths(self) -> list[str]:
        return split_nul_paths(self._git(["diff", "--name-only", "--diff-filter=U", "-z"]).stdout)

    def mark_conflict_resolved(self, path: str) -> None:
        self._git(["add", "--", _required(path, "Conflict file path")])

    def complete_merge_commit(self) -> None:
        """Commit a merge once every conflict has been resolved."""
        if not self.is_merge_in_progress():
            raise GitError("No merge is in progress.")

        unresolved = self.list_merge_conflict_paths()
        if unresolved:
            raise GitError(
                f"Resolve all merge conflicts before completing merge ({len(unresolved)} unresolved)."
            )
        self._git(["commit", "--no-edit"])

    def abort_merge(self) -> None:
        if not self.is_merge_in_progress():
            raise GitError("No merge is in progress.")
        self._git(["merge", "--abort"])

    def pop_stash_ref(self, stash_ref: str) -> None:
        """Restore a stash that was kept for manual recovery."""
        ref = _required(stash_ref, "Stash reference")
        result = self._git(["stash", "pop", ref], expected_codes=(0, 1))
        if result.code != 0:
            details = result.stderr.strip() or result.stdout.strip() or "Unknown error."
            raise GitError(f"Failed to restore stashed changes from {ref}: {details}")

    # Branches

    def checkout(self, branch: str) -> None:
        self._git(["checkout", _required(branch, "Branch name")])

    def checkout_leaving_changes(self, branch: str) -> None:
        """Switch branches, leaving current edits in a stash."""
        run_with_stashed_changes(lambda: self.checkout(branch), self.runner)

    def create_and_checkout_branch(self, branch_name: str) -> None:
        """Create a branch from a normalized version of ``branch_name``."""
        name = normalize_branch_name(branch_name)
        if not name:
            raise GitValidationError("Branch name is required.")

        validation = self._git(["check-ref-format", "--branch", name], expected_codes=(0, 1, 128))
        if validation.code != 0:
            raise GitValidationError(f"Invalid branch name: {name}")

        self._git(["checkout", "-b", name])

    def create_and_checkout_branch_leaving_changes(self, branch_name: str) -> None:
        run_with_stashed_changes(lambda: self.create_and_checkout_branch(branch_name), self.runner)

    def delete_local_branch(self, branch: str) -> None:
        name = _required(branch, "Branch name")
        current = self._git(["rev-parse", "--abbrev-ref", "HEAD"]).stdout.strip()
        if current == name:
            raise GitError("Cannot delete the current branch.")
        self._git(["branch", "-d", name])

    def delete_remote_branch(self, branch: str) -> None:
        name = _required(branch, "Branch name")
        if "origin" not in self._remotes():
            raise GitError("Remote 'origin' was not found.")
        self._git(["push", "origin", "--delete", name])

    # History

    def checkout_commit(self, commit_hash: str) -> None:
        self._git(["checkout", _required(commit_hash, "Commit hash")])

    def revert_commit(self, commit_hash: str) -> None:
        self._git(["revert", "--no-edit", _required(commit_hash, "Commit hash")])

    # Commit

    def commit(
        self,
        summary: str,
        description: str = "",
        excluded_paths: list[str] | None = None,
        included_paths: list[str] | None = None,
    ) -> None:
        """Stage the selected paths and create a commit.

        Args:
            summary: Commit subject; must not be blank.
            description: Optional body, passed as a second ``-m``.
            excluded_paths: Paths to keep out of the commit even when auto-stage
                picked them up.
            included_paths: Paths selected for the commit; must not be empty.
        """
        title = summary.strip()
        if not title:
            raise GitValidationError("Commit summary is required.")

        selected = [path.strip() for path in included_paths or [] if path.strip()]
        if not selected:
            raise GitValidationError("No files selected for commit.")

        if self.options.auto_stage_on_commit:
            self._git(["add", "-A"])
        else:
            self._git(["add", "-A", "--", *selected])

        excluded = [path.strip() for path in excluded_paths or [] if path.strip()]
        if excluded:
            staged_excluded = split_nul_paths(
                self._git(["diff", "--name-only", "--cached", "-z", "--", *excluded]).stdout
            )
            if staged_excluded:
                self._git(["reset", "--", *staged_excluded])

        staged = self._git(["diff", "--cached", "--quiet"], expected_codes=(0, 1))
        if staged.code == 0:
            raise GitValidationError("No files selected for commit.")

        args = ["commit", "-m", title]
        if description.strip():
            args.extend(["-m", description.strip()])
        self._git(args)
        logger.info("Created commit: %s", title)
