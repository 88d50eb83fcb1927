"""Evaluation runs: generate a subject for the working tree or a replayed commit."""

import logging
from dataclasses import asdict, dataclass, field

from ..config.settings import AIConfig, GitOptions
from .context import CommitContextStats
from .git import GitClient
from .models import ChangedFile
from .summary import generate_ai_commit_summary
from .worktree import create_replay_worktree, remove_worktree

logger = logging.getLogger(__name__)


@dataclass
class EvalResult:
    """Outcome of one evaluation run."""

    mode: str
    selected_paths: list[str]
    generated_subject: str
    commit: str | None = None
    actual_subject: str | None = None
    worktree_path: str | None = None
    context_stats: CommitContextStats | None = None
    generated_length: int = field(init=False)

    def __post_init__(self):
        self.generated_length = len(self.generated_subject)

    def to_dict(self) -> dict:
        data = asdict(self)
        return {key: value for key, value in data.items() if value is not None}


def dedupe_non_empty(values: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        trimmed = value.strip()
        if trimmed:
            seen.setdefault(trimmed, None)
    return list(seen)


def resolve_selected_paths(files: list[ChangedFile], override_paths: list[str]) -> list[str]:
    """Use ``override_paths`` when given, else every changed path.

    Raises:
        ValueError: Nothing is selected, or an override names an unchanged path.
    """
    changed = {file.path for file in files}
    if override_paths:
        selected = dedupe_non_empty(override_paths)
    else:
        selected = [file.path for file in files]

    if not selected:
        raise ValueError("No changed files selected for evaluation.")

    missing = [path for path in selected if path not in changed]
    if missing:
        raise ValueError(
            f"Selected paths are not changed in this evaluation target: {', '.join(missing)}"
        )
    return selected


def _generate(git: GitClient, override_paths: list[str], ai_config: AIConfig, **kwargs):
    snapshot = git.snapshot()
    selected = resolve_selected_paths(snapshot.files, override_paths)
    captured: list[CommitContextStats] = []
    subject = generate_ai_commit_summary(
        git,
        snapshot.files,
        selected,
        ai_config,
        on_context_built=captured.append,
        **kwargs,
    )
    return selected, subject, (captured[0] if captured else None)


def evaluate_working_tree(
    cwd: str,
    ai_config: AIConfig,
    git_options: GitOptions | None = None,
    selected_paths_override: list[str] | None = None,
    **kwargs,
) -> EvalResult:
    """Generate a subject for the uncommitted changes in ``cwd``."""
    git = GitClient.create(cwd, git_options)
    selected, subject, stats = _generate(git, selected_paths_override or [], ai_config, **kwargs)
    return EvalResult(
        mode="working",
        selected_paths=selected,
        generated_subject=subject,
        context_stats=stats,
    )


def evaluate_commit(
    repo_cwd: str,
    commit: str,
    ai_config: AIConfig,
    git_options: GitOptions | None = None,
    selected_paths_override: list[str] | None = None,
    keep_worktree: bool = False,
    **kwargs,
) -> EvalResult:
    """Replay ``commit`` in a temporary worktree and generate a subject for it.

    The worktree is removed afterwards unless ``keep_worktree`` is set.
    """
    replay = create_replay_worktree(repo_cwd, commit)
    try:
        git = GitClient.create(replay.path, git_options)
        selected, subject, stats = _generate(
            git, selected_paths_override or replay.commit_paths, ai_config, **kwargs
        )
        return EvalResult(
            mode="commit",
            selected_paths=selected,
            generated_subject=subject,
            commit=commit,
            actual_subject=replay.actual_subject,
            worktree_path=replay.path if keep_worktree else None,
            context_stats=stats,
        )
    finally:
        if not keep_worktree:
            remove_worktree(repo_cwd, replay.path)
