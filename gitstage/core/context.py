"""Assembling the diff context sent to the commit message model."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field

from ..services.tokenizer import TextTokenizer
from .analyzer import (
    BehaviorCues,
    ContextSignals,
    aggregate_behavior_cues,
    analyze_diff,
    collect_behavior_cues,
    format_cue_list,
)
from .diff_budget import (
    CONTEXT_TRUNCATED_SUFFIX,
    DIFF_SECTION_HEADING,
    DiffSnippet,
    build_diff_section_with_budget,
    condense_diff,
    truncate_to_token_budget,
)
from .git import GitClient
from .models import ChangedFile
from .policy import MAX_RECENT_COMMIT_SUBJECTS

logger = logging.getLogger(__name__)

MAX_RAW_DIFF_CHARS_FOR_CONTEXT = 250_000
MAX_ERROR_LENGTH = 140
MAX_DIFF_WORKERS = 8


@dataclass(frozen=True)
class CommitContextStats:
    selected_paths_total: int
    selected_paths_included: int
    selected_paths_omitted_by_system_limit: int
    max_input_tokens: int
    pre_truncation_context_tokens: int
    final_context_tokens: int
    truncated_by_token_budget: bool
    omitted_diff_files: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CommitContextBuildResult:
    context: str
    stats: CommitContextStats


@dataclass
class ContextSnippet:
    path: str
    condensed: str
    added_lines: int = 0
    removed_lines: int = 0
    behavior_cues: BehaviorCues = field(default_factory=BehaviorCues)
    omitted: bool = False


def _omitted_snippet(path: str, reason: str) -> ContextSnippet:
    return ContextSnippet(path=path, condensed=f"# diff omitted: {reason}", omitted=True)


def compact_error(error: Exception) -> str:
    normalized = " ".join(str(error).split())
    if len(normalized) <= MAX_ERROR_LENGTH:
        return normalized
    return f"{normalized[: MAX_ERROR_LENGTH - 3].rstrip()}..."


def read_context_snippet(git: GitClient, path: str) -> ContextSnippet:
    """Read and condense one file's diff.

    Oversized or unreadable diffs become an omitted snippet so one bad file
    does not sink the whole summary.
    """
    try:
        diff = git.diff_for_file(path)
    except Exception as e:
        logger.warning("Omitting diff for %s from AI context: %s", path, e)
        return _omitted_snippet(path, f"diff unavailable ({compact_error(e)})")

    if len(diff) > MAX_RAW_DIFF_CHARS_FOR_CONTEXT:
        logger.warning("Omitting diff for %s from AI context: %d chars", path, len(diff))
        return _omitted_snippet(path, "diff too large for AI context")

    added, removed = analyze_diff(diff)
    return ContextSnippet(
        path=path,
        condensed=condense_diff(diff),
        added_lines=added,
        removed_lines=removed,
        behavior_cues=collect_behavior_cues(diff),
    )


def read_recent_commit_subjects(git: GitClient) -> list[str]:
    try:
        entries = git.list_commits(MAX_RECENT_COMMIT_SUBJECTS)
    except Exception as e:
        logger.warning("Recent commit subjects unavailable: %s", e)
        return []
    subjects = [entry.subject.strip() for entry in entries]
    return [subject for subject in subjects if subject][:MAX_RECENT_COMMIT_SUBJECTS]


def _status_code(file: ChangedFile | None) -> str:
    if file is None:
        return "??"
    return file.short_status


def build_preamble_lines(
    signals: ContextSignals,
    cues: BehaviorCues,
    file_lines: list[str],
    omitted_diff_files: int,
    recent_subjects: list[str],
) -> list[str]:
    likely_new_surface = signals.likely_new_surface
    lines = [
        "Context signals:",
        f"- touched_files: {signals.touched_files}",
        f"- existing_surface_only: {'no' if likely_new_surface else 'yes'}",
        f"- likely_new_surface: {'yes' if likely_new_surface else 'no'}",
        f"- status_counts: new={signals.new_files} modified={signals.modified_files} "
        f"deleted={signals.deleted_files} renamed={signals.renamed_files}",
        f"- diff_line_counts: additions={signals.added_lines} deletions={signals.removed_lines}",
        f"- file_categories: docs={signals.docs_files} tests={signals.test_files} "
        f"config={signals.config_files}",
        f"- omitted_diff_files: {omitted_diff_files}",
        "- additional_selected_files_not_shown: 0",
        "- classify by behavior impact first; line counts and file counts are supporting signals",
        "",
        "Behavior cues:",
        f"- added_conditions: {format_cue_list(cues.added_conditions)}",
        f"- removed_conditions: {format_cue_list(cues.removed_conditions)}",
        f"- added_guards: {format_cue_list(cues.added_guards)}",
        f"- removed_guards: {format_cue_list(cues.removed_guards)}",
        f"- added_calls: {format_cue_list(cues.added_calls)}",
        f"- removed_calls: {format_cue_list(cues.removed_calls)}",
        "",
        "Changed files:",
        "\n".join(file_lines),
    ]
    if recent_subjects:
        lines.extend(["", "Recent commit subjects (style reference only):"])
        lines.extend(f"- {subject}" for subject in recent_subjects)
    return lines


def build_commit_context(
    git: GitClient,
    file_by_path: dict[str, ChangedFile],
    selected_paths: list[str],
    max_input_tokens: int,
    tokenizer: TextTokenizer,
) -> CommitContextBuildResult:
    """Build the model context for ``selected_paths``.

    The result never exceeds ``max_input_tokens`` tokens under ``tokenizer``.
    """
    signals = ContextSignals(touched_files=len(selected_paths))
    for path in selected_paths:
        signals.update_status(file_by_path.get(path))
        signals.update_path_category(path)

    if selected_paths:
        workers = min(MAX_DIFF_WORKERS, len(selected_paths))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            snippets = list(executor.map(lambda path: read_context_snippet(git, path), selected_paths))
    else:
        snippets = []
    omitted_diff_files = sum(1 for snippet in snippets if snippet.omitted)

    file_lines = []
    for path, snippet in zip(selected_paths, snippets):
        signals.added_lines += snippet.added_lines
        signals.removed_lines += snippet.removed_lines
        file_lines.append(
            f"- {_status_code(file_by_path.get(path))} {path} "
            f"(+{snippet.added_lines} -{snippet.removed_lines})"
        )

    cues = aggregate_behavior_cues([snippet.behavior_cues for snippet in snippets])
    preamble_lines = build_preamble_lines(
        signals, cues, file_lines, omitted_diff_files, read_recent_commit_subjects(git)
    )

    diff_section = build_diff_section_with_budget(
        [DiffSnippet(path=snippet.path, body=snippet.condensed) for snippet in snippets],
        preamble_lines,
        max_input_tokens,
        tokenizer,
    )

    full_context = "\n".join([*preamble_lines, "", DIFF_SECTION_HEADING, diff_section])
    final_context = truncate_to_token_budget(
        full_context, max_input_tokens, tokenizer, CONTEXT_TRUNCATED_SUFFIX
    )

    pre_tokens = len(tokenizer.encode(full_context))
    final_tokens = len(tokenizer.encode(final_context))
    stats = CommitContextStats(
        selected_paths_total=len(selected_paths),
        selected_paths_included=len(selected_paths),
        selected_paths_omitted_by_system_limit=0,
        max_input_tokens=max_input_tokens,
        pre_truncation_context_tokens=pre_tokens,
        final_context_tokens=final_tokens,
        truncated_by_token_budget=final_tokens < pre_tokens,
        omitted_diff_files=omitted_diff_files,
    )
    logger.debug(
        "Built AI context: %d files, %d/%d tokens", len(selected_paths), final_tokens, max_input_tokens
    )
    return CommitContextBuildResult(context=final_context, stats=stats)
