"""Signals extracted from unified diffs for commit message generation."""

import re
from dataclasses import dataclass, field

from .models import ChangedFile

MAX_CUE_LENGTH = 72
MAX_CALL_ARGS_LENGTH = 40
MAX_CUES_PER_LIST = 6

_CONDITION_PATTERN = re.compile(r"^if\s*\((.*)\)\s*\{?$")
_TERNARY_PATTERN = re.compile(r"^.*\?.*:.*")
_CALL_PATTERN = re.compile(r"([A-Za-z_$][A-Za-z0-9_$.]*)\(([^()]*)\)")


@dataclass
class ContextSignals:
    """Aggregate counters describing one change set."""

    touched_files: int = 0
    new_files: int = 0
    modified_files: int = 0
    deleted_files: int = 0
    renamed_files: int = 0
    added_lines: int = 0
    removed_lines: int = 0
    docs_files: int = 0
    test_files: int = 0
    config_files: int = 0

    @property
    def likely_new_surface(self) -> bool:
        return self.new_files > 0 or self.renamed_files > 0

    def update_status(self, file: ChangedFile | None) -> None:
        """Count a file once under the most significant status it carries."""
        if file is None:
            return
        if file.untracked:
            self.new_files += 1
            return

        statuses = (file.index_status, file.worktree_status)
        if "D" in statuses:
            self.deleted_files += 1
        elif "R" in statuses:
            self.renamed_files += 1
        elif "A" in statuses:
            self.new_files += 1
        else:
            self.modified_files += 1

    def update_path_category(self, path: str) -> None:
        normalized = path.lower()
        if is_docs_path(normalized):
            self.docs_files += 1
        if is_test_path(normalized):
            self.test_files += 1
        if is_config_path(normalized):
            self.config_files += 1


@dataclass
class BehaviorCues:
    """Conditions, guards and calls that appeared or disappeared in a diff."""

    added_conditions: list[str] = field(default_factory=list)
    removed_conditions: list[str] = field(default_factory=list)
    added_guards: list[str] = field(default_factory=list)
    removed_guards: list[str] = field(default_factory=list)
    added_calls: list[str] = field(default_factory=list)
    removed_calls: list[str] = field(default_factory=list)


CUE_FIELDS = (
    "added_conditions",
    "removed_conditions",
    "added_guards",
    "removed_guards",
    "added_calls",
    "removed_calls",
)


def is_docs_path(path: str) -> bool:
    return path.endswith((".md", ".mdx")) or "/docs/" in path or path.startswith("docs/")


def is_test_path(path: str) -> bool:
    if path.startswith(("test/", "tests/")):
        return True
    return any(marker in path for marker in ("/test/", "/tests/", ".test.", ".spec."))


def is_config_path(path: str) -> bool:
    return path.endswith((".json", ".yaml", ".yml", ".toml", ".ini", "lock"))


def _is_file_header(line: str) -> bool:
    return line.startswith("+++") or line.startswith("---")


def analyze_diff(diff: str) -> tuple[int, int]:
    """Count added and removed content lines, ignoring file headers."""
    added = removed = 0
    for line in diff.split("\n"):
        if _is_file_header(line):
            continue
        if line.startswith("+"):
            added += 1
        elif line.startswith("-"):
            removed += 1
    return added, removed


def normalize_cue(value: str) -> str:
    compact = " ".join(value.split())
    if len(compact) <= MAX_CUE_LENGTH:
        return compact
    return f"{compact[: MAX_CUE_LENGTH - 3].rstrip()}..."


def extract_condition_cue(line: str) -> str | None:
    match = _CONDITION_PATTERN.match(line)
    if match:
        return normalize_cue(match.group(1))
    if _TERNARY_PATTERN.match(line):
        return "ternary-condition"
    return None


def extract_guard_cue(line: str) -> str | None:
    if line.startswith("return") or line.startswith("throw"):
        return normalize_cue(line)
    if ".preventDefault(" in line:
        return "preventDefault()"
    if ".stopPropagation(" in line:
        return "stopPropagation()"
    return None


def extract_call_cue(line: str) -> str | None:
    match = _CALL_PATTERN.search(line)
    if not match:
        return None

    callee = match.group(1).strip()
    if not callee:
        return None

    args = " ".join(match.group(2).split())
    if len(args) > MAX_CALL_ARGS_LENGTH:
        args = f"{args[: MAX_CALL_ARGS_LENGTH - 3].rstrip()}..."
    return normalize_cue(f"{callee}({args})")


def collect_behavior_cues(diff: str) -> BehaviorCues:
    """Pull behavior cues out of the changed lines of one file's diff."""
    buckets: dict[str, dict[str, None]] = {name: {} for name in CUE_FIELDS}

    for line in diff.split("\n"):
        if _is_file_header(line) or line.startswith("@@") or line.startswith("# "):
            continue
        if line.startswith("+"):
            side = "added"
        elif line.startswith("-"):
            side = "removed"
        else:
            continue

        content = line[1:].strip()
        if not content:
            continue

        for kind, extract in (
            ("conditions", extract_condition_cue),
            ("guards", extract_guard_cue),
            ("calls", extract_call_cue),
        ):
            cue = extract(content)
            if cue:
                buckets[f"{side}_{kind}"].setdefault(cue, None)

    return BehaviorCues(**{name: list(values) for name, values in buckets.items()})


def aggregate_behavior_cues(cues_list: list[BehaviorCues]) -> BehaviorCues:
    """Union per-file cues, keeping first-seen order."""
    buckets: dict[str, dict[str, None]] = {name: {} for name in CUE_FIELDS}
    for cues in cues_list:
        for name in CUE_FIELDS:
            for value in getattr(cues, name):
                buckets[name].setdefault(value, None)
    return BehaviorCues(**{name: list(values) for name, values in buckets.items()})


def format_cue_list(values: list[str]) -> str:
    if not values:
        return "none"
    return " | ".join(values[:MAX_CUES_PER_LIST])
