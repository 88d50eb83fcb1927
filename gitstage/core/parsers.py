"""Parsers for raw git output.

All functions here are pure: they take text exactly as git printed it and
return the typed records from :mod:`gitstage.core.models`.
"""

import re
from dataclasses import dataclass

from .models import BranchInfo, ChangedFile, CommitFileChange, CommitHistoryEntry

FIELD_SEPARATOR = "\x1f"

_TRACKING_PATTERN = re.compile(r"^(\S+)(?: \[(.+)\])?$")


@dataclass(frozen=True)
class StatusParseResult:
    branch: BranchInfo
    files: list[ChangedFile]


def parse_branch_line(line: str) -> BranchInfo:
    """Parse the ``## branch...upstream [ahead N, behind M]`` header."""
    if not line.startswith("##"):
        return BranchInfo(branch="unknown")

    raw = line[2:].strip()
    if raw.startswith("No commits yet on "):
        return BranchInfo(branch=raw[len("No commits yet on ") :].strip())

    if raw.startswith("HEAD"):
        return BranchInfo(branch="detached")

    local_part, _, tracking_part = raw.partition("...")
    branch = local_part.strip() or "unknown"
    if not tracking_part:
        return BranchInfo(branch=branch)

    match = _TRACKING_PATTERN.match(tracking_part)
    if not match:
        return BranchInfo(branch=branch, upstream=tracking_part.strip() or None)

    ahead = behind = 0
    for token in (match.group(2) or "").split(","):
        token = token.strip()
        if token.startswith("ahead "):
            ahead = _to_int(token[len("ahead ") :])
        elif token.startswith("behind "):
            behind = _to_int(token[len("behind ") :])

    return BranchInfo(branch=branch, upstream=match.group(1), ahead=ahead, behind=behind)


def parse_status_output(raw: str) -> StatusParseResult:
    """Parse ``git status --porcelain=v1 -z --branch`` output.

    Rename and copy records carry the source path in the following NUL token;
    it is consumed so it is not mistaken for a record of its own.
    """
    tokens = [token for token in raw.split("\0") if token]
    branch = BranchInfo(branch="unknown")
    if tokens and tokens[0].startswith("##"):
        branch = parse_branch_line(tokens.pop(0))

    files: list[ChangedFile] = []
    index = 0
    while index < len(tokens):
        record = tokens[index]
        index += 1
        if len(record) < 4:
            continue

        index_status, worktree_status = record[0], record[1]
        path = record[3:]
        old_path = None
        if index_status in "RC" or worktree_status in "RC":
            if index < len(tokens):
                old_path = tokens[index]
                index += 1

        files.append(ChangedFile.from_status(path, index_status, worktree_status, old_path))

    return StatusParseResult(branch=branch, files=files)


def parse_branch_ref_lines(raw: str) -> list[str]:
    """Parse ``name<TAB>creatordate-unix`` lines into ordered branch names.

    ``main`` comes first, then ``master``, then the remaining branches newest
    first with ties broken by name.
    """
    refs: list[tuple[str, int]] = []
    for line in raw.split("\n"):
        name, _, timestamp = line.partition("\t")
        name = name.strip()
        if name:
            refs.append((name, _to_int(timestamp.strip())))

    pinned = [name for name in ("main", "master") if any(ref[0] == name for ref in refs)]
    rest = sorted(
        (ref for ref in refs if ref[0] not in pinned), key=lambda ref: (-ref[1], ref[0])
    )
    return pinned + [name for name, _ in rest]


def parse_commit_file_changes_nul(raw: str) -> list[CommitFileChange]:
    """Parse ``git show --name-status -z`` output."""
    tokens = [token for token in raw.split("\0") if token]
    changes: list[CommitFileChange] = []
    index = 0
    while index < len(tokens):
        raw_status = tokens[index].strip()
        index += 1
        if not raw_status:
            continue

        status = raw_status[0].upper()
        if status in ("R", "C"):
            from_path = tokens[index] if index < len(tokens) else ""
            to_path = tokens[index + 1] if index + 1 < len(tokens) else from_path
            index += 2
            if not to_path:
                continue
            display = f"{from_path} -> {to_path}" if from_path and from_path != to_path else to_path
            changes.append(CommitFileChange(path=to_path, status=status, display_path=display))
            continue

        path = tokens[index] if index < len(tokens) else ""
        index += 1
        if path:
            changes.append(CommitFileChange(path=path, status=status, display_path=path))

    return changes


def parse_commit_log(raw: str) -> list[CommitHistoryEntry]:
    """Parse ``%H %h %s %ar %an`` records separated by 0x1f."""
    entries = []
    for line in raw.split("\n"):
        fields = line.split(FIELD_SEPARATOR)
        fields += [""] * (5 - len(fields))
        hash_, short_hash, subject, relative_date, author = fields[:5]
        if not hash_:
            continue
        entries.append(
            CommitHistoryEntry(
                hash=hash_,
                short_hash=short_hash,
                subject=subject or "(no subject)",
                relative_date=relative_date,
                author=author,
            )
        )
    return entries


def split_nul_paths(raw: str) -> list[str]:
    return [value.strip() for value in raw.split("\0") if value.strip()]


def normalize_branch_name(value: str) -> str:
    """Turn free text into a plausible branch name.

    Lowercases, collapses runs of invalid characters to ``-``, collapses
    slashes, and strips separators from both ends. The result still has to
    pass ``git check-ref-format``.
    """
    name = value.strip().lower()
    name = re.sub(r"[^a-z0-9/]+", "-", name)
    name = re.sub(r"-+", "-", name)
    name = re.sub(r"/+", "/", name)
    name = name.replace("/-", "/").replace("-/", "/")
    return re.sub(r"^[-/]+|[-/]+$", "", name)


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0
