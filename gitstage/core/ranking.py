"""Scoring candidate commit subjects against the change set they describe."""

import re
from collections import Counter
from dataclasses import dataclass, field

from .diff_budget import DIFF_SECTION_HEADING

TOKEN_STOPWORDS = frozenset(
    """
    a an and are as at be by const else false for from function if import in is it
    let new null of on or return set src that the this to true type undefined use var with
    """.split()
)
VAGUE_LEAD_VERBS = frozenset({"support", "update", "improve", "change"})
DEFECT_EVIDENCE_TERMS = (
    "bug",
    "broken",
    "crash",
    "defect",
    "fault",
    "incorrect",
    "panic",
    "regression",
    "wrong",
)

DOMINANT_MIN_COUNT = 4
MAX_DOMINANT_TOKENS = 8
FALLBACK_DOMINANT_TOKENS = 6
MAX_HINT_TOKENS = 3

_SPLIT_PATTERN = re.compile(r"[^a-z0-9]+")
_SUBJECT_PATTERN = re.compile(r"^([a-z]+)(?:\([^)]*\))?!?:\s*(.+)$")
_AND_PATTERN = re.compile(r"\band\b")
NEW_SURFACE_MARKER = "- likely_new_surface: yes"


@dataclass(frozen=True)
class CandidateEvaluation:
    subject: str
    score: int
    hard_rejected: bool
    dominant_tokens: list[str] = field(default_factory=list)
    missing_top_tokens: list[str] = field(default_factory=list)


def split_tokens(text: str) -> list[str]:
    return [token for token in _SPLIT_PATTERN.split(text.lower()) if token]


def normalize_token(token: str) -> str:
    value = token.lower()
    if value.endswith("ies") and len(value) > 4:
        return f"{value[:-3]}y"
    if value.endswith("s") and len(value) > 4:
        return value[:-1]
    return value


def _significant_tokens(text: str) -> list[str]:
    tokens = (normalize_token(token) for token in split_tokens(text))
    return [token for token in tokens if len(token) >= 3 and token not in TOKEN_STOPWORDS]


def tokenize_subject(text: str) -> set[str]:
    tokens = (normalize_token(token) for token in split_tokens(text))
    return {token for token in tokens if len(token) >= 2}


def extract_diff_lines(context: str) -> list[str]:
    start = context.find(DIFF_SECTION_HEADING)
    section = context[start:] if start >= 0 else context
    return [
        line
        for line in section.split("\n")
        if line.startswith(("+", "-")) and not line.startswith(("+++ ", "--- "))
    ]


def has_defect_evidence(context: str) -> bool:
    diff_text = "\n".join(extract_diff_lines(context)).lower()
    return any(term in diff_text for term in DEFECT_EVIDENCE_TERMS)


def collect_dominant_tokens(context: str, selected_paths: list[str]) -> list[str]:
    """Rank words central to the change.

    Each path contributes its distinct tokens twice; diff lines contribute
    every occurrence once.
    """
    counts: Counter[str] = Counter()
    for path in selected_paths:
        for token in set(_significant_tokens(path)):
            counts[token] += 2
    for line in extract_diff_lines(context):
        counts.update(_significant_tokens(line))

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    dominant = [token for token, count in ranked if count >= DOMINANT_MIN_COUNT]
    if dominant:
        return dominant[:MAX_DOMINANT_TOKENS]
    return [token for token, _ in ranked[:FALLBACK_DOMINANT_TOKENS]]


def parse_subject(subject: str) -> tuple[str, str]:
    match = _SUBJECT_PATTERN.match(subject)
    if not match:
        return "", ""
    return match.group(1).strip(), match.group(2).strip().lower()


def evaluate_candidate(subject: str, context: str, dominant_tokens: list[str]) -> CandidateEvaluation:
    commit_type, description = parse_subject(subject)
    subject_tokens = tokenize_subject(subject)
    defect_evidence = has_defect_evidence(context)
    likely_new_surface = NEW_SURFACE_MARKER in context

    top_dominant = dominant_tokens[:2]
    missing_top = [token for token in top_dominant if token not in subject_tokens]
    overlap = sum(1 for token in dominant_tokens if token in subject_tokens)
    overlap_ratio = overlap / len(dominant_tokens) if dominant_tokens else 1
    hard_rejected = bool(top_dominant) and len(missing_top) == len(top_dominant)

    score = -80 if hard_rejected else 24
    score += overlap * 9
    # half-up, matching Math.round for non-negative values
    score += int(overlap_ratio * 16 + 0.5)

    if commit_type == "feat":
        score += 6 if likely_new_surface else -8
    elif commit_type == "fix":
        score += 8 if defect_evidence else -14
    elif commit_type == "refactor":
        if not defect_evidence:
            score += 6
        if not likely_new_surface:
            score += 3

    words = description.split()
    if words and words[0] in VAGUE_LEAD_VERBS:
        score -= 8
    if _AND_PATTERN.search(description):
        score += 2

    return CandidateEvaluation(
        subject=subject,
        score=score,
        hard_rejected=hard_rejected,
        dominant_tokens=dominant_tokens,
        missing_top_tokens=missing_top,
    )


def _dedupe(values: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        normalized = value.strip()
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


def select_best_commit_subject(
    candidates: list[str], context: str, selected_paths: list[str]
) -> CandidateEvaluation | None:
    """Pick the best-scoring candidate that was not hard rejected.

    Falls back to the top-scoring rejected candidate when all were rejected.
    """
    deduped = _dedupe(candidates)
    if not deduped:
        return None

    dominant_tokens = collect_dominant_tokens(context, selected_paths)
    evaluations = [evaluate_candidate(subject, context, dominant_tokens) for subject in deduped]
    evaluations.sort(key=lambda entry: entry.score, reverse=True)

    for entry in evaluations:
        if not entry.hard_rejected:
            return entry
    return evaluations[0]


def build_dominant_token_retry_hint(
    context: str, selected_paths: list[str], subject: str
) -> str | None:
    dominant_tokens = collect_dominant_tokens(context, selected_paths)
    if not dominant_tokens:
        return None

    subject_tokens = tokenize_subject(subject)
    missing = [token for token in dominant_tokens if token not in subject_tokens][:MAX_HINT_TOKENS]
    if not missing:
        return None
    return f"include dominant changed terms when relevant: {', '.join(missing)}"
