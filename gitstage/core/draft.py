"""Turning raw model output into a valid conventional commit subject."""

import json
import logging
import re
from dataclasses import dataclass

from ..services.ai_service import CerebrasClient, StructuredSchema
from ..services.prompts import build_system_prompt, build_user_prompt, resolve_max_output_tokens
from .errors import NoObjectGeneratedError
from .policy import (
    COMMIT_OUTPUT_SCHEMA,
    COMMIT_OUTPUT_SCHEMA_NAME,
    COMMIT_SUBJECT_MAX_LENGTH,
    COMMIT_TYPES,
    SCOPE_REGEX,
    is_conventional_subject,
)

logger = logging.getLogger(__name__)

COMMIT_OUTPUT = StructuredSchema(
    name=COMMIT_OUTPUT_SCHEMA_NAME,
    description="Conventional commit fields for a concise git subject line.",
    schema=COMMIT_OUTPUT_SCHEMA,
)

TRAILING_CONNECTORS = frozenset(
    {"and", "or", "to", "on", "with", "for", "of", "the", "a", "an", "via", "when", "by", "if", "while"}
)
WORD_BOUNDARY_RATIO = 0.6

_LEADING_QUOTES = re.compile(r"^[\"'`]+")
_TRAILING_QUOTES = re.compile(r"[\"'`]+$")
_DASH_VARIANTS = re.compile("[‐‑–—]")
_WHITESPACE = re.compile(r"\s+")
_TRAILING_PERIODS = re.compile(r"[.]+$")
_TITLE_WORD = re.compile(r"\b[A-Z][a-z]+\b")


@dataclass(frozen=True)
class CommitDraft:
    type: str
    description: str
    scope: str | None = None

    @property
    def prefix(self) -> str:
        return f"{self.type}({self.scope})" if self.scope else self.type


def sanitize_description(description: str) -> str:
    normalized = description.strip()
    normalized = _LEADING_QUOTES.sub("", normalized)
    normalized = _TRAILING_QUOTES.sub("", normalized)
    normalized = _DASH_VARIANTS.sub("-", normalized)
    normalized = _WHITESPACE.sub(" ", normalized)
    normalized = _TRAILING_PERIODS.sub("", normalized).strip()
    if not normalized:
        return ""
    # Title-cased words are lowered; acronyms and mixed case like GitHub stay.
    normalized = _TITLE_WORD.sub(lambda match: match.group(0).lower(), normalized)
    return f"{normalized[0].lower()}{normalized[1:]}"


def sanitize_scope(scope: str | None) -> str | None:
    if not scope:
        return None
    normalized = scope.strip().lower()
    if not normalized or not SCOPE_REGEX.match(normalized):
        return None
    return normalized


def normalize_commit_draft(value: object) -> CommitDraft | None:
    """Validate a decoded model object. Invalid scopes are dropped, not rejected."""
    if not isinstance(value, dict):
        return None

    raw_type = value.get("type")
    commit_type = raw_type.strip().lower() if isinstance(raw_type, str) else ""
    if commit_type not in COMMIT_TYPES:
        return None

    raw_description = value.get("description")
    description = sanitize_description(raw_description if isinstance(raw_description, str) else "")
    if not description:
        return None

    raw_scope = value.get("scope")
    scope = sanitize_scope(raw_scope if isinstance(raw_scope, str) else None)
    return CommitDraft(type=commit_type, description=description, scope=scope)


def trim_trailing_connector(text: str) -> str:
    words = text.split()
    while len(words) > 1 and words[-1] in TRAILING_CONNECTORS:
        words.pop()
    return " ".join(words)


def compact_description(description: str, max_length: int) -> str:
    if len(description) <= max_length:
        return description

    clipped = description[:max_length].strip()
    last_space = clipped.rfind(" ")
    if last_space >= int(max_length * WORD_BOUNDARY_RATIO):
        clipped = clipped[:last_space].strip()
    return trim_trailing_connector(_TRAILING_PERIODS.sub("", clipped).strip())


def finalize_commit_summary(draft: CommitDraft | None) -> str | None:
    """Assemble ``type(scope): description`` within the subject length limit.

    Returns None when the result does not satisfy the conventional commit grammar.
    """
    if draft is None:
        return None

    prefix_with_colon = f"{draft.prefix}: "
    max_description_length = max(COMMIT_SUBJECT_MAX_LENGTH - len(prefix_with_colon), 1)
    candidate = f"{prefix_with_colon}{compact_description(draft.description, max_description_length)}"
    if not is_conventional_subject(candidate):
        return None
    return candidate


def _try_parse_json(raw: str) -> object:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None


def extract_json_object(text: str) -> object:
    """Parse ``text`` as JSON, else the span from its first ``{`` to its last ``}``."""
    raw = text.strip()
    if not raw:
        return None

    direct = _try_parse_json(raw)
    if direct is not None:
        return direct

    first_brace = raw.find("{")
    last_brace = raw.rfind("}")
    if first_brace >= 0 and last_brace > first_brace:
        return _try_parse_json(raw[first_brace : last_brace + 1])
    return None


def generate_commit_draft(
    client: CerebrasClient,
    context: str,
    reasoning_effort: str,
    retry: bool,
    retry_hint: str | None = None,
) -> str | None:
    """Request one draft subject. Transport failures propagate."""
    try:
        output = client.generate_object(
            system=build_system_prompt(retry),
            prompt=build_user_prompt(context, retry, retry_hint),
            output=COMMIT_OUTPUT,
            max_output_tokens=resolve_max_output_tokens(reasoning_effort),
        )
    except NoObjectGeneratedError as e:
        logger.debug("No structured object generated, trying raw text fallback")
        output = extract_json_object(e.text)

    subject = finalize_commit_summary(normalize_commit_draft(output))
    if subject is None:
        logger.warning("Draft attempt (retry=%s) produced no valid commit subject", retry)
    return subject
