"""Tests for commit draft normalization and generation."""

from unittest.mock import MagicMock

import pytest

from gitstage.core.draft import (
    COMMIT_OUTPUT,
    compact_description,
    extract_json_object,
    finalize_commit_summary,
    generate_commit_draft,
    normalize_commit_draft,
    sanitize_description,
    trim_trailing_connector,
)
from gitstage.core.errors import AIServiceError, NoObjectGeneratedError
from gitstage.core.policy import is_conventional_subject


def test_finalize_lowercases_and_strips_period():
    draft = normalize_commit_draft({"type": "feat", "scope": "ui", "description": "Add Dark Mode."})

    subject = finalize_commit_summary(draft)

    assert subject == "feat(ui): add dark mode"
    assert is_conventional_subject(subject)


def test_subject_without_type_fails_grammar():
    assert not is_conventional_subject("Fix Bug")
    assert not is_conventional_subject("fix: Bug")
    assert is_conventional_subject("fix(git)!: handle detached head")


def test_sanitize_description():
    assert sanitize_description('  "Handle auth — session expiry..."  ') == "handle auth - session expiry"
    assert sanitize_description("Handle   API\ttimeouts") == "handle API timeouts"
    assert sanitize_description("Sync with GitHub") == "sync with GitHub"
    assert sanitize_description(" ``` ") == ""


def test_normalize_rejects_bad_drafts():
    assert normalize_commit_draft(None) is None
    assert normalize_commit_draft(["fix"]) is None
    assert normalize_commit_draft({"type": "feature", "description": "x"}) is None
    assert normalize_commit_draft({"type": "fix", "description": "..."}) is None
    assert normalize_commit_draft({"type": "fix"}) is None


def test_invalid_scope_is_dropped():
    draft = normalize_commit_draft({"type": " FIX ", "scope": "UI Layer", "description": "x y"})

    assert draft.type == "fix"
    assert draft.scope is None
    assert finalize_commit_summary(draft) == "fix: x y"


def test_long_description_clips_at_word_boundary():
    draft = normalize_commit_draft(
        {
            "type": "fix",
            "description": "handle session expiry when the refresh token rotates during login",
        }
    )

    subject = finalize_commit_summary(draft)

    assert subject == "fix: handle session expiry when the refresh"
    assert len(subject) <= 50


def test_compact_description_hard_clip_without_spaces():
    assert compact_description("a" * 60, 20) == "a" * 20
    assert compact_description("short", 20) == "short"


def test_trim_trailing_connector():
    assert trim_trailing_connector("handle errors for the") == "handle errors"
    assert trim_trailing_connector("fix the bug in the") == "fix the bug in"
    assert trim_trailing_connector("the") == "the"


def test_extract_json_object():
    assert extract_json_object('{"type": "fix", "description": "x"}') == {"type": "fix", "description": "x"}
    assert extract_json_object('Sure! {"type": "fix", "description": "x"} Done.') == {
        "type": "fix",
        "description": "x",
    }
    assert extract_json_object("no json here") is None
    assert extract_json_object("") is None


def test_generate_commit_draft_requests_structured_output():
    client = MagicMock()
    client.generate_object.return_value = {"type": "fix", "scope": "auth", "description": "Handle expiry"}

    subject = generate_commit_draft(client, "CONTEXT", "medium", retry=True, retry_hint="mention auth")

    assert subject == "fix(auth): handle expiry"
    kwargs = client.generate_object.call_args.kwargs
    assert kwargs["output"] is COMMIT_OUTPUT
    assert kwargs["max_output_tokens"] == 3072
    assert "Retry mode" in kwargs["system"]
    assert "Retry hint: mention auth" in kwargs["prompt"]
    assert kwargs["prompt"].endswith("\nCONTEXT")


def test_generate_commit_draft_falls_back_to_raw_text():
    """Test a JSON object is recovered from unstructured model output."""
    client = MagicMock()
    client.generate_object.side_effect = NoObjectGeneratedError(
        "no object", text='Here: {"type": "docs", "description": "Explain setup."}'
    )

    assert generate_commit_draft(client, "ctx", "low", retry=False) == "docs: explain setup"


def test_generate_commit_draft_invalid_output():
    client = MagicMock()
    client.generate_object.return_value = {"type": "wip", "description": "stuff"}

    assert generate_commit_draft(client, "ctx", "low", retry=False) is None


def test_generate_commit_draft_propagates_transport_errors():
    client = MagicMock()
    client.generate_object.side_effect = AIServiceError("API Request failed: timeout")

    with pytest.raises(AIServiceError):
        generate_commit_draft(client, "ctx", "low", retry=False)
