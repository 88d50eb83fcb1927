"""Conventional commit grammar shared by generation and ranking."""

import re

COMMIT_TYPES = (
    "feat",
    "fix",
    "docs",
    "style",
    "refactor",
    "perf",
    "test",
    "build",
    "ci",
    "chore",
    "revert",
)

SCOPE_REGEX = re.compile(r"^[a-z0-9._/-]+$")
MAX_RECENT_COMMIT_SUBJECTS = 6
COMMIT_SUBJECT_MAX_LENGTH = 50

CONVENTIONAL_COMMIT_REGEX = re.compile(
    r"^(feat|fix|docs|style|refactor|perf|test|build|ci|chore|revert)"
    r"(\([a-z0-9._/-]+\))?!?: [^A-Z].+$"
)

COMMIT_OUTPUT_SCHEMA_NAME = "conventional_commit_subject"

COMMIT_OUTPUT_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": ["type", "description"],
    "properties": {
        "type": {
            "type": "string",
            "enum": list(COMMIT_TYPES),
            "description": "Conventional commit type based on behavior impact.",
        },
        "scope": {
            "type": "string",
            "description": "Optional subsystem noun such as ui, git, config, keyboard.",
        },
        "description": {
            "type": "string",
            "description": "Imperative, concise summary of what changed.",
        },
    },
}


def is_conventional_subject(subject: str) -> bool:
    return CONVENTIONAL_COMMIT_REGEX.match(subject) is not None
