"""Core modules for gitstage.

This module contains the core functionality including:
- Git process execution and repository operations
- Stash and worktree transactions
- Diff context assembly and token budgeting
- Commit subject drafting and ranking
"""

from .errors import (
    AIServiceError,
    CommitSummaryError,
    EditorLaunchError,
    GitError,
    GitValidationError,
    NoObjectGeneratedError,
    StashRecoveryError,
    WorktreeError,
)
from .git import GitClient
from .models import BranchInfo, ChangedFile, CommitFileChange, CommitHistoryEntry, RepoSnapshot
from .summary import generate_ai_commit_summary

__all__ = [
    "AIServiceError",
    "BranchInfo",
    "ChangedFile",
    "CommitFileChange",
    "CommitHistoryEntry",
    "CommitSummaryError",
    "EditorLaunchError",
    "GitClient",
    "GitError",
    "GitValidationError",
    "NoObjectGeneratedError",
    "RepoSnapshot",
    "StashRecoveryError",
    "WorktreeError",
    "generate_ai_commit_summary",
]
