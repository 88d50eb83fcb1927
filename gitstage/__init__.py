"""gitstage - Git staging core with AI-generated conventional commit subjects."""

from .cli.main import main
from .config.settings import AIConfig, EditorConfig, GitOptions, StageConfig
from .core.errors import CommitSummaryError, GitError, StashRecoveryError, WorktreeError
from .core.evaluation import EvalResult, evaluate_commit, evaluate_working_tree
from .core.git import GitClient
from .core.models import ChangedFile, RepoSnapshot
from .core.summary import generate_ai_commit_summary

__version__ = "0.1.0"

__all__ = [
    "AIConfig",
    "ChangedFile",
    "CommitSummaryError",
    "EditorConfig",
    "EvalResult",
    "GitClient",
    "GitError",
    "GitOptions",
    "RepoSnapshot",
    "StageConfig",
    "StashRecoveryError",
    "WorktreeError",
    "evaluate_commit",
    "evaluate_working_tree",
    "generate_ai_commit_summary",
    "main",
]
