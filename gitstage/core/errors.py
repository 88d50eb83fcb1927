"""Exception types shared across gitstage."""


class GitError(Exception):
    """Git operation error."""

    pass


class GitValidationError(GitError, ValueError):
    """Invalid input rejected before any git command runs."""

    pass


class StashRecoveryError(GitError):
    """A stash could not be restored after (or instead of) the protected operation."""

    def __init__(self, message: str, stash_ref: str | None = None):
        super().__init__(message)
        self.stash_ref = stash_ref


class WorktreeError(GitError):
    """Replay worktree could not be created, replayed or removed."""

    pass


class AIServiceError(ValueError):
    """The text-generation request failed."""

    pass


class NoObjectGeneratedError(AIServiceError):
    """The model responded, but no JSON object could be read from its output."""

    def __init__(self, message: str, text: str = ""):
        super().__init__(message)
        self.text = text


class CommitSummaryError(ValueError):
    """AI commit summary could not be produced."""

    pass


class EditorLaunchError(Exception):
    """External editor could not be launched."""

    pass
