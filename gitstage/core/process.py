"""Running the git binary."""

import logging
import os
import subprocess
from dataclasses import dataclass

from .errors import GitError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0
TIMEOUT_EXIT_CODE = 124

# Keep git from ever waiting on a terminal.
NON_INTERACTIVE_ENV = {
    "GIT_TERMINAL_PROMPT": "0",
    "GIT_PAGER": "cat",
    "PAGER": "cat",
    "GIT_EDITOR": "true",
    "GCM_INTERACTIVE": "never",
}


@dataclass(frozen=True)
class GitCommandResult:
    """Exit code and captured output of one git invocation."""

    code: int
    stdout: str
    stderr: str


def run_git_raw(
    cwd: str, args: list[str], timeout: float | None = None
) -> GitCommandResult:
    """Run ``git <args>`` in ``cwd`` and capture its output.

    Never raises for a non-zero exit code. A command that outlives ``timeout``
    is killed and reported with exit code 124.
    """
    limit = DEFAULT_TIMEOUT_SECONDS if timeout is None else timeout
    env = {**os.environ, **NON_INTERACTIVE_ENV}

    try:
        completed = subprocess.run(
            ["git", *args],
            cwd=cwd,
            env=env,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=limit,
        )
    except subprocess.TimeoutExpired:
        logger.warning("git %s timed out after %ss", " ".join(args), limit)
        return GitCommandResult(
            code=TIMEOUT_EXIT_CODE,
            stdout="",
            stderr=f"git {' '.join(args)} timed out after {limit:g}s.",
        )

    logger.debug("git %s -> %s", " ".join(args), completed.returncode)
    return GitCommandResult(
        code=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


def format_failure(result: GitCommandResult, args: list[str]) -> str:
    """Pick the most useful message for a failed command."""
    stderr = result.stderr.strip()
    stdout = result.stdout.strip()
    # Merges report conflicts on stdout while stderr only carries fetch progress.
    if "CONFLICT" in stdout:
        return "\n".join(part for part in (stdout, stderr) if part)
    details = stderr or stdout
    return details or f"git {' '.join(args)} failed with code {result.code}."


class GitRunner:
    """Runs git commands in a fixed repository and enforces exit codes.

    GitClient builds one of these and hands it to the helper functions in
    :mod:`gitstage.core.stash` and friends, which only ever call :meth:`execute`.
    """

    def __init__(self, cwd: str, timeout: float | None = None):
        self.cwd = cwd
        self.timeout = timeout

    def execute(
        self,
        args: list[str],
        expected_codes: tuple[int, ...] = (0,),
        timeout: float | None = None,
    ) -> GitCommandResult:
        """Run a command, raising GitError unless its exit code is expected."""
        result = run_git_raw(
            self.cwd, args, timeout=timeout if timeout is not None else self.timeout
        )
        if result.code not in expected_codes:
            raise GitError(format_failure(result, args))
        return result
