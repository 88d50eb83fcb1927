"""Tests for git process execution."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from gitstage.core.errors import GitError
from gitstage.core.process import (
    TIMEOUT_EXIT_CODE,
    GitCommandResult,
    GitRunner,
    format_failure,
    run_git_raw,
)


@patch("gitstage.core.process.subprocess.run")
def test_run_git_raw_disables_interactive_prompts(mock_run):
    """Test git runs non-interactively with output captured."""
    mock_run.return_value = MagicMock(returncode=0, stdout="ok\n", stderr="")

    result = run_git_raw("/repo", ["status"])

    assert result == GitCommandResult(code=0, stdout="ok\n", stderr="")
    args, kwargs = mock_run.call_args
    assert args[0] == ["git", "status"]
    assert kwargs["cwd"] == "/repo"
    assert kwargs["stdin"] == subprocess.DEVNULL
    assert kwargs["env"]["GIT_TERMINAL_PROMPT"] == "0"
    assert kwargs["env"]["GIT_PAGER"] == "cat"
    assert kwargs["env"]["GIT_EDITOR"] == "true"
    assert kwargs["timeout"] == 120.0


@patch("gitstage.core.process.subprocess.run")
def test_run_git_raw_reports_nonzero_exit(mock_run):
    """Test a failing command is returned, not raised."""
    mock_run.return_value = MagicMock(returncode=128, stdout="", stderr="fatal: bad\n")

    result = run_git_raw("/repo", ["rev-parse", "HEAD"])

    assert result.code == 128
    assert result.stderr == "fatal: bad\n"


@patch("gitstage.core.process.subprocess.run")
def test_run_git_raw_timeout(mock_run):
    """Test a hung command yields the timeout result."""
    mock_run.side_effect = subprocess.TimeoutExpired(cmd="git fetch", timeout=5)

    result = run_git_raw("/repo", ["fetch"], timeout=5)

    assert result.code == TIMEOUT_EXIT_CODE
    assert result.stdout == ""
    assert result.stderr == "git fetch timed out after 5s."


def test_format_failure_prefers_stderr_then_stdout():
    assert format_failure(GitCommandResult(1, "out", "err\n"), ["x"]) == "err"
    assert format_failure(GitCommandResult(1, "out\n", "  "), ["x"]) == "out"
    assert format_failure(GitCommandResult(3, "", ""), ["push", "origin"]) == (
        "git push origin failed with code 3."
    )


def test_format_failure_surfaces_merge_conflicts():
    result = GitCommandResult(
        1,
        "Auto-merging README.md\nCONFLICT (content): Merge conflict in README.md\n",
        "From /tmp/origin\n * branch main -> FETCH_HEAD\n",
    )

    message = format_failure(result, ["pull", "--no-rebase"])

    assert message.startswith("Auto-merging README.md\nCONFLICT (content): Merge conflict in README.md")
    assert message.endswith("* branch main -> FETCH_HEAD")


@patch("gitstage.core.process.run_git_raw")
def test_runner_raises_on_unexpected_code(mock_raw):
    """Test GitRunner surfaces git's own message."""
    mock_raw.return_value = GitCommandResult(1, "", "error: pathspec 'nope' did not match")
    runner = GitRunner("/repo")

    with pytest.raises(GitError) as exc_info:
        runner.execute(["checkout", "nope"])

    assert "pathspec 'nope'" in str(exc_info.value)


@patch("gitstage.core.process.run_git_raw")
def test_runner_accepts_declared_codes(mock_raw):
    mock_raw.return_value = GitCommandResult(1, "", "")
    runner = GitRunner("/repo", timeout=10)

    result = runner.execute(["diff", "--cached", "--quiet"], expected_codes=(0, 1))

    assert result.code == 1
    mock_raw.assert_called_once_with("/repo", ["diff", "--cached", "--quiet"], timeout=10)
