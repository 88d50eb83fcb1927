"""Common test fixtures."""

import shutil
import subprocess

import pytest

from gitstage.core.errors import GitError
from gitstage.core.process import GitCommandResult, format_failure
from gitstage.services.tokenizer import TextTokenizer


def ok(stdout: str = "", stderr: str = "", code: int = 0) -> GitCommandResult:
    return GitCommandResult(code=code, stdout=stdout, stderr=stderr)


class FakeRunner:
    """Scripted stand-in for GitRunner.

    ``responses`` maps an argv prefix (tuple) to a result, a list of results
    consumed in order, or a callable taking the argv. The longest matching
    prefix wins; unmatched commands succeed with empty output.
    """

    def __init__(self, responses=None, cwd: str = "/repo"):
        self.cwd = cwd
        self.responses = dict(responses or {})
        self.calls: list[list[str]] = []

    def _lookup(self, args: list[str]) -> GitCommandResult:
        matches = [key for key in self.responses if tuple(args[: len(key)]) == key]
        if not matches:
            return ok()
        response = self.responses[max(matches, key=len)]
        if callable(response):
            return response(args)
        if isinstance(response, list):
            return response.pop(0) if len(response) > 1 else response[0]
        return response

    def execute(self, args, expected_codes=(0,), timeout=None) -> GitCommandResult:
        self.calls.append(list(args))
        result = self._lookup(list(args))
        if result.code not in expected_codes:
            raise GitError(format_failure(result, list(args)))
        return result

    def called(self, *prefix: str) -> bool:
        return any(tuple(call[: len(prefix)]) == prefix for call in self.calls)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def char_tokenizer():
    """One token per character, so budgets can be checked exactly."""
    return TextTokenizer(
        encode=lambda text: [ord(char) for char in text],
        decode=lambda tokens: "".join(chr(token) for token in tokens),
    )


class GitRepo:
    """Throwaway repository on disk."""

    def __init__(self, path):
        self.path = path

    def git(self, *args: str) -> str:
        completed = subprocess.run(
            ["git", *args], cwd=self.path, check=True, capture_output=True, text=True
        )
        return completed.stdout

    def write(self, name: str, content: str) -> None:
        target = self.path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)

    def read(self, name: str) -> str:
        return (self.path / name).read_text()

    def commit_all(self, message: str) -> str:
        self.git("add", "-A")
        self.git("commit", "-m", message)
        return self.git("rev-parse", "HEAD").strip()

    def worktrees(self) -> list[str]:
        output = self.git("worktree", "list", "--porcelain")
        return [line[len("worktree ") :] for line in output.splitlines() if line.startswith("worktree ")]


@pytest.fixture
def git_repo(tmp_path):
    """Repository on ``main`` with one commit containing README.md."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    path = tmp_path / "repo"
    path.mkdir()
    repo = GitRepo(path)
    repo.git("init", "-q")
    repo.git("symbolic-ref", "HEAD", "refs/heads/main")
    repo.git("config", "user.name", "Test User")
    repo.git("config", "user.email", "test@example.com")
    repo.git("config", "commit.gpgsign", "false")
    repo.write("README.md", "hello\n")
    repo.commit_all("chore: initial commit")
    return repo
