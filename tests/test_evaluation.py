"""Tests for working tree and commit replay evaluation."""

import pytest

from gitstage.config.settings import AIConfig
from gitstage.core.evaluation import (
    EvalResult,
    dedupe_non_empty,
    evaluate_commit,
    evaluate_working_tree,
    resolve_selected_paths,
)
from gitstage.core.models import ChangedFile
from gitstage.core.worktree import ReplayWorktree

FILES = [
    ChangedFile.from_status("src/app.py", " ", "M"),
    ChangedFile.from_status("README.md", "?", "?"),
]
AI = AIConfig(enabled=True, api_key="k")


@pytest.fixture
def git(mocker):
    create = mocker.patch("gitstage.core.evaluation.GitClient.create")
    create.return_value.snapshot.return_value.files = FILES
    return create


@pytest.fixture
def summary(mocker):
    def fake_summary(git, files, selected, ai_config, on_context_built=None, **kwargs):
        if on_context_built is not None:
            on_context_built("stats")
        return "fix: handle app startup"

    return mocker.patch("gitstage.core.evaluation.generate_ai_commit_summary", side_effect=fake_summary)


@pytest.fixture
def replay(mocker):
    worktree = ReplayWorktree(
        path="/tmp/gitstage-replay", commit_paths=["src/app.py"], actual_subject="fix: app boot"
    )
    create = mocker.patch("gitstage.core.evaluation.create_replay_worktree", return_value=worktree)
    remove = mocker.patch("gitstage.core.evaluation.remove_worktree")
    return create, remove


def test_dedupe_non_empty():
    assert dedupe_non_empty([" a ", "", "b", "a"]) == ["a", "b"]


def test_resolve_selected_paths():
    assert resolve_selected_paths(FILES, []) == ["src/app.py", "README.md"]
    assert resolve_selected_paths(FILES, ["README.md", " README.md "]) == ["README.md"]

    with pytest.raises(ValueError, match="not changed in this evaluation target: docs/x.md"):
        resolve_selected_paths(FILES, ["docs/x.md"])
    with pytest.raises(ValueError, match="No changed files"):
        resolve_selected_paths([], [])


def test_eval_result_to_dict_drops_empty_fields():
    result = EvalResult(mode="working", selected_paths=["a.py"], generated_subject="fix: a")

    assert result.to_dict() == {
        "mode": "working",
        "selected_paths": ["a.py"],
        "generated_subject": "fix: a",
        "generated_length": 6,
    }


def test_evaluate_working_tree(git, summary):
    result = evaluate_working_tree("/repo", AI, selected_paths_override=["src/app.py"])

    git.assert_called_once_with("/repo", None)
    assert result.mode == "working"
    assert result.selected_paths == ["src/app.py"]
    assert result.generated_subject == "fix: handle app startup"
    assert result.context_stats == "stats"
    assert summary.call_args.args[2] == ["src/app.py"]


def test_evaluate_commit_removes_worktree(git, summary, replay):
    create, remove = replay

    result = evaluate_commit("/repo", "HEAD~1", AI)

    create.assert_called_once_with("/repo", "HEAD~1")
    git.assert_called_once_with("/tmp/gitstage-replay", None)
    remove.assert_called_once_with("/repo", "/tmp/gitstage-replay")
    assert result.commit == "HEAD~1"
    assert result.actual_subject == "fix: app boot"
    assert result.selected_paths == ["src/app.py"]
    assert result.worktree_path is None


def test_evaluate_commit_keeps_worktree(git, summary, replay):
    _, remove = replay

    result = evaluate_commit("/repo", "abc123", AI, keep_worktree=True)

    remove.assert_not_called()
    assert result.worktree_path == "/tmp/gitstage-replay"


def test_evaluate_commit_cleans_up_on_failure(git, summary, replay):
    _, remove = replay
    summary.side_effect = ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        evaluate_commit("/repo", "abc123", AI)

    remove.assert_called_once_with("/repo", "/tmp/gitstage-replay")
