"""Tests for git output parsers."""

from gitstage.core.parsers import (
    normalize_branch_name,
    parse_branch_line,
    parse_branch_ref_lines,
    parse_commit_file_changes_nul,
    parse_commit_log,
    parse_status_output,
    split_nul_paths,
)


def test_parse_status_output_records():
    """Test every record becomes one ChangedFile with consistent flags."""
    raw = (
        "## main...origin/main [ahead 2, behind 1]\0"
        " M src/app.py\0"
        "A  new.py\0"
        "?? notes.txt\0"
        "R  new_name.py\0old_name.py\0"
        "MM both.py\0"
    )

    result = parse_status_output(raw)

    assert result.branch.branch == "main"
    assert result.branch.upstream == "origin/main"
    assert (result.branch.ahead, result.branch.behind) == (2, 1)
    assert [file.path for file in result.files] == [
        "src/app.py",
        "new.py",
        "notes.txt",
        "new_name.py",
        "both.py",
    ]
    for file in result.files:
        if file.untracked:
            assert not file.staged and not file.unstaged

    app, new, notes, renamed, both = result.files
    assert app.unstaged and not app.staged
    assert new.staged and not new.unstaged
    assert notes.untracked and notes.status_label == "untracked"
    assert renamed.old_path == "old_name.py"
    assert renamed.index_status == "R"
    assert both.staged and both.unstaged
    assert both.status_label == "staged modified, unstaged modified"


def test_parse_status_output_without_branch_header():
    result = parse_status_output(" D gone.txt\0")

    assert result.branch.branch == "unknown"
    assert len(result.files) == 1
    assert result.files[0].worktree_status == "D"


def test_parse_branch_line_variants():
    assert parse_branch_line("## No commits yet on main").branch == "main"
    assert parse_branch_line("## HEAD (no branch)").branch == "detached"
    assert parse_branch_line("## feature").upstream is None

    gone = parse_branch_line("## feature...origin/feature [gone]")
    assert gone.upstream == "origin/feature"
    assert (gone.ahead, gone.behind) == (0, 0)


def test_branch_refs_pin_main_and_master():
    """Test main and master lead, regardless of creation date."""
    raw = "master\t200\nfeature-x\t300\nmain\t100\n"

    assert parse_branch_ref_lines(raw) == ["main", "master", "feature-x"]


def test_branch_refs_sort_newest_first_then_name():
    raw = "beta\t5\nalpha\t5\ngamma\t9\n\n"

    assert parse_branch_ref_lines(raw) == ["gamma", "alpha", "beta"]


def test_parse_commit_file_changes_with_rename():
    raw = "M\0src/a.py\0R100\0old.py\0new.py\0D\0gone.py\0"

    changes = parse_commit_file_changes_nul(raw)

    assert [(c.path, c.status, c.display_path) for c in changes] == [
        ("src/a.py", "M", "src/a.py"),
        ("new.py", "R", "old.py -> new.py"),
        ("gone.py", "D", "gone.py"),
    ]


def test_parse_commit_log_fills_missing_subject():
    raw = "abc123\x1fabc\x1f\x1f2 days ago\x1fAda\nfff000\x1ffff\x1ffix: x\x1fnow\x1fBob"

    entries = parse_commit_log(raw)

    assert entries[0].subject == "(no subject)"
    assert entries[0].author == "Ada"
    assert entries[1].subject == "fix: x"
    assert entries[1].short_hash == "fff"


def test_split_nul_paths():
    assert split_nul_paths("a.py\0 b.py \0\0") == ["a.py", "b.py"]


def test_normalize_branch_name():
    assert normalize_branch_name("  Feature/New Thing!! ") == "feature/new-thing"
    assert normalize_branch_name("--/fix//bug--") == "fix/bug"
    assert normalize_branch_name("***") == ""
