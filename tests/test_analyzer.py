"""Tests for diff signal extraction."""

from gitstage.core.analyzer import (
    ContextSignals,
    aggregate_behavior_cues,
    analyze_diff,
    collect_behavior_cues,
    format_cue_list,
    normalize_cue,
)
from gitstage.core.models import ChangedFile

SAMPLE_DIFF = """# Unstaged
diff --git a/src/form.ts b/src/form.ts
--- a/src/form.ts
+++ b/src/form.ts
@@ -1,6 +1,8 @@
+if (user == null) {
+  return early
+}
+event.preventDefault();
+const label = ready ? "go" : "wait"
-submitForm(values, options)
-throw new Error("bad")
 unchanged(line)
"""


def test_analyze_diff_ignores_file_headers():
    assert analyze_diff(SAMPLE_DIFF) == (5, 2)


def test_collect_behavior_cues():
    """Test conditions, guards and calls are pulled from changed lines."""
    cues = collect_behavior_cues(SAMPLE_DIFF)

    assert cues.added_conditions == ["user == null", "ternary-condition"]
    assert cues.added_guards == ["return early", "preventDefault()"]
    assert cues.added_calls == ["event.preventDefault()"]
    assert cues.removed_calls == ["submitForm(values, options)", "Error(\"bad\")"]
    assert cues.removed_guards == ['throw new Error("bad")']
    assert cues.removed_conditions == []


def test_behavior_cues_dedupe_and_aggregate():
    first = collect_behavior_cues("+save(a)\n+save(a)\n")
    second = collect_behavior_cues("+load()\n+save(a)\n")

    assert first.added_calls == ["save(a)"]
    assert aggregate_behavior_cues([first, second]).added_calls == ["save(a)", "load()"]


def test_long_call_arguments_are_clipped():
    cues = collect_behavior_cues("+render(" + "x, " * 30 + "y)\n")

    call = cues.added_calls[0]
    assert call.startswith("render(")
    assert call.endswith("...)")
    assert len(call) <= 72


def test_normalize_cue_truncates():
    value = normalize_cue("word " * 40)

    assert len(value) == 72
    assert value.endswith("...")
    assert normalize_cue("  a   b  ") == "a b"


def test_format_cue_list():
    assert format_cue_list([]) == "none"
    assert format_cue_list([str(i) for i in range(8)]) == "0 | 1 | 2 | 3 | 4 | 5"


def test_status_signals_count_each_file_once():
    signals = ContextSignals()
    signals.update_status(ChangedFile.from_status("new.txt", "?", "?"))
    signals.update_status(ChangedFile.from_status("gone.py", "D", " "))
    signals.update_status(ChangedFile.from_status("moved.py", "R", "M", old_path="old.py"))
    signals.update_status(ChangedFile.from_status("added.py", "A", "M"))
    signals.update_status(ChangedFile.from_status("app.py", " ", "M"))
    signals.update_status(None)

    assert (signals.new_files, signals.deleted_files, signals.renamed_files) == (2, 1, 1)
    assert signals.modified_files == 1
    assert signals.likely_new_surface


def test_existing_surface_only():
    signals = ContextSignals()
    signals.update_status(ChangedFile.from_status("app.py", "M", " "))

    assert not signals.likely_new_surface


def test_path_categories():
    signals = ContextSignals()
    for path in ("docs/guide.md", "README.md", "src/app.test.ts", "tests/test_x.py", "package.json", "poetry.lock", "src/main.py"):
        signals.update_path_category(path)

    assert (signals.docs_files, signals.test_files, signals.config_files) == (2, 2, 2)
