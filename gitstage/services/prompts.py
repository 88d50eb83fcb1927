"""Prompt text for commit subject generation."""

from ..core.policy import COMMIT_SUBJECT_MAX_LENGTH

MAX_OUTPUT_TOKENS = {
    "low": 2048,
    "medium": 3072,
    "high": 4096,
}


def build_system_prompt(retry: bool) -> str:
    """Build the system prompt carrying the commit type rubric and style rules."""
    lines = [
        "You generate conventional commit subjects from git diff context.",
        "Prioritize semantic correctness over wording novelty.",
        "Commit type rubric:",
        "- fix: behavior correction, bug handling, regression prevention, compatibility adjustment.",
        "- feat: net-new user-facing capability or clearly new surface "
        "(new command/screen/endpoint/setting).",
        "- refactor: structural changes with no behavior change.",
        "- style: formatting-only edits.",
        "- docs/test/build/ci/chore/perf/revert only when clearly dominant.",
        "- if uncertain between feat and fix, choose fix.",
        "- do not infer feat only from additions, support wording, or larger diff size.",
        "- if changes are in existing files/flows and no new surface is explicit, avoid feat.",
        "- adding compatibility or alternate paths for an existing workflow is usually fix.",
        "- feat requires introducing a meaningfully new workflow/surface to users.",
        "- when conditions/guards are added, this suggests fix type, but subject wording "
        "should focus on the primary user-visible behavior change.",
        "- call something a bug fix only when the diff shows evidence of incorrect behavior "
        "being corrected.",
        "- when several files share one theme, name the shared theme instead of a single file.",
        "Style rules:",
        "- scope is optional and must be a lowercase noun token.",
        "- description is imperative, specific, concise, and starts lowercase.",
        "- description must read naturally after '<type>(<scope>):'.",
        f"- keep the full subject line at or under {COMMIT_SUBJECT_MAX_LENGTH} characters, "
        "including type/scope and punctuation.",
        "- for fix, describe the primary user-visible correction first (what changed for users).",
        "- if both guard edits and action/result edits exist, summarize action/result changes "
        "over guard mechanics.",
        "- use prevent/avoid wording only when it is the clearest description of the "
        "user-visible correction.",
        "- prefer concrete verbs: fix/prevent/handle/remap/retarget/align/rename/normalize/"
        "simplify/refine.",
        "- prefer user-visible behavior over internal API detail names.",
        "- avoid wording that names low-level implementation calls unless unavoidable.",
        "- avoid vague lead verbs like support, update, improve, change.",
        "- avoid 'enable' for fix unless the phrase also states what broken behavior is corrected.",
        "- avoid generic phrases like 'update code' or 'improve things'.",
    ]
    if retry:
        lines.append(
            "Retry mode: if previous output was invalid, simplify wording while keeping meaning."
        )
    else:
        lines.append(
            "Return the best single conventional commit subject metadata for this change set."
        )
    return "\n".join(lines)


def build_user_prompt(context: str, retry: bool, retry_hint: str | None = None) -> str:
    if retry:
        retry_line = (
            "Retry constraints: keep description short and concrete; "
            "prefer simpler scope or omit scope."
        )
    else:
        retry_line = "Use the context below."

    lines = [retry_line]
    if retry and retry_hint:
        lines.append(f"Retry hint: {retry_hint}")
    lines.extend(["Output must satisfy schema and conventional commit semantics.", "", context])
    return "\n".join(lines)


def resolve_max_output_tokens(reasoning_effort: str) -> int:
    return MAX_OUTPUT_TOKENS.get(reasoning_effort, MAX_OUTPUT_TOKENS["low"])
