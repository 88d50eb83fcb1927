"""AI commit subject generation: context, up to two drafts, ranking."""

import logging
from collections.abc import Callable

from ..config.settings import SUPPORTED_PROVIDERS, AIConfig
from ..services.ai_service import CerebrasClient
from ..services.tokenizer import TextTokenizer, resolve_tokenizer
from .context import CommitContextStats, build_commit_context
from .draft import generate_commit_draft
from .errors import CommitSummaryError
from .git import GitClient
from .models import ChangedFile
from .ranking import (
    build_dominant_token_retry_hint,
    collect_dominant_tokens,
    evaluate_candidate,
    select_best_commit_subject,
)

logger = logging.getLogger(__name__)

FAST_ACCEPT_SCORE = 40
DEFAULT_RETRY_HINT = "name the primary user-visible behavior change in plain words"


def validate_ai_request(ai_config: AIConfig, selected_paths: list[str]) -> list[str]:
    """Check configuration and selection before any git or network call."""
    if not ai_config.enabled:
        raise CommitSummaryError("AI commit generation is disabled in config.")
    if ai_config.provider not in SUPPORTED_PROVIDERS:
        raise CommitSummaryError(f"Unsupported AI provider: {ai_config.provider}")
    if not ai_config.api_key.strip():
        raise CommitSummaryError("AI commit generation requires CEREBRAS_API_KEY.")

    selected = [path.strip() for path in selected_paths if path.strip()]
    if not selected:
        raise CommitSummaryError("No files selected for AI commit.")
    return selected


def generate_ai_commit_summary(
    git: GitClient,
    files: list[ChangedFile],
    selected_paths: list[str],
    ai_config: AIConfig,
    on_context_built: Callable[[CommitContextStats], None] | None = None,
    client: CerebrasClient | None = None,
    tokenizer: TextTokenizer | None = None,
) -> str:
    """Generate a conventional commit subject for ``selected_paths``.

    A first draft that scores well is accepted immediately. Otherwise a single
    retry runs with a hint naming the dominant terms the first draft missed,
    and the best of both drafts wins.

    Raises:
        CommitSummaryError: Invalid configuration, nothing selected, or no
            draft produced a valid subject.
    """
    selected = validate_ai_request(ai_config, selected_paths)

    tokenizer = tokenizer or resolve_tokenizer(ai_config.model)
    built = build_commit_context(
        git,
        {file.path: file for file in files},
        selected,
        ai_config.max_input_tokens,
        tokenizer,
    )
    if on_context_built is not None:
        on_context_built(built.stats)

    client = client or CerebrasClient.from_config(ai_config)
    context = built.context

    first = generate_commit_draft(client, context, ai_config.reasoning_effort, retry=False)
    if first:
        evaluation = evaluate_candidate(first, context, collect_dominant_tokens(context, selected))
        if not evaluation.hard_rejected and evaluation.score >= FAST_ACCEPT_SCORE:
            logger.debug("Accepted first draft %r with score %d", first, evaluation.score)
            return first

    retry_hint = build_dominant_token_retry_hint(context, selected, first or "") or DEFAULT_RETRY_HINT
    second = generate_commit_draft(
        client, context, ai_config.reasoning_effort, retry=True, retry_hint=retry_hint
    )

    candidates = [subject for subject in (first, second) if subject]
    best = select_best_commit_subject(candidates, context, selected)
    if best is None:
        raise CommitSummaryError(
            "AI did not return a usable conventional commit message. Try again or adjust "
            "GITSTAGE_AI_REASONING_EFFORT / GITSTAGE_AI_MAX_INPUT_TOKENS."
        )
    logger.debug("Selected %r with score %d", best.subject, best.score)
    return best.subject
