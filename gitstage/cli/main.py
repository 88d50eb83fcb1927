"""Batch evaluation of AI commit subjects from the command line."""

import logging
import os
import sys
from typing import NoReturn

import click

from ..config.settings import REASONING_EFFORTS, StageConfig
from ..core.evaluation import EvalResult, dedupe_non_empty, evaluate_commit, evaluate_working_tree
from . import console

logger = logging.getLogger(__name__)


def split_paths(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def handle_error(error: BaseException) -> NoReturn:
    """Handle errors in a consistent way."""
    if isinstance(error, KeyboardInterrupt):
        console.print_error("Operation cancelled by user.")
    else:
        console.print_error(f"AI eval failed: {str(error)}")
    sys.exit(1)


def run_evaluations(
    cwd: str,
    config: StageConfig,
    commits: list[str],
    paths: list[str],
    keep_worktrees: bool,
) -> list[EvalResult]:
    """Evaluate each commit in turn, or the working tree when none is given."""
    if not commits:
        return [
            evaluate_working_tree(
                cwd, config.ai, git_options=config.git, selected_paths_override=paths
            )
        ]

    results = []
    for commit in commits:
        logger.info("Evaluating commit %s", commit)
        results.append(
            evaluate_commit(
                cwd,
                commit,
                config.ai,
                git_options=config.git,
                selected_paths_override=paths,
                keep_worktree=keep_worktrees,
            )
        )
    return results


@click.command()
@click.option(
    "--commit",
    "commits",
    multiple=True,
    help="Replay this commit in a temporary worktree and evaluate it. Repeatable.",
)
@click.option("--path", "single_paths", multiple=True, help="Evaluate only this changed path. Repeatable.")
@click.option("--paths", "path_list", help="Comma separated changed paths to evaluate.")
@click.option("--api-key", help="Cerebras API key (defaults to CEREBRAS_API_KEY).")
@click.option("--model", help="Model name override.")
@click.option(
    "--reasoning-effort",
    type=click.Choice(REASONING_EFFORTS),
    help="Reasoning effort override.",
)
@click.option("--max-input-tokens", type=click.IntRange(min=1), help="Context token budget override.")
@click.option("--json", "as_json", is_flag=True, help="Emit machine-readable JSON.")
@click.option("--keep-worktrees", is_flag=True, help="Keep temporary worktrees used for commit replay.")
@click.option("-v", "--verbose", is_flag=True, help="Show context statistics.")
@click.option("-d", "--debug", is_flag=True, help="Enable debug logging")
def main(
    commits: tuple[str, ...],
    single_paths: tuple[str, ...],
    path_list: str | None,
    api_key: str | None,
    model: str | None,
    reasoning_effort: str | None,
    max_input_tokens: int | None,
    as_json: bool,
    keep_worktrees: bool,
    verbose: bool,
    debug: bool,
) -> None:
    """Generate commit subjects for the working tree or replayed commits."""
    console.setup_logging(debug)
    try:
        base = StageConfig.from_env()
        config = StageConfig(
            ai=base.ai.with_overrides(
                api_key=api_key,
                model=model,
                reasoning_effort=reasoning_effort,
                max_input_tokens=max_input_tokens,
            ),
            git=base.git,
            editor=base.editor,
        )
        paths = dedupe_non_empty([*split_paths(path_list), *single_paths])
        results = run_evaluations(
            os.getcwd(), config, dedupe_non_empty(list(commits)), paths, keep_worktrees
        )
    except (KeyboardInterrupt, Exception) as e:
        handle_error(e)

    if as_json:
        console.print_json(results)
    else:
        console.print_results(results, verbose=verbose)


if __name__ == "__main__":
    main()
