"""Console output formatting for the gitstage command line."""

import json
import logging
import sys

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.evaluation import EvalResult

console = Console()


def setup_logging(debug: bool = False) -> None:
    """Route library logging to stdout; quiet unless ``debug``."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def print_context_stats(result: EvalResult) -> None:
    stats = result.context_stats
    if stats is None:
        return

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()
    table.add_row("selected_paths_total", str(stats.selected_paths_total))
    table.add_row("selected_paths_included", str(stats.selected_paths_included))
    table.add_row(
        "selected_paths_omitted_by_system_limit", str(stats.selected_paths_omitted_by_system_limit)
    )
    table.add_row("max_input_tokens", str(stats.max_input_tokens))
    table.add_row("pre_truncation_tokens", str(stats.pre_truncation_context_tokens))
    table.add_row("final_tokens", str(stats.final_context_tokens))
    table.add_row(
        "trimmed_tokens",
        str(max(stats.pre_truncation_context_tokens - stats.final_context_tokens, 0)),
    )
    table.add_row("truncated_by_token_budget", "yes" if stats.truncated_by_token_budget else "no")
    table.add_row("omitted_diff_files", str(stats.omitted_diff_files))
    console.print("[cyan]context:[/cyan]")
    console.print(table)


def print_result(result: EvalResult, index: int, total: int, verbose: bool = False) -> None:
    """Print one evaluation result."""
    console.print(f"\n[bold blue]Result {index}/{total}[/bold blue]")
    console.print(f"  mode: [cyan]{result.mode}[/cyan]")
    if result.commit:
        console.print(f"  commit: [cyan]{result.commit}[/cyan]")
    if result.actual_subject:
        console.print(f"  actual: {result.actual_subject}", markup=False)
    if result.worktree_path:
        console.print(f"  worktree: [dim]{result.worktree_path}[/dim]")
    console.print(f"  files: {len(result.selected_paths)}")
    for path in result.selected_paths:
        console.print(f"  - {path}", style="cyan", markup=False)
    console.print(Panel(Text(result.generated_subject), expand=False, border_style="green"))
    console.print(f"  length: {result.generated_length}")
    if verbose:
        print_context_stats(result)


def print_results(results: list[EvalResult], verbose: bool = False) -> None:
    for index, result in enumerate(results, start=1):
        print_result(result, index, len(results), verbose=verbose)


def print_json(results: list[EvalResult]) -> None:
    """Write results as JSON without rich markup."""
    console.print_json(json.dumps([result.to_dict() for result in results]))


def print_error(message: str) -> None:
    console.print(f"\n[bold red]❌ {escape(message)}[/bold red]")
