"""CLI for scopegrep."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .api import search_tree
from .config import load_search_config
from .errors import ConfigError, InvalidPatternError, RootError
from .search import OutputWriter, SearchStats, make_matcher

app = typer.Typer(
    add_completion=False,
    help="""\
Search a directory tree for a pattern, skipping everything excluded by
.gitignore and .ignore files found along the way. Prints one
path:line:content record per matching line.""",
)

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Send scopegrep log records to stderr, one per line."""
    root_logger = logging.getLogger("scopegrep")
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("scopegrep: %(levelname)s: %(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root_logger.propagate = False


def display_stats(stats: SearchStats) -> None:
    """Print run counters to stderr."""
    table = Table(title="Search summary", show_header=False)
    table.add_column("Counter", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in stats.as_dict().items():
        table.add_row(name.replace("_", " "), str(value))
    console.print(table)


@app.command()
def search(
    root: Path = typer.Argument(..., help="Directory to search"),
    pattern: Optional[str] = typer.Argument(None, help="Text to look for (nothing is searched if omitted)"),
    workers: Optional[int] = typer.Option(None, "--workers", "-j", help="Number of search workers"),
    mode: Optional[str] = typer.Option(None, "--mode", help="Dispatch strategy: eager or frontier"),
    regex: bool = typer.Option(False, "--regex", "-E", help="Treat PATTERN as a regular expression"),
    ignore_case: bool = typer.Option(False, "--ignore-case", "-i", help="Case-insensitive line matching"),
    ignore_file: Optional[List[str]] = typer.Option(
        None, "--ignore-file", help="Ignore file name to honour (repeatable, replaces the defaults)"
    ),
    stats: bool = typer.Option(False, "--stats", help="Print a summary to stderr"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log skipped files and ignore decisions"),
):
    """Search ROOT for PATTERN.

    Examples:
        scopegrep . TODO                    # Literal search
        scopegrep src 'def \\w+_test' -E     # Regular expression
        scopegrep . needle --mode frontier  # Parallel traversal as well
    """
    configure_logging(verbose)

    if pattern is None:
        logger.debug("No pattern given, nothing to search")
        return

    try:
        config = load_search_config(
            root,
            workers=workers,
            mode=mode,
            regex=regex or None,
            ignore_case=ignore_case or None,
            ignore_files=ignore_file or None,
        )
    except ConfigError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    try:
        matcher = make_matcher(pattern, regex=config.regex, ignore_case=config.ignore_case)
    except InvalidPatternError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    writer = OutputWriter(sys.stdout)
    try:
        run_stats = search_tree(root, matcher, writer.emit, config)
    except RootError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    if stats:
        display_stats(run_stats)


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
