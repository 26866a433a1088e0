"""Programmatic entry points for scopegrep.

The CLI is a thin wrapper around :func:`search_tree`; other tools can call
it directly to search a tree and collect or stream the matches.
"""

from pathlib import Path
from typing import Callable, List, Optional, TextIO

from .config import SearchConfig, load_search_config
from .dispatch import DISPATCHERS
from .search import Match, Matcher, OutputWriter, Searcher, SearchStats, make_matcher
from .walker import Walker


def search_tree(
    root: Path,
    matcher: Matcher,
    emit: Callable[[Match], None],
    config: Optional[SearchConfig] = None,
) -> SearchStats:
    """Search every non-ignored text file below ``root``.

    Args:
        root: Directory to search
        matcher: Line matcher
        emit: Called once per match, possibly from several threads
        config: Search settings (defaults if omitted)

    Returns:
        Counters collected during the run

    Raises:
        RootError: If the root is not a readable directory
    """
    config = config or SearchConfig()
    stats = SearchStats()
    walker = Walker(config.ignore_files, stats=stats)
    searcher = Searcher(matcher, emit, stats=stats)

    dispatcher_cls = DISPATCHERS[config.mode]
    if config.mode == "eager":
        dispatcher = dispatcher_cls(walker, searcher, workers=config.workers, queue_size=config.queue_size)
    else:
        dispatcher = dispatcher_cls(walker, searcher, workers=config.workers)
    dispatcher.run(Path(root))
    return stats


def grep(root: str, pattern: str, stream: Optional[TextIO] = None, **overrides) -> List[Match]:
    """Search ``root`` for ``pattern`` and return the matches.

    Settings come from ``load_search_config`` with ``overrides`` applied.
    When ``stream`` is given, records are also written to it as they are
    found.

    Example:
        >>> from scopegrep.api import grep
        >>> for match in grep(".", "TODO"):
        ...     print(match.format())
    """
    config = load_search_config(Path(root), **overrides)
    matcher = make_matcher(pattern, regex=config.regex, ignore_case=config.ignore_case)
    writer = OutputWriter(stream) if stream is not None else None
    found: List[Match] = []

    def collect(match: Match) -> None:
        found.append(match)
        if writer is not None:
            writer.emit(match)

    search_tree(Path(root), matcher, collect, config)
    return found
