"""Directory traversal that honours nested ignore files."""

import logging
import os
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from .constants import DEFAULT_IGNORE_FILES
from .errors import RootError
from .ignore import CandidatePath, ScopeStack, is_ignored, push_scopes
from .search import SearchStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryTask:
    """A directory still to be listed, with the scopes of its ancestors."""

    path: Path
    scopes: ScopeStack


class Walker:
    """Breadth-first walker over a frontier of :class:`DirectoryTask`.

    The walker holds no traversal state of its own: every task carries the
    scope stack it was discovered with, so ``expand`` may be called from
    several threads at once.
    """

    def __init__(
        self,
        ignore_files: Iterable[str] = DEFAULT_IGNORE_FILES,
        stats: Optional[SearchStats] = None,
    ):
        self.ignore_files = tuple(ignore_files)
        self.stats = stats or SearchStats()

    def root_task(self, root: Path) -> DirectoryTask:
        """Validate the search root and build the first task.

        Raises:
            RootError: If the root is not a readable directory
        """
        root = Path(root)
        if not root.exists():
            raise RootError(root, "no such directory")
        if not root.is_dir():
            raise RootError(root, "not a directory")
        try:
            with os.scandir(root):
                pass
        except OSError as e:
            raise RootError(root, e.strerror or str(e)) from e
        return DirectoryTask(root, ScopeStack.empty())

    def list_candidates(self, directory: Path) -> List[CandidatePath]:
        """List the files and real subdirectories of ``directory``.

        Symlinked directories are reported as neither and dropped. An entry
        whose type cannot be determined (a symlink loop, an unreadable
        target) is skipped on its own.

        Raises:
            OSError: If the directory cannot be listed
        """
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)

        candidates = []
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    candidates.append(CandidatePath(directory / entry.name, True))
                elif entry.is_file():
                    candidates.append(CandidatePath(directory / entry.name, False))
            except OSError as e:
                logger.debug("Skipping %s: %s", entry.path, e)
        return candidates

    def expand(self, task: DirectoryTask) -> Tuple[List[Path], List[DirectoryTask]]:
        """Process one directory.

        Returns:
            Tuple of (files to search, subdirectories to visit)
        """
        scopes = push_scopes(task.scopes, task.path, self.ignore_files)
        try:
            candidates = self.list_candidates(task.path)
        except OSError as e:
            logger.warning("Cannot read directory %s: %s", task.path, e)
            self.stats.increment("dirs_skipped")
            return [], []

        files: List[Path] = []
        subdirs: List[DirectoryTask] = []
        for candidate in candidates:
            if is_ignored(candidate, scopes):
                continue
            if candidate.is_dir:
                subdirs.append(DirectoryTask(candidate.path, scopes))
            else:
                files.append(candidate.path)
        return files, subdirs

    def iter_files(self, root: Path) -> Iterator[Path]:
        """Yield every non-ignored file below ``root``.

        Raises:
            RootError: If the root is not a readable directory
        """
        frontier = deque([self.root_task(root)])
        while frontier:
            files, subdirs = self.expand(frontier.popleft())
            yield from files
            frontier.extend(subdirs)

    def walk(self, root: Path, on_file: Callable[[Path], None]) -> None:
        """Call ``on_file`` for every non-ignored file below ``root``."""
        for path in self.iter_files(root):
            on_file(path)
