"""Line-oriented search of a single file."""

import logging
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, TextIO

from .errors import InvalidPatternError

logger = logging.getLogger(__name__)


class Matcher(Protocol):
    """Anything that can decide whether a line matches."""

    def matches(self, line: str) -> bool:
        ...


class LiteralMatcher:
    """Substring match. An empty needle matches every line."""

    def __init__(self, needle: str, ignore_case: bool = False):
        self.ignore_case = ignore_case
        self.needle = needle.casefold() if ignore_case else needle

    def matches(self, line: str) -> bool:
        if self.ignore_case:
            line = line.casefold()
        return self.needle in line


class RegexMatcher:
    """Regular expression search anywhere in the line."""

    def __init__(self, pattern: str, ignore_case: bool = False):
        flags = re.IGNORECASE if ignore_case else 0
        try:
            self.regex = re.compile(pattern, flags)
        except re.error as e:
            raise InvalidPatternError(pattern, str(e)) from e

    def matches(self, line: str) -> bool:
        return self.regex.search(line) is not None


def make_matcher(pattern: str, regex: bool = False, ignore_case: bool = False) -> Matcher:
    if regex:
        return RegexMatcher(pattern, ignore_case=ignore_case)
    return LiteralMatcher(pattern, ignore_case=ignore_case)


# Bytes that commonly appear in text: printable ASCII, high bytes (UTF-8
# sequences, Latin-1) and the usual whitespace/control characters.
_TEXT_BYTES = bytes({7, 8, 9, 10, 12, 13, 27} | set(range(0x20, 0x100)) - {0x7F})

# Share of non-text bytes above which a sample is considered binary
BINARY_THRESHOLD = 0.30


def is_likely_text(data: bytes) -> bool:
    """Classify a sample of file content as text or binary."""
    if not data:
        return True
    if b"\x00" in data:
        return False
    nontext = data.translate(None, _TEXT_BYTES)
    return len(nontext) / len(data) <= BINARY_THRESHOLD


@dataclass(frozen=True, slots=True)
class Match:
    """One matching line. Line numbers start at 1."""

    path: Path
    line_number: int
    line: str

    def format(self) -> str:
        return f"{self.path}:{self.line_number}:{self.line}"


class OutputWriter:
    """Write match records to a shared stream, one whole record at a time."""

    def __init__(self, stream: TextIO):
        self.stream = stream
        self._lock = threading.Lock()

    def emit(self, match: Match) -> None:
        record = match.format() + "\n"
        with self._lock:
            self.stream.write(record)
            self.stream.flush()


@dataclass
class SearchStats:
    """Counters shared by the walker and all search workers.

    Thread-safe with proper locking.
    """

    files_searched: int = 0
    files_binary: int = 0
    files_unreadable: int = 0
    read_errors: int = 0
    lines_undecodable: int = 0
    dirs_skipped: int = 0
    matches: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def increment(self, name: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + amount)

    def as_dict(self) -> Dict[str, int]:
        with self._lock:
            return {
                "files_searched": self.files_searched,
                "files_binary": self.files_binary,
                "files_unreadable": self.files_unreadable,
                "read_errors": self.read_errors,
                "lines_undecodable": self.lines_undecodable,
                "dirs_skipped": self.dirs_skipped,
                "matches": self.matches,
            }


class Searcher:
    """Search files line by line and hand each match to ``emit``."""

    def __init__(
        self,
        matcher: Matcher,
        emit: Callable[[Match], None],
        stats: Optional[SearchStats] = None,
        sniff: Callable[[bytes], bool] = is_likely_text,
    ):
        self.matcher = matcher
        self.emit = emit
        self.stats = stats or SearchStats()
        self.sniff = sniff

    def search(self, path: Path) -> int:
        """Search one file.

        Only the first line is sniffed; a binary file is skipped without
        further reads. Undecodable lines are skipped, and a read error
        abandons the rest of the file.

        Returns:
            Number of matches emitted
        """
        try:
            handle = path.open("rb")
        except OSError as e:
            logger.debug("Skipping %s: %s", path, e)
            self.stats.increment("files_unreadable")
            return 0

        found = 0
        with handle:
            try:
                for line_number, raw in enumerate(handle, 1):
                    if line_number == 1 and not self.sniff(raw):
                        logger.debug("Skipping binary file %s", path)
                        self.stats.increment("files_binary")
                        return 0

                    try:
                        line = raw.decode("utf-8")
                    except UnicodeDecodeError:
                        logger.debug("%s:%d: skipping undecodable line", path, line_number)
                        self.stats.increment("lines_undecodable")
                        continue

                    line = line.rstrip("\n")
                    if line.endswith("\r"):
                        line = line[:-1]
                    if self.matcher.matches(line):
                        self.emit(Match(path, line_number, line))
                        found += 1
            except OSError as e:
                logger.warning("Error reading %s: %s", path, e)
                self.stats.increment("read_errors")

        self.stats.increment("files_searched")
        self.stats.increment("matches", found)
        return found
