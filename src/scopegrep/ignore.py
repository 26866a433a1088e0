"""Scoped gitignore-style matching for scopegrep."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple

from .constants import SCOPE_ROOT_LABEL, VCS_DIRS
from .errors import InvalidPatternError
from .patterns import Rule, compile_rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CandidatePath:
    """A directory entry waiting for an ignore verdict."""

    path: Path
    is_dir: bool


@dataclass(frozen=True)
class IgnoreScope:
    """Rules loaded from one ignore file, bound to the directory holding it.

    Normal and negated rules are kept apart: a negated rule can only
    re-include something a normal rule of the same scope excluded.
    """

    root: Path
    source: str
    normal: Tuple[Rule, ...] = ()
    negated: Tuple[Rule, ...] = ()

    @classmethod
    def from_rules(cls, root: Path, source: str, rules: Iterable[Rule]) -> "IgnoreScope":
        rules = list(rules)
        return cls(
            root=root,
            source=source,
            normal=tuple(r for r in rules if not r.negated),
            negated=tuple(r for r in rules if r.negated),
        )

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self.normal + self.negated

    def contains(self, path: Path) -> bool:
        """Check whether a path lies inside (or is) this scope's directory."""
        return path.is_relative_to(self.root)

    def subject(self, candidate: CandidatePath, anchored: bool = True) -> str:
        """Build the string the scope's globs are matched against.

        Anchored globs (``*/name``) see the scope directory as the first
        segment, so they only reach its direct children. Unanchored globs see
        the path relative to the scope, so the scope directory's own name can
        never satisfy them.
        """
        rel = candidate.path.relative_to(self.root).as_posix()
        if anchored:
            label = self.root.name or SCOPE_ROOT_LABEL
            subject = label if rel == "." else f"{label}/{rel}"
        else:
            subject = rel
        if candidate.is_dir:
            subject += "/"
        return subject

    def _first_match(self, rules: Tuple[Rule, ...], candidate: CandidatePath) -> Optional[Rule]:
        subjects = {True: self.subject(candidate), False: self.subject(candidate, anchored=False)}
        return next((r for r in rules if r.matches(subjects[r.anchored])), None)

    def verdict(self, candidate: CandidatePath) -> Optional[bool]:
        """Return True (ignored), False (re-included) or None (no opinion)."""
        if not self.contains(candidate.path) or candidate.path == self.root:
            return None

        hit = self._first_match(self.normal, candidate)
        if hit is None:
            return None

        subject = self.subject(candidate)
        rescue = self._first_match(self.negated, candidate)
        if rescue is not None:
            logger.debug("%s re-included by %r (%s)", subject, rescue.source, self.location)
            return False

        logger.debug("%s ignored by %r (%s)", subject, hit.source, self.location)
        return True

    @property
    def location(self) -> Path:
        return self.root / self.source


class ScopeStack:
    """Immutable stack of ignore scopes, nearest scope first.

    ``push`` returns a new stack sharing its tail with the old one, so each
    directory carries exactly the scopes of its ancestors and nothing has to
    be popped when a subtree is done.
    """

    __slots__ = ("scope", "parent", "depth")

    def __init__(self, scope: Optional[IgnoreScope] = None, parent: Optional["ScopeStack"] = None):
        self.scope = scope
        self.parent = parent
        self.depth = 0 if scope is None else (parent.depth if parent else 0) + 1

    @classmethod
    def empty(cls) -> "ScopeStack":
        return _EMPTY

    def push(self, scope: IgnoreScope) -> "ScopeStack":
        return ScopeStack(scope, self)

    def __iter__(self) -> Iterator[IgnoreScope]:
        node = self
        while node is not None and node.scope is not None:
            yield node.scope
            node = node.parent

    def __len__(self) -> int:
        return self.depth

    def __repr__(self) -> str:
        return f"ScopeStack({[str(s.location) for s in self]})"


_EMPTY = ScopeStack()


def load_scope(directory: Path, file_name: str) -> Optional[IgnoreScope]:
    """Load the ignore file ``file_name`` from ``directory``.

    Lines that fail to compile are skipped with a warning.

    Returns:
        The scope, or None if the file does not exist

    Raises:
        OSError: If the file exists but cannot be read
    """
    ignore_file = directory / file_name
    try:
        content = ignore_file.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return None

    rules = []
    for lineno, line in enumerate(content.splitlines(), 1):
        try:
            rule = compile_rule(line)
        except InvalidPatternError as e:
            logger.warning("%s:%d: skipping pattern: %s", ignore_file, lineno, e)
            continue
        if rule is not None:
            rules.append(rule)

    logger.debug("Loaded %d rule(s) from %s", len(rules), ignore_file)
    return IgnoreScope.from_rules(directory, file_name, rules)


def push_scopes(stack: ScopeStack, directory: Path, file_names: Iterable[str]) -> ScopeStack:
    """Load each named ignore file in ``directory`` onto ``stack``.

    Each file becomes its own scope; later names end up nearer. An ignore
    file that exists but cannot be read counts as empty.
    """
    for name in file_names:
        try:
            scope = load_scope(directory, name)
        except OSError as e:
            logger.warning("Cannot read ignore file %s: %s", directory / name, e)
            continue
        if scope is not None:
            stack = stack.push(scope)
    return stack


def is_vcs_dir(path: Path) -> bool:
    return path.name in VCS_DIRS


def is_ignored(candidate: CandidatePath, stack: ScopeStack) -> bool:
    """Decide whether a candidate is excluded by the scopes on ``stack``.

    Scopes are consulted from nearest to farthest, skipping those whose
    directory does not contain the candidate. The first scope with a
    matching normal rule decides: negated rules of that same scope can
    re-include the candidate, negated rules of any other scope cannot.
    """
    if is_vcs_dir(candidate.path):
        return True

    for scope in stack:
        verdict = scope.verdict(candidate)
        if verdict is not None:
            return verdict
    return False
