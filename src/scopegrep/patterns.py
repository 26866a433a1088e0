"""Compilation of ignore-file lines into matchable rules.

A raw line goes through three stages:

1. ``parse_line`` turns it into a :class:`Directive` (flags plus body).
2. ``build_glob`` turns the directive into a single glob string.
3. ``compile_rule`` wraps the glob in a compiled ``pathspec`` matcher.

Subjects are paths relative to the scope directory, with a trailing slash for
directories. Unanchored rules are prefixed with ``**/`` so they match at any
depth below it. Anchored rules get ``*/`` and see ``<scope-dir>/<relative path>``,
so they only match directly below the scope directory.
"""

from dataclasses import dataclass, field
from typing import Optional

from pathspec import PathSpec
from pathspec.patterns import GitWildMatchPattern

from .errors import InvalidPatternError


@dataclass(frozen=True)
class Directive:
    """A parsed ignore line, before any glob is built."""

    negated: bool
    anchored: bool
    directory_only: bool
    body: str
    source: str


@dataclass(frozen=True)
class Rule:
    """A compiled ignore rule."""

    negated: bool
    anchored: bool
    directory_only: bool
    glob: str
    source: str
    spec: PathSpec = field(repr=False, compare=False)

    def matches(self, subject: str) -> bool:
        """Check a scope-relative POSIX subject against this rule."""
        return self.spec.match_file(subject)


def is_pattern(line: str) -> bool:
    """Blank lines and ``#`` comments carry no rule."""
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


def parse_line(raw: str) -> Optional[Directive]:
    """Parse one ignore-file line.

    Returns:
        The directive, or None for blank and comment lines

    Raises:
        InvalidPatternError: If nothing is left once the markers are stripped
    """
    if not is_pattern(raw):
        return None

    source = raw.strip()
    body = source
    negated = body.startswith("!")
    if negated:
        body = body[1:]

    anchored = body.startswith("/")
    if anchored:
        body = body[1:]

    directory_only = body.endswith("/")
    if directory_only:
        body = body.rstrip("/")

    if not body:
        raise InvalidPatternError(source, "empty pattern")

    return Directive(
        negated=negated,
        anchored=anchored,
        directory_only=directory_only,
        body=body,
        source=source,
    )


def build_glob(directive: Directive) -> str:
    """Build the glob string for a directive."""
    prefix = "*/" if directive.anchored else "**/"
    suffix = "/**" if directive.directory_only else ""
    return f"{prefix}{directive.body}{suffix}"


def _check_brackets(glob: str, source: str) -> None:
    """Reject character classes that are never closed."""
    i = 0
    while i < len(glob):
        char = glob[i]
        if char == "\\":
            i += 2
            continue
        if char == "[":
            j = i + 1
            if j < len(glob) and glob[j] in "!^":
                j += 1
            # A leading "]" is a literal member of the class
            if j < len(glob) and glob[j] == "]":
                j += 1
            close = glob.find("]", j)
            if close == -1:
                raise InvalidPatternError(source, f"unterminated character class at offset {i}")
            i = close + 1
            continue
        i += 1


def compile_directive(directive: Directive) -> Rule:
    """Compile a parsed directive into a rule."""
    glob = build_glob(directive)
    _check_brackets(glob, directive.source)
    try:
        spec = PathSpec.from_lines(GitWildMatchPattern, [glob])
    except ValueError as e:
        raise InvalidPatternError(directive.source, str(e)) from e

    return Rule(
        negated=directive.negated,
        anchored=directive.anchored,
        directory_only=directive.directory_only,
        glob=glob,
        source=directive.source,
        spec=spec,
    )


def compile_rule(raw: str) -> Optional[Rule]:
    """Compile a raw ignore-file line.

    Returns:
        The rule, or None for blank and comment lines

    Raises:
        InvalidPatternError: If the line cannot be turned into a valid glob
    """
    directive = parse_line(raw)
    if directive is None:
        return None
    return compile_directive(directive)
