"""Custom exceptions for scopegrep.

Only configuration problems and an unusable search root are fatal. Errors
met while loading ignore files, listing directories or reading files are
logged where they happen and never reach the caller.
"""


class ScopeGrepError(RuntimeError):
    """Base class for all scopegrep errors."""
    pass


class InvalidPatternError(ScopeGrepError, ValueError):
    """A pattern could not be compiled."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


class ConfigError(ScopeGrepError):
    """Invalid or unreadable configuration."""
    pass


class RootError(ScopeGrepError):
    """The search root is missing or cannot be listed."""

    def __init__(self, root, reason: str):
        self.root = root
        super().__init__(f"Cannot search {root}: {reason}")
