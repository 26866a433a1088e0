"""Tests for ignore scopes and the scope stack resolver."""

import logging
from pathlib import Path
import pytest

from scopegrep.ignore import (
    CandidatePath,
    IgnoreScope,
    ScopeStack,
    is_ignored,
    load_scope,
    push_scopes,
)
from scopegrep.patterns import compile_rule


PROJ = Path("/proj")


def make_scope(root: Path, *lines: str) -> IgnoreScope:
    rules = [compile_rule(line) for line in lines]
    return IgnoreScope.from_rules(root, ".gitignore", [r for r in rules if r is not None])


def stack_of(*scopes: IgnoreScope) -> ScopeStack:
    """Build a stack, farthest scope first."""
    stack = ScopeStack.empty()
    for scope in scopes:
        stack = stack.push(scope)
    return stack


def file(path: str) -> CandidatePath:
    return CandidatePath(PROJ / path, False)


def directory(path: str) -> CandidatePath:
    return CandidatePath(PROJ / path, True)


class TestIgnoreScope:
    """Test a single scope."""

    def test_rules_are_partitioned(self):
        scope = make_scope(PROJ, "*.txt", "!keep.txt", "build/")
        assert [r.source for r in scope.normal] == ["*.txt", "build/"]
        assert [r.source for r in scope.negated] == ["!keep.txt"]
        assert len(scope.rules) == 3

    def test_subject_uses_scope_directory_segment(self):
        scope = make_scope(PROJ)
        assert scope.subject(file("sub/a.txt")) == "proj/sub/a.txt"
        assert scope.subject(directory("sub")) == "proj/sub/"

    def test_subject_for_nameless_root(self):
        scope = make_scope(Path("/"))
        assert scope.subject(CandidatePath(Path("/a.txt"), False)) == "@root/a.txt"

    def test_no_opinion_outside_scope(self):
        scope = make_scope(PROJ / "one", "*.txt")
        assert scope.verdict(file("two/x.txt")) is None
        assert scope.verdict(file("one/x.txt")) is True


class TestResolver:
    """Test is_ignored precedence across stacked scopes."""

    def test_empty_stack_ignores_nothing(self):
        assert not is_ignored(file("a.txt"), ScopeStack.empty())

    def test_vcs_directory_always_ignored(self):
        assert is_ignored(directory(".git"), ScopeStack.empty())
        assert is_ignored(directory("sub/.git"), stack_of(make_scope(PROJ, "!.git/")))

    def test_directory_rule_matches_at_any_depth(self):
        stack = stack_of(make_scope(PROJ, "build/"))
        assert is_ignored(directory("build"), stack)
        assert is_ignored(directory("sub/build"), stack)
        assert is_ignored(file("sub/build/out.o"), stack)
        assert not is_ignored(file("build"), stack)

    def test_anchored_directory_rule_only_at_scope_root(self):
        stack = stack_of(make_scope(PROJ, "/build/"))
        assert is_ignored(directory("build"), stack)
        assert not is_ignored(directory("sub/build"), stack)

    def test_negation_within_same_scope(self):
        stack = stack_of(make_scope(PROJ, "*.txt", "!keep.txt"))
        assert not is_ignored(file("keep.txt"), stack)
        assert is_ignored(file("other.txt"), stack)

    def test_rule_order_does_not_matter_for_negation(self):
        stack = stack_of(make_scope(PROJ, "!keep.txt", "*.txt"))
        assert not is_ignored(file("keep.txt"), stack)
        assert is_ignored(file("other.txt"), stack)

    def test_child_negation_cannot_rescue_parent_ignore(self):
        parent = make_scope(PROJ, "secret/")
        child = make_scope(PROJ / "secret", "!readme.md")
        stack = stack_of(parent, child)
        assert is_ignored(file("secret/readme.md"), stack)

    def test_parent_negation_cannot_rescue_child_ignore(self):
        parent = make_scope(PROJ, "!*.md")
        child = make_scope(PROJ / "docs", "*.md")
        stack = stack_of(parent, child)
        assert is_ignored(file("docs/notes.md"), stack)
        assert not is_ignored(file("notes.md"), stack)

    def test_nearest_verdict_wins(self):
        parent = make_scope(PROJ, "*.log")
        child = make_scope(PROJ / "logs", "*.log", "!debug.log")
        stack = stack_of(parent, child)
        assert not is_ignored(file("logs/debug.log"), stack)
        assert is_ignored(file("logs/error.log"), stack)
        assert is_ignored(file("debug.log"), stack)

    def test_sibling_scope_does_not_leak(self):
        one = make_scope(PROJ / "one", "*.txt")
        stack = stack_of(make_scope(PROJ), one)
        assert not is_ignored(file("two/x.txt"), stack)
        assert is_ignored(file("one/x.txt"), stack)

    def test_anchored_rule_in_nested_scope(self):
        child = make_scope(PROJ / "sub", "/local.cfg")
        stack = stack_of(child)
        assert is_ignored(file("sub/local.cfg"), stack)
        assert not is_ignored(file("sub/deeper/local.cfg"), stack)


class TestScopeDirectoryName:
    """Test scopes whose directory name also appears in their rules."""

    def test_unanchored_subject_has_no_scope_segment(self):
        scope = make_scope(PROJ / "build")
        assert scope.subject(file("build/main.c"), anchored=False) == "main.c"
        assert scope.subject(directory("build/build"), anchored=False) == "build/"

    def test_directory_rule_named_like_scope(self):
        stack = stack_of(make_scope(PROJ / "build", "build/"))
        assert not is_ignored(file("build/main.c"), stack)
        assert not is_ignored(directory("build/src"), stack)
        assert is_ignored(directory("build/build"), stack)
        assert is_ignored(file("build/src/build/out.o"), stack)

    def test_file_glob_named_like_scope(self):
        stack = stack_of(make_scope(PROJ / "docs", "docs/*.md"))
        assert not is_ignored(file("docs/readme.md"), stack)
        assert is_ignored(file("docs/docs/readme.md"), stack)
        assert is_ignored(file("docs/api/docs/index.md"), stack)

    def test_negation_named_like_scope(self):
        stack = stack_of(make_scope(PROJ / "logs", "*.log", "!logs/keep.log"))
        assert is_ignored(file("logs/keep.log"), stack)
        assert not is_ignored(file("logs/logs/keep.log"), stack)
        assert is_ignored(file("logs/logs/other.log"), stack)

    def test_anchored_rule_named_like_scope(self):
        stack = stack_of(make_scope(PROJ / "build", "/build/"))
        assert is_ignored(directory("build/build"), stack)
        assert not is_ignored(file("build/main.c"), stack)
        assert not is_ignored(directory("build/src/build"), stack)

    def test_scope_has_no_opinion_on_its_own_directory(self):
        scope = make_scope(PROJ / "build", "build/", "*")
        assert scope.verdict(directory("build")) is None


class TestScopeStack:
    """Test the persistent stack."""

    def test_push_does_not_modify_parent(self):
        base = ScopeStack.empty()
        one = base.push(make_scope(PROJ))
        two = one.push(make_scope(PROJ / "sub"))
        assert len(base) == 0
        assert len(one) == 1
        assert len(two) == 2
        assert [s.root for s in two] == [PROJ / "sub", PROJ]

    def test_siblings_share_tail(self):
        parent = ScopeStack.empty().push(make_scope(PROJ))
        left = parent.push(make_scope(PROJ / "left"))
        right = parent.push(make_scope(PROJ / "right"))
        assert left.parent is right.parent is parent
        assert [s.root for s in right] == [PROJ / "right", PROJ]


class TestLoadScope:
    """Test loading ignore files from disk."""

    def test_missing_file_returns_none(self, tmp_path):
        assert load_scope(tmp_path, ".gitignore") is None

    def test_loads_rules_and_skips_comments(self, tmp_path):
        (tmp_path / ".gitignore").write_text("""
# Comments should be ignored
*.log

temp/
!temp/keep.txt
""")
        scope = load_scope(tmp_path, ".gitignore")
        assert scope.root == tmp_path
        assert scope.source == ".gitignore"
        assert [r.source for r in scope.normal] == ["*.log", "temp/"]
        assert [r.source for r in scope.negated] == ["!temp/keep.txt"]

    def test_empty_file_gives_empty_scope(self, tmp_path):
        (tmp_path / ".ignore").write_text("# nothing yet\n")
        scope = load_scope(tmp_path, ".ignore")
        assert scope is not None
        assert scope.rules == ()

    def test_invalid_line_is_skipped_with_warning(self, tmp_path, caplog):
        (tmp_path / ".gitignore").write_text("*.log\nbad[class\n*.tmp\n")
        with caplog.at_level(logging.WARNING, logger="scopegrep"):
            scope = load_scope(tmp_path, ".gitignore")
        assert [r.source for r in scope.normal] == ["*.log", "*.tmp"]
        assert "bad[class" in caplog.text
        assert ".gitignore:2" in caplog.text


class TestPushScopes:
    """Test loading several ignore files for one directory."""

    def test_both_names_are_stacked(self, tmp_path):
        (tmp_path / ".gitignore").write_text("*.log\n")
        (tmp_path / ".ignore").write_text("*.tmp\n")
        stack = push_scopes(ScopeStack.empty(), tmp_path, [".gitignore", ".ignore"])
        assert [s.source for s in stack] == [".ignore", ".gitignore"]
        assert is_ignored(CandidatePath(tmp_path / "a.log", False), stack)
        assert is_ignored(CandidatePath(tmp_path / "a.tmp", False), stack)

    def test_missing_files_leave_stack_unchanged(self, tmp_path):
        base = ScopeStack.empty()
        assert push_scopes(base, tmp_path, [".gitignore", ".ignore"]) is base

    def test_unreadable_ignore_file_is_skipped(self, tmp_path, caplog):
        (tmp_path / ".gitignore").mkdir()
        (tmp_path / ".ignore").write_text("*.tmp\n")
        with caplog.at_level(logging.WARNING, logger="scopegrep"):
            stack = push_scopes(ScopeStack.empty(), tmp_path, [".gitignore", ".ignore"])
        assert [s.source for s in stack] == [".ignore"]
        assert "Cannot read ignore file" in caplog.text
