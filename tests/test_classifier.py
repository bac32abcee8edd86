"""
Tests for FsGuard Path Classifier.

These tests verify that classification:
- Flags absolute paths outside the workspace
- Matches blocked paths by substring
- Compiles blocked patterns safely and matches them unanchored
- Returns every applicable match in a fixed order
"""

from dataclasses import replace

from fsguard.policy.classifier import (
    Classification,
    ClassificationKind,
    classification_kinds,
    classify,
    compile_glob,
    is_absolute_path,
)
from fsguard.policy.rules import DEFAULT_POLICY, Policy


def policy_with(**security) -> Policy:
    return replace(DEFAULT_POLICY, security=replace(DEFAULT_POLICY.security, **security))


class TestOutsideWorkspace:
    """Workspace boundary checks."""

    def test_system_path_is_outside(self):
        """/etc/passwd is outside the workspace and nothing else."""
        assert classify("/etc/passwd", DEFAULT_POLICY) == [
            Classification(ClassificationKind.OUTSIDE_WORKSPACE, "/etc/passwd")
        ]

    def test_relative_path_is_not_outside(self):
        """Relative paths are never OutsideWorkspace."""
        assert classify("src/app/main.js", DEFAULT_POLICY) == []

    def test_workspace_token_exempts(self):
        """A path mentioning the workspace is treated as inside it."""
        assert classify("/home/dev/workspace/app.js", DEFAULT_POLICY) == []
        assert classify("/${workspaceFolder}/out/app.js", DEFAULT_POLICY) == []

    def test_configured_root_exempts(self):
        """Paths under an absolute workspaceRoot are inside."""
        policy = policy_with(workspace_root="/srv/project")
        assert classify("/srv/project/src/main.js", policy) == []
        assert classify("/srv/project", policy) == []
        assert classification_kinds("/srv/projectile/main.js", policy) == {
            ClassificationKind.OUTSIDE_WORKSPACE
        }

    def test_filesystem_root_as_workspace(self):
        """A workspace rooted at / contains every POSIX absolute path."""
        policy = policy_with(workspace_root="/")
        assert classify("/etc/hosts", policy) == []
        assert classify("/", policy) == []

    def test_drive_root_as_workspace(self):
        """A workspace rooted at a drive contains paths on that drive only."""
        policy = policy_with(workspace_root="C:\\")
        assert classify("C:/projects/app.js", policy) == []
        assert classify("C:\\projects\\app.js", policy) == []
        assert classification_kinds("D:\\data\\app.js", policy) == {
            ClassificationKind.OUTSIDE_WORKSPACE
        }

    def test_trailing_separator_on_root(self):
        """A trailing slash on the configured root changes nothing."""
        policy = policy_with(workspace_root="/srv/project/")
        assert classify("/srv/project/src/main.js", policy) == []
        assert classification_kinds("/srv/projectile/main.js", policy) == {
            ClassificationKind.OUTSIDE_WORKSPACE
        }

    def test_windows_paths_are_absolute(self):
        """Drive letters and UNC shares count as absolute."""
        assert is_absolute_path("C:\\Users\\dev\\notes.txt")
        assert is_absolute_path("d:/data/file.txt")
        assert is_absolute_path("\\\\fileserver\\share\\doc.txt")
        assert not is_absolute_path("./relative/path")
        assert not is_absolute_path("C:relative")


class TestBlockedPaths:
    """Substring rules."""

    def test_git_directory_blocked(self):
        """.git matches ./.git/config with .git as the matched value."""
        assert classify("./.git/config", DEFAULT_POLICY) == [
            Classification(ClassificationKind.BLOCKED_PATH, ".git")
        ]

    def test_matching_is_case_sensitive(self):
        """Blocked paths match case-sensitively."""
        assert classify("./.GIT/config", DEFAULT_POLICY) == []

    def test_empty_entries_ignored(self):
        """An empty blocked path does not match everything."""
        policy = policy_with(blocked_paths=("",), blocked_patterns=())
        assert classify("src/app.js", policy) == []


class TestBlockedPatterns:
    """Glob rules."""

    def test_metacharacters_are_escaped(self):
        """The dot in *.key is literal."""
        assert compile_glob("*.key").search("api.key")
        assert not compile_glob("*.key").search("apikey")
        assert compile_glob("report(1)*").search("docs/report(1).pdf")

    def test_matching_is_unanchored(self):
        """A pattern may match anywhere in the path."""
        policy = policy_with(blocked_patterns=("*.key",))
        assert classification_kinds("./certs/api.key.bak", policy) == {
            ClassificationKind.BLOCKED_PATTERN
        }

    def test_single_pattern_match(self):
        """./secrets/api.key under *.key yields one pattern match."""
        policy = policy_with(blocked_patterns=("*.key",))
        assert classify("./secrets/api.key", policy) == [
            Classification(ClassificationKind.BLOCKED_PATTERN, "*.key")
        ]


class TestCombined:
    """Several rules on one path."""

    def test_all_matches_in_fixed_order(self):
        """OutsideWorkspace, then blocked paths, then patterns in policy order."""
        result = classify("/home/dev/.ssh/secret.key", DEFAULT_POLICY)
        assert result == [
            Classification(ClassificationKind.OUTSIDE_WORKSPACE, "/home/dev/.ssh/secret.key"),
            Classification(ClassificationKind.BLOCKED_PATH, ".ssh"),
            Classification(ClassificationKind.BLOCKED_PATTERN, "*.key"),
            Classification(ClassificationKind.BLOCKED_PATTERN, "*secret*"),
        ]

    def test_classification_is_deterministic(self):
        """Same input, same output."""
        path = "/var/lib/app/.env"
        assert classify(path, DEFAULT_POLICY) == classify(path, DEFAULT_POLICY)
