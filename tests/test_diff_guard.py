"""
Tests for FsGuard Diff Guard.

These tests verify that patch scanning:
- Reports findings on added lines with target-file line numbers
- Ignores removed and context lines
- Skips deleted files
- Rejects empty or unparsable input
"""

import pytest

from fsguard.diagnostics.diff_guard import is_patch_clean, scan_patch
from fsguard.diagnostics.types import DiagnosticKind
from fsguard.errors import InvalidPatchError


class TestScanPatch:
    """Scanning the added side of a diff."""

    def test_clean_patch_passes(self):
        """A patch adding nothing risky has no findings."""
        diff = """--- a/src/files.js
+++ b/src/files.js
@@ -1,2 +1,3 @@
 const fs = require('fs');
+const out = path.join(root, 'build/out.js');
 module.exports = {};
"""
        assert scan_patch(diff) == {}
        assert is_patch_clean(diff)

    def test_added_blocked_path(self):
        """A blocked path on an added line is reported at its target line."""
        diff = """--- a/src/files.js
+++ b/src/files.js
@@ -10,2 +10,3 @@ function load() {
 const fs = require('fs');
+const cfg = fs.readFileSync('./.git/config');
 module.exports = {};
"""
        results = scan_patch(diff)
        assert list(results) == ["src/files.js"]
        (d,) = results["src/files.js"]
        assert d.kind == DiagnosticKind.BLOCKED_PATH
        assert d.matched_value == ".git"
        # Second line of a hunk starting at target line 10, zero-based
        assert d.range.start.line == 10
        assert not is_patch_clean(diff)

    def test_removed_lines_ignored(self):
        """Deleting a blocked reference is not a finding."""
        diff = """--- a/src/files.js
+++ b/src/files.js
@@ -1,3 +1,2 @@
 const fs = require('fs');
-const cfg = fs.readFileSync('./.git/config');
 module.exports = {};
"""
        assert scan_patch(diff) == {}

    def test_warnings_keep_patch_clean(self):
        """Only Error findings make a patch unclean."""
        diff = """--- a/src/cleanup.js
+++ b/src/cleanup.js
@@ -1,1 +1,2 @@
 const fs = require('fs');
+fs.unlinkSync(tmpFile);
"""
        results = scan_patch(diff)
        assert [d.kind for d in results["src/cleanup.js"]] == [
            DiagnosticKind.SYNC_OPERATION_WARNING
        ]
        assert is_patch_clean(diff)

    def test_deleted_file_skipped(self):
        """Removed files contribute nothing."""
        diff = """--- a/src/old.js
+++ /dev/null
@@ -1,2 +0,0 @@
-const key = read('./certs/server.key');
-module.exports = key;
"""
        assert scan_patch(diff) == {}

    def test_multiple_files(self):
        """Findings are grouped per target file."""
        diff = """--- a/a.js
+++ b/a.js
@@ -1,1 +1,2 @@
 x();
+read('/etc/shadow');
--- a/b.js
+++ b/b.js
@@ -1,1 +1,2 @@
 y();
+read('./node_modules/pkg/index.js');
"""
        results = scan_patch(diff)
        assert sorted(results) == ["a.js", "b.js"]
        assert results["a.js"][0].kind == DiagnosticKind.OUTSIDE_WORKSPACE
        assert results["b.js"][0].kind == DiagnosticKind.BLOCKED_PATH

    def test_empty_patch_rejected(self):
        """Empty input raises InvalidPatchError."""
        with pytest.raises(InvalidPatchError):
            scan_patch("   \n")

    def test_invalid_diff_rejected(self):
        """Text without file headers raises InvalidPatchError."""
        with pytest.raises(InvalidPatchError):
            scan_patch("this is not a valid diff")
