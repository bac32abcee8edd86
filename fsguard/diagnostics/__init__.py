"""
Diagnostics for FsGuard.

Turns document text plus a policy snapshot into findings:
- Paths outside the workspace
- Blocked directories and file patterns
- Synchronous and symlink filesystem calls

Quick fixes are derived from each finding's kind.
"""

from fsguard.diagnostics.types import Diagnostic, DiagnosticKind, Position, Range, Severity
from fsguard.diagnostics.engine import DiagnosticsEngine, scan, scan_document
from fsguard.diagnostics.quickfix import QuickFix, QuickFixKind, fixes_for
from fsguard.diagnostics.diff_guard import scan_patch

__all__ = [
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticsEngine",
    "Position",
    "QuickFix",
    "QuickFixKind",
    "Range",
    "Severity",
    "fixes_for",
    "scan",
    "scan_document",
    "scan_patch",
]
