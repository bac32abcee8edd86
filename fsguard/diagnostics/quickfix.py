"""
Quick Fix Generator for FsGuard.

Remediations are derived from ``Diagnostic.kind`` alone. Fixes only propose
document edits or name an externally owned command; they never touch the
filesystem.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fsguard.diagnostics.types import Diagnostic, DiagnosticKind, Range


# Command the editor host binds to its security settings page
OPEN_SETTINGS_COMMAND = "fsguard.openSettings"


class QuickFixKind(str, Enum):
    EDIT = "edit"
    COMMAND = "command"


@dataclass(frozen=True)
class TextEdit:
    range: Range
    new_text: str


@dataclass(frozen=True)
class QuickFix:
    title: str
    kind: QuickFixKind
    diagnostic: Diagnostic
    edit: Optional[TextEdit] = None
    command: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"title": self.title, "kind": self.kind.value}
        if self.edit is not None:
            data["newText"] = self.edit.new_text
        if self.command is not None:
            data["command"] = self.command
        return data


def _edit(title: str, diagnostic: Diagnostic, new_text: str) -> QuickFix:
    return QuickFix(
        title=title,
        kind=QuickFixKind.EDIT,
        diagnostic=diagnostic,
        edit=TextEdit(range=diagnostic.range, new_text=new_text),
    )


def fixes_for(diagnostic: Diagnostic) -> list[QuickFix]:
    """
    Remediation actions for one diagnostic.

    Args:
        diagnostic: Finding produced by the engine

    Returns:
        Zero or more quick fixes, edits before commands
    """
    kind = diagnostic.kind

    if kind == DiagnosticKind.OUTSIDE_WORKSPACE:
        return [
            _edit(
                "Use workspace-relative path",
                diagnostic,
                "// TODO: Update path to be relative to workspace root",
            )
        ]

    if kind in (DiagnosticKind.BLOCKED_PATH, DiagnosticKind.BLOCKED_PATTERN):
        return [
            _edit(
                "Remove blocked path reference",
                diagnostic,
                "// TODO: Remove reference to blocked path",
            ),
            QuickFix(
                title="Configure security settings",
                kind=QuickFixKind.COMMAND,
                diagnostic=diagnostic,
                command=OPEN_SETTINGS_COMMAND,
            ),
        ]

    if kind == DiagnosticKind.SYNC_OPERATION_WARNING:
        return [
            _edit(
                "Convert to async operation",
                diagnostic,
                "// TODO: Convert to async filesystem operation (e.g., fs.promises)",
            )
        ]

    # SymlinkInfo is informational only
    return []


def fixes_for_all(diagnostics: list[Diagnostic]) -> list[QuickFix]:
    """Fixes for a batch of diagnostics, in diagnostic order."""
    fixes = []
    for diagnostic in diagnostics:
        fixes.extend(fixes_for(diagnostic))
    return fixes
