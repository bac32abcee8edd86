"""
Diagnostic Types for FsGuard.

A Diagnostic is one finding attached to a document range. Severity is a
function of kind alone; nothing else decides it.
"""

from dataclasses import asdict, dataclass
from enum import Enum


# Tag stamped on every diagnostic
DIAGNOSTIC_SOURCE = "fsguard"


class DiagnosticKind(str, Enum):
    OUTSIDE_WORKSPACE = "OutsideWorkspace"
    BLOCKED_PATH = "BlockedPath"
    BLOCKED_PATTERN = "BlockedPattern"
    SYNC_OPERATION_WARNING = "SyncOperationWarning"
    SYMLINK_INFO = "SymlinkInfo"


class Severity(str, Enum):
    ERROR = "Error"
    WARNING = "Warning"
    INFORMATION = "Information"


SEVERITY_BY_KIND = {
    DiagnosticKind.OUTSIDE_WORKSPACE: Severity.WARNING,
    DiagnosticKind.BLOCKED_PATH: Severity.ERROR,
    DiagnosticKind.BLOCKED_PATTERN: Severity.ERROR,
    DiagnosticKind.SYNC_OPERATION_WARNING: Severity.WARNING,
    DiagnosticKind.SYMLINK_INFO: Severity.INFORMATION,
}


@dataclass(frozen=True)
class Position:
    """Zero-based line and character offset."""

    line: int
    character: int


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position

    @classmethod
    def of(cls, line: int, start: int, end: int) -> "Range":
        """Single-line range from ``start`` to ``end`` on ``line``."""
        return cls(Position(line, start), Position(line, end))


@dataclass(frozen=True)
class Diagnostic:
    """One detected violation."""

    kind: DiagnosticKind
    range: Range
    message: str
    matched_value: str
    source: str = DIAGNOSTIC_SOURCE

    @property
    def severity(self) -> Severity:
        return SEVERITY_BY_KIND[self.kind]

    def to_dict(self) -> dict:
        """JSON-friendly form used by the CLI and the metrics log."""
        data = asdict(self)
        data["kind"] = self.kind.value
        data["severity"] = self.severity.value
        data["matchedValue"] = data.pop("matched_value")
        return data
