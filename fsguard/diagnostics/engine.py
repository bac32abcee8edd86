"""
Diagnostics Engine for FsGuard.

Scans raw document text, one line at a time, for quoted path literals and
filesystem-operation markers. Every path literal goes through the classifier;
markers produce line-wide findings. No parsing, no I/O: the same text and
policy always give the same ordered list.
"""

import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

from rich.console import Console

from fsguard.diagnostics.types import Diagnostic, DiagnosticKind, Range
from fsguard.events import Emitter, Subscription
from fsguard.metrics.logger import MetricsLogger, log_scan
from fsguard.policy.classifier import ClassificationKind, classify
from fsguard.policy.rules import Policy
from fsguard.policy.store import PolicyStore

console = Console(stderr=True)


# Quoted text containing at least one path separator; quotes included in the match
PATH_TOKEN_RE = re.compile(r"""['"]([^'"\n]*[/\\][^'"\n]*)['"]""")

# Blocking calls that have async equivalents
SYNC_OPERATION_MARKERS = (
    "fs.unlinkSync",
    "fs.rmdirSync",
)

# Calls that create links which may point outside the workspace
SYMLINK_MARKERS = (
    "fs.symlink",
    "fs.symlinkSync",
)

OUTSIDE_WORKSPACE_MESSAGE = (
    "Path may be outside workspace root. "
    "Ensure filesystem operations are confined to workspace."
)
BLOCKED_PATH_MESSAGE = "Path contains blocked directory: {value}"
BLOCKED_PATTERN_MESSAGE = "Path matches blocked pattern: {value}"
SYNC_OPERATION_MESSAGE = (
    "Consider using async filesystem operations for better performance and error handling."
)
SYMLINK_MESSAGE = (
    "Symlink operations should be validated to ensure they stay within workspace boundaries."
)

_KIND_BY_CLASSIFICATION = {
    ClassificationKind.OUTSIDE_WORKSPACE: DiagnosticKind.OUTSIDE_WORKSPACE,
    ClassificationKind.BLOCKED_PATH: DiagnosticKind.BLOCKED_PATH,
    ClassificationKind.BLOCKED_PATTERN: DiagnosticKind.BLOCKED_PATTERN,
}


def _path_message(kind: DiagnosticKind, matched_value: str) -> str:
    if kind == DiagnosticKind.OUTSIDE_WORKSPACE:
        return OUTSIDE_WORKSPACE_MESSAGE
    if kind == DiagnosticKind.BLOCKED_PATH:
        return BLOCKED_PATH_MESSAGE.format(value=matched_value)
    return BLOCKED_PATTERN_MESSAGE.format(value=matched_value)


def scan_line(line: str, line_number: int, policy: Policy) -> list[Diagnostic]:
    """
    Scan one line of text.

    Args:
        line: Line content without its terminator
        line_number: Zero-based line index used for ranges
        policy: Snapshot to classify against

    Returns:
        Path diagnostics left to right, then marker diagnostics
    """
    diagnostics = []

    for match in PATH_TOKEN_RE.finditer(line):
        path_value = match.group(1)
        token_range = Range.of(line_number, match.start(), match.end())
        for classification in classify(path_value, policy):
            kind = _KIND_BY_CLASSIFICATION[classification.kind]
            diagnostics.append(
                Diagnostic(
                    kind=kind,
                    range=token_range,
                    message=_path_message(kind, classification.matched_value),
                    matched_value=classification.matched_value,
                )
            )

    line_range = Range.of(line_number, 0, len(line))

    sync_marker = next((m for m in SYNC_OPERATION_MARKERS if m in line), None)
    if sync_marker is not None:
        diagnostics.append(
            Diagnostic(
                kind=DiagnosticKind.SYNC_OPERATION_WARNING,
                range=line_range,
                message=SYNC_OPERATION_MESSAGE,
                matched_value=sync_marker,
            )
        )

    symlink_marker = next((m for m in SYMLINK_MARKERS if m in line), None)
    if symlink_marker is not None:
        diagnostics.append(
            Diagnostic(
                kind=DiagnosticKind.SYMLINK_INFO,
                range=line_range,
                message=SYMLINK_MESSAGE,
                matched_value=symlink_marker,
            )
        )

    return diagnostics


def scan(text: str, policy: Policy) -> list[Diagnostic]:
    """
    Scan a whole document.

    Lines are split on ``\\n``; a trailing ``\\r`` is dropped so CRLF text
    yields the same columns as LF text.

    Args:
        text: Full document text
        policy: Snapshot to classify against

    Returns:
        Ordered diagnostic list (top to bottom, left to right)
    """
    diagnostics = []
    for line_number, line in enumerate(text.split("\n")):
        if line.endswith("\r"):
            line = line[:-1]
        diagnostics.extend(scan_line(line, line_number, policy))
    return diagnostics


def scan_document(text: str, policy: Policy, uri: str = "<text>") -> list[Diagnostic]:
    """
    Scan a document, turning any failure into an empty result.

    Used wherever one bad document must not stop the others.
    """
    try:
        return scan(text, policy)
    except Exception as e:
        console.print(f"[red]Scan failed for {uri}: {e}[/red]")
        return []


# ============================================================================
# Open-document tracking
# ============================================================================

@dataclass
class _Document:
    uri: str
    text: str
    version: Optional[int]
    diagnostics: list[Diagnostic]


class DiagnosticsEngine:
    """
    Keeps the diagnostics of every open document current.

    Open and change trigger a full re-scan of that document; a policy change
    from the store re-scans every open document; close clears the entry.
    Results are returned and also published to ``on_did_publish``
    subscribers as ``(uri, diagnostics)``.

    Args:
        store: PolicyStore supplying the current snapshot
        metrics: Optional logger receiving one record per scan
    """

    def __init__(self, store: PolicyStore, metrics: Optional[MetricsLogger] = None):
        self.store = store
        self.metrics = metrics
        self._documents: dict[str, _Document] = {}
        self._published: Emitter[tuple[str, list[Diagnostic]]] = Emitter()
        self._subscription: Subscription = store.on_did_change(self._on_policy_change)

    def open(self, uri: str, text: str, version: Optional[int] = None) -> list[Diagnostic]:
        """Start tracking a document and scan it."""
        document = _Document(uri=uri, text=text, version=version, diagnostics=[])
        self._documents[uri] = document
        return self._rescan(document, self.store.get_settings())

    def change(self, uri: str, text: str, version: Optional[int] = None) -> list[Diagnostic]:
        """
        Replace a document's text and re-scan it.

        A change whose version is older than the one already held is
        discarded and the current diagnostics are returned unchanged.
        Changing a document that was never opened opens it.
        """
        document = self._documents.get(uri)
        if document is None:
            return self.open(uri, text, version)

        if version is not None and document.version is not None and version < document.version:
            console.print(
                f"[dim]Discarding stale change for {uri} "
                f"(v{version} < v{document.version})[/dim]"
            )
            return list(document.diagnostics)

        document.text = text
        if version is not None:
            document.version = version
        return self._rescan(document, self.store.get_settings())

    def close(self, uri: str) -> None:
        """Stop tracking a document; its diagnostics become empty."""
        if self._documents.pop(uri, None) is not None:
            self._published.fire((uri, []))

    def diagnostics_for(self, uri: str) -> list[Diagnostic]:
        """Current diagnostics of a document (empty if not open)."""
        document = self._documents.get(uri)
        return list(document.diagnostics) if document is not None else []

    def open_documents(self) -> list[str]:
        return list(self._documents)

    def rescan_all(self, policy: Optional[Policy] = None) -> dict[str, list[Diagnostic]]:
        """
        Re-scan every open document against one snapshot.

        Args:
            policy: Snapshot to use (defaults to the store's current one)

        Returns:
            Diagnostics per URI
        """
        if policy is None:
            policy = self.store.get_settings()
        # _rescan never raises, so one document cannot stop the rest
        results = {}
        for uri, document in list(self._documents.items()):
            results[uri] = self._rescan(document, policy)
        return results

    def on_did_publish(
        self, subscriber: Callable[[tuple[str, list[Diagnostic]]], None]
    ) -> Subscription:
        """Register for ``(uri, diagnostics)`` after every scan or close."""
        return self._published.subscribe(subscriber)

    def dispose(self) -> None:
        self._subscription.dispose()
        self._published.dispose()
        self._documents.clear()

    def _on_policy_change(self, policy: Policy) -> None:
        self.rescan_all(policy)

    def _rescan(self, document: _Document, policy: Policy) -> list[Diagnostic]:
        started = time.perf_counter()
        failed = False
        try:
            diagnostics = scan(document.text, policy)
        except Exception as e:
            console.print(f"[red]Scan failed for {document.uri}: {e}[/red]")
            diagnostics = []
            failed = True

        document.diagnostics = diagnostics
        if self.metrics is not None:
            try:
                log_scan(
                    self.metrics,
                    document.uri,
                    diagnostics,
                    duration_seconds=time.perf_counter() - started,
                    failed=failed,
                )
            except Exception as e:
                console.print(f"[yellow]Could not log scan metrics for {document.uri}: {e}[/yellow]")
        self._published.fire((document.uri, list(diagnostics)))
        return list(diagnostics)
