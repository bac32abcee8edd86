"""
Metrics Logger for FsGuard.

Stores one structured record per document scan for later analysis.
"""

import json
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Union


@dataclass
class ScanMetrics:
    """Metrics for a single scan."""

    timestamp: str
    uri: str

    # Findings
    total: int
    by_severity: dict[str, int] = field(default_factory=dict)
    by_kind: dict[str, int] = field(default_factory=dict)

    # Outcome
    failed: bool = False
    duration_seconds: Optional[float] = None


class MetricsLogger:
    """
    Persistent metrics logger.

    Writes JSON lines to a file for later analysis.
    """

    def __init__(self, path: Union[str, Path] = "fsguard_metrics.jsonl"):
        self.path = Path(path)

    def log(self, metrics: ScanMetrics) -> None:
        """
        Append metrics to the log file.

        Args:
            metrics: Scan metrics to log
        """
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(metrics)) + "\n")

    def read_all(self) -> list[ScanMetrics]:
        """
        Read all logged metrics.

        Returns:
            List of ScanMetrics objects
        """
        if not self.path.exists():
            return []

        metrics = []
        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                if line.strip():
                    metrics.append(ScanMetrics(**json.loads(line)))
        return metrics

    def summary(self) -> dict:
        """
        Generate summary statistics.

        Returns:
            Dictionary of summary stats
        """
        all_metrics = self.read_all()

        if not all_metrics:
            return {"total_scans": 0}

        total = len(all_metrics)
        by_kind: Counter = Counter()
        by_severity: Counter = Counter()
        for m in all_metrics:
            by_kind.update(m.by_kind)
            by_severity.update(m.by_severity)

        return {
            "total_scans": total,
            "failed_scans": sum(1 for m in all_metrics if m.failed),
            "documents": len({m.uri for m in all_metrics}),
            "total_diagnostics": sum(m.total for m in all_metrics),
            "avg_diagnostics": sum(m.total for m in all_metrics) / total,
            "by_kind": dict(sorted(by_kind.items())),
            "by_severity": dict(sorted(by_severity.items())),
        }


def log_scan(
    logger: MetricsLogger,
    uri: str,
    diagnostics: Iterable,
    duration_seconds: Optional[float] = None,
    failed: bool = False,
) -> ScanMetrics:
    """
    Record the outcome of one scan.

    Args:
        logger: Destination log
        uri: Scanned document
        diagnostics: Diagnostics the scan produced
        duration_seconds: Optional scan duration
        failed: Whether the scan raised and was degraded to empty

    Returns:
        The record that was written
    """
    diagnostics = list(diagnostics)
    metrics = ScanMetrics(
        timestamp=datetime.now(timezone.utc).isoformat(),
        uri=uri,
        total=len(diagnostics),
        by_severity=dict(Counter(d.severity.value for d in diagnostics)),
        by_kind=dict(Counter(d.kind.value for d in diagnostics)),
        failed=failed,
        duration_seconds=duration_seconds,
    )
    logger.log(metrics)
    return metrics
