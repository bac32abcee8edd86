"""
Metrics and Observability for FsGuard.

Tracks per-scan outcomes:
- Findings per severity and kind
- Failed scans
- Scan duration
"""

from fsguard.metrics.logger import MetricsLogger, ScanMetrics, log_scan

__all__ = ["log_scan", "MetricsLogger", "ScanMetrics"]
