"""
FsGuard

Filesystem-access security policy engine: validated configuration with change
propagation, and deterministic text scanning for risky path references.
"""

__version__ = "0.1.0"

from fsguard.policy import Policy, PolicyStore
from fsguard.diagnostics import DiagnosticsEngine, fixes_for, scan

__all__ = ["DiagnosticsEngine", "Policy", "PolicyStore", "fixes_for", "scan", "__version__"]
