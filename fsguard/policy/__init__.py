"""
Policy Engine for FsGuard.

Owns the security configuration and its rules:
- Typed, immutable policy snapshots
- Cross-field validation
- Change propagation to dependents
- Path classification against blocked paths and patterns

The policy engine is deterministic and performs no filesystem I/O beyond
reading and writing its own settings file.
"""

from fsguard.policy.rules import BLOCKED_PATHS, BLOCKED_PATTERNS, DEFAULT_POLICY, Policy
from fsguard.policy.validation import ValidationResult, validate_policy
from fsguard.policy.classifier import Classification, ClassificationKind, classify
from fsguard.policy.store import PolicyStore

__all__ = [
    "BLOCKED_PATHS",
    "BLOCKED_PATTERNS",
    "Classification",
    "ClassificationKind",
    "DEFAULT_POLICY",
    "Policy",
    "PolicyStore",
    "ValidationResult",
    "classify",
    "validate_policy",
]
