"""
Path Classifier for FsGuard.

Maps a candidate path string and a policy snapshot to every violation
category it falls under. Pure and deterministic: rules are evaluated in a
fixed order and every applicable match is returned, not just the first.
"""

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from fsguard.policy.rules import WORKSPACE_FOLDER_PLACEHOLDER, Policy


# Literal that marks a path as workspace-relative
WORKSPACE_TOKEN = "workspace"

# Windows drive (C:\ or C:/) or UNC share (\\server)
_WINDOWS_ABSOLUTE_RE = re.compile(r"^(?:[A-Za-z]:[\\/]|\\\\)")
_DRIVE_RE = re.compile(r"[A-Za-z]:")


class ClassificationKind(str, Enum):
    OUTSIDE_WORKSPACE = "OutsideWorkspace"
    BLOCKED_PATH = "BlockedPath"
    BLOCKED_PATTERN = "BlockedPattern"


@dataclass(frozen=True)
class Classification:
    """A single rule that a path matched."""

    kind: ClassificationKind
    matched_value: str


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> re.Pattern:
    """
    Compile a ``*``-only glob into a regular expression.

    Every regex metacharacter is escaped; ``*`` becomes ``.*``. The result is
    meant for ``search`` (unanchored), so ``*.key`` also matches
    ``api.key.bak``.
    """
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")))


def is_absolute_path(path_value: str) -> bool:
    """True for POSIX absolute paths, Windows drive paths and UNC shares."""
    return path_value.startswith("/") or bool(_WINDOWS_ABSOLUTE_RE.match(path_value))


def _normalize(path_value: str) -> str:
    stripped = path_value.replace("\\", "/").rstrip("/")
    # Filesystem and drive roots keep their separator
    if stripped == "" or _DRIVE_RE.fullmatch(stripped):
        return stripped + "/"
    return stripped


def is_workspace_relative(path_value: str, policy: Policy) -> bool:
    """
    Whether a path is tied to the workspace.

    True when the path mentions ``workspace``, contains the
    ``${workspaceFolder}`` placeholder, or sits under the configured
    absolute workspace root.
    """
    if WORKSPACE_TOKEN in path_value or WORKSPACE_FOLDER_PLACEHOLDER in path_value:
        return True

    root = policy.security.workspace_root
    if root and root != WORKSPACE_FOLDER_PLACEHOLDER and is_absolute_path(root):
        normalized_root = _normalize(root)
        normalized_path = _normalize(path_value)
        prefix = normalized_root if normalized_root.endswith("/") else normalized_root + "/"
        if normalized_path == normalized_root or normalized_path.startswith(prefix):
            return True

    return False


def classify(path_value: str, policy: Policy) -> list[Classification]:
    """
    Classify a path against the policy.

    Order is fixed: OutsideWorkspace, then BlockedPath entries in policy
    order, then BlockedPattern entries in policy order.

    Args:
        path_value: Path text without surrounding quotes
        policy: Snapshot to evaluate against

    Returns:
        Every classification that applies (possibly empty)
    """
    results = []
    security = policy.security

    if is_absolute_path(path_value) and not is_workspace_relative(path_value, policy):
        results.append(Classification(ClassificationKind.OUTSIDE_WORKSPACE, path_value))

    for blocked in security.blocked_paths:
        # An empty entry would match everything
        if blocked and blocked in path_value:
            results.append(Classification(ClassificationKind.BLOCKED_PATH, blocked))

    for pattern in security.blocked_patterns:
        if pattern and compile_glob(pattern).search(path_value):
            results.append(Classification(ClassificationKind.BLOCKED_PATTERN, pattern))

    return results


def classification_kinds(path_value: str, policy: Policy) -> set[ClassificationKind]:
    """Distinct categories a path falls under."""
    return {c.kind for c in classify(path_value, policy)}
