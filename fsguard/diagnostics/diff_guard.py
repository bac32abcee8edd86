"""
Diff Guard for FsGuard.

Runs the scanner over the lines a unified diff adds, so a patch can be
checked before it is merged. Removed and context lines are ignored; a patch
that only deletes a blocked reference is clean.
"""

from typing import Optional

from unidiff import PatchSet, UnidiffParseError

from fsguard.diagnostics.engine import scan_line
from fsguard.diagnostics.types import Diagnostic, Severity
from fsguard.errors import InvalidPatchError
from fsguard.policy.rules import DEFAULT_POLICY, Policy


def scan_patch(
    diff_text: str,
    policy: Optional[Policy] = None,
) -> dict[str, list[Diagnostic]]:
    """
    Scan the added lines of a unified diff.

    Args:
        diff_text: Unified diff string
        policy: Policy snapshot (uses default if not provided)

    Returns:
        Diagnostics per target file path, ranges using zero-based
        target-file line numbers. Files without findings are omitted.

    Raises:
        InvalidPatchError: Empty input, unparsable diff, or no file changes
    """
    if policy is None:
        policy = DEFAULT_POLICY

    if not diff_text or not diff_text.strip():
        raise InvalidPatchError("Empty or invalid patch")

    try:
        patch = PatchSet(diff_text)
    except UnidiffParseError as e:
        raise InvalidPatchError(f"Invalid diff format: {e}") from e

    if len(patch) == 0:
        raise InvalidPatchError("Patch contains no file changes")

    results: dict[str, list[Diagnostic]] = {}

    for patched_file in patch:
        if patched_file.is_removed_file:
            continue

        file_diagnostics = []
        for hunk in patched_file:
            for line in hunk:
                if not line.is_added:
                    continue
                content = line.value.rstrip("\r\n")
                file_diagnostics.extend(scan_line(content, line.target_line_no - 1, policy))

        if file_diagnostics:
            results[patched_file.path] = file_diagnostics

    return results


def is_patch_clean(
    diff_text: str,
    policy: Optional[Policy] = None,
) -> bool:
    """
    Quick check that a patch adds no Error-severity findings.

    Args:
        diff_text: Unified diff string
        policy: Policy snapshot

    Returns:
        True if nothing the patch adds is an error
    """
    findings = scan_patch(diff_text, policy)
    return not any(
        d.severity == Severity.ERROR
        for diagnostics in findings.values()
        for d in diagnostics
    )
