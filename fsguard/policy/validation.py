"""
Policy Validation for FsGuard.

Checks cross-field invariants, not just per-field bounds. Every violation is
accumulated; nothing short-circuits. The check is pure, so calling it twice
on the same snapshot yields identical results.
"""

from dataclasses import dataclass, field

from fsguard.errors import InvalidSettingsError
from fsguard.policy.rules import LogLevel, Policy


# Bounds
MIN_TIMEOUT_MS = 1000
HIGH_TIMEOUT_MS = 300000  # 5 minutes
MIN_FILE_SIZE = 1024
HIGH_FILE_SIZE = 10_000_000_000  # 10 GB
MIN_OPERATIONS_PER_MINUTE = 1
HIGH_OPERATIONS_PER_MINUTE = 1000
LOW_REFRESH_INTERVAL_MS = 1000


@dataclass
class ValidationResult:
    """Outcome of validating a candidate policy."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid

    def raise_if_invalid(self) -> "ValidationResult":
        """Raise InvalidSettingsError if validation failed."""
        if not self.valid:
            raise InvalidSettingsError(self.errors, self.warnings)
        return self


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_str_list(value) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)


def validate_policy(policy: Policy) -> ValidationResult:
    """
    Evaluate every invariant against a candidate policy.

    Args:
        policy: Candidate snapshot

    Returns:
        ValidationResult with all errors and all warnings
    """
    errors: list[str] = []
    warnings: list[str] = []

    server = policy.server
    security = policy.security
    ui = policy.ui

    # Server
    if not _is_int(server.timeout):
        errors.append("Server timeout must be an integer")
    else:
        if server.timeout < MIN_TIMEOUT_MS:
            errors.append(f"Server timeout must be at least {MIN_TIMEOUT_MS}ms")
        if server.timeout > HIGH_TIMEOUT_MS:
            warnings.append("Server timeout is very high (>5 minutes)")

    log_levels = {level.value for level in LogLevel}
    if not isinstance(server.log_level, str) or server.log_level not in log_levels:
        allowed = "|".join(level.value for level in LogLevel)
        errors.append(f"Log level must be one of {allowed}")

    # Security: sizes
    file_size_ok = _is_int(security.max_file_size)
    batch_size_ok = _is_int(security.max_batch_size)

    if not file_size_ok:
        errors.append("Max file size must be an integer")
    else:
        if security.max_file_size < MIN_FILE_SIZE:
            errors.append(f"Max file size must be at least {MIN_FILE_SIZE} bytes")
        if security.max_file_size > HIGH_FILE_SIZE:
            warnings.append("Max file size is very large (>10 GB)")

    if not batch_size_ok:
        errors.append("Max batch size must be an integer")
    elif file_size_ok and security.max_batch_size < security.max_file_size:
        errors.append("Max batch size must be at least as large as max file size")

    # Security: rate limit
    if not _is_int(security.max_operations_per_minute):
        errors.append("Max operations per minute must be an integer")
    else:
        if security.max_operations_per_minute < MIN_OPERATIONS_PER_MINUTE:
            errors.append(
                f"Max operations per minute must be at least {MIN_OPERATIONS_PER_MINUTE}"
            )
        if security.max_operations_per_minute > HIGH_OPERATIONS_PER_MINUTE:
            warnings.append(
                f"Max operations per minute is very high (>{HIGH_OPERATIONS_PER_MINUTE})"
            )

    # Security: path rules
    if not _is_str_list(security.blocked_paths):
        errors.append("Blocked paths must be a list of strings")
    elif len(security.blocked_paths) == 0:
        warnings.append(
            "No blocked paths configured - consider blocking sensitive directories"
        )

    if not _is_str_list(security.blocked_patterns):
        errors.append("Blocked patterns must be a list of strings")
    elif len(security.blocked_patterns) == 0:
        warnings.append(
            "No blocked patterns configured - consider blocking sensitive file patterns"
        )

    if not _is_str_list(security.allowed_subdirectories):
        errors.append("Allowed subdirectories must be a list of strings")

    # UI
    if not _is_int(ui.refresh_interval):
        errors.append("Refresh interval must be an integer")
    else:
        if ui.refresh_interval < 0:
            errors.append("Refresh interval cannot be negative")
        if 0 < ui.refresh_interval < LOW_REFRESH_INTERVAL_MS:
            warnings.append(
                "Refresh interval is very low (<1 second) - may impact performance"
            )

    return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)
