"""
Policy Rules Configuration for FsGuard.

The Policy is the validated configuration snapshot that governs:
- Which paths count as blocked (substrings and glob patterns)
- Where the workspace boundary lies
- Resource limits handed to the operations executor
- Editor UI toggles

Snapshots are frozen. An update produces a brand-new Policy.
"""

import json
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Mapping

from fsguard.errors import InvalidSettingsError


# Substrings that mark a path as forbidden
BLOCKED_PATHS = (
    ".git",
    ".env",
    "node_modules",
    ".ssh",
)

# Glob patterns (``*`` wildcard only) for sensitive files
BLOCKED_PATTERNS = (
    "*.key",
    "*.pem",
    "*.env",
    "*secret*",
    "*password*",
)

# Placeholder resolved by the editor host to the open folder
WORKSPACE_FOLDER_PLACEHOLDER = "${workspaceFolder}"

# Keys used by older releases, read as aliases
LEGACY_KEY_ALIASES = {
    "resources.maxFileSize": "security.maxFileSize",
    "resources.maxBatchSize": "security.maxBatchSize",
    "resources.maxOperationsPerMinute": "security.maxOperationsPerMinute",
}


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True)
class ServerSettings:
    server_path: str = ""  # empty = auto-detect
    auto_start: bool = True
    timeout: int = 30000  # ms
    log_level: LogLevel = LogLevel.INFO


@dataclass(frozen=True)
class SecuritySettings:
    workspace_root: str = WORKSPACE_FOLDER_PLACEHOLDER
    allowed_subdirectories: tuple[str, ...] = ()
    blocked_paths: tuple[str, ...] = BLOCKED_PATHS
    blocked_patterns: tuple[str, ...] = BLOCKED_PATTERNS

    # Resource limits
    max_file_size: int = 104857600  # 100 MB
    max_batch_size: int = 1073741824  # 1 GB
    max_operations_per_minute: int = 100


@dataclass(frozen=True)
class OperationsSettings:
    enable_batch: bool = True
    enable_watch: bool = True
    enable_search: bool = True
    enable_checksum: bool = True


@dataclass(frozen=True)
class UISettings:
    refresh_interval: int = 5000  # ms, 0 = never
    show_notifications: bool = True
    show_security_warnings: bool = True
    confirm_dangerous_operations: bool = True


SECTIONS = ("server", "security", "operations", "ui")


@dataclass(frozen=True)
class Policy:
    """
    Immutable configuration snapshot.

    Build one with ``Policy.from_mapping`` to get type coercion; the plain
    constructor performs none, so ``validate_policy`` guards against bad types.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    operations: OperationsSettings = field(default_factory=OperationsSettings)
    ui: UISettings = field(default_factory=UISettings)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "Policy":
        """
        Build a policy from flat dotted config keys merged onto the defaults.

        Args:
            values: Mapping such as {"security.blockedPaths": [".git"]}

        Returns:
            New Policy

        Raises:
            InvalidSettingsError: Unknown keys or uncoercible values
        """
        return merge_settings(DEFAULT_POLICY, values)

    def with_changes(self, values: Mapping[str, Any]) -> "Policy":
        """
        Independent copy with some settings changed.

        Args:
            values: Flat dotted keys or nested sections, as for updates

        Returns:
            New Policy; this one is left as it was

        Raises:
            InvalidSettingsError: Unknown keys or uncoercible values
        """
        return merge_settings(self, values)

    def to_flat(self) -> dict[str, Any]:
        """Flat dotted-key view with JSON-friendly values."""
        flat = {}
        for key, (section, attr) in CONFIG_KEYS.items():
            value = getattr(getattr(self, section), attr)
            if isinstance(value, tuple):
                value = list(value)
            elif isinstance(value, LogLevel):
                value = value.value
            flat[key] = value
        return flat

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Nested, freely mutable copy keyed by section and camelCase name."""
        nested: dict[str, dict[str, Any]] = {section: {} for section in SECTIONS}
        for key, value in self.to_flat().items():
            section, name = key.split(".", 1)
            nested[section][name] = value
        return nested


# ============================================================================
# Config key mapping
# ============================================================================

def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


_SECTION_TYPES = {
    "server": ServerSettings,
    "security": SecuritySettings,
    "operations": OperationsSettings,
    "ui": UISettings,
}

# "security.blockedPaths" -> ("security", "blocked_paths")
CONFIG_KEYS: dict[str, tuple[str, str]] = {
    f"{section}.{_camel(f.name)}": (section, f.name)
    for section, section_type in _SECTION_TYPES.items()
    for f in fields(section_type)
}

_FIELD_TYPES: dict[str, Any] = {
    f"{section}.{_camel(f.name)}": f.type
    for section, section_type in _SECTION_TYPES.items()
    for f in fields(section_type)
}


def normalize_key(key: str) -> str:
    """
    Map a dotted key in any accepted spelling to its canonical form.

    Accepts camelCase or snake_case field names and legacy aliases.
    Unknown keys are returned unchanged.
    """
    key = LEGACY_KEY_ALIASES.get(key, key)
    if key in CONFIG_KEYS:
        return key
    if "." in key:
        section, name = key.split(".", 1)
        candidate = f"{section}.{_camel(name)}"
        candidate = LEGACY_KEY_ALIASES.get(candidate, candidate)
        if candidate in CONFIG_KEYS:
            return candidate
    return key


def flatten_settings(values: Mapping[str, Any]) -> dict[str, Any]:
    """
    Flatten a nested-by-section mapping into dotted keys.

    Mappings that are already flat pass through. Keys are normalized.
    """
    flat: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, Mapping) and "." not in key:
            for name, inner in value.items():
                flat[normalize_key(f"{key}.{name}")] = inner
        else:
            flat[normalize_key(key)] = value
    return flat


# ============================================================================
# Coercion
# ============================================================================

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


def _coerce(key: str, value: Any, expected: Any) -> Any:
    if expected is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS | _FALSE_STRINGS:
            return value.strip().lower() in _TRUE_STRINGS
        raise ValueError(f"{key} must be a boolean")

    if expected is int:
        if isinstance(value, bool):
            raise ValueError(f"{key} must be an integer")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                pass
        raise ValueError(f"{key} must be an integer")

    if expected is str:
        if isinstance(value, str):
            return value
        raise ValueError(f"{key} must be a string")

    if expected is LogLevel:
        try:
            return LogLevel(str(value.value if isinstance(value, LogLevel) else value).lower())
        except ValueError:
            allowed = "|".join(level.value for level in LogLevel)
            raise ValueError(f"{key} must be one of {allowed}") from None

    # tuple[str, ...]
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                value = json.loads(text)
            except json.JSONDecodeError:
                raise ValueError(f"{key} must be a list of strings") from None
        else:
            value = [part.strip() for part in text.split(",") if part.strip()]
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise ValueError(f"{key} must be a list of strings")


def _resolve_type(annotation: Any) -> Any:
    if annotation in (bool, int, str, LogLevel):
        return annotation
    # String annotations are not used in this module; anything else is a list
    return tuple


def merge_settings(base: Policy, values: Mapping[str, Any]) -> Policy:
    """
    Overlay flat or nested config values onto a policy.

    All problems are accumulated before raising, so a single error lists
    every bad key.

    Args:
        base: Snapshot providing values for keys not in ``values``
        values: Overrides (flat dotted keys or nested by section)

    Returns:
        New Policy

    Raises:
        InvalidSettingsError: Unknown keys or uncoercible values
    """
    errors = []
    changes: dict[str, dict[str, Any]] = {section: {} for section in SECTIONS}

    for key, value in flatten_settings(values).items():
        if key not in CONFIG_KEYS:
            errors.append(f"Unknown setting: {key}")
            continue
        section, attr = CONFIG_KEYS[key]
        try:
            changes[section][attr] = _coerce(key, value, _resolve_type(_FIELD_TYPES[key]))
        except ValueError as e:
            errors.append(str(e))

    if errors:
        raise InvalidSettingsError(errors)

    return Policy(
        server=replace(base.server, **changes["server"]),
        security=replace(base.security, **changes["security"]),
        operations=replace(base.operations, **changes["operations"]),
        ui=replace(base.ui, **changes["ui"]),
    )


# Default policy instance
DEFAULT_POLICY = Policy()
