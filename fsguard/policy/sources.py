"""
Configuration Sources for FsGuard.

A source yields flat dotted config keys (``security.blockedPaths``) and may
accept writes. The PolicyStore merges whatever a source returns onto the
declared defaults.
"""

import json
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Union

from dotenv import load_dotenv

from fsguard.errors import ConfigReadError, ConfigWriteError
from fsguard.policy.rules import CONFIG_KEYS, LEGACY_KEY_ALIASES, flatten_settings

# Section name used when settings live inside a larger JSON document
CONFIG_SECTION = "fsguard"

ENV_PREFIX = "FSGUARD_"


class ConfigSource(Protocol):
    """Anything the PolicyStore can read settings from."""

    def read(self) -> Mapping[str, Any]:
        ...

    def write(self, values: Mapping[str, Any]) -> None:
        ...


class MappingConfigSource:
    """In-memory source backed by a dict."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self.values: dict[str, Any] = flatten_settings(values or {})

    def read(self) -> Mapping[str, Any]:
        return dict(self.values)

    def write(self, values: Mapping[str, Any]) -> None:
        self.values.update(flatten_settings(values))

    def __repr__(self) -> str:
        return "MappingConfigSource()"


class JsonFileConfigSource:
    """
    JSON settings file.

    Accepts nested sections (``{"security": {"blockedPaths": [...]}}``),
    flat dotted keys, or either form under a top-level ``"fsguard"`` key.
    A missing file reads as empty.
    """

    def __init__(self, path: Union[str, Path], section: str = CONFIG_SECTION):
        self.path = Path(path)
        self.section = section

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("settings file must contain a JSON object")
        return data

    def read(self) -> Mapping[str, Any]:
        try:
            data = self._load()
        except (OSError, ValueError) as e:
            raise ConfigReadError(str(self.path), e) from e

        if isinstance(data.get(self.section), dict):
            data = data[self.section]
        return flatten_settings(data)

    def write(self, values: Mapping[str, Any]) -> None:
        try:
            data = self._load()
            wrapped = isinstance(data.get(self.section), dict)
            current = flatten_settings(data[self.section] if wrapped else data)
            current.update(flatten_settings(values))

            nested: dict[str, dict[str, Any]] = {}
            for key, value in current.items():
                section, name = key.split(".", 1)
                nested.setdefault(section, {})[name] = value

            if wrapped:
                data[self.section] = nested
            else:
                data = nested
            self.path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        except (OSError, ValueError) as e:
            raise ConfigWriteError(str(self.path), e) from e

    def __repr__(self) -> str:
        return f"JsonFileConfigSource({str(self.path)!r})"


def env_var_name(key: str, prefix: str = ENV_PREFIX) -> str:
    """
    Environment variable for a config key.

    ``security.blockedPaths`` -> ``FSGUARD_SECURITY_BLOCKED_PATHS``
    """
    section, name = key.split(".", 1)
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", name)
    return f"{prefix}{section}_{snake}".upper()


class EnvConfigSource:
    """
    Settings from environment variables, after loading a ``.env`` file.

    Values arrive as strings and are coerced when the policy is built.
    Read-only: writes are rejected.
    """

    def __init__(
        self,
        prefix: str = ENV_PREFIX,
        dotenv_path: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.prefix = prefix
        self.dotenv_path = dotenv_path
        self._environ = environ

    def read(self) -> Mapping[str, Any]:
        if self._environ is None:
            load_dotenv(self.dotenv_path, override=False)
        environ = os.environ if self._environ is None else self._environ

        values = {}
        keys = list(LEGACY_KEY_ALIASES) + list(CONFIG_KEYS)
        for key in keys:
            name = env_var_name(key, self.prefix)
            if name in environ:
                values[LEGACY_KEY_ALIASES.get(key, key)] = environ[name]
        return values

    def write(self, values: Mapping[str, Any]) -> None:
        raise ConfigWriteError(repr(self), PermissionError("environment is read-only"))

    def __repr__(self) -> str:
        return f"EnvConfigSource(prefix={self.prefix!r})"


class LayeredConfigSource:
    """
    Several sources merged in order; later layers override earlier ones.

    Writes go to the first (base) layer.
    """

    def __init__(self, *layers: ConfigSource):
        if not layers:
            raise ValueError("LayeredConfigSource needs at least one layer")
        self.layers = layers

    def read(self) -> Mapping[str, Any]:
        merged: dict[str, Any] = {}
        for layer in self.layers:
            merged.update(layer.read())
        return merged

    def write(self, values: Mapping[str, Any]) -> None:
        self.layers[0].write(values)

    def __repr__(self) -> str:
        inner = ", ".join(repr(layer) for layer in self.layers)
        return f"LayeredConfigSource({inner})"
