"""
Kernel settings (``inventory_kernel.config``).

Responsibility
--------------
Loads the runtime settings of the kernel (database URL, pool sizing,
logging level) from a YAML file and applies environment overrides.
``get_settings()`` is the runtime entry point (the CLI uses it unless
``--config`` names a file); nothing outside this module reads
environment variables.

Failure modes
-------------
* Explicit path that does not exist  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Top-level YAML that is not a mapping, or unknown keys  -> ``ValueError``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///inventory.db"

ENV_CONFIG_PATH = "INVENTORY_CONFIG"
ENV_DATABASE_URL = "INVENTORY_DATABASE_URL"
ENV_LOG_LEVEL = "INVENTORY_LOG_LEVEL"
ENV_SQL_ECHO = "INVENTORY_SQL_ECHO"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class KernelSettings:
    """Immutable runtime settings."""

    database_url: str = DEFAULT_DATABASE_URL
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5
    pool_timeout: int = 30
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KernelSettings:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown settings key(s): {', '.join(unknown)}")
        return cls(**data)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML settings file and return its top-level mapping.

    The kernel's keys may sit at the top level or under an ``inventory``
    section, so the file can be shared with other tools.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    section = data.get("inventory", data)
    if not isinstance(section, dict):
        raise ValueError(f"Section 'inventory' in {path} must be a mapping")
    return section


def _apply_env(settings: KernelSettings, environ: dict[str, str]) -> KernelSettings:
    overrides: dict[str, Any] = {}
    if environ.get(ENV_DATABASE_URL):
        overrides["database_url"] = environ[ENV_DATABASE_URL]
    if environ.get(ENV_LOG_LEVEL):
        overrides["log_level"] = environ[ENV_LOG_LEVEL].upper()
    if environ.get(ENV_SQL_ECHO):
        overrides["echo"] = environ[ENV_SQL_ECHO].lower() in _TRUE_VALUES
    return replace(settings, **overrides) if overrides else settings


def load_settings(
    path: Path | str | None = None,
    environ: dict[str, str] | None = None,
) -> KernelSettings:
    """
    Build settings from an optional YAML file plus environment overrides.

    Args:
        path: YAML file.  Falls back to ``$INVENTORY_CONFIG``; with neither,
            the dataclass defaults are used.
        environ: Environment mapping (defaults to ``os.environ``).
    """
    environ = dict(os.environ) if environ is None else environ
    if path is None and environ.get(ENV_CONFIG_PATH):
        path = environ[ENV_CONFIG_PATH]

    settings = KernelSettings()
    if path is not None:
        settings = KernelSettings.from_dict(load_yaml_file(Path(path)))
    return _apply_env(settings, environ)


_active: KernelSettings | None = None


def get_settings() -> KernelSettings:
    """Return the process-wide settings, loading them on first use."""
    global _active
    if _active is None:
        _active = load_settings()
    return _active


def reset_settings() -> None:
    """Forget cached settings. FOR TESTING ONLY."""
    global _active
    _active = None
