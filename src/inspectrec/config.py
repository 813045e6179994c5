"""Runtime settings for inspectrec.

Settings are resolved in this order (first wins):

1. keyword overrides passed to :func:`load_settings`
2. ``INSPECTREC_*`` environment variables
3. a YAML settings file (``$XDG_CONFIG_HOME/inspectrec/config.yaml``)
4. built-in defaults

Example ``config.yaml``::

    data_path: ~/inspections/users_data.csv
    grammar: lenient
    capacity: 500
    audit_path: ~/inspections/audit.jsonl
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

__all__ = [
    "ConfigError",
    "FieldLimits",
    "Grammar",
    "Settings",
    "get_config_dir",
    "limits_for",
    "load_settings",
]

DEFAULT_CAPACITY = 1000
DATA_FILE_NAME = "users_data.csv"


class ConfigError(ValueError):
    """Raised when settings cannot be resolved."""


class Grammar(str, Enum):
    """Identifier/registration grammar in force for the whole store."""

    STRICT = "strict"
    LENIENT = "lenient"


@dataclass(frozen=True)
class FieldLimits:
    id_max_len: int
    reg_max_len: int
    owner_max_len: int
    date_max_len: int
    min_year: int
    max_year: int


_LIMITS = {
    Grammar.STRICT: FieldLimits(
        id_max_len=4,
        reg_max_len=7,
        owner_max_len=40,
        date_max_len=10,
        min_year=1990,
        max_year=2026,
    ),
    Grammar.LENIENT: FieldLimits(
        id_max_len=20,
        reg_max_len=20,
        owner_max_len=60,
        date_max_len=10,
        min_year=1880,
        max_year=2100,
    ),
}


def limits_for(grammar: Grammar) -> FieldLimits:
    return _LIMITS[Grammar(grammar)]


@dataclass(frozen=True)
class Settings:
    data_path: Path
    grammar: Grammar = Grammar.STRICT
    capacity: int = DEFAULT_CAPACITY
    audit_path: Optional[Path] = None
    lock: bool = True

    @property
    def limits(self) -> FieldLimits:
        return limits_for(self.grammar)


def _resolve_path(value: str) -> Path:
    return Path(os.path.expanduser(value)).resolve()


def get_config_dir() -> Path:
    config_home = Path(os.path.expanduser(os.getenv("XDG_CONFIG_HOME", "~/.config"))).resolve()
    return (config_home / "inspectrec").resolve()


def _settings_file(path: Optional[str]) -> Path:
    raw = (path or "").strip() or (os.getenv("INSPECTREC_CONFIG") or "").strip()
    if raw:
        return _resolve_path(raw)
    return get_config_dir() / "config.yaml"


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read settings file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    logger.debug("Loaded settings file %s", path)
    return data


def _env_settings() -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key in ("data_path", "grammar", "capacity", "audit_path", "lock"):
        raw = (os.getenv(f"INSPECTREC_{key.upper()}") or "").strip()
        if raw:
            out[key] = raw
    return out


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"Invalid boolean value: {value!r}")


def load_settings(path: Optional[str] = None, **overrides: Any) -> Settings:
    """Resolve :class:`Settings` from overrides, environment and settings file.

    Overrides equal to ``None`` are ignored so CLI flags can be passed through
    unconditionally.
    """
    merged: dict[str, Any] = {}
    merged.update(_read_settings_file(_settings_file(path)))
    merged.update(_env_settings())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    unknown = set(merged) - {"data_path", "grammar", "capacity", "audit_path", "lock"}
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

    try:
        grammar = Grammar(str(merged.get("grammar", Grammar.STRICT.value)).strip().lower())
    except ValueError as exc:
        valid = ", ".join(g.value for g in Grammar)
        raise ConfigError(f"Unknown grammar {merged.get('grammar')!r}. Valid: {valid}") from exc

    try:
        capacity = int(merged.get("capacity", DEFAULT_CAPACITY))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Capacity must be an integer: {merged.get('capacity')!r}") from exc
    if capacity <= 0:
        raise ConfigError("Capacity must be a positive integer")

    data_raw = merged.get("data_path")
    data_path = _resolve_path(str(data_raw)) if data_raw else get_config_dir() / DATA_FILE_NAME

    audit_raw = merged.get("audit_path")
    audit_path = _resolve_path(str(audit_raw)) if audit_raw else None

    return Settings(
        data_path=data_path,
        grammar=grammar,
        capacity=capacity,
        audit_path=audit_path,
        lock=_parse_bool(merged.get("lock", True)),
    )
