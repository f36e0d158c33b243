"""
config.py — runtime settings for hammadde-usage

Sources, lowest priority first:
    1. built-in defaults
    2. a JSON config file (--config, $HAMMADDE_USAGE_CONFIG, or
       ./hammadde-usage.json when present)
    3. $HAMMADDE_USAGE_STORE_DIR for the project store location
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

CONFIG_ENV_VAR = "HAMMADDE_USAGE_CONFIG"
STORE_DIR_ENV_VAR = "HAMMADDE_USAGE_STORE_DIR"
DEFAULT_CONFIG_NAME = "hammadde-usage.json"
DEFAULT_STORE_DIR = ".hammadde-usage/projects"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    store_dir: str = DEFAULT_STORE_DIR
    # Percent band around zero that still counts as a match.
    near_match_threshold: float = 10.0
    sample_rows: int = 10
    branch_distinct_ratio_max: float = 0.8
    product_distinct_ratio_min: float = 0.3
    max_header_scan_rows: int = 20

    @property
    def store_path(self) -> Path:
        return Path(self.store_dir).expanduser()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


DEFAULT_SETTINGS = Settings()

_FIELD_TYPES = {
    "store_dir": str,
    "near_match_threshold": (int, float),
    "sample_rows": int,
    "branch_distinct_ratio_max": (int, float),
    "product_distinct_ratio_min": (int, float),
    "max_header_scan_rows": int,
}


def settings_from_mapping(payload: Mapping[str, Any], base: Settings = DEFAULT_SETTINGS) -> Settings:
    known = {item.name for item in fields(Settings)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    updates: dict[str, Any] = {}
    for key, value in payload.items():
        expected = _FIELD_TYPES[key]
        if isinstance(value, bool) or not isinstance(value, expected):
            raise ConfigError(f"Config key '{key}' has invalid value {value!r}")
        updates[key] = float(value) if expected == (int, float) else value

    settings = replace(base, **updates)
    if settings.sample_rows < 1 or settings.max_header_scan_rows < 1:
        raise ConfigError("sample_rows and max_header_scan_rows must be at least 1")
    if not 0 <= settings.product_distinct_ratio_min <= 1 or not 0 <= settings.branch_distinct_ratio_max <= 1:
        raise ConfigError("Distinct-value ratios must be between 0 and 1")
    if settings.near_match_threshold < 0:
        raise ConfigError("near_match_threshold must not be negative")
    return settings


def resolve_config_path(explicit: str | Path | None = None, env: Mapping[str, str] | None = None) -> Path | None:
    env = os.environ if env is None else env
    if explicit:
        return Path(explicit)
    if env.get(CONFIG_ENV_VAR):
        return Path(env[CONFIG_ENV_VAR])
    default_path = Path.cwd() / DEFAULT_CONFIG_NAME
    return default_path if default_path.exists() else None


def load_settings(path: str | Path | None = None, env: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if env is None else env
    settings = DEFAULT_SETTINGS
    config_path = resolve_config_path(path, env)
    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(f"Config not found: {config_path}")
        try:
            payload = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Could not read config {config_path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ConfigError("Config root must be a JSON object.")
        settings = settings_from_mapping(payload, settings)

    store_override = env.get(STORE_DIR_ENV_VAR)
    if store_override:
        settings = replace(settings, store_dir=store_override)
    return settings


def starter_config() -> dict[str, Any]:
    return DEFAULT_SETTINGS.to_dict()
