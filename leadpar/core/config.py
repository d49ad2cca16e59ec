from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from leadpar.core.models import DEFAULT_MIN_SPACES

DEFAULT_COUNT = 3
DEFAULT_TIMEOUT = 30
DEFAULT_RETRIES = 3
DEFAULT_BACKOFF_FACTOR = 0.5
DEFAULT_MAX_BYTES = 1024 * 1024
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; LeadPar/1.0)"
DEFAULT_REPLY_MAX_LENGTH = 400

ENTITY_DECODERS = ("reference", "builtin")
TRUNCATE_MODES = ("truncate", "split", "none")

# env var -> config key
_ENV_KEYS = {
    "LP_MIN_SPACES": "min_spaces",
    "LP_STRIP": "strip",
    "LP_STRIP_REGEX": "strip_regex",
    "LP_COUNT": "count",
    "LP_TIMEOUT": "timeout",
    "LP_RETRIES": "retries",
    "LP_BACKOFF_FACTOR": "backoff_factor",
    "LP_MAX_BYTES": "max_bytes",
    "LP_USER_AGENT": "user_agent",
    "LP_ENTITY_DECODER": "entity_decoder",
    "LP_REPLY_MAX_LENGTH": "reply_max_length",
    "LP_TRUNCATE": "truncate",
}


class ConfigError(ValueError):
    """Raised when a configuration file or value cannot be used."""


def load_config_file(path: Optional[str | Path]) -> Dict[str, Any]:
    """Load a YAML/JSON config file into a dict; a missing path yields ``{}``."""
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        return {}

    try:
        with p.open("r", encoding="utf-8") as f:
            if p.suffix.lower() in (".yml", ".yaml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot read config {p}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config {p} must contain a mapping, got {type(data).__name__}")
    return data


def load_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect ``LP_*`` environment variables under their config keys."""
    env = os.environ if environ is None else environ
    out: Dict[str, Any] = {}
    for var, key in _ENV_KEYS.items():
        value = env.get(var)
        if value is not None and value != "":
            out[key] = value
    return out


def merge_config(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Merge config layers left to right; ``None`` values never override."""
    merged: Dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        for k, v in layer.items():
            if v is not None:
                merged[k] = v
    return merged


def _as_int(conf: Mapping[str, Any], key: str, default: int, minimum: Optional[int] = None) -> int:
    raw = conf.get(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from e
    if minimum is not None and value < minimum:
        raise ConfigError(f"{key} must be >= {minimum}, got {value}")
    return value


def _as_float(conf: Mapping[str, Any], key: str, default: float) -> float:
    raw = conf.get(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from e


def _as_choice(conf: Mapping[str, Any], key: str, default: str, choices: tuple) -> str:
    value = str(conf.get(key) or default).strip().lower()
    if value not in choices:
        raise ConfigError(f"{key} must be one of {', '.join(choices)}, got {value!r}")
    return value


@dataclass(frozen=True)
class AppConfig:
    """Typed runtime configuration resolved once from file, env and CLI layers."""

    min_spaces: int = DEFAULT_MIN_SPACES
    strip: Optional[str] = None
    strip_regex: bool = False
    count: int = DEFAULT_COUNT
    timeout: int = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    max_bytes: int = DEFAULT_MAX_BYTES
    user_agent: str = DEFAULT_USER_AGENT
    entity_decoder: str = "reference"
    reply_max_length: int = DEFAULT_REPLY_MAX_LENGTH
    truncate: str = "truncate"

    @classmethod
    def from_mapping(cls, conf: Optional[Mapping[str, Any]]) -> "AppConfig":
        conf = dict(conf or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(conf) - known)
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
        strip = conf.get("strip")
        strip_regex = conf.get("strip_regex", False)
        if isinstance(strip_regex, str):
            strip_regex = strip_regex.strip().lower() in {"1", "true", "yes", "on"}
        if strip and strip_regex:
            try:
                re.compile(str(strip))
            except re.error as e:
                raise ConfigError(f"strip is not a valid regex: {e}") from e
        return cls(
            # negative values are clamped later by ExtractOptions, not rejected
            min_spaces=_as_int(conf, "min_spaces", DEFAULT_MIN_SPACES),
            strip=str(strip) if strip else None,
            strip_regex=bool(strip_regex),
            count=_as_int(conf, "count", DEFAULT_COUNT, minimum=0),
            timeout=_as_int(conf, "timeout", DEFAULT_TIMEOUT, minimum=1),
            retries=_as_int(conf, "retries", DEFAULT_RETRIES, minimum=0),
            backoff_factor=_as_float(conf, "backoff_factor", DEFAULT_BACKOFF_FACTOR),
            max_bytes=_as_int(conf, "max_bytes", DEFAULT_MAX_BYTES, minimum=1),
            user_agent=str(conf.get("user_agent") or DEFAULT_USER_AGENT),
            entity_decoder=_as_choice(conf, "entity_decoder", "reference", ENTITY_DECODERS),
            reply_max_length=_as_int(conf, "reply_max_length", DEFAULT_REPLY_MAX_LENGTH, minimum=8),
            truncate=_as_choice(conf, "truncate", "truncate", TRUNCATE_MODES),
        )


def load_app_config(
    path: Optional[str | Path] = None, overrides: Optional[Mapping[str, Any]] = None
) -> AppConfig:
    """File, then ``LP_*`` env, then explicit overrides (e.g. CLI options)."""
    return AppConfig.from_mapping(merge_config(load_config_file(path), load_env(), overrides))
