"""Config I/O utilities.

Settings are layered: file (JSON or YAML) -> ``ROM_AUDIT_*`` environment
variables -> explicit overrides (command line).
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import pydantic
import yaml

from ..exceptions import ConfigurationError, ValidationError
from .models import AuditConfig, validate_config

logger = logging.getLogger(__name__)

ENV_CONFIG_PATH = "ROM_AUDIT_CONFIG"

# env var -> (dotted config key, converter)
_ENV_OVERRIDES = {
    "ROM_AUDIT_CATALOG": ("catalog_path", str),
    "ROM_AUDIT_ROMS_DIR": ("roms_dir", str),
    "ROM_AUDIT_WORKERS": ("workers", int),
    "ROM_AUDIT_VERIFY_SHA1": ("verify_sha1", lambda v: v.strip().lower() in ("1", "true", "yes", "on")),
    "ROM_AUDIT_LOG_LEVEL": ("logging.level", str),
    "ROM_AUDIT_LOG_DIR": ("logging.log_dir", str),
}


def _parse_config_file(path: Path, raw: str) -> Dict[str, Any]:
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Config file is not valid: {exc}", file_path=str(path)) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Config file must contain a mapping", file_path=str(path))
    return data


def read_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Raw config mapping; empty when no file is configured."""
    if config_path is None:
        config_path = os.environ.get(ENV_CONFIG_PATH) or None
    if config_path is None:
        return {}
    path = Path(config_path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file: {exc}", file_path=str(path)) from exc
    logger.debug("Loaded config file %s", path)
    return _parse_config_file(path, raw)


def _set_dotted(data: Dict[str, Any], key: str, value: Any) -> None:
    parts = key.split(".")
    target = data
    for part in parts[:-1]:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child
    target[parts[-1]] = value


def apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(data)
    for env_name, (key, convert) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or not raw.strip():
            continue
        try:
            value = convert(raw)
        except ValueError as exc:
            raise ValidationError(f"Invalid value for {env_name}: {raw!r}", field_name=key) from exc
        _set_dotted(merged, key, value)
    return merged


def _validate(payload: Dict[str, Any]) -> AuditConfig:
    try:
        return validate_config(payload)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        field_name = ".".join(str(p) for p in first.get("loc", ()))
        raise ValidationError(f"Invalid configuration: {exc}", field_name=field_name or None) from exc


def load_config(config_path: Optional[str] = None) -> AuditConfig:
    """Load and validate configuration from file and environment."""
    data = apply_env_overrides(read_config_file(config_path))
    return _validate(data)


def merge_overrides(config: AuditConfig, overrides: Dict[str, Any]) -> AuditConfig:
    """Return a new validated config with non-``None`` dotted overrides applied."""
    data = config.model_dump()
    for key, value in overrides.items():
        if value is not None:
            _set_dotted(data, key, value)
    return _validate(data)
