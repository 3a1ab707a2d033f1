# filemon/config/loader.py
"""
Configuration loader for filemon.

Responsibilities:
- Load packaged defaults
- Load user config (optional)
- Apply keyword overrides (CLI flags)
- Expand ${ENV_VAR} placeholders
- Validate via schema, reporting every bad field in one ConfigError
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from filemon.config.schema import WatcherConfig
from filemon.exceptions import ConfigError
from filemon.logging.logger import get_logger
from filemon.logging.tags import CONFIG

logger = get_logger(__name__)


DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return _expand_env(data)


def _format_errors(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{field}: {err.get('msg')}")
    return "; ".join(parts)


def validate_config(data: dict) -> WatcherConfig:
    """Build a WatcherConfig, turning pydantic errors into ConfigError."""
    try:
        return WatcherConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid watcher configuration: {_format_errors(e)}") from e


def load_config(path: str | Path | None = None, **overrides: Any) -> WatcherConfig:
    """
    Load and validate the watcher configuration.

    Precedence:
    - defaults
    - user config file
    - keyword overrides (None values are ignored)
    """
    logger.debug(f"{CONFIG}Loading default config from {DEFAULT_CONFIG_PATH}")
    data = _load_yaml(DEFAULT_CONFIG_PATH)

    if path is not None:
        logger.debug(f"{CONFIG}Loading user config from {path}")
        data.update(_load_yaml(Path(path)))

    data.update({k: v for k, v in overrides.items() if v is not None})

    return validate_config(_expand_env(data))


__all__ = ["DEFAULT_CONFIG_PATH", "load_config", "validate_config"]
