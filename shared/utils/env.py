from __future__ import annotations

import logging
import os
from typing import Any, Dict

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration values are invalid."""


def coerce_value(value: Any, target_type: type) -> Any:
    """Convert an environment string to the type of its default."""
    if isinstance(value, target_type):
        return value
    if target_type is bool:
        return str(value).strip().lower() in ("1", "true", "yes", "on")
    try:
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot convert {value!r} to {target_type.__name__}") from exc


def load_prefixed(defaults: Dict[str, Any], target: Dict[str, Any], prefix: str, env_path: str = ".env") -> Dict[str, Any]:
    """Fill `target` from ``<PREFIX>_<KEY>`` variables, falling back to `defaults`.

    A present `env_path` is loaded first; variables already in the
    environment win over the file.
    """
    if os.path.exists(env_path):
        load_dotenv(env_path)
        logger.debug("Loaded %s", env_path)
    for key, default_value in defaults.items():
        raw = os.getenv(f"{prefix}_{key.upper()}", default_value)
        target[key] = coerce_value(raw, type(default_value))
    return target


__all__ = ["ConfigError", "coerce_value", "load_prefixed"]
