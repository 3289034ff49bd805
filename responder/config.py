from __future__ import annotations

import logging
from typing import Any, Dict

from shared.utils.env import ConfigError, load_prefixed

DEFAULT_CONFIG: Dict[str, Any] = {
    "cover_id": 0,
    "done_timeout_ms": 25000,
    "poll_ms": 500,
    "ack_retries": 3,
    "ack_spacing_ms": 700,
    "done_retries": 3,
    "done_spacing_ms": 700,
    "seen_ttl_ms": 60000,
    "seen_max_entries": 256,
    "travel_ms": 4000,  # simulated cover only
    "log_level": "INFO",
}

RESPONDER_CONFIG: Dict[str, Any] = DEFAULT_CONFIG.copy()


def load_config(env_path: str = ".env") -> Dict[str, Any]:
    """Load responder configuration from env file/environment variables."""
    load_prefixed(DEFAULT_CONFIG, RESPONDER_CONFIG, "RESPONDER", env_path)
    validate_config(RESPONDER_CONFIG)
    logging.getLogger().setLevel(str(RESPONDER_CONFIG["log_level"]).upper())
    return RESPONDER_CONFIG


def validate_config(config: Dict[str, Any]) -> None:
    if not isinstance(logging.getLevelName(str(config["log_level"]).upper()), int):
        raise ConfigError(f"unknown log_level {config['log_level']!r}")
    for key in ("done_timeout_ms", "poll_ms", "ack_spacing_ms", "done_spacing_ms", "seen_ttl_ms"):
        if config[key] <= 0:
            raise ConfigError(f"{key} must be positive")
    for key in ("ack_retries", "done_retries", "seen_max_entries"):
        if config[key] < 1:
            raise ConfigError(f"{key} must be at least 1")
    if config["travel_ms"] < 0:
        raise ConfigError("travel_ms must not be negative")


def get(key: str, default: Any = None) -> Any:
    return RESPONDER_CONFIG.get(key, default)


__all__ = ["RESPONDER_CONFIG", "DEFAULT_CONFIG", "ConfigError", "get", "load_config", "validate_config"]
