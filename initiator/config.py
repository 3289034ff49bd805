from __future__ import annotations

import logging
from typing import Any, Dict

from shared.utils.env import ConfigError, load_prefixed

DEFAULT_CONFIG: Dict[str, Any] = {
    "responder_id": 102,
    # command lifecycle
    "timeout_ms": 60000,
    "resend_interval_ms": 7000,
    "max_resends": 2,  # total sends = 1 + max_resends
    # link health
    "heartbeat_enabled": True,
    "heartbeat_interval_ms": 30000,
    "heartbeat_timeout_ms": 5000,
    # input / status surface
    "open_button_id": 200,
    "close_button_id": 201,
    "valve_indicator_id": 200,
    "link_indicator_id": 201,
    "log_level": "INFO",
}

INITIATOR_CONFIG: Dict[str, Any] = DEFAULT_CONFIG.copy()


def load_config(env_path: str = ".env") -> Dict[str, Any]:
    """Load initiator configuration from env file/environment variables."""
    load_prefixed(DEFAULT_CONFIG, INITIATOR_CONFIG, "INITIATOR", env_path)
    validate_config(INITIATOR_CONFIG)
    logging.getLogger().setLevel(str(INITIATOR_CONFIG["log_level"]).upper())
    return INITIATOR_CONFIG


def validate_config(config: Dict[str, Any]) -> None:
    if not isinstance(logging.getLevelName(str(config["log_level"]).upper()), int):
        raise ConfigError(f"unknown log_level {config['log_level']!r}")
    for key in ("timeout_ms", "resend_interval_ms", "heartbeat_interval_ms", "heartbeat_timeout_ms"):
        if config[key] <= 0:
            raise ConfigError(f"{key} must be positive")
    if config["max_resends"] < 0:
        raise ConfigError("max_resends must not be negative")
    if config["open_button_id"] == config["close_button_id"]:
        raise ConfigError("open_button_id and close_button_id must differ")
    if config["valve_indicator_id"] == config["link_indicator_id"]:
        raise ConfigError("valve_indicator_id and link_indicator_id must differ")


def get(key: str, default: Any = None) -> Any:
    return INITIATOR_CONFIG.get(key, default)


__all__ = ["INITIATOR_CONFIG", "DEFAULT_CONFIG", "ConfigError", "get", "load_config", "validate_config"]
