from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Tuple

from dotenv import load_dotenv


class SettingsError(ValueError):
    """Raised when radio link settings are invalid."""


@dataclass
class Settings:
    """Emulated radio link shared by both roles (node ids map to UDP endpoints)."""

    host: str = "127.0.0.1"
    initiator_id: int = 101
    initiator_port: int = 9101
    responder_id: int = 102
    responder_port: int = 9102
    loss_rate: float = 0.0
    corrupt_rate: float = 0.0

    def address_book(self) -> Dict[int, Tuple[str, int]]:
        return {
            self.initiator_id: (self.host, self.initiator_port),
            self.responder_id: (self.host, self.responder_port),
        }


SETTINGS = Settings()


def load_settings(env_path: str = ".env") -> Settings:
    """Load radio settings from env/.env."""
    if Path(env_path).exists():
        load_dotenv(env_path)
    SETTINGS.host = os.getenv("RADIO_HOST", SETTINGS.host)
    SETTINGS.initiator_id = int(os.getenv("RADIO_INITIATOR_ID", SETTINGS.initiator_id))
    SETTINGS.initiator_port = int(os.getenv("RADIO_INITIATOR_PORT", SETTINGS.initiator_port))
    SETTINGS.responder_id = int(os.getenv("RADIO_RESPONDER_ID", SETTINGS.responder_id))
    SETTINGS.responder_port = int(os.getenv("RADIO_RESPONDER_PORT", SETTINGS.responder_port))
    SETTINGS.loss_rate = float(os.getenv("RADIO_LOSS_RATE", SETTINGS.loss_rate))
    SETTINGS.corrupt_rate = float(os.getenv("RADIO_CORRUPT_RATE", SETTINGS.corrupt_rate))
    _validate(SETTINGS)
    return SETTINGS


def _validate(settings: Settings) -> None:
    if settings.initiator_id == settings.responder_id:
        raise SettingsError("initiator_id and responder_id must differ")
    for name in ("initiator_port", "responder_port"):
        if not (1 <= getattr(settings, name) <= 65535):
            raise SettingsError(f"{name} must be between 1 and 65535")
    for name in ("loss_rate", "corrupt_rate"):
        if not (0.0 <= getattr(settings, name) <= 1.0):
            raise SettingsError(f"{name} must be within [0, 1]")


__all__ = ["Settings", "SettingsError", "SETTINGS", "load_settings"]
