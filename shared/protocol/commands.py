from __future__ import annotations

from enum import StrEnum
from typing import Dict, Optional, Union


class MsgType(StrEnum):
    """Message kinds carried in the ``t`` field."""

    CMD = "CMD"
    ACK = "ACK"
    DONE = "DONE"
    ERR = "ERR"
    PING = "PING"
    PONG = "PONG"


class Command(StrEnum):
    """Actions the initiator may request."""

    OPEN = "OPEN"
    CLOSE = "CLOSE"


class CoverState(StrEnum):
    """Physical state of the valve/cover as reported on the wire."""

    OPEN = "open"
    CLOSED = "closed"
    UNKNOWN = "unknown"


COMMAND_LABELS: Dict[str, str] = {
    Command.OPEN.value: "opening",
    Command.CLOSE.value: "closing",
}

COMMAND_TARGETS: Dict[str, CoverState] = {
    Command.OPEN.value: CoverState.OPEN,
    Command.CLOSE.value: CoverState.CLOSED,
}

def normalize_command(command: Union[str, Command]) -> str:
    """Convert enum/string into canonical command text."""
    return command.value if isinstance(command, Command) else str(command)


def is_command(value: str) -> bool:
    """Check if `value` is a known command."""
    try:
        Command(value)
        return True
    except ValueError:
        return False


def command_label(command: Union[str, Command]) -> str:
    """Human readable label used in logs; unknown commands are returned as-is."""
    text = normalize_command(command)
    return COMMAND_LABELS.get(text, text)


def target_state(command: Union[str, Command]) -> Optional[CoverState]:
    """State the cover must reach for `command` to be complete."""
    return COMMAND_TARGETS.get(normalize_command(command))


__all__ = [
    "MsgType",
    "Command",
    "CoverState",
    "COMMAND_LABELS",
    "COMMAND_TARGETS",
    "normalize_command",
    "is_command",
    "command_label",
    "target_state",
]
