from __future__ import annotations

from uuid import uuid4

from shared.protocol.constants import REQUEST_ID_LENGTH


def generate_request_id() -> str:
    """Generate an opaque, high-entropy correlation token (not a sequence number)."""
    return uuid4().hex[:REQUEST_ID_LENGTH]


def ms_to_s(value_ms: float) -> float:
    """Config values are kept in milliseconds; the scheduler works in seconds."""
    return float(value_ms) / 1000.0


def elapsed_ms(start_s: float, now_s: float) -> int:
    return int(round((now_s - start_s) * 1000))


__all__ = ["generate_request_id", "ms_to_s", "elapsed_ms"]
