from __future__ import annotations

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Fault taxonomy shared by both roles."""

    FRAME_MALFORMED = 1001
    CHECKSUM_MISMATCH = 1002
    PAYLOAD_INVALID = 1003
    STALE_REQUEST = 1004
    ACTION_FAILED = 2001
    COMPLETION_TIMEOUT = 2002
    SESSION_TIMEOUT = 2003
    BURST_REJECTED = 2004


class ProtocolError(Exception):
    """Structured protocol exception carrying an error code + message."""

    def __init__(self, code: ErrorCode, message: str = "", req: Optional[str] = None) -> None:
        self.code = code
        self.message = message
        self.req = req
        scope = f" req={req}" if req else ""
        super().__init__(f"{code.name} ({int(code)}): {message}{scope}")


__all__ = ["ErrorCode", "ProtocolError"]
