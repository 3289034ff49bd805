from __future__ import annotations

from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .commands import Command, CoverState, MsgType, is_command, normalize_command
from .constants import ENCODING, FIELD_SEPARATOR, KEY_VALUE_SEPARATOR
from .errors import ErrorCode, ProtocolError
from .framing import encode_frame
from .validator import validate_fields

# Keys in wire order.
FIELD_ORDER = ("t", "cmd", "req", "ok", "state", "err")
MAX_ERR_BYTES = 300
_UNSAFE_CHARS = str.maketrans({";": ",", "~": "-", "#": "-", "\r": " ", "\n": " "})


def _clip(text: str, limit: int) -> str:
    return text.encode(ENCODING)[:limit].decode(ENCODING, errors="ignore")


def sanitize_diagnostic(text: str) -> str:
    """Make free text safe to embed as the ``err`` field of a payload."""
    return _clip(str(text).translate(_UNSAFE_CHARS).strip(), MAX_ERR_BYTES) or "unknown"


class Message(BaseModel):
    """One decoded payload (``t=...;req=...``)."""

    model_config = ConfigDict(frozen=True)

    t: MsgType = Field(..., description="Message kind")
    req: str = Field(..., min_length=1, max_length=64, pattern=r"^[^;=~#]+$", description="Correlation token")
    cmd: Optional[str] = Field(default=None, description="OPEN / CLOSE on CMD messages")
    ok: Optional[bool] = Field(default=None, description="Outcome flag on DONE messages")
    state: Optional[CoverState] = Field(default=None, description="Reached / last observed state on DONE")
    err: Optional[str] = Field(default=None, description="Diagnostic on ERR messages")

    @field_validator("err")
    @classmethod
    def _safe_err(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else sanitize_diagnostic(value)

    @property
    def command(self) -> Optional[Command]:
        """The requested command, or ``None`` when absent/unknown."""
        if self.cmd is not None and is_command(self.cmd):
            return Command(self.cmd)
        return None

    def to_fields(self) -> Dict[str, str]:
        fields: Dict[str, str] = {"t": self.t.value}
        if self.cmd is not None:
            fields["cmd"] = self.cmd
        fields["req"] = self.req
        if self.ok is not None:
            fields["ok"] = "1" if self.ok else "0"
        if self.state is not None:
            fields["state"] = self.state.value
        if self.err is not None:
            fields["err"] = self.err
        return fields

    def to_payload(self) -> str:
        return FIELD_SEPARATOR.join(f"{key}{KEY_VALUE_SEPARATOR}{value}" for key, value in self.to_fields().items())

    def to_frame(self) -> bytes:
        return encode_frame(self.to_payload())

    @classmethod
    def from_fields(cls, fields: Dict[str, str]) -> "Message":
        validate_fields(fields)
        data: Dict[str, object] = {key: fields[key] for key in FIELD_ORDER if key in fields}
        if "ok" in data:
            data["ok"] = data["ok"] in ("1", "true")
        if data.get("state") == "":
            data.pop("state")
        try:
            return cls(**data)
        except ValidationError as exc:
            raise ProtocolError(
                ErrorCode.PAYLOAD_INVALID, message=f"Message validation failed: {exc}", req=fields.get("req")
            ) from exc

    @classmethod
    def from_payload(cls, payload: str) -> "Message":
        return cls.from_fields(decode_payload(payload))

    # Builders

    @classmethod
    def command_request(cls, cmd: Union[str, Command], req: str) -> "Message":
        return cls(t=MsgType.CMD, cmd=normalize_command(cmd), req=req)

    @classmethod
    def ack(cls, req: str) -> "Message":
        return cls(t=MsgType.ACK, req=req)

    @classmethod
    def done(cls, req: str, ok: bool, state: CoverState) -> "Message":
        return cls(t=MsgType.DONE, req=req, ok=bool(ok), state=state)

    @classmethod
    def error(cls, req: str, err: str) -> "Message":
        return cls(t=MsgType.ERR, req=req, err=err)

    @classmethod
    def ping(cls, req: str) -> "Message":
        return cls(t=MsgType.PING, req=req)

    @classmethod
    def pong(cls, req: str) -> "Message":
        return cls(t=MsgType.PONG, req=req)


def decode_payload(payload: str) -> Dict[str, str]:
    """Split ``k=v;k=v`` into a dict. Values may contain ``=``; parts without one are skipped."""
    fields: Dict[str, str] = {}
    for part in payload.split(FIELD_SEPARATOR):
        key, sep, value = part.partition(KEY_VALUE_SEPARATOR)
        if not sep or not key:
            continue
        fields[key] = value
    return fields


__all__ = ["Message", "FIELD_ORDER", "decode_payload", "sanitize_diagnostic"]
