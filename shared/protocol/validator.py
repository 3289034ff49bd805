from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import jsonschema

from .commands import MsgType
from .errors import ErrorCode, ProtocolError

SCHEMA_DIR = Path(__file__).parent / "schemas"

# Mapping message kind -> schema filename (relative to SCHEMA_DIR)
SCHEMA_REGISTRY: Dict[str, str] = {
    MsgType.CMD.value: "cmd.json",
    MsgType.ACK.value: "ack.json",
    MsgType.DONE.value: "done.json",
    MsgType.ERR.value: "err.json",
    MsgType.PING.value: "ping.json",
    MsgType.PONG.value: "pong.json",
}


def _schema_path(kind: str) -> Optional[Path]:
    filename = SCHEMA_REGISTRY.get(kind)
    if not filename:
        return None
    path = SCHEMA_DIR / filename
    return path if path.exists() else None


@lru_cache(maxsize=16)
def load_schema(kind: str) -> Optional[dict]:
    """Load JSON schema for a message kind if present."""
    path = _schema_path(str(kind))
    if not path:
        return None
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def validate_fields(fields: Mapping[str, Any], schema: Optional[dict] = None) -> None:
    """Check decoded payload fields: mandatory ``t``/``req`` plus the per-kind schema."""
    kind = fields.get("t")
    if not kind or not fields.get("req"):
        raise ProtocolError(ErrorCode.PAYLOAD_INVALID, message="Missing mandatory field t/req")
    if not schema:
        schema = load_schema(kind)
    if schema is None:
        raise ProtocolError(ErrorCode.PAYLOAD_INVALID, message=f"Unknown message kind {kind!r}")
    try:
        jsonschema.validate(instance=dict(fields), schema=schema)
    except jsonschema.ValidationError as exc:
        raise ProtocolError(
            ErrorCode.PAYLOAD_INVALID,
            message=f"Schema validation failed: {exc.message}",
            req=str(fields.get("req")),
        ) from exc


__all__ = ["load_schema", "validate_fields"]
