"""
Shared protocol package that centralizes message kinds, payload models, framing
helpers and validation utilities for both initiator and responder.
"""

from .commands import Command, CoverState, MsgType, command_label, is_command, normalize_command, target_state
from .constants import FRAME_END, FRAME_START, MAX_DECODE_LEN, MAX_PAYLOAD_SIZE
from .errors import ErrorCode, ProtocolError
from .framing import FrameReader, checksum_hex, encode_frame, extract_frames, iter_frames, parse_frame
from .messages import Message, decode_payload, sanitize_diagnostic
from .validator import load_schema, validate_fields

__all__ = [
    "Command",
    "CoverState",
    "MsgType",
    "command_label",
    "is_command",
    "normalize_command",
    "target_state",
    "FRAME_START",
    "FRAME_END",
    "MAX_DECODE_LEN",
    "MAX_PAYLOAD_SIZE",
    "ErrorCode",
    "ProtocolError",
    "FrameReader",
    "checksum_hex",
    "encode_frame",
    "extract_frames",
    "iter_frames",
    "parse_frame",
    "Message",
    "decode_payload",
    "sanitize_diagnostic",
    "load_schema",
    "validate_fields",
]
