"""Self-delimiting, checksummed framing for the radio link.

Frame layout::

    ~<LEN>:<PAYLOAD>|<CHK>#

- ``LEN``: decimal byte length of ``PAYLOAD`` (1-400)
- ``CHK``: XOR of every payload byte, 4 uppercase hex digits, zero padded
- ``~`` / ``#``: reserved sentinels, never present inside ``PAYLOAD``

The extractor scans for ``~ ... #`` candidates and validates each one; a failed
candidate is skipped past its ``#`` so corrupted or concatenated deliveries
resynchronize on the next frame.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Tuple, Union

from .constants import (
    CHECKSUM_DIGITS,
    CHK_DELIMITER,
    ENCODING,
    FRAME_END,
    FRAME_START,
    LEN_DELIMITER,
    MAX_DECODE_LEN,
    MAX_FRAME_SIZE,
    MAX_PAYLOAD_SIZE,
    MIN_PAYLOAD_SIZE,
)
from .errors import ErrorCode, ProtocolError

logger = logging.getLogger(__name__)

Buffer = Union[bytes, bytearray, memoryview, str]


def _as_bytes(data: Buffer) -> bytes:
    if isinstance(data, str):
        return data.encode(ENCODING)
    return bytes(data)


def checksum_hex(payload: Buffer) -> str:
    """XOR-fold every payload byte into a 4 digit uppercase hex string."""
    value = 0
    for byte in _as_bytes(payload):
        value ^= byte
    return f"{value & 0xFFFF:0{CHECKSUM_DIGITS}X}"[-CHECKSUM_DIGITS:]


def encode_frame(payload: Buffer) -> bytes:
    """Wrap `payload` into a wire frame.

    Raises:
        ProtocolError: payload is empty, longer than 400 bytes or contains a sentinel.
    """
    body = _as_bytes(payload)
    if not (MIN_PAYLOAD_SIZE <= len(body) <= MAX_PAYLOAD_SIZE):
        raise ProtocolError(ErrorCode.FRAME_MALFORMED, message=f"Payload length {len(body)} out of range")
    if FRAME_START in body or FRAME_END in body:
        raise ProtocolError(ErrorCode.FRAME_MALFORMED, message="Payload contains a frame sentinel")
    header = str(len(body)).encode("ascii") + LEN_DELIMITER
    trailer = CHK_DELIMITER + checksum_hex(body).encode("ascii")
    return FRAME_START + header + body + trailer + FRAME_END


def parse_frame(record: Buffer) -> str:
    """Validate the interior of one frame (``LEN:PAYLOAD|CHK``) and return the payload.

    Raises:
        ProtocolError: ``FRAME_MALFORMED`` or ``CHECKSUM_MISMATCH``.
    """
    data = _as_bytes(record)
    colon = data.find(LEN_DELIMITER)
    pipe = data.rfind(CHK_DELIMITER)
    if colon < 0 or pipe < 0 or pipe < colon:
        raise ProtocolError(ErrorCode.FRAME_MALFORMED, message="Missing or misordered delimiters")

    len_text = data[:colon]
    if not len_text.isdigit():
        raise ProtocolError(ErrorCode.FRAME_MALFORMED, message=f"Bad length field {len_text!r}")
    length = int(len_text)
    if not (MIN_PAYLOAD_SIZE <= length <= MAX_PAYLOAD_SIZE):
        raise ProtocolError(ErrorCode.FRAME_MALFORMED, message=f"Length {length} out of range")

    payload = data[colon + 1 : pipe]
    if len(payload) != length:
        raise ProtocolError(
            ErrorCode.FRAME_MALFORMED, message=f"Length mismatch: declared {length}, got {len(payload)}"
        )

    chk = data[pipe + 1 :]
    if chk != checksum_hex(payload).encode("ascii"):
        raise ProtocolError(ErrorCode.CHECKSUM_MISMATCH, message=f"Checksum {chk!r} does not match")

    try:
        return payload.decode(ENCODING)
    except UnicodeDecodeError as exc:
        raise ProtocolError(ErrorCode.FRAME_MALFORMED, message=f"Payload not {ENCODING}: {exc}") from exc


def _scan(buffer: bytes) -> Iterator[Tuple[Optional[str], int]]:
    """Yield ``(payload or None, resume_offset)`` for every ``~ ... #`` candidate."""
    idx = 0
    while True:
        start = buffer.find(FRAME_START, idx)
        if start < 0:
            return
        end = buffer.find(FRAME_END, start + 1)
        if end < 0:
            return
        payload: Optional[str]
        try:
            payload = parse_frame(buffer[start + 1 : end])
        except ProtocolError as exc:
            logger.debug("Discarding frame candidate at %s: %s", start, exc)
            payload = None
        idx = end + 1
        yield payload, idx


def iter_frames(buffer: Optional[Buffer]) -> Iterator[str]:
    """Lazily yield every valid payload in `buffer`; never raises."""
    if not buffer:
        return
    data = _as_bytes(buffer)[:MAX_DECODE_LEN]
    for payload, _ in _scan(data):
        if payload is not None:
            yield payload


def extract_frames(buffer: Optional[Buffer]) -> List[str]:
    """Return all valid payloads in `buffer` in wire order."""
    return list(iter_frames(buffer))


def _continues_partial(chunk: bytes) -> bool:
    """True when `chunk` can only be the continuation of a frame cut short."""
    first_end = chunk.find(FRAME_END)
    first_start = chunk.find(FRAME_START)
    if first_end < 0:
        return first_start < 0
    return first_start < 0 or first_end < first_start


class FrameReader:
    """Incremental extractor for one source.

    Keeps at most one trailing partial frame between deliveries and only joins
    it to the next delivery when that delivery starts mid-frame.
    """

    def __init__(self) -> None:
        self._partial = b""

    @property
    def pending(self) -> bytes:
        return self._partial

    def reset(self) -> None:
        self._partial = b""

    def feed(self, data: Optional[Buffer]) -> List[str]:
        if not data:
            return []
        chunk = _as_bytes(data)[:MAX_DECODE_LEN]
        if self._partial and _continues_partial(chunk):
            buffer = self._partial + chunk
        else:
            buffer = chunk
        self._partial = b""

        payloads: List[str] = []
        resume = 0
        for payload, resume in _scan(buffer):
            if payload is not None:
                payloads.append(payload)

        tail = buffer[resume:]
        start = tail.rfind(FRAME_START)
        if start >= 0 and len(tail) - start <= MAX_FRAME_SIZE:
            self._partial = tail[start:]
        return payloads


__all__ = [
    "checksum_hex",
    "encode_frame",
    "parse_frame",
    "iter_frames",
    "extract_frames",
    "FrameReader",
]
