from __future__ import annotations

import random

import pytest

from shared.protocol import (
    MAX_DECODE_LEN,
    Command,
    CoverState,
    ErrorCode,
    FrameReader,
    Message,
    MsgType,
    ProtocolError,
    checksum_hex,
    decode_payload,
    encode_frame,
    extract_frames,
    iter_frames,
    parse_frame,
)


def test_checksum_known_values():
    assert checksum_hex("A") == "0041"
    assert checksum_hex("AA") == "0000"
    assert checksum_hex(b"\x01\x02\x04") == "0007"


def test_encode_frame_layout():
    payload = "t=ACK;req=abc"
    frame = encode_frame(payload)
    assert frame == b"~13:t=ACK;req=abc|" + checksum_hex(payload).encode() + b"#"


@pytest.mark.parametrize(
    "payload",
    [
        "x",
        "t=PING;req=1",
        "t=ERR;req=r1;err=open failed: a=b | c",
        "t=DONE;req=4f2a;ok=1;state=open",
        "k" * 400,
    ],
)
def test_extract_roundtrip(payload):
    assert extract_frames(encode_frame(payload)) == [payload]


@pytest.mark.parametrize("payload", ["", "k" * 401, "bad~payload", "bad#payload"])
def test_encode_rejects_invalid_payload(payload):
    with pytest.raises(ProtocolError) as exc_info:
        encode_frame(payload)
    assert exc_info.value.code is ErrorCode.FRAME_MALFORMED


def test_parse_frame_errors():
    good = encode_frame("t=ACK;req=abc")[1:-1]
    assert parse_frame(good) == "t=ACK;req=abc"

    with pytest.raises(ProtocolError) as exc_info:
        parse_frame(good[:-1] + b"Z")
    assert exc_info.value.code is ErrorCode.CHECKSUM_MISMATCH

    for record in (b"13t=ACK;req=abc0000", b"x:abc|0000", b"0:|0000", b"401:a|0061", b"4:abc|0000"):
        with pytest.raises(ProtocolError) as exc_info:
            parse_frame(record)
        assert exc_info.value.code is ErrorCode.FRAME_MALFORMED


def test_extract_concatenated_frames_in_order():
    payloads = ["t=ACK;req=a", "t=DONE;req=a;ok=1;state=open", "t=PONG;req=b"]
    buffer = b"".join(encode_frame(p) for p in payloads)
    assert extract_frames(buffer) == payloads


def test_extract_skips_corrupted_frame_and_resyncs():
    bad = bytearray(encode_frame("t=ACK;req=aaaa"))
    bad[8] ^= 0x20
    good = encode_frame("t=ACK;req=bbbb")
    assert extract_frames(bytes(bad) + good) == ["t=ACK;req=bbbb"]


def test_extract_skips_length_mismatch():
    buffer = b"~5:t=ACK;req=a|" + checksum_hex("t=ACK;req=a").encode() + b"#" + encode_frame("t=PONG;req=z")
    assert extract_frames(buffer) == ["t=PONG;req=z"]


def test_extract_tolerates_noise_between_frames():
    rng = random.Random(1234)
    payloads = [f"t=ACK;req=r{i}" for i in range(4)]
    noise_alphabet = bytes(b for b in range(256) if b not in b"~")
    for _ in range(50):
        parts = []
        for payload in payloads:
            parts.append(bytes(rng.choice(noise_alphabet) for _ in range(rng.randrange(6))))
            parts.append(encode_frame(payload))
        assert extract_frames(b"".join(parts)) == payloads


def test_extract_never_raises_on_garbage():
    rng = random.Random(99)
    alphabet = b"~#:|0123456789ABCDEFt=;req" + bytes(range(0, 256, 17))
    for _ in range(300):
        buffer = bytes(rng.choice(alphabet) for _ in range(rng.randrange(0, 700)))
        for payload in extract_frames(buffer):
            assert 1 <= len(payload.encode()) <= 400


def test_extract_empty_inputs():
    assert extract_frames(b"") == []
    assert extract_frames(None) == []
    assert extract_frames(b"no frames here") == []
    assert extract_frames(b"~13:unterminated") == []


def test_extract_caps_buffer_length():
    filler = encode_frame("f" * 300)
    late = encode_frame("t=ACK;req=late")
    buffer = filler + b" " * (MAX_DECODE_LEN - len(filler)) + late
    assert extract_frames(buffer) == ["f" * 300]


def test_iter_frames_is_lazy():
    buffer = encode_frame("t=PING;req=1") + encode_frame("t=PING;req=2")
    frames = iter_frames(buffer)
    assert next(frames) == "t=PING;req=1"
    assert list(frames) == ["t=PING;req=2"]


def test_extract_accepts_text():
    assert extract_frames(encode_frame("t=ACK;req=abc").decode()) == ["t=ACK;req=abc"]


def test_reader_reassembles_fragments():
    frame = encode_frame("t=ACK;req=abc")
    reader = FrameReader()
    assert reader.feed(frame[:7]) == []
    assert reader.pending == frame[:7]
    assert reader.feed(frame[7:]) == ["t=ACK;req=abc"]
    assert reader.pending == b""


def test_reader_fragment_followed_by_more_frames():
    first = encode_frame("t=ACK;req=abc")
    second = encode_frame("t=DONE;req=abc;ok=1;state=open")
    reader = FrameReader()
    reader.feed(first[:5])
    assert reader.feed(first[5:] + second) == ["t=ACK;req=abc", "t=DONE;req=abc;ok=1;state=open"]


def test_reader_drops_stale_fragment_when_new_frame_starts():
    reader = FrameReader()
    reader.feed(b"~13:t=AC")
    assert reader.feed(encode_frame("t=PONG;req=1")) == ["t=PONG;req=1"]
    assert reader.pending == b""


def test_message_payload_encoding():
    assert Message.command_request(Command.OPEN, "abc").to_payload() == "t=CMD;cmd=OPEN;req=abc"
    assert Message.ack("abc").to_payload() == "t=ACK;req=abc"
    assert Message.done("abc", True, CoverState.OPEN).to_payload() == "t=DONE;req=abc;ok=1;state=open"
    assert Message.done("abc", False, CoverState.CLOSED).to_payload() == "t=DONE;req=abc;ok=0;state=closed"
    assert Message.error("abc", "boom").to_payload() == "t=ERR;req=abc;err=boom"
    assert Message.ping("p1").to_payload() == "t=PING;req=p1"
    assert Message.pong("p1").to_payload() == "t=PONG;req=p1"


def test_message_roundtrip_through_frame():
    original = Message.done("4f2a", True, CoverState.OPEN)
    (payload,) = extract_frames(original.to_frame())
    assert Message.from_payload(payload) == original


def test_message_decoding_details():
    message = Message.from_payload("t=DONE;req=r1;ok=true;state=open;extra=1")
    assert message.ok is True
    assert message.state is CoverState.OPEN

    assert Message.from_payload("t=DONE;req=r1;ok=0;state=").state is None
    assert Message.from_payload("t=ERR;req=r1;garbage;err=a=b").err == "a=b"


def test_decode_payload_splits_on_first_equals():
    assert decode_payload("t=ERR;req=x;err=k=v;novalue;=orphan") == {"t": "ERR", "req": "x", "err": "k=v"}


def test_unknown_command_is_still_a_message():
    message = Message.from_payload("t=CMD;cmd=TOGGLE;req=r9")
    assert message.t is MsgType.CMD
    assert message.cmd == "TOGGLE"
    assert message.command is None


@pytest.mark.parametrize(
    "payload",
    [
        "t=ACK",
        "req=abc",
        "t=NOPE;req=abc",
        "t=CMD;req=abc",
        "t=DONE;req=abc;state=open",
        "t=DONE;req=abc;ok=1;state=ajar",
        "t=DONE;req=abc;ok=maybe",
    ],
)
def test_invalid_payloads_are_rejected(payload):
    with pytest.raises(ProtocolError) as exc_info:
        Message.from_payload(payload)
    assert exc_info.value.code is ErrorCode.PAYLOAD_INVALID


def test_error_text_is_sanitized_and_clipped():
    message = Message.error("r1", "bad; value # with ~ sentinels\n" + "x" * 500)
    assert not set(";#~\n") & set(message.err)
    assert len(message.err.encode()) <= 300
    assert extract_frames(message.to_frame()) == [message.to_payload()]
