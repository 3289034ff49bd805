"""Protocol-wide constants shared by initiator and responder."""

ENCODING = "utf-8"
FRAME_START = b"~"
FRAME_END = b"#"
LEN_DELIMITER = b":"
CHK_DELIMITER = b"|"
FIELD_SEPARATOR = ";"
KEY_VALUE_SEPARATOR = "="

MIN_PAYLOAD_SIZE = 1
MAX_PAYLOAD_SIZE = 400  # bytes, LoRa-sized
MAX_DECODE_LEN = 512  # cap on a single inbound delivery
# "~" + "400" + ":" + payload + "|" + "FFFF" + "#"
MAX_FRAME_SIZE = 1 + 3 + 1 + MAX_PAYLOAD_SIZE + 1 + 4 + 1
CHECKSUM_DIGITS = 4

REQUEST_ID_LENGTH = 12  # hex chars

__all__ = [
    "ENCODING",
    "FRAME_START",
    "FRAME_END",
    "LEN_DELIMITER",
    "CHK_DELIMITER",
    "FIELD_SEPARATOR",
    "KEY_VALUE_SEPARATOR",
    "MIN_PAYLOAD_SIZE",
    "MAX_PAYLOAD_SIZE",
    "MAX_DECODE_LEN",
    "MAX_FRAME_SIZE",
    "CHECKSUM_DIGITS",
    "REQUEST_ID_LENGTH",
]
