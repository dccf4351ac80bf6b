from __future__ import annotations

PACKET_FORMAT = "<iiic3x"  # seq, ack, flag, payload (+ padding to 16 bytes)

DATA = 0
SYN = 1
SYN_ACK = 2
ACK = 3
RST = 4

MAX_SEQ = 255
RST_ACK_MARKER = ACK

FIRST_SEQ = 1
DATA_ALPHABET_START = ord("A")
DATA_ALPHABET_LEN = 26

DEFAULT_TIMEOUT_S = 2.0
DEFAULT_HANDSHAKE_TIMEOUT_S = 2.0
DEFAULT_MAX_RETRIES = 20
DEFAULT_RESTORE_AFTER = 2
DEFAULT_HOST = "0.0.0.0"
