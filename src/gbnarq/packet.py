from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

from .constants import (
    ACK,
    DATA,
    DATA_ALPHABET_LEN,
    DATA_ALPHABET_START,
    MAX_SEQ,
    PACKET_FORMAT,
    RST,
    RST_ACK_MARKER,
    SYN,
    SYN_ACK,
)

PACKET_SIZE = struct.calcsize(PACKET_FORMAT)


class PacketError(ValueError):
    pass


class PacketFlag(enum.IntEnum):
    DATA = DATA
    SYN = SYN
    SYN_ACK = SYN_ACK
    ACK = ACK
    RST = RST


def _check_number(name: str, value: int) -> None:
    if not 0 <= value <= MAX_SEQ + 1:
        raise PacketError(f"{name} out of range: {value}")


def data_payload(seq: int) -> bytes:
    return bytes([DATA_ALPHABET_START + seq % DATA_ALPHABET_LEN])


@dataclass(frozen=True, slots=True)
class Packet:
    seq: int
    ack: int
    flag: PacketFlag
    payload: bytes = b"\x00"

    @property
    def value(self) -> int:
        """Payload byte read as an unsigned integer (handshake parameters)."""
        return self.payload[0]

    def to_bytes(self) -> bytes:
        if len(self.payload) != 1:
            raise PacketError(f"payload must be exactly one byte, got {len(self.payload)}")
        _check_number("seq", self.seq)
        _check_number("ack", self.ack)
        return struct.pack(PACKET_FORMAT, self.seq, self.ack, int(self.flag), self.payload)

    @staticmethod
    def from_bytes(raw: bytes) -> "Packet":
        if len(raw) != PACKET_SIZE:
            raise PacketError(f"expected {PACKET_SIZE} bytes, got {len(raw)}")

        seq, ack, flag, payload = struct.unpack(PACKET_FORMAT, raw)
        try:
            kind = PacketFlag(flag)
        except ValueError:
            raise PacketError(f"unknown flag: {flag}") from None
        _check_number("seq", seq)
        _check_number("ack", ack)

        return Packet(seq=seq, ack=ack, flag=kind, payload=payload)

    @staticmethod
    def syn() -> "Packet":
        return Packet(seq=0, ack=0, flag=PacketFlag.SYN)

    @staticmethod
    def syn_ack() -> "Packet":
        return Packet(seq=0, ack=0, flag=PacketFlag.SYN_ACK)

    @staticmethod
    def make_ack(ack_num: int) -> "Packet":
        return Packet(seq=0, ack=ack_num, flag=PacketFlag.ACK)

    @staticmethod
    def data(seq: int) -> "Packet":
        return Packet(seq=seq, ack=0, flag=PacketFlag.DATA, payload=data_payload(seq))

    @staticmethod
    def param(value: int) -> "Packet":
        if not 0 <= value <= 0xFF:
            raise PacketError(f"parameter does not fit in one byte: {value}")
        return Packet(seq=0, ack=0, flag=PacketFlag.DATA, payload=bytes([value]))

    @staticmethod
    def rst(seq: int) -> "Packet":
        return Packet(seq=seq, ack=RST_ACK_MARKER, flag=PacketFlag.RST)
