from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .net import Address, Transport
from .packet import Packet, PacketFlag

log = logging.getLogger(__name__)


class PeerError(Exception):
    pass


@dataclass(slots=True)
class PeerResult:
    payload: bytes
    rst_received: bool
    rst_seq: int | None = None
    duplicates: int = 0


@dataclass(slots=True)
class Peer:
    """Minimal client for loopback runs: connects, requests units, acks them in order."""

    transport: Transport
    server: Address
    window_size: int
    total_units: int
    timeout_s: float = 0.5
    max_retries: int = 20
    received: bytearray = field(default_factory=bytearray)

    def connect(self) -> None:
        for attempt in range(self.max_retries + 1):
            self.transport.send(Packet.syn(), self.server)
            got = self.transport.receive(self.timeout_s)
            if got is not None and got[0].flag is PacketFlag.SYN_ACK:
                break
            log.debug("no SYN-ACK; re-sending SYN (attempt=%d)", attempt + 1)
        else:
            raise PeerError(f"no SYN-ACK from {self.server} after {self.max_retries} retries")

        self.transport.send(Packet.make_ack(0), self.server)
        self.transport.send(Packet.param(self.window_size), self.server)
        self.transport.send(Packet.param(self.total_units), self.server)

    def run(self) -> PeerResult:
        self.connect()
        expected = 1
        duplicates = 0
        idle = 0

        while idle <= self.max_retries:
            got = self.transport.receive(self.timeout_s)
            if got is None:
                idle += 1
                continue
            idle = 0
            pkt, _ = got

            if pkt.flag is PacketFlag.RST:
                return PeerResult(bytes(self.received), True, pkt.seq, duplicates)
            # late SYN-ACK duplicates land here too; answering them would be read as a parameter
            if pkt.flag is not PacketFlag.DATA:
                continue

            if pkt.seq == expected:
                self.received += pkt.payload
                self.transport.send(Packet.make_ack(expected), self.server)
                expected += 1
            else:
                duplicates += 1
                if expected > 1:
                    self.transport.send(Packet.make_ack(expected - 1), self.server)

        log.debug("peer idle limit reached; expected=%d", expected)
        return PeerResult(bytes(self.received), False, None, duplicates)
