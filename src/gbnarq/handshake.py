from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Union

from .constants import DEFAULT_HANDSHAKE_TIMEOUT_S, DEFAULT_MAX_RETRIES
from .net import Address, Received, Transport
from .packet import Packet, PacketFlag

log = logging.getLogger(__name__)


class HandshakeError(Exception):
    pass


class HandshakeState(enum.Enum):
    IDLE = "idle"
    SYN_RECEIVED = "syn-received"
    ESTABLISHED = "established"
    PARAMS_RECEIVED = "params-received"


@dataclass(frozen=True, slots=True)
class Established:
    peer: Address
    window_size: int
    total_units: int


@dataclass(frozen=True, slots=True)
class HandshakeTimeout:
    state: HandshakeState
    timeouts: int


HandshakeResult = Union[Established, HandshakeTimeout]


@dataclass(slots=True)
class Handshake:
    """Server half of SYN / SYN-ACK / ACK followed by the two parameter units.

    Every wait after the initial SYN is bounded by ``timeout_s``; a missing ACK
    gets the SYN-ACK re-sent up to ``max_retries`` times. ``max_retries=None``
    waits forever on every step.
    """

    transport: Transport
    timeout_s: float = DEFAULT_HANDSHAKE_TIMEOUT_S
    max_retries: Optional[int] = DEFAULT_MAX_RETRIES
    accept_timeout_s: Optional[float] = None
    state: HandshakeState = HandshakeState.IDLE
    peer: Optional[Address] = None
    retries: int = 0

    def _exhausted(self) -> bool:
        return self.max_retries is not None and self.retries > self.max_retries

    def _from_peer(self) -> Optional[Packet]:
        while True:
            got = self.transport.receive(self.timeout_s)
            if got is None:
                return None
            pkt, addr = got
            if addr == self.peer:
                break
            log.warning("ignoring %s from %s during handshake with %s", pkt.flag.name, addr, self.peer)
        if pkt.flag is PacketFlag.RST:
            raise HandshakeError(f"peer reset the connection in state {self.state.value}")
        return pkt

    def _accept(self) -> Optional[Received]:
        if self.accept_timeout_s is None:
            return self.transport.receive_blocking()
        return self.transport.receive(self.accept_timeout_s)

    def _timed_out(self) -> HandshakeTimeout:
        log.warning("handshake timed out in state %s after %d waits", self.state.value, self.retries)
        return HandshakeTimeout(state=self.state, timeouts=self.retries)

    def run(self) -> HandshakeResult:
        got = self._accept()
        if got is None:
            return self._timed_out()
        pkt, addr = got
        if pkt.flag is not PacketFlag.SYN:
            raise HandshakeError(f"expected SYN from {addr}, got {pkt.flag.name}")

        self.peer = addr
        self.state = HandshakeState.SYN_RECEIVED
        log.info("received SYN from %s:%d", *addr)
        self.transport.send(Packet.syn_ack(), addr)
        log.info("sent SYN-ACK")

        while self.state is HandshakeState.SYN_RECEIVED:
            pkt = self._from_peer()
            if pkt is None:
                self.retries += 1
                if self._exhausted():
                    return self._timed_out()
                log.debug("no ACK yet; re-sending SYN-ACK (retry=%d)", self.retries)
                self.transport.send(Packet.syn_ack(), addr)
            elif pkt.flag is PacketFlag.SYN:
                log.debug("duplicate SYN; re-sending SYN-ACK")
                self.transport.send(Packet.syn_ack(), addr)
            elif pkt.flag is PacketFlag.ACK:
                self.state = HandshakeState.ESTABLISHED
                log.info("received ACK, handshake complete")
            else:
                raise HandshakeError(f"expected ACK, got {pkt.flag.name}")

        params: list[int] = []
        self.retries = 0
        while len(params) < 2:
            pkt = self._from_peer()
            if pkt is None:
                self.retries += 1
                if self._exhausted():
                    return self._timed_out()
                continue
            if pkt.flag is PacketFlag.SYN:
                raise HandshakeError("unexpected SYN while waiting for parameters")
            params.append(pkt.value)

        window_size, total_units = params
        if window_size < 1:
            raise HandshakeError(f"peer requested an unusable window size: {window_size}")

        self.state = HandshakeState.PARAMS_RECEIVED
        log.info("received window size (N) = %d", window_size)
        log.info("received unit request (S) = %d", total_units)
        return Established(peer=addr, window_size=window_size, total_units=total_units)
