from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Union

from .constants import DEFAULT_MAX_RETRIES
from .net import Address, Transport
from .packet import Packet, PacketFlag
from .policy import AdaptationPolicy
from .session import Session

log = logging.getLogger(__name__)


@dataclass(slots=True)
class TransferMetrics:
    packets_sent: int = 0
    retransmits: int = 0
    timeouts: int = 0
    acks_received: int = 0
    stale_acks: int = 0
    restores: int = 0
    start_ts: float = field(default_factory=time.monotonic)
    end_ts: float | None = None

    @property
    def duration_s(self) -> float:
        if self.end_ts is None:
            return 0.0
        return max(0.0, self.end_ts - self.start_ts)


@dataclass(frozen=True, slots=True)
class Delivered:
    metrics: TransferMetrics


@dataclass(frozen=True, slots=True)
class GaveUp:
    retries: int
    base: int
    metrics: TransferMetrics


TransferResult = Union[Delivered, GaveUp]


@dataclass(slots=True)
class GoBackNSender:
    transport: Transport
    peer: Address
    session: Session
    policy: AdaptationPolicy = field(default_factory=AdaptationPolicy)
    max_retries: Optional[int] = DEFAULT_MAX_RETRIES
    metrics: TransferMetrics = field(default_factory=TransferMetrics)

    def fill(self) -> int:
        """Send every unit the window currently allows; returns how many went out."""
        sent = 0
        session = self.session
        while session.can_send():
            seq = session.take_next()
            self.transport.send(Packet.data(seq), self.peer)
            self.metrics.packets_sent += 1
            sent += 1
            log.debug("sent seq=%d (window=%d base=%d)", seq, session.window_size, session.base)
        return sent

    def on_ack(self, pkt: Packet) -> bool:
        self.metrics.acks_received += 1
        log.debug("received ACK for seq=%d", pkt.ack)
        if not self.session.slide(pkt.ack):
            self.metrics.stale_acks += 1
            return False
        if self.policy.on_clean_ack(self.session):
            self.metrics.restores += 1
            log.debug("window restored to %d", self.session.window_size)
        return True

    def on_timeout(self) -> None:
        session = self.session
        self.metrics.timeouts += 1
        self.metrics.retransmits += session.rewind()
        self.policy.on_timeout(session)
        log.debug("timeout; resending from base seq=%d with window=%d", session.base, session.window_size)

    def run(self) -> TransferResult:
        session = self.session
        retries = 0
        log.info(
            "GBN send start; units=%d window=%d timeout=%.3fs",
            session.total_units,
            session.window_size,
            self.policy.timeout_s,
        )

        while not session.complete:
            self.fill()

            got = self.transport.receive(self.policy.timeout_s)
            if got is None:
                retries += 1
                if self.max_retries is not None and retries > self.max_retries:
                    self.metrics.end_ts = time.monotonic()
                    log.warning("giving up after %d retransmission rounds; base=%d", retries - 1, session.base)
                    return GaveUp(retries=retries - 1, base=session.base, metrics=self.metrics)
                self.on_timeout()
                continue

            pkt, addr = got
            if addr != self.peer or pkt.flag is not PacketFlag.ACK:
                log.debug("ignoring %s from %s", pkt.flag.name, addr)
                continue
            if self.on_ack(pkt):
                retries = 0

        self.metrics.end_ts = time.monotonic()
        log.info(
            "GBN send done; units=%d timeouts=%d retransmits=%d",
            session.total_units,
            self.metrics.timeouts,
            self.metrics.retransmits,
        )
        return Delivered(metrics=self.metrics)
