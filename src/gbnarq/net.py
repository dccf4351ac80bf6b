from __future__ import annotations

import logging
import random
import select
import socket
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

from .packet import Packet, PacketError

log = logging.getLogger(__name__)

Address = Tuple[str, int]
Received = Tuple[Packet, Address]


class Transport(Protocol):
    """What the server needs from the network. UDP in production, scripted in tests."""

    def send(self, packet: Packet, addr: Address) -> None: ...

    def receive(self, timeout: float) -> Optional[Received]: ...

    def receive_blocking(self) -> Received: ...


@dataclass(frozen=True, slots=True)
class Impairment:
    loss_rate: float = 0.0
    delay_ms: int = 0

    def should_drop(self) -> bool:
        return self.loss_rate > 0 and random.random() < self.loss_rate

    def sleep_if_needed(self) -> None:
        if self.delay_ms > 0:
            time.sleep(self.delay_ms / 1000.0)


class UdpEndpoint:
    def __init__(self, sock: socket.socket, impairment: Impairment | None = None, name: str = ""):
        self.sock = sock
        self.impairment = impairment or Impairment()
        self.name = name

    @classmethod
    def listening(
        cls,
        host: str,
        port: int,
        impairment: Impairment | None = None,
        name: str = "server",
    ) -> "UdpEndpoint":
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((host, port))
        except OSError:
            sock.close()
            raise
        return cls(sock, impairment, name)

    @classmethod
    def unbound(cls, impairment: Impairment | None = None, name: str = "peer") -> "UdpEndpoint":
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        return cls(sock, impairment, name)

    @property
    def address(self) -> Address:
        host, port = self.sock.getsockname()[:2]
        return host, port

    def send(self, packet: Packet, addr: Address) -> None:
        if self.impairment.should_drop():
            log.debug("[%s] DROPPED outbound %s seq=%d", self.name, packet.flag.name, packet.seq)
            return
        self.impairment.sleep_if_needed()
        self.sock.sendto(packet.to_bytes(), addr)

    def _read(self) -> Optional[Received]:
        raw, addr = self.sock.recvfrom(4096)
        try:
            return Packet.from_bytes(raw), (addr[0], addr[1])
        except PacketError as e:
            log.debug("[%s] ignoring malformed datagram from %s: %s", self.name, addr, e)
            return None

    def receive(self, timeout: float) -> Optional[Received]:
        deadline = time.monotonic() + timeout
        while True:
            remaining = max(0.0, deadline - time.monotonic())
            readable, _, _ = select.select([self.sock], [], [], remaining)
            if not readable:
                return None
            got = self._read()
            if got is not None:
                return got

    def receive_blocking(self) -> Received:
        while True:
            got = self._read()
            if got is not None:
                return got

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "UdpEndpoint":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
