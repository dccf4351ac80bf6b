from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from .config import ServerConfig
from .handshake import HandshakeTimeout
from .net import Impairment, UdpEndpoint
from .peer import Peer
from .sender import Delivered
from .server import Server, ServerOutcome


@dataclass(frozen=True, slots=True)
class BenchmarkResult:
    units: int
    delivered: bool
    rst_received: bool
    duration_s: float
    retransmits: int
    timeouts: int
    final_window: int


def run_benchmark(
    *,
    window_size: int = 4,
    total_units: int = 64,
    loss_rate: float = 0.0,
    delay_ms: int = 0,
    timeout_s: float = 0.1,
    max_retries: Optional[int] = 50,
) -> BenchmarkResult:
    """Serve one session on loopback to an in-process peer.

    Loss is applied to the server's outbound units only (data, SYN-ACK, RST), so
    the handshake parameters always arrive and the sender's recovery is what
    gets measured.
    """
    config = ServerConfig(
        host="127.0.0.1",
        timeout_s=timeout_s,
        handshake_timeout_s=timeout_s,
        accept_timeout_s=10.0,
        max_retries=max_retries,
        loss_rate=loss_rate,
        delay_ms=delay_ms,
    )
    server_ep = UdpEndpoint.listening(config.host, config.port, impairment=config.impairment())
    server = Server(server_ep, config)
    holder: dict[str, ServerOutcome] = {}

    def serve() -> None:
        try:
            holder["outcome"] = server.serve()
        finally:
            server_ep.close()

    t = threading.Thread(target=serve, daemon=True)
    t.start()

    with UdpEndpoint.unbound(Impairment()) as peer_ep:
        peer = Peer(
            peer_ep,
            server_ep.address,
            window_size=window_size,
            total_units=total_units,
            timeout_s=max(0.05, timeout_s * 2),
            max_retries=10,
        )
        result = peer.run()

    t.join(timeout=10.0)

    outcome = holder.get("outcome")
    if outcome is None or isinstance(outcome, HandshakeTimeout):
        raise RuntimeError(f"server did not complete a transfer: {outcome!r}")
    metrics = outcome.metrics
    session = server.session
    return BenchmarkResult(
        units=len(result.payload),
        delivered=isinstance(outcome, Delivered) and len(result.payload) == total_units,
        rst_received=result.rst_received,
        duration_s=metrics.duration_s,
        retransmits=metrics.retransmits,
        timeouts=metrics.timeouts,
        final_window=session.window_size if session is not None else 0,
    )
