from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from typing import Any

from .bench import run_benchmark
from .config import ServerConfig
from .constants import (
    DEFAULT_HANDSHAKE_TIMEOUT_S,
    DEFAULT_HOST,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RESTORE_AFTER,
    DEFAULT_TIMEOUT_S,
)
from .handshake import HandshakeError, HandshakeTimeout
from .net import UdpEndpoint
from .sender import Delivered
from .server import Server, ServerOutcome

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level), format="%(asctime)s [%(levelname)s] %(message)s")


def summarize(outcome: ServerOutcome) -> dict[str, Any]:
    if isinstance(outcome, HandshakeTimeout):
        return {"role": "server", "result": "handshake-timeout", "state": outcome.state.value}
    m = outcome.metrics
    payload: dict[str, Any] = {
        "role": "server",
        "result": "delivered" if isinstance(outcome, Delivered) else "gave-up",
        "packets": m.packets_sent,
        "seconds": m.duration_s,
        "timeouts": m.timeouts,
        "retransmits": m.retransmits,
    }
    if not isinstance(outcome, Delivered):
        payload["base"] = outcome.base
    return payload


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gbnarq-server", description="Go-Back-N ARQ server over UDP (single session).")
    p.add_argument("port", type=int, help="local UDP port to listen on")
    p.add_argument("--host", default=DEFAULT_HOST)
    p.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_S, help="retransmission timeout in seconds")
    p.add_argument("--handshake-timeout", type=float, default=DEFAULT_HANDSHAKE_TIMEOUT_S)
    p.add_argument("--accept-timeout", type=float, default=None, help="give up if no SYN arrives in time")
    p.add_argument("--max-retries", type=int, default=DEFAULT_MAX_RETRIES, help="-1 retries forever")
    p.add_argument("--restore-after", type=int, default=DEFAULT_RESTORE_AFTER)
    p.add_argument("--loss-rate", type=float, default=0.0, help="simulate outbound packet loss")
    p.add_argument("--delay-ms", type=int, default=0, help="simulate outbound send delay")
    p.add_argument("--log-level", default="INFO", choices=LOG_LEVELS)
    p.add_argument("--json", action="store_true")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = ServerConfig.from_args(args)
    except ValueError as e:
        logging.error("invalid configuration: %s", e)
        return 1

    try:
        udp = UdpEndpoint.listening(config.host, config.port, impairment=config.impairment())
    except OSError as e:
        logging.error("bind failed on %s:%d: %s", config.host, config.port, e)
        return 1

    logging.info("server initialized and listening on port %d", config.port)
    with udp:
        try:
            outcome = Server(udp, config).serve()
        except HandshakeError as e:
            logging.error("handshake failed: %s", e)
            return 1

    payload = summarize(outcome)
    print(json.dumps(payload, indent=2) if args.json else payload)
    return 0 if isinstance(outcome, Delivered) else 2


def bench_main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="gbnarq-bench", description="Loopback benchmark of the GBN server.")
    p.add_argument("--window-size", type=int, default=4)
    p.add_argument("--units", type=int, default=64)
    p.add_argument("--loss-rate", type=float, default=0.0)
    p.add_argument("--delay-ms", type=int, default=0)
    p.add_argument("--timeout", type=float, default=0.1)
    p.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS)
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)
    setup_logging(args.log_level)

    r = run_benchmark(
        window_size=args.window_size,
        total_units=args.units,
        loss_rate=args.loss_rate,
        delay_ms=args.delay_ms,
        timeout_s=args.timeout,
    )
    payload = {"role": "bench", **asdict(r)}
    print(json.dumps(payload, indent=2) if args.json else payload)
    return 0 if r.delivered else 2


if __name__ == "__main__":
    raise SystemExit(main())
