from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import Optional

from .constants import (
    DEFAULT_HANDSHAKE_TIMEOUT_S,
    DEFAULT_HOST,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RESTORE_AFTER,
    DEFAULT_TIMEOUT_S,
)
from .net import Impairment
from .policy import AdaptationPolicy


@dataclass(frozen=True, slots=True)
class ServerConfig:
    port: int = 0
    host: str = DEFAULT_HOST
    timeout_s: float = DEFAULT_TIMEOUT_S
    handshake_timeout_s: float = DEFAULT_HANDSHAKE_TIMEOUT_S
    accept_timeout_s: Optional[float] = None
    max_retries: Optional[int] = DEFAULT_MAX_RETRIES
    restore_after: int = DEFAULT_RESTORE_AFTER
    loss_rate: float = 0.0
    delay_ms: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port out of range: {self.port}")
        if self.handshake_timeout_s <= 0:
            raise ValueError(f"handshake timeout must be positive, got {self.handshake_timeout_s}")
        if self.accept_timeout_s is not None and self.accept_timeout_s <= 0:
            raise ValueError(f"accept timeout must be positive, got {self.accept_timeout_s}")
        if self.max_retries is not None and self.max_retries < 0:
            raise ValueError(f"max retries must be >= 0, got {self.max_retries}")
        if not 0.0 <= self.loss_rate < 1.0:
            raise ValueError(f"loss rate must be in [0, 1), got {self.loss_rate}")
        # raises for a bad timeout / restore count
        self.policy()

    def policy(self) -> AdaptationPolicy:
        return AdaptationPolicy(timeout_s=self.timeout_s, restore_after=self.restore_after)

    def impairment(self) -> Impairment:
        return Impairment(loss_rate=self.loss_rate, delay_ms=self.delay_ms)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "ServerConfig":
        return cls(
            port=args.port,
            host=args.host,
            timeout_s=args.timeout,
            handshake_timeout_s=args.handshake_timeout,
            accept_timeout_s=args.accept_timeout,
            max_retries=None if args.max_retries < 0 else args.max_retries,
            restore_after=args.restore_after,
            loss_rate=args.loss_rate,
            delay_ms=args.delay_ms,
        )
