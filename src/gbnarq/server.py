from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from .config import ServerConfig
from .handshake import Handshake, HandshakeTimeout
from .net import Transport
from .sender import Delivered, GaveUp, GoBackNSender
from .session import Session
from .teardown import send_reset

log = logging.getLogger(__name__)

ServerOutcome = Union[HandshakeTimeout, Delivered, GaveUp]


@dataclass(slots=True)
class Server:
    """One peer, one session: handshake, Go-Back-N transfer, reset. Then done.

    ``HandshakeError`` is not caught here; the caller decides how to report a
    misbehaving peer.
    """

    transport: Transport
    config: ServerConfig = field(default_factory=ServerConfig)
    session: Session | None = None

    def serve(self) -> ServerOutcome:
        handshake = Handshake(
            self.transport,
            timeout_s=self.config.handshake_timeout_s,
            max_retries=self.config.max_retries,
            accept_timeout_s=self.config.accept_timeout_s,
        )
        est = handshake.run()
        if isinstance(est, HandshakeTimeout):
            return est

        self.session = Session(window_size=est.window_size, total_units=est.total_units)
        sender = GoBackNSender(
            self.transport,
            est.peer,
            self.session,
            policy=self.config.policy(),
            max_retries=self.config.max_retries,
        )
        outcome = sender.run()
        if isinstance(outcome, GaveUp):
            log.warning("abandoning session with %s:%d at base=%d", est.peer[0], est.peer[1], outcome.base)

        send_reset(self.transport, est.peer, self.session.next_sequence)
        return outcome
