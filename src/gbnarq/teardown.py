from __future__ import annotations

import logging

from .net import Address, Transport
from .packet import Packet

log = logging.getLogger(__name__)


def send_reset(transport: Transport, peer: Address, sequence: int) -> Packet:
    """Tell the peer the session is over. Fire and forget: no reply is awaited."""
    rst = Packet.rst(sequence)
    transport.send(rst, peer)
    log.info("sent RST (seq=%d), ending transmission", sequence)
    return rst
