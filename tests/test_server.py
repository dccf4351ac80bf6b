from __future__ import annotations

import pytest

from fakes import PEER, GbnReceiver, ScriptedTransport, handshake_script
from gbnarq.config import ServerConfig
from gbnarq.constants import RST_ACK_MARKER
from gbnarq.handshake import HandshakeError, HandshakeState, HandshakeTimeout
from gbnarq.packet import Packet, PacketFlag
from gbnarq.sender import Delivered, GaveUp
from gbnarq.server import Server


def fast_config(**kw) -> ServerConfig:
    kw.setdefault("timeout_s", 0.01)
    kw.setdefault("handshake_timeout_s", 0.01)
    return ServerConfig(**kw)


def test_session_from_syn_to_rst():
    peer = GbnReceiver()
    t = ScriptedTransport(handshake_script(window_size=2, total_units=4), responder=peer)
    server = Server(t, fast_config())

    outcome = server.serve()

    assert isinstance(outcome, Delivered)
    assert t.sent_flags() == [PacketFlag.SYN_ACK] + [PacketFlag.DATA] * 4 + [PacketFlag.RST]
    rst, addr = t.sent[-1]
    assert addr == PEER
    assert rst == Packet.rst(5)
    assert rst.ack == RST_ACK_MARKER
    assert server.session.base == 5


@pytest.mark.parametrize("seed", [7, 8, 9])
def test_exactly_one_rst_under_loss(seed):
    peer = GbnReceiver(loss_rate=0.25, seed=seed)
    t = ScriptedTransport(handshake_script(window_size=4, total_units=25), responder=peer)

    outcome = Server(t, fast_config(max_retries=None)).serve()

    assert isinstance(outcome, Delivered)
    assert peer.delivered == list(range(1, 26))
    assert t.sent_flags().count(PacketFlag.RST) == 1
    assert t.sent[-1][0].flag is PacketFlag.RST


def test_gave_up_still_resets_peer():
    t = ScriptedTransport(handshake_script(window_size=2, total_units=3))
    server = Server(t, fast_config(max_retries=1))

    outcome = server.serve()

    assert isinstance(outcome, GaveUp)
    assert outcome.base == 1
    assert t.sent_flags()[-1] is PacketFlag.RST
    assert t.sent[-1][0].seq == server.session.next_sequence


def test_handshake_timeout_sends_no_data():
    t = ScriptedTransport([Packet.syn()])
    outcome = Server(t, fast_config(max_retries=1)).serve()
    assert outcome == HandshakeTimeout(state=HandshakeState.SYN_RECEIVED, timeouts=2)
    assert PacketFlag.DATA not in t.sent_flags()
    assert PacketFlag.RST not in t.sent_flags()


def test_handshake_error_propagates():
    t = ScriptedTransport([Packet.data(1)])
    server = Server(t, fast_config())
    with pytest.raises(HandshakeError):
        server.serve()
    assert server.session is None


def test_zero_units_resets_right_away():
    t = ScriptedTransport(handshake_script(window_size=3, total_units=0))
    outcome = Server(t, fast_config()).serve()
    assert isinstance(outcome, Delivered)
    assert t.sent_flags() == [PacketFlag.SYN_ACK, PacketFlag.RST]
    assert t.sent[-1][0].seq == 1
