from __future__ import annotations

import socket
import time

import pytest

from gbnarq.net import Impairment, UdpEndpoint
from gbnarq.packet import Packet, PacketFlag


@pytest.fixture
def pair():
    server = UdpEndpoint.listening("127.0.0.1", 0)
    client = UdpEndpoint.listening("127.0.0.1", 0, name="client")
    yield server, client
    server.close()
    client.close()


def test_send_and_receive(pair):
    server, client = pair
    client.send(Packet.syn(), server.address)
    pkt, addr = server.receive(1.0)
    assert pkt.flag is PacketFlag.SYN
    assert addr == client.address


def test_receive_times_out(pair):
    server, _ = pair
    start = time.monotonic()
    assert server.receive(0.05) is None
    assert time.monotonic() - start < 1.0


def test_malformed_datagram_is_skipped(pair):
    server, client = pair
    client.sock.sendto(b"garbage", server.address)
    client.send(Packet.make_ack(4), server.address)
    pkt, _ = server.receive(1.0)
    assert pkt == Packet.make_ack(4)


def test_only_malformed_datagrams_read_as_timeout(pair):
    server, client = pair
    client.sock.sendto(b"\x00" * 3, server.address)
    assert server.receive(0.1) is None


def test_receive_blocking(pair):
    server, client = pair
    client.send(Packet.data(2), server.address)
    pkt, _ = server.receive_blocking()
    assert pkt.seq == 2


def test_outbound_loss_drops_everything():
    with UdpEndpoint.listening("127.0.0.1", 0, impairment=Impairment(loss_rate=1.0)) as lossy:
        with UdpEndpoint.listening("127.0.0.1", 0) as other:
            lossy.send(Packet.syn(), other.address)
            assert other.receive(0.1) is None


def test_bind_failure_raises():
    holder = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    holder.bind(("127.0.0.1", 0))
    try:
        with pytest.raises(OSError):
            UdpEndpoint.listening("127.0.0.1", holder.getsockname()[1])
    finally:
        holder.close()
