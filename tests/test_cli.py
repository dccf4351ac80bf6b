from __future__ import annotations

import json
import socket

import pytest

from gbnarq.cli import build_parser, main, summarize
from gbnarq.config import ServerConfig
from gbnarq.handshake import HandshakeState, HandshakeTimeout
from gbnarq.sender import Delivered, GaveUp, TransferMetrics


def test_config_from_args_defaults():
    cfg = ServerConfig.from_args(build_parser().parse_args(["9000"]))
    assert cfg.port == 9000
    assert cfg.host == "0.0.0.0"
    assert cfg.timeout_s == 2.0
    assert cfg.max_retries == 20
    assert cfg.policy().restore_after == 2


def test_negative_max_retries_means_unbounded():
    cfg = ServerConfig.from_args(build_parser().parse_args(["9000", "--max-retries", "-1"]))
    assert cfg.max_retries is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"port": 70000},
        {"timeout_s": 0},
        {"handshake_timeout_s": -1},
        {"accept_timeout_s": 0},
        {"loss_rate": 1.0},
        {"restore_after": 0},
    ],
)
def test_invalid_config(kwargs):
    with pytest.raises(ValueError):
        ServerConfig(**kwargs)


def test_port_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_summaries():
    m = TransferMetrics(packets_sent=6, timeouts=1, retransmits=2)
    assert summarize(Delivered(m))["result"] == "delivered"
    gave_up = summarize(GaveUp(retries=3, base=2, metrics=m))
    assert gave_up["result"] == "gave-up"
    assert gave_up["base"] == 2
    assert summarize(HandshakeTimeout(HandshakeState.IDLE, 0))["state"] == "idle"


def test_main_reports_bind_failure():
    holder = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    holder.bind(("127.0.0.1", 0))
    try:
        assert main([str(holder.getsockname()[1]), "--host", "127.0.0.1"]) == 1
    finally:
        holder.close()


def test_main_rejects_bad_config():
    assert main(["0", "--timeout", "0"]) == 1


def test_main_accept_timeout(capsys):
    code = main(["0", "--host", "127.0.0.1", "--accept-timeout", "0.05", "--json"])
    assert code == 2
    out = json.loads(capsys.readouterr().out)
    assert out["result"] == "handshake-timeout"
