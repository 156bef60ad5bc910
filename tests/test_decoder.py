from __future__ import annotations

import pytest

from lobactl.common.schemas import InfoReport
from lobactl.dispatch.commands import attach_command, info_command, unlock_command
from lobactl.dispatch.decoder import decode_response
from lobactl.dispatch.errors import DecodeError


def test_info_text_parses_report(info_payload):
    report = decode_response("http://lb1", info_command(), "text", info_payload)
    assert isinstance(report, InfoReport)
    service = report.services[0]
    assert (service.protocol, service.address, service.port, service.schedule) == (
        "tcp",
        "192.168.122.2",
        80,
        "wrr",
    )
    dest = service.destinations[0]
    assert dest.forward == "droute"
    assert dest.weight == 100
    assert dest.detached is True
    assert dest.locked is False


def test_info_json_is_passthrough():
    body = b'{"not": "validated"'
    assert decode_response("http://lb1", info_command(), "json", body) is body


@pytest.mark.parametrize("command", [attach_command("a:1", "b:2"), unlock_command("a:1", "b:2")])
def test_control_commands_are_passthrough(command):
    body = b"detached destination\n"
    assert decode_response("http://lb1", command, "text", body) == body


def test_info_text_rejects_malformed_json():
    with pytest.raises(DecodeError) as exc_info:
        decode_response("http://lb1", info_command(), "text", b"<html>oops</html>")
    assert exc_info.value.target == "http://lb1"
    assert exc_info.value.kind == "decode"


def test_null_collections_decode_as_empty():
    report = decode_response(
        "http://lb1",
        info_command(),
        "text",
        b'{"services":[{"protocol":"udp","address":"10.0.0.1","port":53,"schedule":"rr","destinations":null}]}',
    )
    assert report.services[0].destinations == ()
    assert decode_response("http://lb1", info_command(), "text", b'{"services":null}').services == ()


def test_destination_order_is_preserved():
    body = (
        b'{"services":[{"protocol":"tcp","address":"10.0.0.1","port":80,"schedule":"wrr","destinations":['
        b'{"address":"10.0.0.9","port":80},{"address":"10.0.0.3","port":80},{"address":"10.0.0.5","port":80}]}]}'
    )
    report = decode_response("http://lb1", info_command(), "text", body)
    assert [d.address for d in report.services[0].destinations] == ["10.0.0.9", "10.0.0.3", "10.0.0.5"]
