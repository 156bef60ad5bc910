from __future__ import annotations

import dataclasses

import pytest

from lobactl.dispatch.commands import (
    attach_command,
    detach_command,
    info_command,
    unlock_command,
)


def test_info_has_no_parameters():
    command = info_command()
    assert command.name == "info"
    assert command.path == "/info"
    assert command.params == ()
    assert command.url_for("http://lb1:8880") == "http://lb1:8880/info"


def test_attach_defaults_to_lock_true():
    command = attach_command("192.168.122.2:80", "192.168.122.62:80")
    assert dict(command.params)["lock"] == "true"
    assert command.url_for("http://lb1:8880/") == (
        "http://lb1:8880/attach?service=192.168.122.2%3A80&dest=192.168.122.62%3A80&lock=true"
    )


def test_detach_lock_false():
    command = detach_command("10.0.0.1:443", "10.0.0.2:443", lock=False)
    assert command.path == "/detach"
    assert [name for name, _ in command.params] == ["service", "dest", "lock"]
    assert dict(command.params)["lock"] == "false"


def test_unlock_never_sends_lock():
    command = unlock_command("10.0.0.1:80", "10.0.0.2:80")
    assert command.path == "/unlock"
    assert "lock" not in dict(command.params)
    assert command.url_for("http://lb1") == "http://lb1/unlock?service=10.0.0.1%3A80&dest=10.0.0.2%3A80"


def test_missing_parameters_are_sent_empty():
    command = attach_command()
    assert command.query == "service=&dest=&lock=true"


def test_values_are_percent_encoded():
    command = unlock_command("a b&c", "[::1]:80")
    assert command.query == "service=a+b%26c&dest=%5B%3A%3A1%5D%3A80"


def test_command_spec_is_immutable():
    command = info_command()
    with pytest.raises(dataclasses.FrozenInstanceError):
        command.path = "/other"  # type: ignore[misc]
