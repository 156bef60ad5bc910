"""Request descriptors for the agent control API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlencode

CommandName = Literal["info", "attach", "detach", "unlock"]


@dataclass(frozen=True)
class CommandSpec:
    """One subcommand as sent to every agent: path plus ordered query parameters."""

    name: CommandName
    path: str
    params: tuple[tuple[str, str], ...] = ()

    @property
    def query(self) -> str:
        # quote_plus form encoding: ':' -> %3A, ' ' -> '+'
        return urlencode(self.params)

    def url_for(self, target: str) -> str:
        url = f"{target.rstrip('/')}{self.path}"
        if self.params:
            url = f"{url}?{self.query}"
        return url


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def info_command() -> CommandSpec:
    return CommandSpec(name="info", path="/info")


def attach_command(service: str = "", dest: str = "", lock: bool = True) -> CommandSpec:
    return CommandSpec(
        name="attach",
        path="/attach",
        params=(("service", service), ("dest", dest), ("lock", format_bool(lock))),
    )


def detach_command(service: str = "", dest: str = "", lock: bool = True) -> CommandSpec:
    return CommandSpec(
        name="detach",
        path="/detach",
        params=(("service", service), ("dest", dest), ("lock", format_bool(lock))),
    )


def unlock_command(service: str = "", dest: str = "") -> CommandSpec:
    return CommandSpec(name="unlock", path="/unlock", params=(("service", service), ("dest", dest)))
