"""Render per-agent results and write them to the shared report stream.

Each agent's block is built completely in memory and handed to the sink as
a single unit, so concurrent agents can never interleave lines.
"""

from __future__ import annotations

import asyncio
import sys
from typing import BinaryIO, Optional

from ..common.schemas import Destination, InfoReport, Service
from .commands import CommandSpec, format_bool
from .decoder import Payload, ReportFormat

# Mirrors `ipvsadm -Ln`, with Detached/Locked columns appended.
INFO_HEADER = "Prot LocalAddress:Port Scheduler Flags\n"
INFO_COLUMNS = "  -> RemoteAddress:Port           Forward Weight ActiveConn InActConn Detached Locked\n"


def join_host_port(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def format_service_row(service: Service) -> str:
    return f"{service.protocol:<4} {service.address}:{service.port} {service.schedule}\n"


def format_destination_row(dest: Destination) -> str:
    host_port = join_host_port(dest.address, dest.port)
    return (
        f"  -> {host_port:<28} {dest.forward:<7} {dest.weight:<6} {dest.active_conn:<10} "
        f"{dest.inactive_conn:<9} {format_bool(dest.detached):<8} {format_bool(dest.locked)}\n"
    )


def render_info_text(target: str, report: InfoReport) -> str:
    lines = [f"{target}:\n", INFO_HEADER, INFO_COLUMNS]
    for service in report.services:
        lines.append(format_service_row(service))
        lines.extend(format_destination_row(dest) for dest in service.destinations)
    lines.append("\n")
    return "".join(lines)


def render_block(target: str, command: CommandSpec, fmt: ReportFormat, payload: Payload) -> bytes:
    """Render one agent's complete report block."""

    if isinstance(payload, InfoReport):
        return render_info_text(target, payload).encode("utf-8")
    if command.name == "unlock":
        return payload
    return f"{target}:\n".encode("utf-8") + payload + b"\n"


class ReportSink:
    """Serializes whole report blocks onto one output stream."""

    def __init__(self, stream: Optional[BinaryIO] = None) -> None:
        self._stream = stream if stream is not None else sys.stdout.buffer
        self._lock = asyncio.Lock()

    async def emit(self, block: bytes) -> None:
        if not block:
            return
        async with self._lock:
            self._stream.write(block)
            self._stream.flush()
