"""Per-target failures captured during a dispatch."""

from __future__ import annotations


class TargetError(Exception):
    """Base class for failures confined to a single agent."""

    kind = "target"

    def __init__(self, target: str, message: str) -> None:
        super().__init__(message)
        self.target = target
        self.message = message

    def __str__(self) -> str:
        return f"{self.target}: {self.message}"


class TransportError(TargetError):
    """Connection failure, timeout or broken transfer."""

    kind = "transport"


class DecodeError(TargetError):
    """The agent answered but the body is not a valid info report."""

    kind = "decode"


class ReportError(TargetError):
    """The agent's block could not be written to the report stream."""

    kind = "report"
