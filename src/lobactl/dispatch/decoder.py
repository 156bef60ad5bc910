"""Turn raw agent responses into presentable payloads."""

from __future__ import annotations

from typing import Literal, Union

from pydantic import ValidationError

from ..common.schemas import InfoReport
from .commands import CommandSpec
from .errors import DecodeError

ReportFormat = Literal["text", "json"]
Payload = Union[bytes, InfoReport]


def decode_response(target: str, command: CommandSpec, fmt: ReportFormat, body: bytes) -> Payload:
    """Only ``info`` in text format is parsed; every other body passes through untouched."""

    if command.name == "info" and fmt == "text":
        try:
            return InfoReport.model_validate_json(body)
        except ValidationError as exc:
            raise DecodeError(target, f"failed to unmarshal JSON response: {exc}") from exc
    return body
