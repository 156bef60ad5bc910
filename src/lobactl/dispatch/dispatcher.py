"""Fan a command out to every configured agent and collect per-agent outcomes."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Sequence

import httpx
import structlog
from opentelemetry import trace

from .commands import CommandSpec
from .decoder import Payload, ReportFormat, decode_response
from .errors import ReportError, TargetError, TransportError
from .presenter import ReportSink, render_block

LOGGER = structlog.get_logger("lobactl.dispatch")
TRACER = trace.get_tracer("lobactl.dispatch")


@dataclass(frozen=True)
class ClientConfig:
    """HTTP client settings shared by every request of one invocation."""

    timeout: Optional[float] = None
    transport: Optional[httpx.AsyncBaseTransport] = None

    def create_client(self) -> httpx.AsyncClient:
        # No connection cap: one request per agent, all in flight at once.
        limits = httpx.Limits(max_connections=None, max_keepalive_connections=None)
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            limits=limits,
            transport=self.transport,
        )


@dataclass(frozen=True)
class TargetOutcome:
    """Result for a single agent: either a payload or an error, never both."""

    target: str
    payload: Optional[Payload] = None
    error: Optional[TargetError] = None
    status_code: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.payload is None) == (self.error is None):
            raise ValueError("TargetOutcome requires exactly one of payload or error")

    @property
    def ok(self) -> bool:
        return self.error is None


class Dispatcher:
    """Runs one command against a set of agents concurrently."""

    def __init__(self, client_config: ClientConfig, sink: ReportSink) -> None:
        self._client_config = client_config
        self._sink = sink

    async def dispatch(
        self,
        targets: Sequence[str],
        command: CommandSpec,
        fmt: ReportFormat = "text",
    ) -> list[TargetOutcome]:
        """Send ``command`` to every target and wait until all of them finished.

        Outcomes are returned in target order. Failures never propagate out of
        this method; each is captured in its target's outcome and logged.
        """

        if not targets:
            return []
        async with self._client_config.create_client() as client:
            outcomes = await asyncio.gather(
                *(self._run_target(client, target, command, fmt) for target in targets)
            )
        return list(outcomes)

    async def _run_target(
        self,
        client: httpx.AsyncClient,
        target: str,
        command: CommandSpec,
        fmt: ReportFormat,
    ) -> TargetOutcome:
        log = LOGGER.bind(target=target, command=command.name)
        with TRACER.start_as_current_span(
            "lobactl.dispatch.target",
            attributes={"lobactl.target": target, "lobactl.command": command.name},
        ) as span:
            try:
                outcome = await self._execute(client, target, command, fmt)
                status_code = outcome.status_code
                if status_code is not None:
                    span.set_attribute("http.status_code", status_code)
                    if not 200 <= status_code < 300:
                        # Rendered like any other response; the status is only flagged.
                        log.warning("Agent returned non-success status", status_code=status_code)
                await self._report(target, command, fmt, outcome)
            except TargetError as exc:
                span.record_exception(exc)
                span.set_attribute("lobactl.error_kind", exc.kind)
                log.error("Agent failed", error=exc.message, error_kind=exc.kind)
                return TargetOutcome(target=target, error=exc)

            log.debug("Agent response reported", status_code=status_code)
            return outcome

    async def _report(
        self,
        target: str,
        command: CommandSpec,
        fmt: ReportFormat,
        outcome: TargetOutcome,
    ) -> None:
        try:
            await self._sink.emit(render_block(target, command, fmt, outcome.payload))
        except OSError as exc:
            # e.g. BrokenPipeError once the reader of stdout has gone away
            raise ReportError(target, f"failed to write report: {type(exc).__name__}: {exc}") from exc

    async def _execute(
        self,
        client: httpx.AsyncClient,
        target: str,
        command: CommandSpec,
        fmt: ReportFormat,
    ) -> TargetOutcome:
        timeout = self._client_config.timeout
        try:
            # Bounds the whole exchange, body included, not just each socket operation.
            async with asyncio.timeout(timeout):
                response = await client.get(command.url_for(target))
            body = response.content
        except TimeoutError as exc:
            raise TransportError(target, f"failed to send request: timed out after {timeout}s") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(target, f"failed to send request: {type(exc).__name__}: {exc}") from exc
        payload = decode_response(target, command, fmt, body)
        return TargetOutcome(target=target, payload=payload, status_code=response.status_code)
