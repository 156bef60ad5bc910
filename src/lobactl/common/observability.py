"""Diagnostics for lobactl: structured logs and optional trace export.

stdout belongs to the report. Log records are rendered as JSON onto stderr
(or a stream handed in by the caller), and spans only leave the process
when an OTLP endpoint is configured.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from structlog.contextvars import bind_contextvars

_log_handler: Optional[logging.Handler] = None
_tracer_provider: Optional[TracerProvider] = None


def resolve_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(str(level or "").strip().upper())
    return numeric if isinstance(numeric, int) else logging.WARNING


def configure_logging(service_name: str, level: str | int | None = None, stream: Optional[TextIO] = None) -> None:
    """Route structlog and stdlib records as JSON lines to ``stream`` (stderr by default).

    Calling it again replaces the handler installed by the previous call.
    """

    global _log_handler
    numeric_level = resolve_level(level)
    root = logging.getLogger()
    if _log_handler is not None:
        root.removeHandler(_log_handler)
    _log_handler = logging.StreamHandler(sys.stderr if stream is None else stream)
    _log_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(_log_handler)
    root.setLevel(numeric_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.dict_tracebacks,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    bind_contextvars(service=service_name)


def parse_otlp_headers(headers: str | None) -> dict[str, str]:
    """Parse ``key=value,key=value``; entries without both parts are skipped."""

    pairs = (item.partition("=") for item in (headers or "").split(","))
    return {key.strip(): value.strip() for key, sep, value in pairs if sep and key.strip() and value.strip()}


def configure_tracing(
    service_name: str,
    endpoint: Optional[str] = None,
    headers: Optional[str] = None,
    sampler_ratio: float = 1.0,
) -> bool:
    """Export spans to an OTLP/HTTP collector; without an endpoint tracing stays a no-op.

    Returns whether a tracer provider is active.
    """

    global _tracer_provider
    if _tracer_provider is not None:
        return True
    if not endpoint:
        return False

    ratio = max(0.0, min(1.0, sampler_ratio))
    provider = TracerProvider(
        resource=Resource.create({"service.name": service_name}),
        sampler=ParentBased(TraceIdRatioBased(ratio)),
    )
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, headers=parse_otlp_headers(headers)))
    )
    trace.set_tracer_provider(provider)
    HTTPXClientInstrumentor().instrument(tracer_provider=provider)
    _tracer_provider = provider
    return True


def shutdown_tracing() -> None:
    """Flush queued spans and detach the httpx instrumentation."""

    global _tracer_provider
    if _tracer_provider is None:
        return
    HTTPXClientInstrumentor().uninstrument()
    _tracer_provider.shutdown()
    _tracer_provider = None
