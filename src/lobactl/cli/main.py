"""Command-line client for administering load-balancer agents."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

import structlog

from ..common.observability import configure_logging, configure_tracing, shutdown_tracing
from ..common.settings import ConfigurationError, CtlConfig, load_config, load_settings
from ..dispatch.commands import (
    CommandSpec,
    attach_command,
    detach_command,
    info_command,
    unlock_command,
)
from ..dispatch.dispatcher import ClientConfig, Dispatcher, TargetOutcome
from ..dispatch.presenter import ReportSink

LOGGER = structlog.get_logger("lobactl.cli")

_TRUE_VALUES = {"1", "t", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "f", "false", "no", "n", "off"}


def parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: {value!r}")


def _add_target_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-s", dest="service", default="", help="service address in <IPAddress>:<port> form")
    parser.add_argument("-d", dest="dest", default="", help="destination address in <IPAddress>:<port> form")


def parse_args(argv: list[str], default_config: Path) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="lobactl", description="Control load-balancer agents")
    parser.add_argument(
        "--config",
        type=Path,
        default=default_config,
        help=f"config file (default: {default_config})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    info_parser = subparsers.add_parser("info", help="show information")
    info_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="result format, 'text' or 'json'",
    )

    for name, verb in (("attach", "attach"), ("detach", "detach")):
        sub = subparsers.add_parser(name, help=f"manually {verb} destination")
        _add_target_options(sub)
        sub.add_argument(
            "--lock",
            type=parse_bool,
            nargs="?",
            const=True,
            default=True,
            help=f"lock {verb} regardless of future healthcheck results (default: true)",
        )

    unlock_parser = subparsers.add_parser("unlock", help="unlock destination")
    _add_target_options(unlock_parser)

    return parser.parse_args(argv)


def build_command(args: argparse.Namespace) -> CommandSpec:
    if args.command == "info":
        return info_command()
    if args.command == "attach":
        return attach_command(args.service, args.dest, args.lock)
    if args.command == "detach":
        return detach_command(args.service, args.dest, args.lock)
    if args.command == "unlock":
        return unlock_command(args.service, args.dest)
    raise ValueError(f"unknown command {args.command}")


async def run(
    args: argparse.Namespace,
    config: CtlConfig,
    client_config: Optional[ClientConfig] = None,
) -> list[TargetOutcome]:
    command = build_command(args)
    fmt = getattr(args, "format", "text")
    dispatcher = Dispatcher(client_config or ClientConfig(timeout=config.timeout), ReportSink())
    outcomes = await dispatcher.dispatch(config.targets, command, fmt)
    failed = [outcome.target for outcome in outcomes if not outcome.ok]
    if failed:
        LOGGER.warning("Some agents failed", failed=failed, total=len(outcomes))
    return outcomes


def main(argv: list[str] | None = None) -> int:
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        print(f"failed to load config file; {exc}", file=sys.stderr)
        return 1
    args = parse_args(sys.argv[1:] if argv is None else argv, settings.config_path)
    configure_logging("lobactl", settings.log_level)
    configure_tracing(
        service_name="lobactl",
        endpoint=settings.otel_exporter_endpoint,
        headers=settings.otel_exporter_headers,
        sampler_ratio=settings.otel_sampler_ratio,
    )
    try:
        try:
            config = load_config(args.config)
        except ConfigurationError as exc:
            LOGGER.error("Configuration load failed", config_file=str(exc.path), error=exc.reason)
            print(f"failed to load config file; {exc}", file=sys.stderr)
            return 1
        asyncio.run(run(args, config))
        return 0
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    raise SystemExit(main())
