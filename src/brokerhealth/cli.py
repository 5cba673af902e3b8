"""Command line entry points.

Usage:
    brokerhealth run -c config.toml [--json] [--ticks N]
    brokerhealth check -c config.toml [--json]
    brokerhealth alerts -c config.toml
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from typing import List, Optional, Sequence

import orjson

from .config import AgentConfig, load_config
from .errors import ConfigurationError, FetchError
from .health import AlertMatcher, OverallStatus, build_aggregator
from .health.health_aggregator_helpers import StatusFormatter
from .logging_config import setup_logging
from .scheduler import HealthScheduler
from .service_runner import run_async_service
from .sinks import JsonReportSink, LogReportSink, ReportSink
from .sources import PrometheusAlertSource

SERVICE_NAME = "brokerhealth"

EXIT_OK = 0
EXIT_DEGRADED = 1
EXIT_UNKNOWN = 2
EXIT_ERROR = 3

_STATUS_EXIT_CODES = {
    OverallStatus.OK: EXIT_OK,
    OverallStatus.DEGRADED: EXIT_DEGRADED,
    OverallStatus.UNKNOWN: EXIT_UNKNOWN,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=SERVICE_NAME, description="Bound and alert based health checks for RabbitMQ deployments")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Evaluate health on a fixed interval")
    run_parser.add_argument("-c", "--config", required=True, help="Path to the TOML configuration file")
    run_parser.add_argument("--json", action="store_true", help="Also write each tick report as a JSON line on stdout")
    run_parser.add_argument("--ticks", type=int, default=None, help="Stop after this many ticks (default: run until interrupted)")

    check_parser = subparsers.add_parser("check", help="Run a single tick and exit with the global status")
    check_parser.add_argument("-c", "--config", required=True, help="Path to the TOML configuration file")
    check_parser.add_argument("--json", action="store_true", help="Print the report as JSON")

    alerts_parser = subparsers.add_parser("alerts", help="List firing alerts that match a configured rule")
    alerts_parser.add_argument("-c", "--config", required=True, help="Path to the TOML configuration file")

    return parser


def _run_command(config: AgentConfig, args: argparse.Namespace) -> int:
    if args.ticks is not None and args.ticks < 1:
        raise ConfigurationError.invalid_value("--ticks", args.ticks, "Expected a positive integer")

    sinks: List[ReportSink] = [LogReportSink()]
    if args.json:
        sinks.append(JsonReportSink(sys.stdout))
    scheduler = HealthScheduler(build_aggregator(config), config.settings.interval_seconds, sinks=sinks)

    run_async_service(
        lambda: scheduler.run(max_ticks=args.ticks),
        service_name=SERVICE_NAME,
        shutdown_message="Health agent interrupted by user",
        ignore_sighup=True,
    )
    return EXIT_OK


def _check_command(config: AgentConfig, args: argparse.Namespace) -> int:
    setup_logging(user_friendly=True)
    aggregator = build_aggregator(config)
    report = asyncio.run(aggregator.run_tick(time.time()))

    if args.json:
        print(orjson.dumps(report.to_dict(), option=orjson.OPT_INDENT_2).decode("utf-8"))
    else:
        for line in StatusFormatter.format_report(report):
            print(line)
    return _STATUS_EXIT_CODES[report.global_status]


def _alerts_command(config: AgentConfig, args: argparse.Namespace) -> int:
    setup_logging(user_friendly=True)
    if config.alerts is None:
        raise ConfigurationError.missing_value("prometheus.url", "the alerts command needs a [prometheus] table")

    source = PrometheusAlertSource(config.alerts.url, timeout_seconds=config.settings.fetch_timeout_seconds)
    try:
        active = asyncio.run(source.fetch_active_alerts())
    except FetchError as exc:
        sys.stderr.write(f"{exc}\n")
        return EXIT_ERROR

    matching = AlertMatcher(config.alerts.rules).filter_matching(active)
    for alert in matching:
        labels = ", ".join(f"{key}={value}" for key, value in sorted(alert.labels.items()) if key != "alertname")
        print(f"{alert.name} [{labels}]" if labels else alert.name)
    if not matching:
        print(f"No firing alerts match the {len(config.alerts.rules)} configured rule(s)")
    return EXIT_OK


_COMMANDS = {
    "run": _run_command,
    "check": _check_command,
    "alerts": _alerts_command,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the ``brokerhealth`` console script."""
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
        return _COMMANDS[args.command](config, args)
    except ConfigurationError as exc:
        sys.stderr.write(f"Configuration error: {exc}\n")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
