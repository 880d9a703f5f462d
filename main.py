"""Command-line entry point for the autoscaling dashboard client."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys
from typing import Any

import yaml

from config import ConfigController
from core.errors import InvalidPathError
from core.logging import enable_file_logging, logger, set_level
from dashboard.charts import build_charts
from dashboard.controller import DashboardController, DashboardSnapshot
from simulation.config_model import validate_config
from simulation.control_client import SimulationControlClient


def configure_logging(level_name: str) -> None:
    """Configure application logging."""

    level = logging._nameToLevel.get(level_name.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    set_level(level_name)


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Raw command-line arguments.

    Returns:
        Parsed arguments namespace.
    """

    parser = argparse.ArgumentParser(
        description="Follow a simulated cluster's autoscaling telemetry."
    )
    parser.add_argument(
        "--start",
        action="store_true",
        help="Start a new simulation run before following the stream.",
    )
    parser.add_argument(
        "--stop",
        action="store_true",
        help="Stop the running simulation and exit.",
    )
    parser.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="PATH=VALUE",
        help="Update a simulation config field, e.g. defaultLoadProfile.pattern=sine.",
    )
    parser.add_argument(
        "--dark-mode",
        action="store_true",
        help="Render charts with the dark palette.",
    )
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Run diagnostics probes and exit.",
    )
    return parser.parse_args(argv)


def parse_assignment(text: str) -> tuple[str, Any]:
    """Split ``PATH=VALUE`` and parse the value as a YAML scalar."""

    path, separator, raw_value = text.partition("=")
    if not separator or not path.strip():
        raise ValueError(f"Expected PATH=VALUE, got {text!r}")
    return path.strip(), yaml.safe_load(raw_value)


def summarize(snapshot: DashboardSnapshot) -> str:
    """Return a one-line status summary for console output."""

    metrics = snapshot.metrics
    parts = [
        "running" if snapshot.is_running else "stopped",
        f"stream={snapshot.connection_state.value}",
        f"pods={len(snapshot.pods)}",
    ]
    if len(metrics):
        parts.append(
            f"users={metrics.user_count[-1]} cpu={metrics.cpu[-1]:.1f}% "
            f"mem={metrics.memory[-1]:.1f}% @ {metrics.timestamps[-1]}"
        )
    crashing = [pod.name for pod in snapshot.pods if pod.status == "CrashLoopBackOff"]
    if crashing:
        parts.append(f"crashing={','.join(crashing)}")
    if snapshot.error:
        parts.append(f"error={snapshot.error}")
    return " | ".join(parts)


def run_diagnostics_report() -> int:
    from config.diagnostics import probe as config_probe
    from core.diagnostics import probe as core_probe
    from diagnostics.runner import format_results, run_diagnostics
    from simulation.diagnostics import probe as simulation_probe
    from streaming.diagnostics import probe as stream_probe

    results = run_diagnostics([config_probe, core_probe, stream_probe, simulation_probe])
    print(format_results(results))
    return 1 if any(result.failed for result in results) else 0


async def apply_assignments(controller: DashboardController, assignments: list[str]) -> bool:
    editor = controller.begin_config_edit()
    for assignment in assignments:
        path, value = parse_assignment(assignment)
        editor.set_field(path, value)
    problems = validate_config(editor.commit())
    if problems:
        for problem in problems:
            logger.error("Invalid configuration: %s", problem)
        controller.cancel_config_edit()
        return False
    return await controller.request_config_save(editor)


async def run_dashboard(controller: DashboardController, args: argparse.Namespace) -> int:
    last_summary: list[str] = []

    def _print_summary(snapshot: DashboardSnapshot) -> None:
        line = summarize(snapshot)
        if last_summary and last_summary[-1] == line:
            return
        last_summary[:] = [line]
        logger.info("%s (%d charts)", line, len(build_charts(snapshot)))

    controller.subscribe(_print_summary)
    await controller.load()
    if controller.error:
        return 1

    if args.assignments:
        try:
            saved = await apply_assignments(controller, args.assignments)
        except (InvalidPathError, ValueError) as exc:
            logger.error("%s", exc)
            controller.cancel_config_edit()
            return 2
        if not saved:
            return 1

    if args.stop:
        return 0 if await controller.request_stop() else 1

    if args.start and not await controller.request_start():
        return 1

    if not controller.is_running:
        logger.info("No simulation is running. Use --start to begin one.")
        return 0

    try:
        while True:
            await asyncio.sleep(1.0)
    finally:
        controller.shutdown()


def main(argv: list[str] | None = None) -> int:
    """Application entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Process exit code.
    """

    if argv is None:
        argv = sys.argv[1:]

    config = ConfigController.get_instance().get_config()
    configure_logging(config.get("logging_level", "INFO"))
    args = parse_args(argv)
    if args.diagnostics:
        return run_diagnostics_report()

    if config.get("file_logging_enabled", False):
        log_file_path = Path(config["log_file"])
        enable_file_logging(log_file_path)
        logger.info("Writing logs to %s", log_file_path)

    client = SimulationControlClient(
        config["api_base_url"],
        timeout_s=config["request_timeout_s"],
    )
    controller = DashboardController(
        client,
        stream_url=config["stream_url"],
        reconnect_delay_s=config["reconnect_delay_s"],
        dark_mode=args.dark_mode or config["dark_mode"],
    )

    logger.info("Connecting to simulation backend at %s", client.base_url)
    try:
        return asyncio.run(run_dashboard(controller, args))
    except KeyboardInterrupt:
        logger.info("Program terminated by user")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
