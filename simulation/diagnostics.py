"""Diagnostics routines for the simulation control API."""

from __future__ import annotations

import asyncio

from config import ConfigController
from core.errors import ControlError
from diagnostics.models import DiagnosticResult, DiagnosticStatus
from simulation.control_client import SimulationControlClient


def probe(client: SimulationControlClient | None = None) -> DiagnosticResult:
    """Check that the backend status endpoint answers.

    Args:
        client: Optional client for offline testing.

    Returns:
        Diagnostic result indicating backend reachability.
    """

    name = "simulation_api"
    if client is None:
        config = ConfigController.get_instance().get_config()
        client = SimulationControlClient(
            config["api_base_url"],
            timeout_s=config["request_timeout_s"],
        )
    try:
        running = asyncio.run(client.fetch_status())
    except ControlError as exc:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Backend unreachable at {client.base_url}: {exc}",
        )
    state = "running" if running else "idle"
    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"Backend reachable at {client.base_url} (simulation {state})",
    )
