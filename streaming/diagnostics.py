"""Diagnostics routines for the telemetry stream settings."""

from __future__ import annotations

from urllib.parse import urlparse

import websockets

from config import ConfigController
from diagnostics.models import DiagnosticResult, DiagnosticStatus

ALLOWED_STREAM_SCHEMES = {"ws", "wss"}


def probe(stream_url: str | None = None) -> DiagnosticResult:
    """Validate the configured stream endpoint without connecting.

    Args:
        stream_url: Optional URL override for offline testing.

    Returns:
        Diagnostic result indicating stream readiness.
    """

    name = "stream"
    if stream_url is None:
        stream_url = ConfigController.get_instance().get_config()["stream_url"]

    parsed = urlparse(stream_url)
    if parsed.scheme not in ALLOWED_STREAM_SCHEMES:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Stream URL must use ws:// or wss://, got {stream_url!r}",
        )
    if not parsed.hostname:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Stream URL has no hostname: {stream_url!r}",
        )
    version = getattr(websockets, "__version__", "unknown")
    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"Stream endpoint {stream_url} (websockets {version})",
    )
