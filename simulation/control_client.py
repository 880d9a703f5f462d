"""HTTP client for the simulation control API."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from urllib import error, request

from core.errors import ControlError
from core.logging import log_control_call

CONFIG_PATH = "/api/simulation/config"
STATUS_PATH = "/api/simulation/status"
START_PATH = "/api/simulation/start"
STOP_PATH = "/api/simulation/stop"


class SimulationControlClient:
    """Request/response calls against the backend simulation API.

    Each call runs the blocking request in a worker thread so the event loop
    keeps processing stream messages. Any transport, HTTP or payload failure
    is raised as :class:`ControlError`.
    """

    def __init__(self, base_url: str, *, timeout_s: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = max(1.0, float(timeout_s))

    @property
    def base_url(self) -> str:
        return self._base_url

    async def fetch_config(self) -> dict[str, Any]:
        payload = await self._call("GET", CONFIG_PATH)
        if not isinstance(payload, dict):
            raise ControlError("fetch_config", "expected a JSON object")
        return payload

    async def fetch_status(self) -> bool:
        payload = await self._call("GET", STATUS_PATH)
        if not isinstance(payload, dict) or "isRunning" not in payload:
            raise ControlError("fetch_status", "response is missing isRunning")
        return bool(payload["isRunning"])

    async def start(self) -> None:
        await self._call("POST", START_PATH)

    async def stop(self) -> None:
        await self._call("POST", STOP_PATH)

    async def update_config(self, config: dict[str, Any]) -> None:
        await self._call("POST", CONFIG_PATH, body=config)

    async def _call(self, method: str, path: str, *, body: Any = None) -> Any:
        try:
            result = await asyncio.to_thread(self._request, method, path, body)
        except ControlError:
            log_control_call(method, path, "failed")
            raise
        log_control_call(method, path, "ok")
        return result

    def _request(self, method: str, path: str, body: Any) -> Any:
        operation = f"{method} {path}"
        data = None
        headers = {"Accept": "application/json"}
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        req = request.Request(
            f"{self._base_url}{path}",
            data=data,
            headers=headers,
            method=method,
        )
        try:
            with request.urlopen(req, timeout=self._timeout_s) as response:
                raw = response.read().decode("utf-8")
        except error.HTTPError as exc:
            raise ControlError(operation, f"HTTP {exc.code} {exc.reason}") from exc
        except error.URLError as exc:
            raise ControlError(operation, str(exc.reason)) from exc
        except (OSError, TimeoutError) as exc:
            raise ControlError(operation, str(exc)) from exc

        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise ControlError(operation, f"invalid JSON response: {exc}") from exc
