"""Shared fakes for stream and control API tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from core.errors import ControlError


def sample_message(
    *,
    timestamp: Any = 1714564800000,
    pods: list[dict[str, Any]] | None = None,
    cpu: float = 10,
    memory: float = 20,
    users: int = 0,
) -> str:
    return json.dumps(
        {
            "timestamp": timestamp,
            "pods": pods or [],
            "averages": {"cpu": cpu, "memory": memory},
            "totalUsers": users,
        }
    )


class FakeWebsocket:
    """Async-iterable stand-in for a websocket connection."""

    def __init__(
        self,
        messages: list[str] | None = None,
        *,
        error: BaseException | None = None,
        hold_open: bool = False,
    ) -> None:
        self._messages = list(messages or [])
        self._error = error
        self._hold_open = hold_open
        self.closed = False

    def __aiter__(self) -> "FakeWebsocket":
        return self

    async def __anext__(self) -> str:
        await asyncio.sleep(0)
        if self._messages:
            return self._messages.pop(0)
        if self._error is not None:
            raise self._error
        if self._hold_open:
            await asyncio.Event().wait()
        raise StopAsyncIteration

    async def close(self) -> None:
        self.closed = True


class FakeConnector:
    """Connect factory returning queued websockets or raising queued errors."""

    def __init__(self, *results: Any) -> None:
        self._results = list(results)
        self.urls: list[str] = []
        self.sockets: list[FakeWebsocket] = []

    async def __call__(self, url: str) -> FakeWebsocket:
        self.urls.append(url)
        result = self._results.pop(0) if self._results else FakeWebsocket(hold_open=True)
        if isinstance(result, BaseException):
            raise result
        self.sockets.append(result)
        return result


class FakeControlClient:
    """In-memory control API; operations listed in ``failing`` raise ControlError."""

    def __init__(
        self,
        *,
        config: dict[str, Any] | None = None,
        running: bool = False,
        failing: set[str] | None = None,
    ) -> None:
        self.config = config if config is not None else {"maxReplicas": 10}
        self.running = running
        self.failing = failing or set()
        self.calls: list[str] = []
        self.saved_configs: list[dict[str, Any]] = []

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failing:
            raise ControlError(operation, "connection refused")

    async def fetch_config(self) -> dict[str, Any]:
        self._record("fetch_config")
        return dict(self.config)

    async def fetch_status(self) -> bool:
        self._record("fetch_status")
        return self.running

    async def start(self) -> None:
        self._record("start")
        self.running = True

    async def stop(self) -> None:
        self._record("stop")
        self.running = False

    async def update_config(self, config: dict[str, Any]) -> None:
        self._record("update_config")
        self.saved_configs.append(config)
        self.config = config


async def drain(iterations: int = 20) -> None:
    for _ in range(iterations):
        await asyncio.sleep(0)
