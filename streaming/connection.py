"""Lifecycle management for the telemetry push connection."""

from __future__ import annotations

import asyncio
from enum import Enum
import time
from typing import Any, Awaitable, Callable

import websockets
from websockets.exceptions import ConnectionClosedError, WebSocketException

from core.errors import DashboardError, DecodeError, StreamConnectionError
from core.logging import log_info, log_state_transition, log_stream_message, log_warning, logger
from telemetry.models import Sample, decode_sample

SampleHandler = Callable[[Sample], None]
ErrorHandler = Callable[[DashboardError], None]
ConnectFactory = Callable[[str], Awaitable[Any]]

DEFAULT_RECONNECT_DELAY_S = 2.0


class ConnectionState(str, Enum):
    """Lifecycle states of the push connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    RECONNECTING = "reconnecting"


class StreamConnectionManager:
    """Owns the websocket, its receive task and the single reconnect timer.

    ``should_reconnect`` is consulted whenever the connection closes; while it
    returns ``True`` exactly one reconnect is scheduled after
    ``reconnect_delay_s``. :meth:`stop` is the only way to suppress that.
    """

    def __init__(
        self,
        url: str,
        *,
        on_sample: SampleHandler,
        on_error: ErrorHandler,
        should_reconnect: Callable[[], bool],
        on_open: Callable[[], None] | None = None,
        reconnect_delay_s: float = DEFAULT_RECONNECT_DELAY_S,
        connect: ConnectFactory | None = None,
    ) -> None:
        self._url = url
        self._on_sample = on_sample
        self._on_error = on_error
        self._should_reconnect = should_reconnect
        self._on_open = on_open
        self._reconnect_delay_s = reconnect_delay_s
        self._connect = connect or websockets.connect

        self.state = ConnectionState.DISCONNECTED
        self.last_error: DashboardError | None = None
        self._task: asyncio.Task[None] | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._websocket: Any = None

        self.connection_attempts = 0
        self.connections = 0
        self.reconnects = 0
        self.decode_failures = 0
        self.samples_received = 0
        self._last_connect_time: float | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def reconnect_delay_s(self) -> float:
        return self._reconnect_delay_s

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    def start(self) -> None:
        """Open the connection unless one is already open or being opened."""

        if self.state in (ConnectionState.OPEN, ConnectionState.CONNECTING):
            return
        self._cancel_reconnect()
        self.connection_attempts += 1
        self._set_state(ConnectionState.CONNECTING, self._url)
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Cancel any pending reconnect and close the connection. Idempotent."""

        self._cancel_reconnect()
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        if self.state is not ConnectionState.DISCONNECTED:
            self._set_state(ConnectionState.DISCONNECTED, "stopped")

    def get_health(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "connection_attempts": self.connection_attempts,
            "connections": self.connections,
            "reconnects": self.reconnects,
            "decode_failures": self.decode_failures,
            "samples_received": self.samples_received,
            "reconnect_pending": self.reconnect_pending,
            "last_connect_time": self._last_connect_time,
            "last_error": str(self.last_error) if self.last_error else None,
        }

    async def _run(self) -> None:
        try:
            websocket = await self._connect(self._url)
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            self._report_transport_error(f"Connection to {self._url} failed: {exc}", exc)
            self._handle_close()
            return

        self._websocket = websocket
        self.connections += 1
        self._last_connect_time = time.time()
        self._set_state(ConnectionState.OPEN, "handshake complete")
        log_info("✅ Connected to the telemetry stream.", style="bold green")
        if self._on_open is not None:
            self._on_open()

        try:
            async for message in websocket:
                self._handle_message(message)
        except ConnectionClosedError as exc:
            self._report_transport_error(f"WebSocket error: {exc}", exc)
        finally:
            self._websocket = None
            await websocket.close()

        log_warning("⚠️ Telemetry stream closed.")
        self._handle_close()

    def _handle_message(self, message: str | bytes) -> None:
        try:
            sample = decode_sample(message)
        except DecodeError as exc:
            self.decode_failures += 1
            logger.warning("Dropping malformed stream message: %s", exc)
            self._report(exc)
            return
        self.samples_received += 1
        log_stream_message(sample.timestamp.isoformat(), len(sample.pods), sample.total_users)
        try:
            self._on_sample(sample)
        except Exception:
            logger.exception("Sample handler failed for sample at %s", sample.timestamp)

    def _handle_close(self) -> None:
        if asyncio.current_task() is not self._task:
            return
        self._task = None
        if self._should_reconnect():
            self._schedule_reconnect()
        else:
            self._set_state(ConnectionState.DISCONNECTED, "closed")

    def _schedule_reconnect(self) -> None:
        self._cancel_reconnect()
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(self._reconnect_delay_s, self._reconnect)
        self._set_state(
            ConnectionState.RECONNECTING, f"retry in {self._reconnect_delay_s:g}s"
        )

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        if not self._should_reconnect():
            self._set_state(ConnectionState.DISCONNECTED, "run ended")
            return
        self.reconnects += 1
        log_info("Attempting to reconnect...", style="bold yellow")
        self.start()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _report_transport_error(self, message: str, cause: BaseException) -> None:
        error = StreamConnectionError(message)
        error.__cause__ = cause
        logger.error("%s", message)
        self._report(error)

    def _report(self, error: DashboardError) -> None:
        self.last_error = error
        try:
            self._on_error(error)
        except Exception:
            logger.exception("Stream error handler failed for %s", error)

    def _set_state(self, state: ConnectionState, reason: str = "") -> None:
        if state == self.state:
            return
        previous = self.state
        self.state = state
        log_state_transition("stream", previous.value, state.value, reason)
