"""Composition root tying control calls, the stream and derived state together."""

from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from core.errors import ControlError, DashboardError, DecodeError
from core.logging import log_error, log_info, logger
from simulation.config_model import ConfigModel
from simulation.control_client import SimulationControlClient
from streaming.connection import (
    DEFAULT_RECONNECT_DELAY_S,
    ConnectFactory,
    ConnectionState,
    StreamConnectionManager,
)
from telemetry.models import Sample
from telemetry.projector import DisplayPod, project_all
from telemetry.timeseries import TimeSeriesAccumulator, TimeSeriesSnapshot


@dataclass(frozen=True)
class DashboardSnapshot:
    """Combined state handed to the rendering layer."""

    is_running: bool
    connection_state: ConnectionState
    pods: tuple[DisplayPod, ...]
    metrics: TimeSeriesSnapshot
    config: dict[str, Any] | None
    error: str | None
    dark_mode: bool
    editing_config: bool


SnapshotListener = Callable[[DashboardSnapshot], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DashboardController:
    """Drive the simulation backend and keep the dashboard view current.

    The controller is the only writer of run state, pods, metrics, the
    canonical simulation config and the error slot. Every change is published
    to subscribers as an immutable :class:`DashboardSnapshot`.
    """

    def __init__(
        self,
        client: SimulationControlClient,
        *,
        stream_url: str,
        reconnect_delay_s: float = DEFAULT_RECONNECT_DELAY_S,
        connect: ConnectFactory | None = None,
        clock: Callable[[], datetime] | None = None,
        dark_mode: bool = False,
    ) -> None:
        self._client = client
        self._clock = clock or _utcnow
        self.is_running = False
        self._pods: tuple[DisplayPod, ...] = ()
        self._series = TimeSeriesAccumulator()
        self._config: dict[str, Any] | None = None
        self._editor: ConfigModel | None = None
        self._error: str | None = None
        self._dark_mode = dark_mode
        self._listeners: list[SnapshotListener] = []
        self._stream = StreamConnectionManager(
            stream_url,
            on_sample=self._handle_sample,
            on_error=self._handle_stream_error,
            on_open=self._handle_stream_open,
            should_reconnect=lambda: self.is_running,
            reconnect_delay_s=reconnect_delay_s,
            connect=connect,
        )

    @property
    def stream(self) -> StreamConnectionManager:
        return self._stream

    @property
    def config(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._config)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def pods(self) -> tuple[DisplayPod, ...]:
        return self._pods

    @property
    def metrics(self) -> TimeSeriesSnapshot:
        return self._series.snapshot()

    @property
    def config_editor(self) -> ConfigModel | None:
        return self._editor

    def snapshot(self) -> DashboardSnapshot:
        return DashboardSnapshot(
            is_running=self.is_running,
            connection_state=self._stream.state,
            pods=self._pods,
            metrics=self._series.snapshot(),
            config=self.config,
            error=self._error,
            dark_mode=self._dark_mode,
            editing_config=self._editor is not None,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register ``listener`` for snapshots; returns an unsubscribe callable."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def load(self) -> None:
        """Fetch the current config and run state, resuming the stream if running."""

        try:
            config, running = await asyncio.gather(
                self._client.fetch_config(),
                self._client.fetch_status(),
            )
        except ControlError as exc:
            self._set_error(f"Failed to fetch initial data: {exc}")
            return

        self._config = config
        self.is_running = running
        if running:
            log_info("Simulation already running; attaching to telemetry stream.")
            self._stream.start()
        self._publish()

    async def request_start(self) -> bool:
        try:
            await self._client.start()
        except ControlError as exc:
            self.is_running = False
            self._set_error(f"Failed to start simulation: {exc}")
            return False

        self.is_running = True
        self._series.reset()
        self._pods = ()
        self._error = None
        self._stream.start()
        self._publish()
        return True

    async def request_stop(self) -> bool:
        stopped = True
        try:
            await self._client.stop()
        except ControlError as exc:
            stopped = False
            self._error = f"Failed to stop simulation: {exc}"
            log_error(self._error)
        finally:
            self.is_running = False
            self._stream.stop()
        self._publish()
        return stopped

    def begin_config_edit(self) -> ConfigModel:
        """Open an edit session over a copy of the canonical config."""

        if self._config is None:
            raise RuntimeError("Simulation configuration has not been loaded")
        self._editor = ConfigModel.initialize(self._config)
        self._publish()
        return self._editor

    def cancel_config_edit(self) -> None:
        self._editor = None
        self._publish()

    async def request_config_save(
        self, edited: ConfigModel | Mapping[str, Any] | None = None
    ) -> bool:
        """Submit an edited config; the canonical copy changes only on success."""

        source = edited if edited is not None else self._editor
        if source is None:
            raise RuntimeError("No configuration edit session is open")
        committed = source.commit() if isinstance(source, ConfigModel) else copy.deepcopy(dict(source))

        try:
            await self._client.update_config(committed)
        except ControlError as exc:
            self._set_error(f"Failed to update configuration: {exc}")
            return False

        self._config = committed
        self._editor = None
        log_info("Simulation configuration updated.", style="bold green")
        self._publish()
        return True

    def toggle_dark_mode(self) -> bool:
        self._dark_mode = not self._dark_mode
        self._publish()
        return self._dark_mode

    def shutdown(self) -> None:
        """Close the stream without contacting the backend."""

        self._stream.stop()

    def _handle_sample(self, sample: Sample) -> None:
        self._pods = project_all(sample.pods, self._clock())
        self._series.append(sample)
        self._publish()

    def _handle_stream_open(self) -> None:
        self._error = None
        self._publish()

    def _handle_stream_error(self, error: DashboardError) -> None:
        if isinstance(error, DecodeError):
            self._set_error(f"Failed to decode stream message: {error}")
        else:
            self._set_error(str(error))

    def _set_error(self, message: str) -> None:
        self._error = message
        log_error(message)
        self._publish()

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Dashboard listener %r failed", listener)
