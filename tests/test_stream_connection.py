"""Tests for the telemetry stream connection lifecycle."""

from __future__ import annotations

import asyncio

from websockets.exceptions import ConnectionClosedError

from core.errors import DecodeError, StreamConnectionError
from fakes import FakeConnector, FakeWebsocket, drain, sample_message
from streaming.connection import ConnectionState, StreamConnectionManager


class _Recorder:
    def __init__(self, running: bool = True) -> None:
        self.running = running
        self.samples = []
        self.errors = []
        self.opened = 0

    def manager(self, connector: FakeConnector, delay_s: float = 2.0) -> StreamConnectionManager:
        def _on_open() -> None:
            self.opened += 1

        return StreamConnectionManager(
            "ws://backend.test",
            on_sample=self.samples.append,
            on_error=self.errors.append,
            on_open=_on_open,
            should_reconnect=lambda: self.running,
            reconnect_delay_s=delay_s,
            connect=connector,
        )


def test_start_opens_and_forwards_samples_in_order() -> None:
    recorder = _Recorder()
    connector = FakeConnector(
        FakeWebsocket([sample_message(users=1), sample_message(users=2)], hold_open=True)
    )

    async def scenario() -> StreamConnectionManager:
        manager = recorder.manager(connector)
        manager.start()
        await drain()
        assert manager.state is ConnectionState.OPEN
        manager.stop()
        await drain()
        return manager

    manager = asyncio.run(scenario())

    assert [sample.total_users for sample in recorder.samples] == [1, 2]
    assert recorder.opened == 1
    assert connector.urls == ["ws://backend.test"]
    assert connector.sockets[0].closed is True
    assert manager.state is ConnectionState.DISCONNECTED


def test_start_while_open_is_a_no_op() -> None:
    recorder = _Recorder()
    connector = FakeConnector()

    async def scenario() -> None:
        manager = recorder.manager(connector)
        manager.start()
        manager.start()
        await drain()
        manager.start()
        await drain()
        assert manager.state is ConnectionState.OPEN
        manager.stop()

    asyncio.run(scenario())

    assert len(connector.urls) == 1


def test_malformed_message_is_reported_and_connection_stays_open() -> None:
    recorder = _Recorder()
    connector = FakeConnector(
        FakeWebsocket(["{broken", sample_message(users=7)], hold_open=True)
    )

    async def scenario() -> StreamConnectionManager:
        manager = recorder.manager(connector)
        manager.start()
        await drain()
        assert manager.state is ConnectionState.OPEN
        manager.stop()
        return manager

    manager = asyncio.run(scenario())

    assert len(recorder.errors) == 1
    assert isinstance(recorder.errors[0], DecodeError)
    assert [sample.total_users for sample in recorder.samples] == [7]
    assert manager.decode_failures == 1


def test_close_while_running_schedules_exactly_one_reconnect() -> None:
    recorder = _Recorder(running=True)
    connector = FakeConnector(FakeWebsocket())

    async def scenario() -> None:
        loop = asyncio.get_running_loop()
        manager = recorder.manager(connector, delay_s=2.0)
        manager.start()
        await drain()

        assert manager.state is ConnectionState.RECONNECTING
        handle = manager._reconnect_handle
        assert handle is not None
        assert 1.5 < handle.when() - loop.time() <= 2.0

        manager.stop()

        assert handle.cancelled()
        assert manager.reconnect_pending is False
        assert manager.state is ConnectionState.DISCONNECTED

    asyncio.run(scenario())

    assert len(connector.urls) == 1


def test_stop_before_timer_fires_prevents_reconnect_attempt() -> None:
    recorder = _Recorder(running=True)
    connector = FakeConnector(FakeWebsocket())

    async def scenario() -> None:
        manager = recorder.manager(connector, delay_s=0.05)
        manager.start()
        await drain()
        manager.stop()
        await asyncio.sleep(0.1)
        assert manager.state is ConnectionState.DISCONNECTED

    asyncio.run(scenario())

    assert len(connector.urls) == 1


def test_reconnects_after_delay_while_running() -> None:
    recorder = _Recorder(running=True)
    connector = FakeConnector(FakeWebsocket(), FakeWebsocket([sample_message()], hold_open=True))

    async def scenario() -> StreamConnectionManager:
        manager = recorder.manager(connector, delay_s=0.01)
        manager.start()
        await asyncio.sleep(0.1)
        assert manager.state is ConnectionState.OPEN
        manager.stop()
        return manager

    manager = asyncio.run(scenario())

    assert len(connector.urls) == 2
    assert manager.reconnects == 1
    assert len(recorder.samples) == 1


def test_close_when_not_running_stays_disconnected() -> None:
    recorder = _Recorder(running=False)
    connector = FakeConnector(FakeWebsocket())

    async def scenario() -> StreamConnectionManager:
        manager = recorder.manager(connector)
        manager.start()
        await drain()
        return manager

    manager = asyncio.run(scenario())

    assert manager.state is ConnectionState.DISCONNECTED
    assert manager.reconnect_pending is False


def test_handshake_failure_reports_connection_error_and_retries() -> None:
    recorder = _Recorder(running=True)
    connector = FakeConnector(OSError("connection refused"))

    async def scenario() -> StreamConnectionManager:
        manager = recorder.manager(connector)
        manager.start()
        await drain()
        assert manager.state is ConnectionState.RECONNECTING
        manager.stop()
        return manager

    manager = asyncio.run(scenario())

    assert len(recorder.errors) == 1
    assert isinstance(recorder.errors[0], StreamConnectionError)
    assert "connection refused" in str(recorder.errors[0])
    assert manager.last_error is recorder.errors[0]


def test_abnormal_close_reports_connection_error() -> None:
    recorder = _Recorder(running=True)
    connector = FakeConnector(
        FakeWebsocket([sample_message()], error=ConnectionClosedError(None, None))
    )

    async def scenario() -> StreamConnectionManager:
        manager = recorder.manager(connector)
        manager.start()
        await drain()
        assert manager.state is ConnectionState.RECONNECTING
        manager.stop()
        return manager

    asyncio.run(scenario())

    assert len(recorder.samples) == 1
    assert isinstance(recorder.errors[-1], StreamConnectionError)
    assert str(recorder.errors[-1]).startswith("WebSocket error")


def test_stop_is_idempotent_when_disconnected() -> None:
    recorder = _Recorder()
    manager = recorder.manager(FakeConnector())

    manager.stop()
    manager.stop()

    assert manager.state is ConnectionState.DISCONNECTED
    assert manager.reconnect_pending is False
    assert manager.get_health()["connection_attempts"] == 0
