"""Tests for the simulation control API client."""

from __future__ import annotations

import asyncio
import json
from urllib import error

import pytest

from core.errors import ControlError
from simulation.control_client import SimulationControlClient


class _FakeResponse:
    def __init__(self, body: str) -> None:
        self._body = body.encode("utf-8")

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        return None


class _FakeUrlopen:
    def __init__(self, body: str = "", exc: Exception | None = None) -> None:
        self.body = body
        self.exc = exc
        self.requests = []

    def __call__(self, req, timeout=None):
        self.requests.append((req, timeout))
        if self.exc is not None:
            raise self.exc
        return _FakeResponse(self.body)


def _install(monkeypatch, fake: _FakeUrlopen) -> None:
    monkeypatch.setattr("simulation.control_client.request.urlopen", fake)


def test_fetch_status_reads_is_running(monkeypatch) -> None:
    fake = _FakeUrlopen(body=json.dumps({"isRunning": True}))
    _install(monkeypatch, fake)
    client = SimulationControlClient("http://backend.test/", timeout_s=3)

    assert asyncio.run(client.fetch_status()) is True

    req, timeout = fake.requests[0]
    assert req.full_url == "http://backend.test/api/simulation/status"
    assert req.get_method() == "GET"
    assert timeout == 3.0


def test_fetch_config_returns_mapping(monkeypatch) -> None:
    fake = _FakeUrlopen(body=json.dumps({"maxReplicas": 5}))
    _install(monkeypatch, fake)

    config = asyncio.run(SimulationControlClient("http://backend.test").fetch_config())

    assert config == {"maxReplicas": 5}


def test_update_config_posts_json_body(monkeypatch) -> None:
    fake = _FakeUrlopen(body="")
    _install(monkeypatch, fake)
    client = SimulationControlClient("http://backend.test")

    asyncio.run(client.update_config({"cpuThreshold": 70}))

    req, _ = fake.requests[0]
    assert req.full_url == "http://backend.test/api/simulation/config"
    assert req.get_method() == "POST"
    assert json.loads(req.data.decode("utf-8")) == {"cpuThreshold": 70}
    assert req.get_header("Content-type") == "application/json"


def test_start_and_stop_post_without_body(monkeypatch) -> None:
    fake = _FakeUrlopen(body='{"message": "ok"}')
    _install(monkeypatch, fake)
    client = SimulationControlClient("http://backend.test")

    asyncio.run(client.start())
    asyncio.run(client.stop())

    urls = [(req.get_method(), req.full_url) for req, _ in fake.requests]
    assert urls == [
        ("POST", "http://backend.test/api/simulation/start"),
        ("POST", "http://backend.test/api/simulation/stop"),
    ]
    assert fake.requests[0][0].data is None


def test_http_error_becomes_control_error(monkeypatch) -> None:
    exc = error.HTTPError("http://backend.test/api/simulation/start", 500, "Server Error", None, None)
    _install(monkeypatch, _FakeUrlopen(exc=exc))

    with pytest.raises(ControlError) as excinfo:
        asyncio.run(SimulationControlClient("http://backend.test").start())

    assert excinfo.value.operation == "POST /api/simulation/start"
    assert "HTTP 500" in str(excinfo.value)


def test_unreachable_backend_becomes_control_error(monkeypatch) -> None:
    _install(monkeypatch, _FakeUrlopen(exc=error.URLError("connection refused")))

    with pytest.raises(ControlError, match="connection refused"):
        asyncio.run(SimulationControlClient("http://backend.test").fetch_config())


def test_invalid_payloads_become_control_errors(monkeypatch) -> None:
    _install(monkeypatch, _FakeUrlopen(body="<html>"))
    client = SimulationControlClient("http://backend.test")

    with pytest.raises(ControlError, match="invalid JSON"):
        asyncio.run(client.fetch_config())

    _install(monkeypatch, _FakeUrlopen(body="{}"))
    with pytest.raises(ControlError, match="isRunning"):
        asyncio.run(client.fetch_status())
