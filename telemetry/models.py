"""Data models and decoding for telemetry stream samples."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
from typing import Any, Mapping

from core.errors import DecodeError

USER_TIERS: tuple[str, ...] = ("light", "medium", "heavy")


@dataclass(frozen=True)
class ResourceSpec:
    """CPU/memory quantity pair as reported by the backend, e.g. ``1000m``/``4Gi``."""

    cpu: str = ""
    memory: str = ""


@dataclass(frozen=True)
class PodResources:
    requests: ResourceSpec = field(default_factory=ResourceSpec)
    limits: ResourceSpec = field(default_factory=ResourceSpec)


@dataclass(frozen=True)
class PodMetrics:
    """Pod utilisation percentages; ``None`` when the backend omitted a value."""

    cpu: float | None = None
    memory: float | None = None


@dataclass(frozen=True)
class PodRecord:
    """Raw pod state from a single sample."""

    name: str
    status: str
    restarts: int = 0
    last_error: str | None = None
    restarting_at: datetime | None = None
    active_users: tuple[str, ...] = ()
    metrics: PodMetrics = field(default_factory=PodMetrics)
    resources: PodResources = field(default_factory=PodResources)


@dataclass(frozen=True)
class Averages:
    cpu: float
    memory: float


@dataclass(frozen=True)
class Sample:
    """One push message from the telemetry stream."""

    timestamp: datetime
    pods: tuple[PodRecord, ...]
    averages: Averages
    total_users: int


def parse_timestamp(value: Any, *, field_name: str = "timestamp") -> datetime:
    """Parse epoch milliseconds or an ISO-8601 string into an aware datetime."""

    if isinstance(value, bool):
        raise DecodeError(f"{field_name} must be a timestamp, got {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise DecodeError(f"{field_name} out of range: {value!r}") from exc
    if isinstance(value, str) and value:
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise DecodeError(f"{field_name} is not ISO-8601: {value!r}") from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    raise DecodeError(f"{field_name} must be a timestamp, got {value!r}")


def _number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"{field_name} must be a number, got {value!r}")
    return float(value)


def _optional_number(value: Any, field_name: str) -> float | None:
    if value is None:
        return None
    return _number(value, field_name)


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise DecodeError(f"{field_name} must be an object, got {type(value).__name__}")
    return value


def _decode_resource_spec(value: Any, field_name: str) -> ResourceSpec:
    payload = _mapping(value, field_name)
    return ResourceSpec(
        cpu=str(payload.get("cpu") or ""),
        memory=str(payload.get("memory") or ""),
    )


def decode_pod(payload: Any) -> PodRecord:
    """Decode a single pod record from its JSON object form."""

    if not isinstance(payload, Mapping):
        raise DecodeError(f"pod must be an object, got {type(payload).__name__}")

    name = payload.get("name")
    if not isinstance(name, str) or not name:
        raise DecodeError("pod.name must be a non-empty string")
    status = payload.get("status")
    if not isinstance(status, str):
        raise DecodeError(f"pod {name}: status must be a string")

    restarts = payload.get("restarts", 0) or 0
    if isinstance(restarts, bool) or not isinstance(restarts, int) or restarts < 0:
        raise DecodeError(f"pod {name}: restarts must be a non-negative integer")

    last_error = payload.get("lastError")
    restarting_at = payload.get("restartingAt")

    users = payload.get("activeUsers") or []
    if not isinstance(users, list):
        raise DecodeError(f"pod {name}: activeUsers must be a list")
    tiers = tuple(
        str(user.get("type")) for user in users if isinstance(user, Mapping)
    )

    metrics = _mapping(payload.get("metrics"), f"pod {name}: metrics")
    resources = _mapping(payload.get("resources"), f"pod {name}: resources")

    return PodRecord(
        name=name,
        status=status,
        restarts=restarts,
        last_error=str(last_error) if last_error else None,
        restarting_at=(
            parse_timestamp(restarting_at, field_name=f"pod {name}: restartingAt")
            if restarting_at is not None
            else None
        ),
        active_users=tiers,
        metrics=PodMetrics(
            cpu=_optional_number(metrics.get("cpu"), f"pod {name}: metrics.cpu"),
            memory=_optional_number(metrics.get("memory"), f"pod {name}: metrics.memory"),
        ),
        resources=PodResources(
            requests=_decode_resource_spec(resources.get("requests"), f"pod {name}: requests"),
            limits=_decode_resource_spec(resources.get("limits"), f"pod {name}: limits"),
        ),
    )


def decode_sample(message: str | bytes) -> Sample:
    """Decode one JSON stream message into a Sample.

    Raises:
        DecodeError: if the message is not valid JSON or lacks required fields.
    """

    try:
        payload = json.loads(message)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"Message is not valid JSON: {exc}") from exc

    if not isinstance(payload, Mapping):
        raise DecodeError("Sample must be a JSON object")

    if "timestamp" not in payload:
        raise DecodeError("Sample is missing timestamp")
    pods = payload.get("pods")
    if not isinstance(pods, list):
        raise DecodeError("Sample.pods must be a list")
    averages = payload.get("averages")
    if not isinstance(averages, Mapping):
        raise DecodeError("Sample.averages must be an object")
    total_users = payload.get("totalUsers")
    if isinstance(total_users, bool) or not isinstance(total_users, (int, float)):
        raise DecodeError("Sample.totalUsers must be a number")

    return Sample(
        timestamp=parse_timestamp(payload["timestamp"]),
        pods=tuple(decode_pod(pod) for pod in pods),
        averages=Averages(
            cpu=_number(averages.get("cpu"), "averages.cpu"),
            memory=_number(averages.get("memory"), "averages.memory"),
        ),
        total_users=int(total_users),
    )
