"""Projection of raw pod records into render-ready display state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import math
from typing import Iterable

from telemetry.models import USER_TIERS, PodRecord, PodResources

CRITICAL_UTILISATION_PERCENT = 90.0


class StatusTone(str, Enum):
    """Display tone for a pod status badge."""

    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"


TONE_COLORS: dict[StatusTone, str] = {
    StatusTone.SUCCESS: "#155724",
    StatusTone.FAILURE: "#721c24",
    StatusTone.WARNING: "#856404",
}


@dataclass(frozen=True)
class TierCounts:
    light: int = 0
    medium: int = 0
    heavy: int = 0


@dataclass(frozen=True)
class MetricGauge:
    """Utilisation bar state for one resource."""

    value: float
    present: bool
    critical: bool

    @property
    def label(self) -> str:
        return f"{self.value:.1f}%" if self.present else ""


@dataclass(frozen=True)
class DisplayPod:
    """Derived view of a pod record for the rendering layer."""

    name: str
    status: str
    tone: StatusTone
    color: str
    status_label: str
    restarts: int
    last_error: str | None
    error_label: str | None
    restart_countdown_s: int
    tiers: TierCounts
    user_count: int
    cpu: MetricGauge
    memory: MetricGauge
    resources: PodResources


def status_tone(status: str) -> StatusTone:
    if status == "Running":
        return StatusTone.SUCCESS
    if status == "CrashLoopBackOff":
        return StatusTone.FAILURE
    return StatusTone.WARNING


def restart_countdown(restarting_at: datetime | None, now: datetime) -> int:
    """Whole seconds until restart, rounded up; zero when absent or past."""

    if restarting_at is None:
        return 0
    remaining = (restarting_at - now).total_seconds()
    if remaining <= 0:
        return 0
    return math.ceil(remaining)


def count_tiers(active_users: Iterable[str]) -> TierCounts:
    counts = dict.fromkeys(USER_TIERS, 0)
    for tier in active_users:
        if tier in counts:
            counts[tier] += 1
    return TierCounts(**counts)


def _gauge(value: float | None) -> MetricGauge:
    if value is None:
        return MetricGauge(value=0.0, present=False, critical=False)
    return MetricGauge(
        value=value,
        present=True,
        critical=value >= CRITICAL_UTILISATION_PERCENT,
    )


def project(pod: PodRecord, now: datetime) -> DisplayPod:
    """Derive display attributes for ``pod`` as of ``now``.

    The result depends only on the arguments.
    """

    tone = status_tone(pod.status)
    status_label = pod.status
    if pod.restarts > 0:
        status_label = f"{pod.status} (Restarts: {pod.restarts})"

    countdown = restart_countdown(pod.restarting_at, now)
    error_label = None
    if pod.last_error:
        error_label = f"Error: {pod.last_error}"
        if countdown > 0:
            error_label = f"{error_label} - Restarting in {countdown}s"

    return DisplayPod(
        name=pod.name,
        status=pod.status,
        tone=tone,
        color=TONE_COLORS[tone],
        status_label=status_label,
        restarts=pod.restarts,
        last_error=pod.last_error,
        error_label=error_label,
        restart_countdown_s=countdown,
        tiers=count_tiers(pod.active_users),
        user_count=len(pod.active_users),
        cpu=_gauge(pod.metrics.cpu),
        memory=_gauge(pod.metrics.memory),
        resources=pod.resources,
    )


def project_all(pods: Iterable[PodRecord], now: datetime) -> tuple[DisplayPod, ...]:
    return tuple(project(pod, now) for pod in pods)
