"""Chart descriptions handed to the external chart renderer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from dashboard.controller import DashboardSnapshot

DEFAULT_USERS_AXIS_MAX = 1000
DEFAULT_PODS_AXIS_MAX = 20
PERCENT_AXIS_MAX = 100


class ChartRenderer(Protocol):
    def render(
        self,
        title: str,
        labels: Sequence[str],
        values: Sequence[float],
        color: str,
        y_axis_max: float,
        dark_mode: bool,
    ) -> None: ...


@dataclass(frozen=True)
class ChartSpec:
    title: str
    labels: tuple[str, ...]
    values: tuple[float, ...]
    color: str
    y_axis_max: float


def build_charts(snapshot: DashboardSnapshot) -> list[ChartSpec]:
    """Return the four dashboard charts, or none before the first sample."""

    metrics = snapshot.metrics
    if len(metrics) == 0:
        return []

    config = snapshot.config or {}
    load_profile = config.get("defaultLoadProfile") or {}
    labels = metrics.timestamps
    return [
        ChartSpec(
            "Active Users",
            labels,
            metrics.user_count,
            "rgb(153, 102, 255)",
            load_profile.get("maxUsers") or DEFAULT_USERS_AXIS_MAX,
        ),
        ChartSpec(
            "Pod Count",
            labels,
            metrics.pod_count,
            "rgb(54, 162, 235)",
            config.get("maxReplicas") or DEFAULT_PODS_AXIS_MAX,
        ),
        ChartSpec("CPU Usage", labels, metrics.cpu, "rgb(75, 192, 192)", PERCENT_AXIS_MAX),
        ChartSpec("Memory Usage", labels, metrics.memory, "rgb(255, 99, 132)", PERCENT_AXIS_MAX),
    ]


def render_charts(renderer: ChartRenderer, snapshot: DashboardSnapshot) -> int:
    charts = build_charts(snapshot)
    for chart in charts:
        renderer.render(
            chart.title,
            chart.labels,
            chart.values,
            chart.color,
            chart.y_axis_max,
            snapshot.dark_mode,
        )
    return len(charts)
