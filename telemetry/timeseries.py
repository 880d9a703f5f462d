"""Append-only time-series history for dashboard charts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from telemetry.models import Sample


def format_time_label(timestamp: datetime) -> str:
    """Return the local wall-clock label used on chart x-axes."""

    return timestamp.astimezone().strftime("%H:%M:%S")


@dataclass(frozen=True)
class TimeSeriesSnapshot:
    """Read-only copy of the accumulated series."""

    timestamps: tuple[str, ...] = ()
    cpu: tuple[float, ...] = ()
    memory: tuple[float, ...] = ()
    pod_count: tuple[int, ...] = ()
    user_count: tuple[int, ...] = ()

    def __len__(self) -> int:
        return len(self.timestamps)


class TimeSeriesAccumulator:
    """Parallel sequences with one entry per received sample.

    Every sequence always has the same length; entries are never dropped or
    reordered. History is unbounded for the life of the session.
    """

    def __init__(self) -> None:
        self._timestamps: list[str] = []
        self._cpu: list[float] = []
        self._memory: list[float] = []
        self._pod_count: list[int] = []
        self._user_count: list[int] = []

    def __len__(self) -> int:
        return len(self._timestamps)

    def append(self, sample: Sample) -> None:
        # All values are computed before any sequence is touched.
        label = format_time_label(sample.timestamp)
        cpu = sample.averages.cpu
        memory = sample.averages.memory
        pods = len(sample.pods)
        users = sample.total_users

        self._timestamps.append(label)
        self._cpu.append(cpu)
        self._memory.append(memory)
        self._pod_count.append(pods)
        self._user_count.append(users)

    def reset(self) -> None:
        self._timestamps.clear()
        self._cpu.clear()
        self._memory.clear()
        self._pod_count.clear()
        self._user_count.clear()

    def snapshot(self) -> TimeSeriesSnapshot:
        return TimeSeriesSnapshot(
            timestamps=tuple(self._timestamps),
            cpu=tuple(self._cpu),
            memory=tuple(self._memory),
            pod_count=tuple(self._pod_count),
            user_count=tuple(self._user_count),
        )
