"""Tests for the time-series accumulator."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from telemetry.models import Averages, PodRecord, Sample
from telemetry.timeseries import TimeSeriesAccumulator, format_time_label

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def _sample(offset_s: int = 0, *, pods: int = 0, cpu: float = 10, memory: float = 20, users: int = 0) -> Sample:
    return Sample(
        timestamp=T0 + timedelta(seconds=offset_s),
        pods=tuple(PodRecord(name=f"pod-{i}", status="Running") for i in range(pods)),
        averages=Averages(cpu=cpu, memory=memory),
        total_users=users,
    )


def test_single_sample_appends_one_point_per_series() -> None:
    series = TimeSeriesAccumulator()

    series.append(_sample())

    snapshot = series.snapshot()
    assert snapshot.timestamps == (format_time_label(T0),)
    assert snapshot.cpu == (10,)
    assert snapshot.memory == (20,)
    assert snapshot.pod_count == (0,)
    assert snapshot.user_count == (0,)


def test_series_lengths_stay_equal_and_in_arrival_order() -> None:
    series = TimeSeriesAccumulator()

    for index in range(25):
        series.append(_sample(index, pods=index % 4, cpu=index, users=index * 10))

    snapshot = series.snapshot()
    lengths = {
        len(snapshot.timestamps),
        len(snapshot.cpu),
        len(snapshot.memory),
        len(snapshot.pod_count),
        len(snapshot.user_count),
    }
    assert lengths == {25}
    assert len(series) == 25
    assert list(snapshot.cpu) == list(range(25))
    assert snapshot.pod_count[:5] == (0, 1, 2, 3, 0)


def test_reset_clears_every_series() -> None:
    series = TimeSeriesAccumulator()
    series.append(_sample())
    series.append(_sample(1))

    series.reset()

    snapshot = series.snapshot()
    assert len(snapshot) == 0
    assert snapshot.cpu == snapshot.memory == snapshot.pod_count == snapshot.user_count == ()


def test_snapshot_is_not_affected_by_later_appends() -> None:
    series = TimeSeriesAccumulator()
    series.append(_sample())
    snapshot = series.snapshot()

    series.append(_sample(1))

    assert len(snapshot) == 1
    assert len(series.snapshot()) == 2


def test_time_label_uses_local_wall_clock() -> None:
    label = format_time_label(T0)

    assert label == T0.astimezone().strftime("%H:%M:%S")
    assert len(label.split(":")) == 3
