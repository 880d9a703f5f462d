"""Telemetry decoding, history and pod projection."""

from telemetry.models import PodRecord, Sample, decode_sample
from telemetry.projector import DisplayPod, StatusTone, project, project_all
from telemetry.timeseries import TimeSeriesAccumulator, TimeSeriesSnapshot, format_time_label

__all__ = [
    "DisplayPod",
    "PodRecord",
    "Sample",
    "StatusTone",
    "TimeSeriesAccumulator",
    "TimeSeriesSnapshot",
    "decode_sample",
    "format_time_label",
    "project",
    "project_all",
]
