"""
Uniform 1 Hz resampling of irregular telemetry.

Aerosensor logs are nominally 1 Hz but the timer drifts and skips. When the
spread of sample gaps is too large, every channel is projected onto an
integer-second grid with linear interpolation.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import fields
from typing import Mapping, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from aero_ingest.models.telemetry import IntervalStatistics, NormalizedRecord


logger = logging.getLogger(__name__)

RESAMPLE_STD_THRESHOLD_S = float(os.getenv("AERO_INGEST_RESAMPLE_STD_S", "0.1"))


def analyze_time_intervals(timestamps: ArrayLike) -> IntervalStatistics:
    """
    Statistics of consecutive timestamp gaps.

    Median is the sorted gap at index len // 2, i.e. the upper median for an
    even number of gaps. Downstream thresholds were tuned against this value.
    """
    times = np.asarray(timestamps, dtype=np.float64)
    if len(times) < 2:
        return IntervalStatistics(min=0.0, max=0.0, mean=0.0, median=0.0, standard_deviation=0.0)

    intervals = np.sort(np.diff(times))
    mean = float(np.mean(intervals))

    return IntervalStatistics(
        min=float(intervals[0]),
        max=float(intervals[-1]),
        mean=mean,
        median=float(intervals[len(intervals) // 2]),
        standard_deviation=float(np.sqrt(np.mean((intervals - mean) ** 2))),
    )


def needs_resampling(stats: IntervalStatistics, threshold: Optional[float] = None) -> bool:
    limit = RESAMPLE_STD_THRESHOLD_S if threshold is None else threshold
    return stats.standard_deviation > limit


def generate_uniform_timestamps(start_time: float, end_time: float) -> NDArray[np.float64]:
    """Every integer second from floor(start_time) to ceil(end_time) inclusive."""
    start = math.floor(start_time)
    end = math.ceil(end_time)
    return np.arange(start, end + 1, dtype=np.float64)


def interpolate_to_uniform(
    source_timestamps: ArrayLike,
    source_values: ArrayLike,
    target_timestamps: ArrayLike,
) -> NDArray[np.float64]:
    """
    Linearly interpolate one channel onto target timestamps.

    Source timestamps must be non-decreasing; rows whose timestamp is not
    finite are ignored. Targets at or outside the source range take the
    first/last source value. Inside the range the bracket is t0 <= t < t1;
    if one bracket value is NaN the other is returned as is. NaN targets
    give NaN.
    """
    src_t = np.asarray(source_timestamps, dtype=np.float64)
    src_v = np.asarray(source_values, dtype=np.float64)
    target = np.asarray(target_timestamps, dtype=np.float64)

    if len(src_t) != len(src_v):
        raise ValueError("Source timestamps and values must have same length")

    if len(src_t) == 0:
        return np.array([], dtype=np.float64)

    finite = np.isfinite(src_t)
    if not finite.any():
        return np.full(len(target), np.nan, dtype=np.float64)
    if not finite.all():
        src_t, src_v = src_t[finite], src_v[finite]

    result = np.empty(len(target), dtype=np.float64)

    before = target <= src_t[0]
    after = target >= src_t[-1]
    undefined = np.isnan(target)
    inner = ~(before | after | undefined)

    if np.any(inner):
        t = target[inner]
        idx = np.searchsorted(src_t, t, side="right") - 1

        t0, t1 = src_t[idx], src_t[idx + 1]
        v0, v1 = src_v[idx], src_v[idx + 1]

        span = t1 - t0
        alpha = np.divide(t - t0, span, out=np.zeros_like(t), where=span != 0)
        blended = v0 + alpha * (v1 - v0)

        nan0 = np.isnan(v0)
        nan1 = np.isnan(v1)
        values = np.where(nan0 & ~nan1, v1, blended)
        values = np.where(nan1 & ~nan0, v0, values)
        result[inner] = values

    result[before] = src_v[0]
    result[after] = src_v[-1]
    result[undefined] = np.nan
    return result


def interpolate_all(
    source_timestamps: ArrayLike,
    arrays: Mapping[str, Optional[ArrayLike]],
) -> tuple[NDArray[np.float64], dict]:
    """
    Resample every aligned array in `arrays` onto a uniform 1 Hz grid.

    The grid spans the first to the last finite timestamp. Arrays whose
    length differs from the source timestamps (and non-array values) are
    passed through unchanged.
    """
    src_t = np.asarray(source_timestamps, dtype=np.float64)
    if len(src_t) == 0:
        raise ValueError("Source timestamps cannot be empty")

    finite_t = src_t[np.isfinite(src_t)]
    if len(finite_t) == 0:
        raise ValueError("Source timestamps have no finite values")

    uniform = generate_uniform_timestamps(finite_t[0], finite_t[-1])

    result: dict = {}
    for key, values in arrays.items():
        if values is not None and np.ndim(values) == 1 and len(values) == len(src_t):
            result[key] = interpolate_to_uniform(src_t, values, uniform)
        else:
            result[key] = values
    return uniform, result


def resample_record(record: NormalizedRecord) -> NormalizedRecord:
    """Build a new record on the uniform 1 Hz grid covering `record`."""
    channels = {
        f.name: getattr(record, f.name)
        for f in fields(record)
        if f.name != "timestamps"
    }
    uniform, resampled = interpolate_all(record.timestamps, channels)

    logger.debug(
        "Resampled %d samples onto %d uniform timestamps",
        record.data_point_count,
        len(uniform),
    )
    return NormalizedRecord(timestamps=uniform, **resampled)
