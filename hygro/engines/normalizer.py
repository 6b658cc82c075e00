"""
Time-Series Normalizer
======================

Turns an irregular batch of readings into something the trend engines
can index:

    1. Sort ascending by timestamp
    2. Flag gaps longer than tolerance x nominal interval
    3. Resample onto a regular grid at the average spacing, snapping to
       existing readings within half a step and linearly interpolating
       value and position otherwise
    4. Report the observed sampling rate (mean spacing, ms)

Interpolated points are tagged room='interpolated', floor='interpolated'.
The resampling walk is bounded, so identical or near-identical
timestamps cannot make it spin.
"""

import logging
from typing import Any, List, Sequence, Tuple, Union

import numpy as np

from hygro.engines.validation import ValidationError, coerce_point
from hygro.series import (
    Gap,
    PointMetadata,
    ProcessedTimeSeries,
    TimeSeriesData,
    TimeSeriesPoint,
)
from hygro.utils.timestamps import (
    MS_PER_DAY,
    MS_PER_HOUR,
    MS_PER_WEEK,
    format_timestamp_ms,
    parse_timestamp_ms,
)


logger = logging.getLogger(__name__)


INTERVAL_MS = {
    'hourly': MS_PER_HOUR,
    'daily': MS_PER_DAY,
    'weekly': MS_PER_WEEK,
}

INTERPOLATED = 'interpolated'


def interval_to_ms(interval: str) -> int:
    """Nominal spacing of an interval name in milliseconds."""
    try:
        return INTERVAL_MS[interval]
    except (KeyError, TypeError):
        raise ValidationError(
            "Invalid time series data: Missing or invalid interval "
            f"(must be one of {', '.join(INTERVAL_MS)}), got {interval!r}"
        )


def sort_points(points: Sequence[TimeSeriesPoint]) -> List[TimeSeriesPoint]:
    """Stable sort by parsed timestamp."""
    return sorted(points, key=lambda p: parse_timestamp_ms(p.timestamp))


def find_gaps(
    points: Sequence[TimeSeriesPoint],
    interval: str,
    tolerance: float = 1.5,
) -> List[Gap]:
    """
    Find stretches where consecutive readings are too far apart.

    Args:
        points: Points sorted by timestamp
        interval: 'hourly', 'daily' or 'weekly'
        tolerance: Multiple of the nominal interval that counts as a gap

    Returns:
        One Gap per offending pair, bracketed by the two raw timestamps
    """
    limit = interval_to_ms(interval) * tolerance
    times = np.array([parse_timestamp_ms(p.timestamp) for p in points], dtype=float)

    gaps = []
    for i in np.where(np.diff(times) > limit)[0]:
        gaps.append(Gap(start=points[i].timestamp, end=points[i + 1].timestamp))
    return gaps


def _interpolate(prev: TimeSeriesPoint, prev_ms: float, nxt: TimeSeriesPoint, next_ms: float,
                 at_ms: float) -> TimeSeriesPoint:
    span = next_ms - prev_ms
    ratio = (at_ms - prev_ms) / span if span > 0 else 0.0

    def lerp(a, b):
        return a + (b - a) * ratio

    return TimeSeriesPoint(
        timestamp=format_timestamp_ms(at_ms),
        value=float(lerp(prev.value, nxt.value)),
        metadata=PointMetadata(
            room=INTERPOLATED,
            floor=INTERPOLATED,
            location_x=float(lerp(prev.metadata.location_x, nxt.metadata.location_x)),
            location_y=float(lerp(prev.metadata.location_y, nxt.metadata.location_y)),
        ),
    )


def normalize_series(points: Sequence[TimeSeriesPoint]) -> List[TimeSeriesPoint]:
    """
    Resample sorted points onto a regular grid at their average spacing.

    Existing points within half a step of a grid time are kept as-is;
    grid times between readings get interpolated points. The first and
    last raw points are always present.

    Args:
        points: Points sorted by timestamp

    Returns:
        New list of points
    """
    points = list(points)
    n = len(points)
    if n < 2:
        return points

    times = [parse_timestamp_ms(p.timestamp) for p in points]
    start_time, end_time = times[0], times[-1]
    avg_interval = (end_time - start_time) / (n - 1)

    if avg_interval <= 0:
        logger.debug("All timestamps identical; nothing to resample")
        return points

    normalized: List[TimeSeriesPoint] = []
    last_taken = -1
    idx = 0
    current = start_time
    max_steps = 3 * n + 3
    steps = 0

    while current <= end_time and idx < n:
        steps += 1
        if steps > max_steps:
            logger.warning(f"Resampling stopped after {max_steps} steps ({n} points)")
            break

        point_time = times[idx]
        if abs(current - point_time) < avg_interval / 2:
            normalized.append(points[idx])
            last_taken = idx
            current = point_time + avg_interval
            idx += 1
        elif current < point_time and idx > 0:
            normalized.append(
                _interpolate(points[idx - 1], times[idx - 1], points[idx], point_time, current)
            )
            current += avg_interval
        else:
            idx += 1

    if last_taken != n - 1:
        normalized.append(points[-1])

    return normalized


def calculate_sampling_rate(points: Sequence[TimeSeriesPoint]) -> float:
    """Mean spacing between consecutive points in milliseconds (0 for fewer than 2)."""
    if len(points) < 2:
        return 0.0
    times = np.array([parse_timestamp_ms(p.timestamp) for p in points], dtype=float)
    return float(np.mean(np.diff(times)))


def _coerce_bundle(data: Union[TimeSeriesData, dict, Any]) -> Tuple[List[TimeSeriesPoint], str]:
    if isinstance(data, dict):
        data = TimeSeriesData.from_dict(data)
    if not isinstance(data, TimeSeriesData):
        raise ValidationError("Invalid time series data: expected TimeSeriesData")

    points = data.points
    if points is None or len(points) == 0:
        raise ValidationError("Invalid time series data: Empty or missing points array")

    interval_to_ms(data.interval)

    return [coerce_point(p, i) for i, p in enumerate(points)], data.interval


def process_time_series(
    data: Union[TimeSeriesData, dict],
    gap_tolerance: float = 1.5,
) -> ProcessedTimeSeries:
    """
    Sort, gap-check and resample a bundle of readings.

    Args:
        data: TimeSeriesData (or its dict form with 'points' and 'interval')
        gap_tolerance: Multiple of the nominal interval that counts as a gap

    Returns:
        ProcessedTimeSeries with raw (sorted) data, normalized data,
        sampling rate in ms and gaps

    Raises:
        ValidationError: Empty points, unknown interval or malformed point
    """
    points, interval = _coerce_bundle(data)

    sorted_points = sort_points(points)
    gaps = find_gaps(sorted_points, interval, gap_tolerance)
    normalized = normalize_series(sorted_points)
    sampling_rate = calculate_sampling_rate(sorted_points)

    logger.debug(
        f"Processed {len(sorted_points)} points -> {len(normalized)} normalized, "
        f"{len(gaps)} gaps, sampling {sampling_rate:.0f}ms"
    )

    return ProcessedTimeSeries(
        raw_data=tuple(sorted_points),
        normalized_data=tuple(normalized),
        sampling_rate=sampling_rate,
        gaps=tuple(gaps),
    )
