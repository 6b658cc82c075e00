"""
Moving Average Engine.

Simple (trailing or centered) and exponential moving averages over
TimeSeriesPoint sequences. One output point per input point; metadata
and timestamps pass through untouched.

Edge policy for SMA: windows are clipped at the series boundaries, so
the first and last points average over fewer samples instead of being
dropped.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from hygro.engines.validation import (
    InsufficientDataError,
    ParameterRangeError,
    ValidationError,
    point_problem,
)
from hygro.series import TimeSeriesPoint
from hygro.utils.cache import LRUCache, content_key


logger = logging.getLogger(__name__)


def window_bounds(n: int, window_size: int, centered: bool):
    """
    Start (inclusive) and end (exclusive) index of every window.

    Returns:
        (starts, ends) integer arrays of length n
    """
    idx = np.arange(n)
    if centered:
        half = window_size // 2
        starts = np.maximum(0, idx - half)
        ends = np.minimum(n, idx + half + 1)
    else:
        starts = np.maximum(0, idx - window_size + 1)
        ends = idx + 1
    return starts, ends


def rolling_mean(values: np.ndarray, window_size: int, centered: bool = False) -> np.ndarray:
    """
    Clipped rolling mean via a running sum, O(n).

    Args:
        values: 1D array
        window_size: Samples per window
        centered: Window centered on each index instead of trailing

    Returns:
        Array of the same length as values
    """
    values = np.asarray(values, dtype=float)
    running = np.concatenate(([0.0], np.cumsum(values)))
    starts, ends = window_bounds(len(values), window_size, centered)
    return (running[ends] - running[starts]) / (ends - starts)


def _sma_key(data: Sequence[TimeSeriesPoint], window_size: int, centered: bool) -> str:
    return content_key(
        'sma',
        window_size,
        centered,
        tuple((p.timestamp, p.value, p.metadata) for p in data),
    )


def calculate_sma(
    data: Sequence[TimeSeriesPoint],
    window_size: int,
    centered: bool = False,
    cache: Optional[LRUCache] = None,
) -> List[TimeSeriesPoint]:
    """
    Simple moving average.

    Args:
        data: Points in series order
        window_size: Samples per window, 1..len(data)
        centered: [i - w//2, i + w//2] instead of the trailing w samples
        cache: Optional memoization cache

    Returns:
        One smoothed point per input point

    Raises:
        ValidationError: Empty data or a malformed point (index reported)
        ParameterRangeError: window_size outside [1, len(data)]
        InsufficientDataError: Fewer than 2 points
    """
    data = list(data) if data is not None else []
    if not data:
        raise ValidationError("Invalid data array: must be non-empty array of TimeSeriesPoint")
    if window_size < 1 or window_size > len(data):
        raise ParameterRangeError(
            f"Invalid window size for SMA calculation: {window_size} (series has {len(data)} points)"
        )

    for i, point in enumerate(data):
        problem = point_problem(point)
        if problem:
            raise ValidationError(f"Invalid TimeSeriesPoint at index {i}: {problem}")

    if len(data) < 2:
        raise InsufficientDataError("Invalid time series data: Need at least 2 points")

    key = None
    if cache is not None:
        key = _sma_key(data, window_size, centered)
        cached = cache.get(key)
        if cached is not None:
            return list(cached)

    smoothed = rolling_mean(np.array([p.value for p in data]), window_size, centered)
    result = tuple(
        TimeSeriesPoint(timestamp=p.timestamp, value=float(v), metadata=p.metadata)
        for p, v in zip(data, smoothed)
    )

    if cache is not None:
        cache.put(key, result)

    return list(result)


def exponential_mean(values: np.ndarray, alpha: float) -> np.ndarray:
    """ema[0] = v[0]; ema[i] = alpha * v[i] + (1 - alpha) * ema[i-1]."""
    values = np.asarray(values, dtype=float)
    out = np.empty_like(values)
    if len(values) == 0:
        return out
    out[0] = values[0]
    for i in range(1, len(values)):
        out[i] = alpha * values[i] + (1.0 - alpha) * out[i - 1]
    return out


def calculate_ema(data: Sequence[TimeSeriesPoint], alpha: float) -> List[TimeSeriesPoint]:
    """
    Exponential moving average.

    alpha is the weight of the newest sample. It is not range-checked;
    values outside (0, 1] are logged and used as given.

    Returns:
        One smoothed point per input point
    """
    if not 0 < alpha <= 1:
        logger.warning(f"EMA alpha {alpha} outside (0, 1]; results will not be a smoothing")

    data = list(data)
    smoothed = exponential_mean(np.array([p.value for p in data]), alpha)
    return [
        TimeSeriesPoint(timestamp=p.timestamp, value=float(v), metadata=p.metadata)
        for p, v in zip(data, smoothed)
    ]
