"""
Seasonality Engine
==================

Finds a repeating period in a series by autocorrelation and removes it.

Period detection:
    - Autocorrelation of mean deviations for lags 1..n//2,
      normalized by the series variance
    - The period is the first lag whose correlation is a local peak
      (above both neighbours) and exceeds the threshold (default 0.5)
    - 0 means no seasonality

Deseasonalization subtracts the average value observed at each phase
(i % period) from every point at that phase.

Points are (x, y) pairs: an (n, 2) array or a sequence of 2-tuples.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np

from hygro.engines.validation import ValidationError
from hygro.utils.cache import LRUCache, content_key


logger = logging.getLogger(__name__)

PointsLike = Union[np.ndarray, Sequence[Sequence[float]]]


def as_xy(points: PointsLike) -> np.ndarray:
    """Coerce (x, y) pairs into a float (n, 2) array."""
    try:
        arr = np.asarray(points, dtype=float)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid point data: x and y must be numbers ({e})") from e

    if arr.size == 0:
        return arr.reshape(0, 2)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValidationError(f"Invalid point data: expected (n, 2) pairs, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValidationError("Invalid point data: x and y must be finite")
    return arr


def autocorrelation(values: np.ndarray, max_lag: int) -> np.ndarray:
    """
    Normalized autocorrelation for lags 1..max_lag.

    Returns:
        Array where element k is the correlation at lag k + 1.
        Zero-variance input gives all zeros.
    """
    values = np.asarray(values, dtype=float)
    n = len(values)
    deviations = values - values.mean()
    variance = float(np.mean(deviations ** 2))

    correlations = np.zeros(max_lag)
    if variance == 0:
        return correlations

    for lag in range(1, max_lag + 1):
        overlap = n - lag
        correlations[lag - 1] = np.dot(deviations[:overlap], deviations[lag:]) / (overlap * variance)
    return correlations


def _first_peak(correlations: np.ndarray, threshold: float) -> int:
    for i in range(1, len(correlations) - 1):
        c = correlations[i]
        if c > correlations[i - 1] and c > correlations[i + 1] and c > threshold:
            return i + 1
    return 0


def detect_seasonality(
    points: PointsLike,
    threshold: float = 0.5,
    min_points: int = 4,
    cache: Optional[LRUCache] = None,
) -> int:
    """
    Detect the dominant period of a series.

    Args:
        points: (x, y) pairs in series order
        threshold: Minimum autocorrelation for a peak to count
        min_points: Below this many points, return 0
        cache: Optional memoization cache

    Returns:
        Period in samples, 0 if none
    """
    xy = as_xy(points)
    if len(xy) < min_points:
        return 0

    key = None
    if cache is not None:
        key = content_key('seasonality', threshold, xy)
        cached = cache.get(key)
        if cached is not None:
            return cached

    correlations = autocorrelation(xy[:, 1], len(xy) // 2)
    period = _first_peak(correlations, threshold)

    if period:
        logger.debug(f"Seasonality period {period} (r={correlations[period - 1]:.3f})")

    if cache is not None:
        cache.put(key, period)

    return period


def remove_seasonality(points: PointsLike, period: int) -> np.ndarray:
    """
    Subtract the per-phase average from every point.

    No-op (a copy of the input) when period <= 1 or there are fewer
    than two full periods.

    Returns:
        New (n, 2) array with x unchanged
    """
    xy = as_xy(points).copy()
    n = len(xy)
    if period <= 1 or n < 2 * period:
        return xy

    phases = np.arange(n) % period
    pattern = np.bincount(phases, weights=xy[:, 1], minlength=period) / np.bincount(phases, minlength=period)
    xy[:, 1] = xy[:, 1] - pattern[phases]
    return xy
