"""
Change-Point Detection Engine
=============================

Detects moments where the local trend direction of a moisture series
changes, for example a wall that stops drying and starts taking on
water again.

Algorithm:
    1. IQR outlier filter, sort by timestamp
    2. Window w = max(5, 10% of n)
    3. For each i in [w, n - w): classify the OLS direction of
       before = [i-w, i) and after = [i, i+w)
       (|slope| < 0.1 is stable)
    4. Where the directions differ, confidence is the mean of
         - the angle between the two slopes, atan-based, / pi
         - min(1, ln(variance ratio) / ln(4))
    5. When confidence >= sensitivity, emit a change point whose
       confidence and magnitude are scaled by spatial density: the
       fraction of [i-w, i+w] within spatial_radius of point i
    6. Merge change points closer than w samples, keeping the more
       confident one

Magnitude is the mean of the mean shift and the std shift, both
relative to the before-window std, clamped to [0, 1]. A flat before
window (zero std) gives magnitude 1 for any shift and 0 for none.
"""

import logging
import math
import numbers
from typing import List, Optional, Sequence

import numpy as np

from hygro.config.analytics import AnalyticsConfig, ChangePointConfig, get_config
from hygro.engines.trend import linear_regression, trend_direction
from hygro.engines.validation import ParameterRangeError, coerce_points, remove_outliers
from hygro.series import ChangePoint, SpatialCluster, TimeSeriesPoint
from hygro.utils.timestamps import parse_timestamp_ms


logger = logging.getLogger(__name__)

_EPS = 1e-12


# =============================================================================
# SCORING
# =============================================================================

def change_confidence(before: np.ndarray, after: np.ndarray, variance_ratio_base: float = 4.0) -> float:
    """
    Confidence that the two windows follow different trends.

    Returns:
        Value in [0, 1]; 0 if either window has fewer than 2 values
    """
    if len(before) < 2 or len(after) < 2:
        return 0.0

    before_slope = linear_regression(np.arange(len(before)), before).slope
    after_slope = linear_regression(np.arange(len(after)), after).slope
    angle_diff = abs(math.atan(after_slope) - math.atan(before_slope))
    angle_confidence = min(1.0, angle_diff / math.pi)

    before_var = float(np.var(before))
    after_var = float(np.var(after))
    low, high = min(before_var, after_var), max(before_var, after_var)
    if high <= _EPS:
        var_confidence = 0.0
    elif low <= _EPS:
        var_confidence = 1.0
    else:
        var_confidence = min(1.0, math.log(high / low) / math.log(variance_ratio_base))

    return (angle_confidence + var_confidence) / 2


def change_magnitude(before: np.ndarray, after: np.ndarray) -> float:
    """
    Size of the shift between two windows relative to the before std.

    Returns:
        Value in [0, 1]
    """
    if len(before) < 2 or len(after) < 2:
        return 0.0

    before_std = float(np.std(before))
    mean_change = abs(float(np.mean(after)) - float(np.mean(before)))
    std_change = abs(float(np.std(after)) - before_std)

    if before_std <= _EPS:
        return 1.0 if (mean_change > _EPS or std_change > _EPS) else 0.0

    magnitude = (mean_change / before_std + std_change / before_std) / 2
    return float(min(1.0, max(0.0, magnitude)))


def spatial_density(locations: np.ndarray, center_idx: int, window_size: int, radius: float = 5.0) -> float:
    """
    Fraction of readings in [center-w, center+w] within radius of the center reading.

    Args:
        locations: (n, 2) array of (x, y) positions in series order
    """
    lo = max(0, center_idx - window_size)
    hi = min(len(locations), center_idx + window_size + 1)
    window = locations[lo:hi]
    distances = np.hypot(*(window - locations[center_idx]).T)
    return float(np.count_nonzero(distances <= radius) / len(window))


def point_cluster(point: TimeSeriesPoint) -> SpatialCluster:
    """Single-point cluster describing where a change point happened."""
    xy = (float(point.metadata.location_x), float(point.metadata.location_y))
    return SpatialCluster(centroid=xy, points=(xy,), radius=0.0, density=1.0)


# =============================================================================
# MERGING
# =============================================================================

def merge_nearby_changes(changes: List[ChangePoint], min_separation_ms: float) -> List[ChangePoint]:
    """
    Collapse change points closer than min_separation_ms.

    Each point is compared with the last kept one; the more confident of
    the two survives.
    """
    if len(changes) <= 1:
        return list(changes)

    merged = [changes[0]]
    last_ms = parse_timestamp_ms(changes[0].timestamp)

    for current in changes[1:]:
        current_ms = parse_timestamp_ms(current.timestamp)
        if current_ms - last_ms > min_separation_ms:
            merged.append(current)
            last_ms = current_ms
        elif current.confidence > merged[-1].confidence:
            merged[-1] = current
            last_ms = current_ms

    return merged


# =============================================================================
# DETECTION
# =============================================================================

def detection_window(n: int, config: ChangePointConfig) -> int:
    return max(config.min_window, int(n * config.window_fraction))


def detect_change_points(
    data: Sequence[TimeSeriesPoint],
    sensitivity: float,
    config: Optional[AnalyticsConfig] = None,
) -> List[ChangePoint]:
    """
    Detect trend-direction changes.

    Args:
        data: Points (normally the normalized series)
        sensitivity: Minimum raw confidence to report, strictly in (0, 1)
        config: Thresholds (packaged defaults if omitted)

    Returns:
        Change points ascending by timestamp, near-duplicates merged

    Raises:
        ParameterRangeError: sensitivity outside (0, 1)
        ValidationError: Malformed points
    """
    if not (isinstance(sensitivity, numbers.Real) and not isinstance(sensitivity, bool)
            and 0 < sensitivity < 1):
        raise ParameterRangeError(f"Sensitivity must be between 0 and 1 (exclusive), got {sensitivity!r}")

    config = config or get_config()
    cp_cfg = config.change_points

    points = coerce_points(data)
    clean = remove_outliers(points, config.outliers.iqr_multiplier, config.outliers.min_points)
    clean.sort(key=lambda p: parse_timestamp_ms(p.timestamp))

    n = len(clean)
    w = detection_window(n, cp_cfg)
    if n < 2 * w + 1:
        logger.debug(f"Change-point detection skipped: {n} points, window {w}")
        return []

    values = np.array([p.value for p in clean], dtype=float)
    locations = np.array([p.location for p in clean], dtype=float)

    changes: List[ChangePoint] = []
    for i in range(w, n - w):
        before = values[i - w:i]
        after = values[i:i + w]

        before_trend = trend_direction(before, cp_cfg.stable_slope)
        after_trend = trend_direction(after, cp_cfg.stable_slope)
        if before_trend == after_trend:
            continue

        confidence = change_confidence(before, after, cp_cfg.variance_ratio_base)
        if confidence < sensitivity:
            continue

        density = spatial_density(locations, i, w, cp_cfg.spatial_radius)
        changes.append(ChangePoint(
            timestamp=clean[i].timestamp,
            confidence=min(1.0, confidence * density),
            previous_trend=before_trend,
            new_trend=after_trend,
            magnitude=change_magnitude(before, after) * density,
            cluster=point_cluster(clean[i]),
        ))

    times = np.array([parse_timestamp_ms(p.timestamp) for p in clean], dtype=float)
    spacing = float(np.mean(np.diff(times)))
    merged = merge_nearby_changes(changes, w * spacing)

    logger.debug(f"Change points: {len(changes)} raw, {len(merged)} after merge (window {w})")
    return merged
