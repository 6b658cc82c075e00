"""
Trend Engine
============

Ordinary least squares trend lines and greedy piecewise segmentation.

Pipeline (analyze_trend):
    1. IQR outlier filter
    2. Index/value pairs (x = position in the clean series)
    3. Centered SMA, window max(3, 10% of n), used only for segmentation
    4. Seasonality detection on the raw pairs, removal if a period exists
    5. Overall OLS on the deseasonalized series
    6. Piecewise segments found on the smoothed series, each refit with
       OLS over the deseasonalized values in its index range

Segmentation grows a segment from its minimum length while the mean
squared residual keeps improving, and closes it once the residual
exceeds error_growth_limit times the best seen. Segments partition the
index range with no gaps or overlaps.

Degenerate regressions (no x variance) raise DegenerateInputError
rather than returning NaN.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from hygro.config.analytics import AnalyticsConfig, TrendConfig, get_config
from hygro.engines.rolling.moving_average import calculate_sma
from hygro.engines.seasonality import detect_seasonality, remove_seasonality
from hygro.engines.validation import (
    DegenerateInputError,
    InsufficientDataError,
    coerce_points,
    remove_outliers,
)
from hygro.series import TimeSeriesPoint, TrendAnalysis, TrendLine, TrendSegment
from hygro.utils.cache import LRUCache


logger = logging.getLogger(__name__)

Segment = Tuple[int, int, TrendLine]


# =============================================================================
# REGRESSION
# =============================================================================

def linear_regression(x: np.ndarray, y: np.ndarray) -> TrendLine:
    """
    Closed-form OLS fit of y on x.

    Returns:
        TrendLine with slope, intercept and r2 (squared Pearson correlation;
        0 when y is constant)

    Raises:
        InsufficientDataError: Fewer than 2 points
        DegenerateInputError: All x identical
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    n = len(x)
    if n < 2:
        raise InsufficientDataError(f"Insufficient points for linear regression: {n}")

    dx = x - x.mean()
    dy = y - y.mean()
    sxx = float(np.dot(dx, dx))
    syy = float(np.dot(dy, dy))
    sxy = float(np.dot(dx, dy))

    if sxx == 0.0 or np.ptp(x) == 0:
        raise DegenerateInputError("Degenerate input for linear regression: x has no variance")

    slope = sxy / sxx
    intercept = float(y.mean() - slope * x.mean())
    correlation = sxy / np.sqrt(sxx * syy) if syy > 0 else 0.0

    return TrendLine(slope=float(slope), intercept=intercept, r2=float(correlation ** 2))


def regression_error(x: np.ndarray, y: np.ndarray, line: TrendLine) -> float:
    """Mean squared residual of a fit."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    residuals = line.slope * x + line.intercept - y
    return float(np.mean(residuals ** 2))


def trend_direction(values: Sequence[float], stable_slope: float = 0.1) -> str:
    """
    Classify the direction of a run of values by its OLS slope over index.

    Returns:
        'stable' when |slope| < stable_slope, else 'increasing' / 'decreasing'
    """
    values = np.asarray(values, dtype=float)
    if len(values) < 2:
        return 'stable'
    slope = linear_regression(np.arange(len(values)), values).slope
    if abs(slope) < stable_slope:
        return 'stable'
    return 'increasing' if slope > 0 else 'decreasing'


# =============================================================================
# SEGMENTATION
# =============================================================================

def find_trend_segments(
    xy: np.ndarray,
    segment_fraction: float = 0.05,
    min_segment_length: int = 3,
    error_growth_limit: float = 1.5,
) -> List[Segment]:
    """
    Greedy best-fit piecewise linear segmentation.

    Args:
        xy: (n, 2) array of (x, y) pairs in series order
        segment_fraction: Minimum segment length as a fraction of n
        min_segment_length: Floor on the minimum segment length
        error_growth_limit: Close a segment when its error exceeds this
            multiple of the best error seen for it

    Returns:
        List of (start_index, end_index, TrendLine), inclusive indices,
        covering 0..n-1 contiguously
    """
    xy = np.asarray(xy, dtype=float)
    n = len(xy)
    x, y = xy[:, 0], xy[:, 1]

    if n == 0:
        return []
    if n < 4:
        return [(0, n - 1, TrendLine(slope=0.0, intercept=float(y[0]), r2=0.0))]

    min_len = max(min_segment_length, int(n * segment_fraction))
    segments: List[Segment] = []
    start = 0

    while start < n - min_len:
        best_end = start + min_len
        best_error = np.inf
        best_line: Optional[TrendLine] = None

        for end in range(start + min_len, n):
            line = linear_regression(x[start:end + 1], y[start:end + 1])
            error = regression_error(x[start:end + 1], y[start:end + 1], line)

            if error <= best_error:
                best_error = error
                best_end = end
                best_line = line
            elif error > best_error * error_growth_limit:
                break

        segments.append((start, best_end, best_line))
        start = best_end + 1

    if start < n - 1:
        segments.append((start, n - 1, linear_regression(x[start:], y[start:])))
    elif start == n - 1 and segments:
        # lone trailing point joins the previous segment
        prev_start = segments[-1][0]
        segments[-1] = (prev_start, n - 1, linear_regression(x[prev_start:], y[prev_start:]))

    return segments


# =============================================================================
# ANALYSIS
# =============================================================================

def smoothing_window(n: int, config: AnalyticsConfig) -> int:
    """SMA window used before segmentation, clamped to the series length."""
    window = max(config.smoothing.min_window, int(n * config.smoothing.window_fraction))
    return max(1, min(window, n))


def analyze_trend(
    data: Sequence[TimeSeriesPoint],
    config: Optional[AnalyticsConfig] = None,
    sma_cache: Optional[LRUCache] = None,
    seasonality_cache: Optional[LRUCache] = None,
) -> TrendAnalysis:
    """
    Overall and piecewise trend of a series.

    Args:
        data: Points in series order (normally the normalized series)
        config: Thresholds (packaged defaults if omitted)
        sma_cache: Optional cache for the smoothing step
        seasonality_cache: Optional cache for period detection

    Returns:
        TrendAnalysis with the overall line, contiguous segments and the
        detected seasonality period

    Raises:
        ValidationError: Malformed points
        InsufficientDataError: Fewer than 2 points survive outlier removal
    """
    config = config or get_config()
    points = coerce_points(data)
    clean = remove_outliers(points, config.outliers.iqr_multiplier, config.outliers.min_points)

    n = len(clean)
    if n < 2:
        raise InsufficientDataError(f"Trend analysis needs at least 2 points, got {n} after outlier removal")

    xy = np.column_stack([np.arange(n, dtype=float), [p.value for p in clean]])

    smoothed = calculate_sma(clean, smoothing_window(n, config), centered=True, cache=sma_cache)
    smoothed_xy = np.column_stack([xy[:, 0], [p.value for p in smoothed]])

    period = detect_seasonality(
        xy,
        threshold=config.seasonality.correlation_threshold,
        min_points=config.seasonality.min_points,
        cache=seasonality_cache,
    )
    deseasonalized = remove_seasonality(xy, period) if period > 0 else xy

    overall = linear_regression(deseasonalized[:, 0], deseasonalized[:, 1])

    trend_cfg: TrendConfig = config.trend
    raw_segments = find_trend_segments(
        smoothed_xy,
        segment_fraction=trend_cfg.segment_fraction,
        min_segment_length=trend_cfg.min_segment_length,
        error_growth_limit=trend_cfg.error_growth_limit,
    )

    segments = []
    for start, end, _ in raw_segments:
        part = deseasonalized[start:end + 1]
        segments.append(TrendSegment(
            start_date=clean[start].timestamp,
            end_date=clean[end].timestamp,
            trend=linear_regression(part[:, 0], part[:, 1]),
            start_index=start,
            end_index=end,
        ))

    logger.debug(f"Trend over {n} points: slope={overall.slope:.4f}, {len(segments)} segments, period={period}")

    return TrendAnalysis(overall=overall, segments=tuple(segments), seasonality_period=period)
