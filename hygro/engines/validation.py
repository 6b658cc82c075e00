"""
Input Validation and Outlier Filtering
======================================

Malformed readings fail loudly. No silent fallbacks, no NaN leaking
into downstream JSON.

Error taxonomy (each carries the HTTP status the readings service maps
it to):
    AnalyticsError          base class                           500
    ValidationError         malformed points, bad interval       400
    ParameterRangeError     sensitivity / window out of range    400
    InsufficientDataError   too few points for the operation     400
    DegenerateInputError    zero-variance regression input       422

Usage:
    from hygro.engines.validation import coerce_points, remove_outliers

    points = coerce_points(raw_points)
    clean = remove_outliers(points)
"""

import logging
import math
import numbers
from typing import Any, List, Optional, Sequence

import numpy as np

from hygro.series import PointMetadata, TimeSeriesPoint
from hygro.utils.timestamps import is_valid_timestamp


logger = logging.getLogger(__name__)


# =============================================================================
# ERRORS
# =============================================================================

class AnalyticsError(Exception):
    """Base class for every error raised by the analytics core."""
    http_status = 500


class ValidationError(AnalyticsError):
    """Raised when input points or bundles are malformed."""
    http_status = 400


class ParameterRangeError(ValidationError):
    """Raised when a tuning parameter is outside its allowed range."""
    http_status = 400


class InsufficientDataError(AnalyticsError):
    """Raised when an operation needs more points than it was given."""
    http_status = 400


class DegenerateInputError(AnalyticsError):
    """Raised when a regression has no x variance to fit against."""
    http_status = 422


# =============================================================================
# POINT VALIDATION
# =============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _is_finite_number(value: Any) -> bool:
    return _is_number(value) and math.isfinite(value)


def point_problem(point: Any) -> Optional[str]:
    """
    Describe what is wrong with a point.

    Returns:
        None for a well-formed point, otherwise a short reason
    """
    if not isinstance(point, TimeSeriesPoint):
        return f"expected TimeSeriesPoint, got {type(point).__name__}"
    if not isinstance(point.timestamp, str) or not point.timestamp:
        return "missing timestamp"
    if not is_valid_timestamp(point.timestamp):
        return f"unparseable timestamp {point.timestamp!r}"
    if not _is_finite_number(point.value):
        return f"value must be a finite number, got {point.value!r}"

    meta = point.metadata
    if not isinstance(meta, PointMetadata):
        return "missing metadata"
    if not isinstance(meta.room, str) or not isinstance(meta.floor, str):
        return "metadata room and floor must be strings"
    if not _is_number(meta.location_x) or not _is_number(meta.location_y):
        return "metadata locationX and locationY must be numbers"
    return None


def is_valid_point(point: Any) -> bool:
    """True when the point has a parseable timestamp, a finite value and full metadata."""
    return point_problem(point) is None


def coerce_point(raw: Any, index: int) -> TimeSeriesPoint:
    """
    Turn a TimeSeriesPoint or its dict form into a validated point.

    Raises:
        ValidationError: Identifying the offending index
    """
    point = raw
    if isinstance(raw, dict):
        try:
            point = TimeSeriesPoint.from_dict(raw)
        except (KeyError, TypeError, AttributeError) as e:
            raise ValidationError(f"Invalid point at index {index}: missing field {e}") from e

    problem = point_problem(point)
    if problem:
        raise ValidationError(f"Invalid point at index {index}: {problem}")
    return point


def coerce_points(points: Optional[Sequence[Any]]) -> List[TimeSeriesPoint]:
    """
    Validate a whole sequence.

    Raises:
        ValidationError: If the sequence is missing/empty or any point is malformed
    """
    if points is None or isinstance(points, (str, bytes, dict)):
        raise ValidationError("Invalid time series data: Empty or missing points array")
    points = list(points)
    if not points:
        raise ValidationError("Invalid time series data: Empty or missing points array")
    return [coerce_point(p, i) for i, p in enumerate(points)]


# =============================================================================
# OUTLIER FILTER
# =============================================================================

def iqr_bounds(values: np.ndarray, multiplier: float = 1.5):
    """
    Tukey fence for a set of values.

    Quartiles use linear interpolation between order statistics.

    Returns:
        (lower, upper) bounds
    """
    q1, q3 = np.quantile(np.asarray(values, dtype=float), [0.25, 0.75])
    iqr = q3 - q1
    return float(q1 - multiplier * iqr), float(q3 + multiplier * iqr)


def remove_outliers(
    points: Sequence[TimeSeriesPoint],
    multiplier: float = 1.5,
    min_points: int = 4,
) -> List[TimeSeriesPoint]:
    """
    Drop points whose value falls outside the IQR fence.

    Args:
        points: Points in any order
        multiplier: Fence width in IQRs
        min_points: Below this many points the spread is not estimated

    Returns:
        New list, original order preserved
    """
    points = list(points)
    if len(points) < min_points:
        return points

    values = np.array([p.value for p in points], dtype=float)
    lower, upper = iqr_bounds(values, multiplier)
    keep = (values >= lower) & (values <= upper)

    dropped = int(len(points) - keep.sum())
    if dropped:
        logger.debug(f"Outlier filter dropped {dropped}/{len(points)} points outside [{lower:.3f}, {upper:.3f}]")

    return [p for p, k in zip(points, keep) if k]
