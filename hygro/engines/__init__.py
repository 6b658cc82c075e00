"""
HYGRO Engines Package.

Registry of the analytics engines. Every engine is a plain function;
AnalyticsEngine (hygro.engine) wraps them with configuration and caches.

Engine Categories:
- Series: normalization, moving averages, summaries
- Trend: regression, segmentation, seasonality
- Detection: change points
- Spatial: hotspot aggregation

Usage:
    from hygro.engines import get_engine, list_engines, ENGINES

    analyze = get_engine("trend")
    result = analyze(points)

    for name in list_engines():
        print(name)
"""

from typing import Callable, Dict, List

from hygro.engines.validation import (
    AnalyticsError,
    ValidationError,
    ParameterRangeError,
    InsufficientDataError,
    DegenerateInputError,
    coerce_points,
    remove_outliers,
)
from hygro.engines.normalizer import process_time_series, find_gaps, normalize_series
from hygro.engines.rolling import calculate_sma, calculate_ema
from hygro.engines.seasonality import detect_seasonality, remove_seasonality
from hygro.engines.trend import analyze_trend, linear_regression, find_trend_segments
from hygro.engines.detection import detect_change_points
from hygro.engines.spatial import grid_hotspots, cluster_hotspots, readings_from_points
from hygro.engines.summary import summarize, bucket_hourly, severity


# =============================================================================
# Registry
# =============================================================================

ENGINES: Dict[str, Callable] = {
    # Series
    "process": process_time_series,
    "outliers": remove_outliers,
    "sma": calculate_sma,
    "ema": calculate_ema,
    "summary": summarize,
    "hourly": bucket_hourly,
    # Trend
    "regression": linear_regression,
    "segments": find_trend_segments,
    "seasonality": detect_seasonality,
    "deseasonalize": remove_seasonality,
    "trend": analyze_trend,
    # Detection
    "change_points": detect_change_points,
    # Spatial
    "grid_hotspots": grid_hotspots,
    "cluster_hotspots": cluster_hotspots,
}


def get_engine(name: str) -> Callable:
    """
    Get an engine function by name.

    Raises:
        ValueError: If the engine is not registered
    """
    name = name.lower()
    if name not in ENGINES:
        raise ValueError(f"Unknown engine: {name}. Available: {list_engines()}")
    return ENGINES[name]


def list_engines() -> List[str]:
    """Registered engine names, sorted."""
    return sorted(ENGINES)


__all__ = [
    'ENGINES',
    'get_engine',
    'list_engines',
    # Errors
    'AnalyticsError',
    'ValidationError',
    'ParameterRangeError',
    'InsufficientDataError',
    'DegenerateInputError',
    # Engines
    'coerce_points',
    'remove_outliers',
    'process_time_series',
    'find_gaps',
    'normalize_series',
    'calculate_sma',
    'calculate_ema',
    'detect_seasonality',
    'remove_seasonality',
    'analyze_trend',
    'linear_regression',
    'find_trend_segments',
    'detect_change_points',
    'grid_hotspots',
    'cluster_hotspots',
    'readings_from_points',
    'summarize',
    'bucket_hourly',
    'severity',
]
