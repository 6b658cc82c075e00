"""
HYGRO - Moisture Time-Series Analytics
======================================

Readings in, trends out. Storage and HTTP are the caller's problem.

Architecture:
    - engines/validation.py:     Errors, point validation, IQR outlier filter
    - engines/normalizer.py:     Sorting, gap detection, regular resampling
    - engines/rolling/:          Simple and exponential moving averages
    - engines/seasonality.py:    Autocorrelation period detection
    - engines/trend.py:          OLS regression and piecewise segments
    - engines/detection/:        Change-point detection
    - engines/spatial/:          Hotspot aggregation
    - engine.py:                 AnalyticsEngine (config + caches)
    - cli.py:                    Command line interface

Usage:
    # CLI
    python -m hygro analyze readings.json --interval hourly

    # Python
    from hygro.engine import AnalyticsEngine
    engine = AnalyticsEngine()
    trend = engine.analyze_trend(points)
"""

__version__ = "1.0.0"

# Lazy imports to avoid circular dependencies
__all__ = ['engine', 'engines', 'config', 'io', '__version__']


def __getattr__(name):
    """Lazy import of submodules."""
    if name == 'engine':
        from . import engine
        return engine
    elif name == 'engines':
        from . import engines
        return engines
    elif name == 'config':
        from . import config
        return config
    elif name == 'io':
        from . import io
        return io
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
