"""HYGRO Configuration Module."""

from hygro.config.analytics import (
    AnalyticsConfig,
    OutlierConfig,
    GapConfig,
    SmoothingConfig,
    SeasonalityConfig,
    TrendConfig,
    ChangePointConfig,
    HotspotConfig,
    SeverityConfig,
    CacheConfig,
    DEFAULTS_PATH,
    config_from_dict,
    load_config,
    get_config,
    clear_config_cache,
)

__all__ = [
    'AnalyticsConfig',
    'OutlierConfig',
    'GapConfig',
    'SmoothingConfig',
    'SeasonalityConfig',
    'TrendConfig',
    'ChangePointConfig',
    'HotspotConfig',
    'SeverityConfig',
    'CacheConfig',
    'DEFAULTS_PATH',
    'config_from_dict',
    'load_config',
    'get_config',
    'clear_config_cache',
]
