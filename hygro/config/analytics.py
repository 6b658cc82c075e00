"""
Analytics configuration loader.

Reads YAML to configure the thresholds every engine uses. The packaged
defaults live beside this file; a site file only needs the keys it
changes.

Usage:
    from hygro.config.analytics import get_config, load_config

    config = get_config()
    tolerance = config.gaps.tolerance

    site = load_config(Path('site.yaml'))
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union
import yaml


DEFAULTS_PATH = Path(__file__).parent / 'defaults.yaml'


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class OutlierConfig:
    """IQR fence used before trend and change-point analysis."""
    iqr_multiplier: float = 1.5
    min_points: int = 4


@dataclass(frozen=True)
class GapConfig:
    tolerance: float = 1.5


@dataclass(frozen=True)
class SmoothingConfig:
    """SMA window used to smooth a series before segmentation."""
    window_fraction: float = 0.10
    min_window: int = 3


@dataclass(frozen=True)
class SeasonalityConfig:
    min_points: int = 4
    correlation_threshold: float = 0.5


@dataclass(frozen=True)
class TrendConfig:
    """Greedy piecewise segmentation."""
    segment_fraction: float = 0.05
    min_segment_length: int = 3
    error_growth_limit: float = 1.5


@dataclass(frozen=True)
class ChangePointConfig:
    window_fraction: float = 0.10
    min_window: int = 5
    stable_slope: float = 0.1
    variance_ratio_base: float = 4.0
    spatial_radius: float = 5.0
    sensitivity: float = 0.3


@dataclass(frozen=True)
class HotspotConfig:
    grid_resolution: float = 0.5
    intensity_threshold: float = 15.0
    cluster_radius: float = 1.0
    min_readings: int = 3


@dataclass(frozen=True)
class SeverityConfig:
    """Upper magnitude bound for each severity level."""
    low: float = 0.25
    medium: float = 0.5
    high: float = 0.75


@dataclass(frozen=True)
class CacheConfig:
    capacity: int = 100


@dataclass(frozen=True)
class AnalyticsConfig:
    """Complete analytics configuration."""
    outliers: OutlierConfig = field(default_factory=OutlierConfig)
    gaps: GapConfig = field(default_factory=GapConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    seasonality: SeasonalityConfig = field(default_factory=SeasonalityConfig)
    trend: TrendConfig = field(default_factory=TrendConfig)
    change_points: ChangePointConfig = field(default_factory=ChangePointConfig)
    hotspots: HotspotConfig = field(default_factory=HotspotConfig)
    severity: SeverityConfig = field(default_factory=SeverityConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __repr__(self):
        return (f"AnalyticsConfig(gap_tolerance={self.gaps.tolerance}, "
                f"sensitivity={self.change_points.sensitivity}, "
                f"cache={self.cache.capacity})")


# =============================================================================
# LOADER FUNCTIONS
# =============================================================================

def _parse_section(section_cls, name: str, raw: Optional[Dict[str, Any]]):
    """Build one section dataclass, rejecting unknown keys."""
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config section '{name}' must be a mapping, got {type(raw).__name__}")

    known = {f.name: f for f in fields(section_cls)}
    unknown = set(raw) - set(known)
    if unknown:
        raise ValueError(f"Unknown keys in config section '{name}': {sorted(unknown)}")

    values = {}
    for key, value in raw.items():
        default = known[key].default
        # ints stay ints, everything numeric else becomes float
        if isinstance(default, int):
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"Config key '{name}.{key}' must be a whole number, got {value!r}")
            values[key] = int(value)
        else:
            values[key] = float(value)
    return section_cls(**values)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = {k: dict(v or {}) for k, v in base.items()}
    for section, values in override.items():
        if isinstance(values, dict):
            merged.setdefault(section, {}).update(values)
        else:
            merged[section] = values
    return merged


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, 'r') as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping at top level")
    return raw


def config_from_dict(raw: Dict[str, Any]) -> AnalyticsConfig:
    """Build an AnalyticsConfig from a nested mapping."""
    sections = {f.name: f.default_factory for f in fields(AnalyticsConfig)}
    unknown = set(raw) - set(sections)
    if unknown:
        raise ValueError(f"Unknown config sections: {sorted(unknown)}")

    return AnalyticsConfig(**{
        name: _parse_section(factory, name, raw.get(name))
        for name, factory in sections.items()
    })


def load_config(path: Union[str, Path, None] = None) -> AnalyticsConfig:
    """
    Load analytics configuration.

    Args:
        path: Optional site YAML merged over the packaged defaults

    Returns:
        AnalyticsConfig object

    Raises:
        FileNotFoundError: If the site file doesn't exist
        ValueError: If the file has unknown sections or keys
    """
    raw = _read_yaml(DEFAULTS_PATH)

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Analytics config not found: {path}")
        raw = _merge(raw, _read_yaml(path))

    return config_from_dict(raw)


# =============================================================================
# CACHING
# =============================================================================

_config_cache: Dict[str, AnalyticsConfig] = {}


def get_config() -> AnalyticsConfig:
    """Packaged defaults, loaded once per process."""
    if 'default' not in _config_cache:
        _config_cache['default'] = load_config()
    return _config_cache['default']


def clear_config_cache():
    """Forget the memoized defaults (tests, hot reload)."""
    _config_cache.clear()
