"""
HYGRO Value Objects
===================

Immutable records passed between the engines.

Input shapes:
    - TimeSeriesPoint: one timestamped moisture value at a location
    - TimeSeriesData:  a bundle of points plus the nominal interval
    - SpatialReading:  one value at (x, y[, z]) for hotspot aggregation

Output shapes:
    - ProcessedTimeSeries, TrendLine, TrendSegment, TrendAnalysis
    - ChangePoint, SpatialCluster
    - Hotspot, DataSummary, HourlyBucket

Every record exposes to_dict() with the camelCase keys the readings
service serializes. Input records also accept that shape via from_dict().
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple


Interval = Literal['hourly', 'daily', 'weekly']
TrendDirection = Literal['increasing', 'decreasing', 'stable']


# =============================================================================
# INPUTS
# =============================================================================

@dataclass(frozen=True)
class PointMetadata:
    """Where a reading was taken."""
    room: str
    floor: str
    location_x: float
    location_y: float

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'PointMetadata':
        return cls(
            room=raw['room'],
            floor=raw['floor'],
            location_x=raw['locationX'],
            location_y=raw['locationY'],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'room': self.room,
            'floor': self.floor,
            'locationX': self.location_x,
            'locationY': self.location_y,
        }


@dataclass(frozen=True)
class TimeSeriesPoint:
    """A single moisture value at a moment and a location."""
    timestamp: str
    value: float
    metadata: PointMetadata

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'TimeSeriesPoint':
        meta = raw['metadata']
        if not isinstance(meta, PointMetadata):
            meta = PointMetadata.from_dict(meta)
        return cls(timestamp=raw['timestamp'], value=raw['value'], metadata=meta)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'value': self.value,
            'metadata': self.metadata.to_dict(),
        }

    @property
    def location(self) -> Tuple[float, float]:
        return (self.metadata.location_x, self.metadata.location_y)


@dataclass(frozen=True)
class TimeSeriesData:
    """Points plus the sampling interval they were meant to arrive at."""
    points: Tuple[TimeSeriesPoint, ...]
    interval: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'TimeSeriesData':
        return cls(
            points=tuple(raw.get('points') or ()),
            interval=raw.get('interval'),
            start_date=raw.get('startDate'),
            end_date=raw.get('endDate'),
        )


@dataclass(frozen=True)
class SpatialReading:
    """A value at a floor-plan position, used for hotspot aggregation."""
    x: float
    y: float
    value: float
    z: float = 0.0
    room: Optional[str] = None
    floor: Optional[str] = None
    location: Optional[str] = None

    @property
    def label(self) -> Optional[str]:
        """Location label: explicit location, else floor/room, else room."""
        if self.location:
            return self.location
        if self.room and self.floor:
            return f"{self.floor}/{self.room}"
        return self.room


# =============================================================================
# NORMALIZER OUTPUT
# =============================================================================

@dataclass(frozen=True)
class Gap:
    """Stretch between two readings that exceeds the interval tolerance."""
    start: str
    end: str

    def to_dict(self) -> Dict[str, str]:
        return {'start': self.start, 'end': self.end}


@dataclass(frozen=True)
class ProcessedTimeSeries:
    raw_data: Tuple[TimeSeriesPoint, ...]
    normalized_data: Tuple[TimeSeriesPoint, ...]
    sampling_rate: float
    gaps: Tuple[Gap, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rawData': [p.to_dict() for p in self.raw_data],
            'normalizedData': [p.to_dict() for p in self.normalized_data],
            'samplingRate': self.sampling_rate,
            'gaps': [g.to_dict() for g in self.gaps],
        }


# =============================================================================
# TREND OUTPUT
# =============================================================================

@dataclass(frozen=True)
class TrendLine:
    """One OLS fit."""
    slope: float
    intercept: float
    r2: float

    def to_dict(self) -> Dict[str, float]:
        return {'slope': self.slope, 'intercept': self.intercept, 'r2': self.r2}


@dataclass(frozen=True)
class TrendSegment:
    start_date: str
    end_date: str
    trend: TrendLine
    start_index: int
    end_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'startDate': self.start_date,
            'endDate': self.end_date,
            'trend': self.trend.to_dict(),
        }


@dataclass(frozen=True)
class TrendAnalysis:
    overall: TrendLine
    segments: Tuple[TrendSegment, ...]
    seasonality_period: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall': self.overall.to_dict(),
            'segments': [s.to_dict() for s in self.segments],
            'seasonalityPeriod': self.seasonality_period,
        }


# =============================================================================
# CHANGE POINTS
# =============================================================================

@dataclass(frozen=True)
class SpatialCluster:
    """Location context attached to a change point."""
    centroid: Tuple[float, float]
    points: Tuple[Tuple[float, float], ...]
    radius: float
    density: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'centroid': {'x': self.centroid[0], 'y': self.centroid[1]},
            'points': [{'x': x, 'y': y} for x, y in self.points],
            'radius': self.radius,
            'density': self.density,
        }


@dataclass(frozen=True)
class ChangePoint:
    timestamp: str
    confidence: float
    previous_trend: str
    new_trend: str
    magnitude: float
    cluster: Optional[SpatialCluster] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            'timestamp': self.timestamp,
            'confidence': self.confidence,
            'previousTrend': self.previous_trend,
            'newTrend': self.new_trend,
            'magnitude': self.magnitude,
        }
        if self.cluster is not None:
            out['cluster'] = self.cluster.to_dict()
        return out


# =============================================================================
# SPATIAL AND SUMMARY OUTPUT
# =============================================================================

@dataclass(frozen=True)
class Hotspot:
    """An aggregated location ranked by moisture intensity."""
    x: float
    y: float
    average_value: float
    reading_count: int
    max_value: Optional[float] = None
    min_value: Optional[float] = None
    radius: Optional[float] = None
    z: Optional[float] = None
    location: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            'x': self.x,
            'y': self.y,
            'averageValue': self.average_value,
            'readingCount': self.reading_count,
        }
        optional = {
            'maxValue': self.max_value,
            'minValue': self.min_value,
            'radius': self.radius,
            'z': self.z,
            'location': self.location,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        return out


@dataclass(frozen=True)
class DataSummary:
    mean: float
    median: float
    std_dev: float
    min: float
    max: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mean': self.mean,
            'median': self.median,
            'stdDev': self.std_dev,
            'min': self.min,
            'max': self.max,
            'count': self.count,
        }


@dataclass(frozen=True)
class HourlyBucket:
    timestamp: str
    average_value: float
    min_value: float
    max_value: float
    reading_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'averageValue': self.average_value,
            'minValue': self.min_value,
            'maxValue': self.max_value,
            'readingCount': self.reading_count,
        }


@dataclass
class AnalyticsReport:
    """Combined output of AnalyticsEngine.report()."""
    processed: Optional[ProcessedTimeSeries] = None
    trends: Optional[TrendAnalysis] = None
    change_points: List[Dict[str, Any]] = field(default_factory=list)
    hotspots: List[Hotspot] = field(default_factory=list)
    summary: Optional[DataSummary] = None
    hourly: List[HourlyBucket] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timeSeriesData': (
                [p.to_dict() for p in self.processed.normalized_data]
                if self.processed else None
            ),
            'gaps': [g.to_dict() for g in self.processed.gaps] if self.processed else [],
            'samplingRate': self.processed.sampling_rate if self.processed else None,
            'trends': self.trends.to_dict() if self.trends else None,
            'changePoints': self.change_points,
            'hotspots': [h.to_dict() for h in self.hotspots],
            'summary': self.summary.to_dict() if self.summary else None,
            'hourly': [b.to_dict() for b in self.hourly],
            'errors': dict(self.errors),
            'metadata': dict(self.metadata),
        }
