"""
HYGRO Analytics Engine
======================

One object that owns the configuration and the memoization caches and
exposes every analytics operation as a method.

Usage:
    from hygro.engine import AnalyticsEngine

    engine = AnalyticsEngine()                      # packaged defaults
    engine = AnalyticsEngine.from_file('site.yaml')

    processed = engine.process_time_series({'points': points, 'interval': 'hourly'})
    trend = engine.analyze_trend(processed.normalized_data)
    changes = engine.detect_change_points(processed.normalized_data, sensitivity=0.3)

    report = engine.report({'points': points, 'interval': 'hourly'})
    print(report.to_dict())

report() runs each stage on its own: a failing stage is logged and
recorded under report.errors[stage], the others still run.
"""

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import numpy as np

from hygro import __version__
from hygro.config.analytics import AnalyticsConfig, get_config, load_config
from hygro.engines.detection.change_points import detect_change_points
from hygro.engines.normalizer import process_time_series
from hygro.engines.rolling.moving_average import calculate_ema, calculate_sma
from hygro.engines.seasonality import detect_seasonality, remove_seasonality
from hygro.engines.spatial.hotspots import cluster_hotspots, grid_hotspots, readings_from_points
from hygro.engines.summary import bucket_hourly, severity, summarize
from hygro.engines.trend import analyze_trend
from hygro.engines.validation import ValidationError
from hygro.series import (
    AnalyticsReport,
    ChangePoint,
    DataSummary,
    Hotspot,
    ProcessedTimeSeries,
    SpatialReading,
    TimeSeriesData,
    TimeSeriesPoint,
    TrendAnalysis,
)
from hygro.utils.cache import LRUCache


logger = logging.getLogger(__name__)

HOTSPOT_STRATEGIES = ('grid', 'cluster')


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class AnalyticsEngine:
    """
    Configured analytics context.

    Attributes:
        config: Thresholds used by every operation
        sma_cache: LRU cache for moving averages
        seasonality_cache: LRU cache for period detection
    """

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self.config = config or get_config()
        capacity = self.config.cache.capacity
        self.sma_cache = LRUCache(capacity=capacity, name='sma')
        self.seasonality_cache = LRUCache(capacity=capacity, name='seasonality')

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'AnalyticsEngine':
        """Engine configured from a site YAML merged over the defaults."""
        return cls(load_config(path))

    def __repr__(self) -> str:
        return f"<AnalyticsEngine {self.config!r}>"

    # -------------------------------------------------------------------------
    # Series
    # -------------------------------------------------------------------------

    def process_time_series(self, data: Union[TimeSeriesData, dict]) -> ProcessedTimeSeries:
        return process_time_series(data, gap_tolerance=self.config.gaps.tolerance)

    def calculate_sma(self, data: Sequence[TimeSeriesPoint], window_size: int,
                      centered: bool = False) -> List[TimeSeriesPoint]:
        return calculate_sma(data, window_size, centered=centered, cache=self.sma_cache)

    def calculate_ema(self, data: Sequence[TimeSeriesPoint], alpha: float) -> List[TimeSeriesPoint]:
        return calculate_ema(data, alpha)

    def summarize(self, values: Sequence[float]) -> DataSummary:
        return summarize(values)

    # -------------------------------------------------------------------------
    # Trend
    # -------------------------------------------------------------------------

    def detect_seasonality(self, points) -> int:
        return detect_seasonality(
            points,
            threshold=self.config.seasonality.correlation_threshold,
            min_points=self.config.seasonality.min_points,
            cache=self.seasonality_cache,
        )

    def remove_seasonality(self, points, period: int) -> np.ndarray:
        return remove_seasonality(points, period)

    def analyze_trend(self, data: Sequence[TimeSeriesPoint]) -> TrendAnalysis:
        return analyze_trend(
            data,
            config=self.config,
            sma_cache=self.sma_cache,
            seasonality_cache=self.seasonality_cache,
        )

    # -------------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------------

    def detect_change_points(self, data: Sequence[TimeSeriesPoint],
                             sensitivity: Optional[float] = None) -> List[ChangePoint]:
        if sensitivity is None:
            sensitivity = self.config.change_points.sensitivity
        return detect_change_points(data, sensitivity, config=self.config)

    # -------------------------------------------------------------------------
    # Spatial
    # -------------------------------------------------------------------------

    def grid_hotspots(self, readings: Sequence[SpatialReading]) -> List[Hotspot]:
        return grid_hotspots(readings, resolution=self.config.hotspots.grid_resolution)

    def cluster_hotspots(self, readings: Sequence[SpatialReading], sort_by: str = 'average') -> List[Hotspot]:
        cfg = self.config.hotspots
        return cluster_hotspots(
            readings,
            threshold=cfg.intensity_threshold,
            radius=cfg.cluster_radius,
            min_readings=cfg.min_readings,
            sort_by=sort_by,
        )

    def hotspots(self, readings: Sequence[SpatialReading], strategy: str = 'grid',
                 sort_by: str = 'average') -> List[Hotspot]:
        """Dispatch to the grid or cluster aggregator."""
        if strategy == 'grid':
            return self.grid_hotspots(readings)
        if strategy == 'cluster':
            return self.cluster_hotspots(readings, sort_by=sort_by)
        raise ValidationError(f"Unknown hotspot strategy {strategy!r}, expected one of {HOTSPOT_STRATEGIES}")

    def cache_stats(self) -> Dict[str, Dict[str, Any]]:
        return {'sma': self.sma_cache.stats(), 'seasonality': self.seasonality_cache.stats()}

    def clear_caches(self):
        self.sma_cache.clear()
        self.seasonality_cache.clear()

    # -------------------------------------------------------------------------
    # Report
    # -------------------------------------------------------------------------

    def _run_stage(self, report: AnalyticsReport, stage: str, fn: Callable, *args, **kwargs):
        """Run one report stage, recording a failure instead of raising."""
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            logger.exception(f"Analytics stage '{stage}' failed: {e}")
            report.errors[stage] = str(e)
            return None

    def _change_point_record(self, cp: ChangePoint) -> Dict[str, Any]:
        record = cp.to_dict()
        record['severity'] = severity(cp.magnitude, self.config.severity)
        return record

    def report(
        self,
        data: Union[TimeSeriesData, dict],
        sensitivity: Optional[float] = None,
        include_trends: bool = True,
        include_change_points: bool = True,
        include_hotspots: bool = True,
        hotspot_strategy: str = 'grid',
        hotspot_sort: str = 'average',
        readings: Optional[Sequence[SpatialReading]] = None,
    ) -> AnalyticsReport:
        """
        Full analysis of one batch of readings.

        Args:
            data: TimeSeriesData or its dict form
            sensitivity: Change-point sensitivity (config default if None)
            include_trends: Run trend analysis
            include_change_points: Run change-point detection
            include_hotspots: Run hotspot aggregation
            hotspot_strategy: 'grid' or 'cluster'
            hotspot_sort: 'average' or 'max' (cluster strategy)
            readings: Spatial readings for hotspots; derived from the raw
                points when omitted

        Returns:
            AnalyticsReport; check report.errors for failed stages
        """
        started = time.perf_counter()
        report = AnalyticsReport()

        processed = self._run_stage(report, 'processing', self.process_time_series, data)
        report.processed = processed

        if processed is not None:
            series = processed.normalized_data

            report.summary = self._run_stage(
                report, 'summary', self.summarize, [p.value for p in processed.raw_data]
            )
            report.hourly = self._run_stage(report, 'hourly', bucket_hourly, processed.raw_data) or []

            if include_trends:
                report.trends = self._run_stage(report, 'trends', self.analyze_trend, series)

            if include_change_points:
                changes = self._run_stage(report, 'changePoints', self.detect_change_points, series, sensitivity)
                report.change_points = [self._change_point_record(cp) for cp in changes or []]

        if include_hotspots:
            if readings is None and processed is not None:
                readings = readings_from_points(processed.raw_data)
            if readings is not None:
                report.hotspots = self._run_stage(
                    report, 'hotspots', self.hotspots, readings, hotspot_strategy, hotspot_sort
                ) or []

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        report.metadata = {
            'version': __version__,
            'generatedAt': _utc_now_iso(),
            'processingTimeMs': round(elapsed_ms, 3),
            'pointCount': len(processed.raw_data) if processed is not None else 0,
            'sensitivity': sensitivity if sensitivity is not None else self.config.change_points.sensitivity,
            'hotspotStrategy': hotspot_strategy if include_hotspots else None,
        }

        if report.errors:
            logger.warning(f"Report finished with failed stages: {sorted(report.errors)}")
        else:
            logger.info(f"Report finished in {elapsed_ms:.1f}ms")

        return report
