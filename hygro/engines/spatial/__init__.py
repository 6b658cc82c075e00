"""Spatial aggregation engines."""

from hygro.engines.spatial.hotspots import (
    grid_hotspots,
    cluster_hotspots,
    readings_from_points,
)

__all__ = ['grid_hotspots', 'cluster_hotspots', 'readings_from_points']
