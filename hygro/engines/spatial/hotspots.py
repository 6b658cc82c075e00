"""
Hotspot Aggregator
==================

Ranks floor-plan locations by moisture intensity.

Two strategies:

    grid     Bucket readings on a regular grid (half-unit by default,
             rounding half up), aggregate mean / count / min / max per
             bucket, rank by mean descending.

    cluster  Keep readings above an intensity threshold, then seed
             clusters greedily from the wettest unassigned reading and
             absorb every unassigned reading within the proximity
             radius. Each cluster reports its centroid (mean x, y, z),
             radius (max distance from the centroid), counts, max and
             mean values, and the dominant location label.

Readings are SpatialReading records; readings_from_points() builds them
from time-series points.
"""

import logging
from collections import Counter
from typing import List, Sequence

import numpy as np
import polars as pl
from scipy.spatial.distance import cdist

from hygro.engines.validation import InsufficientDataError, ParameterRangeError, ValidationError
from hygro.series import Hotspot, SpatialReading, TimeSeriesPoint


logger = logging.getLogger(__name__)

SORT_KEYS = ('average', 'max')


def readings_from_points(points: Sequence[TimeSeriesPoint]) -> List[SpatialReading]:
    """Project time-series points onto the floor plan."""
    return [
        SpatialReading(
            x=float(p.metadata.location_x),
            y=float(p.metadata.location_y),
            value=float(p.value),
            room=p.metadata.room,
            floor=p.metadata.floor,
        )
        for p in points
    ]


def _readings_frame(readings: Sequence[SpatialReading]) -> pl.DataFrame:
    return pl.DataFrame(
        {
            'x': [r.x for r in readings],
            'y': [r.y for r in readings],
            'z': [r.z for r in readings],
            'value': [r.value for r in readings],
        },
        schema={'x': pl.Float64, 'y': pl.Float64, 'z': pl.Float64, 'value': pl.Float64},
    )


# =============================================================================
# GRID
# =============================================================================

def grid_hotspots(readings: Sequence[SpatialReading], resolution: float = 0.5) -> List[Hotspot]:
    """
    Aggregate readings per grid cell.

    Args:
        readings: Spatial readings
        resolution: Cell size; coordinates snap to the nearest multiple,
            halves rounding up

    Returns:
        One Hotspot per occupied cell, mean value descending
    """
    if resolution <= 0:
        raise ParameterRangeError(f"Grid resolution must be positive, got {resolution}")

    readings = list(readings)
    if not readings:
        return []

    df = _readings_frame(readings).with_columns([
        ((pl.col('x') / resolution + 0.5).floor() * resolution).alias('gx'),
        ((pl.col('y') / resolution + 0.5).floor() * resolution).alias('gy'),
    ])

    cells = (
        df.group_by(['gx', 'gy'])
        .agg([
            pl.col('value').mean().alias('average_value'),
            pl.col('value').count().alias('reading_count'),
            pl.col('value').max().alias('max_value'),
            pl.col('value').min().alias('min_value'),
        ])
        .sort(['average_value', 'gx', 'gy'], descending=[True, False, False])
    )

    logger.debug(f"Grid hotspots: {len(readings)} readings -> {cells.height} cells at resolution {resolution}")

    return [
        Hotspot(
            x=float(row['gx']),
            y=float(row['gy']),
            average_value=float(row['average_value']),
            reading_count=int(row['reading_count']),
            max_value=float(row['max_value']),
            min_value=float(row['min_value']),
        )
        for row in cells.iter_rows(named=True)
    ]


# =============================================================================
# RADIUS CLUSTERING
# =============================================================================

def _dominant_label(members: Sequence[SpatialReading]):
    labels = Counter(r.label for r in members if r.label)
    if not labels:
        return None
    return labels.most_common(1)[0][0]


def cluster_hotspots(
    readings: Sequence[SpatialReading],
    threshold: float = 15.0,
    radius: float = 1.0,
    min_readings: int = 3,
    sort_by: str = 'average',
) -> List[Hotspot]:
    """
    Group wet readings into proximity clusters.

    Args:
        readings: Spatial readings
        threshold: Readings at or below this value are ignored
        radius: Proximity radius in floor-plan units
        min_readings: Fewer input readings than this is an error
        sort_by: 'average' or 'max', ranking key (descending)

    Returns:
        One Hotspot per cluster

    Raises:
        InsufficientDataError: Fewer than min_readings readings
        ValidationError: Unknown sort_by
    """
    if sort_by not in SORT_KEYS:
        raise ValidationError(f"Unknown hotspot sort key {sort_by!r}, expected one of {SORT_KEYS}")

    readings = list(readings)
    if len(readings) < min_readings:
        raise InsufficientDataError(
            f"Insufficient data for hotspot clustering: {len(readings)} readings, need {min_readings}"
        )

    wet = sorted((r for r in readings if r.value > threshold), key=lambda r: r.value, reverse=True)
    if not wet:
        logger.debug(f"No readings above intensity threshold {threshold}")
        return []

    positions = np.array([[r.x, r.y] for r in wet], dtype=float)
    distances = cdist(positions, positions)
    assigned = np.zeros(len(wet), dtype=bool)

    hotspots = []
    for seed in range(len(wet)):
        if assigned[seed]:
            continue

        member_idx = np.flatnonzero(~assigned & (distances[seed] <= radius))
        assigned[member_idx] = True
        members = [wet[i] for i in member_idx]

        xyz = np.array([[r.x, r.y, r.z] for r in members], dtype=float)
        values = np.array([r.value for r in members], dtype=float)
        centroid = xyz.mean(axis=0)
        spread = float(np.max(np.linalg.norm(xyz - centroid, axis=1)))

        hotspots.append(Hotspot(
            x=float(centroid[0]),
            y=float(centroid[1]),
            z=float(centroid[2]),
            average_value=float(values.mean()),
            reading_count=len(members),
            max_value=float(values.max()),
            min_value=float(values.min()),
            radius=spread,
            location=_dominant_label(members),
        ))

    key = (lambda h: h.max_value) if sort_by == 'max' else (lambda h: h.average_value)
    hotspots.sort(key=key, reverse=True)

    logger.debug(f"Cluster hotspots: {len(wet)}/{len(readings)} readings above {threshold} -> {len(hotspots)} clusters")
    return hotspots
