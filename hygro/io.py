"""
HYGRO Reading Loaders

Reads flat reading tables into the records the engines take.

One row per reading:

    timestamp   ISO-8601 string (or a datetime column in Parquet)
    value       moisture value
    locationX   floor-plan x
    locationY   floor-plan y
    room        optional
    floor       optional
    z           optional height
    location    optional label used for hotspots

Key Functions:
    read_readings(path) - JSON (array of objects), CSV or Parquet -> DataFrame
    filter_valid_readings(df) - drop nulls, negative coordinates and values
    points_from_frame(df) - List[TimeSeriesPoint]
    readings_from_frame(df) - List[SpatialReading]
"""

import logging
from pathlib import Path
from typing import List, Union

import polars as pl

from hygro.engines.validation import ValidationError
from hygro.series import PointMetadata, SpatialReading, TimeSeriesPoint


logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['timestamp', 'value', 'locationX', 'locationY']
OPTIONAL_TEXT_COLUMNS = ['room', 'floor', 'location']

TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S%.3fZ'


def read_readings(path: Union[str, Path]) -> pl.DataFrame:
    """
    Read a reading table, picking the reader from the file suffix.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: Unknown suffix or missing required columns
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Readings file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.json':
        df = pl.read_json(path)
    elif suffix == '.csv':
        df = pl.read_csv(path)
    elif suffix == '.parquet':
        df = pl.read_parquet(path)
    else:
        raise ValidationError(f"Unsupported readings format '{suffix}' (expected .json, .csv or .parquet)")

    logger.debug(f"Read {df.height} rows from {path.name}")
    return normalize_frame(df)


def normalize_frame(df: pl.DataFrame) -> pl.DataFrame:
    """Check required columns and bring every column to its expected type."""
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValidationError(f"Readings table missing required columns: {missing}")

    ts_type = df.schema['timestamp']
    if isinstance(ts_type, pl.Datetime):
        ts = pl.col('timestamp')
        if ts_type.time_zone:
            ts = ts.dt.convert_time_zone('UTC').dt.replace_time_zone(None)
        df = df.with_columns(ts.dt.strftime(TIMESTAMP_FORMAT))
    elif ts_type == pl.Date:
        df = df.with_columns(pl.col('timestamp').cast(pl.Datetime('ms')).dt.strftime(TIMESTAMP_FORMAT))
    else:
        df = df.with_columns(pl.col('timestamp').cast(pl.Utf8))

    df = df.with_columns([
        pl.col('value').cast(pl.Float64),
        pl.col('locationX').cast(pl.Float64),
        pl.col('locationY').cast(pl.Float64),
    ])

    for col in OPTIONAL_TEXT_COLUMNS:
        if col in df.columns:
            df = df.with_columns(pl.col(col).cast(pl.Utf8))
        else:
            df = df.with_columns(pl.lit(None, dtype=pl.Utf8).alias(col))

    if 'z' in df.columns:
        df = df.with_columns(pl.col('z').cast(pl.Float64).fill_null(0.0))
    else:
        df = df.with_columns(pl.lit(0.0).alias('z'))

    return df


def filter_valid_readings(df: pl.DataFrame) -> pl.DataFrame:
    """
    Drop readings that cannot be placed or measured.

    Null timestamps, null or non-finite values and coordinates, and
    negative coordinates or values are removed; the count is logged as
    a warning.
    """
    valid = df.filter(
        pl.col('timestamp').is_not_null()
        & pl.col('value').is_not_null()
        & pl.col('locationX').is_not_null()
        & pl.col('locationY').is_not_null()
        & pl.col('value').is_finite()
        & pl.col('locationX').is_finite()
        & pl.col('locationY').is_finite()
        & (pl.col('value') >= 0)
        & (pl.col('locationX') >= 0)
        & (pl.col('locationY') >= 0)
    )

    dropped = df.height - valid.height
    if dropped:
        logger.warning(f"Dropped {dropped}/{df.height} readings with missing, non-finite or negative coordinates/values")

    return valid


def points_from_frame(df: pl.DataFrame) -> List[TimeSeriesPoint]:
    """One TimeSeriesPoint per row, in table order."""
    return [
        TimeSeriesPoint(
            timestamp=row['timestamp'],
            value=row['value'],
            metadata=PointMetadata(
                room=row['room'] or '',
                floor=row['floor'] or '',
                location_x=row['locationX'],
                location_y=row['locationY'],
            ),
        )
        for row in df.iter_rows(named=True)
    ]


def readings_from_frame(df: pl.DataFrame) -> List[SpatialReading]:
    """One SpatialReading per row, keeping z and the location label."""
    return [
        SpatialReading(
            x=row['locationX'],
            y=row['locationY'],
            value=row['value'],
            z=row['z'],
            room=row['room'],
            floor=row['floor'],
            location=row['location'],
        )
        for row in df.iter_rows(named=True)
    ]


def load_points(path: Union[str, Path]) -> List[TimeSeriesPoint]:
    """Read, filter and convert a reading table in one call."""
    return points_from_frame(filter_valid_readings(read_readings(path)))
