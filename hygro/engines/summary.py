"""
Summary Statistics
==================

Descriptive numbers the readings service reports next to the trend
output:

    - summarize():      mean, median, population std, min, max, count
    - bucket_hourly():  per-UTC-hour mean / min / max / count
    - severity():       change-point magnitude -> low | medium | high | critical
"""

import logging
from typing import List, Sequence

import numpy as np
import pandas as pd

from hygro.config.analytics import SeverityConfig
from hygro.engines.validation import InsufficientDataError
from hygro.series import DataSummary, HourlyBucket, TimeSeriesPoint
from hygro.utils.timestamps import MS_PER_HOUR, format_timestamp_ms, parse_timestamp_ms


logger = logging.getLogger(__name__)

SEVERITY_LEVELS = ('low', 'medium', 'high', 'critical')


def summarize(values: Sequence[float]) -> DataSummary:
    """
    Descriptive statistics of a set of values.

    Raises:
        InsufficientDataError: No values
    """
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        raise InsufficientDataError("Cannot summarize an empty set of readings")

    return DataSummary(
        mean=float(np.mean(arr)),
        median=float(np.median(arr)),
        std_dev=float(np.std(arr)),
        min=float(np.min(arr)),
        max=float(np.max(arr)),
        count=int(arr.size),
    )


def bucket_hourly(points: Sequence[TimeSeriesPoint]) -> List[HourlyBucket]:
    """
    Aggregate readings per UTC hour.

    Returns:
        One HourlyBucket per occupied hour, ascending; the bucket timestamp
        is the start of the hour
    """
    points = list(points)
    if not points:
        return []

    df = pd.DataFrame({
        'hour': [int(parse_timestamp_ms(p.timestamp) // MS_PER_HOUR) for p in points],
        'value': [float(p.value) for p in points],
    })

    grouped = df.groupby('hour', sort=True)['value'].agg(['mean', 'min', 'max', 'count'])

    return [
        HourlyBucket(
            timestamp=format_timestamp_ms(hour * MS_PER_HOUR),
            average_value=float(row['mean']),
            min_value=float(row['min']),
            max_value=float(row['max']),
            reading_count=int(row['count']),
        )
        for hour, row in grouped.iterrows()
    ]


def severity(magnitude: float, thresholds: SeverityConfig = None) -> str:
    """
    Classify a change-point magnitude.

    Each threshold is the inclusive upper bound of its level; anything
    above thresholds.high is critical.
    """
    thresholds = thresholds or SeverityConfig()
    if magnitude <= thresholds.low:
        return 'low'
    if magnitude <= thresholds.medium:
        return 'medium'
    if magnitude <= thresholds.high:
        return 'high'
    return 'critical'
