"""
Timestamp helpers.

Readings carry ISO-8601 strings. Every engine works on epoch
milliseconds internally and formats interpolated points back to the
`YYYY-MM-DDTHH:MM:SS.mmmZ` shape the readings service emits.
"""

import re
from datetime import datetime, timedelta, timezone

import pandas as pd


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

MS_PER_HOUR = 60 * 60 * 1000
MS_PER_DAY = 24 * MS_PER_HOUR
MS_PER_WEEK = 7 * MS_PER_DAY

# Calendar date first; keeps pandas keywords like "now" out
ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


def parse_timestamp_ms(timestamp: str) -> float:
    """
    Parse an ISO-8601 timestamp into epoch milliseconds.

    Naive timestamps are read as UTC.

    Raises:
        ValueError: If the timestamp is not an ISO-8601 date string or is unparseable
    """
    if not isinstance(timestamp, str) or not ISO_DATE_PREFIX.match(timestamp.strip()):
        raise ValueError(f"Invalid timestamp: {timestamp!r}")

    ts = pd.Timestamp(timestamp)
    if ts is pd.NaT:
        raise ValueError(f"Invalid timestamp: {timestamp!r}")

    return ts.value / 1e6


def is_valid_timestamp(timestamp) -> bool:
    """True when the value parses to a real date."""
    try:
        parse_timestamp_ms(timestamp)
    except (ValueError, TypeError, OverflowError):
        return False
    return True


def format_timestamp_ms(ms: float) -> str:
    """Format epoch milliseconds as an ISO-8601 UTC string with a Z suffix."""
    dt = EPOCH + timedelta(milliseconds=int(round(ms)))
    return dt.isoformat(timespec='milliseconds').replace('+00:00', 'Z')
