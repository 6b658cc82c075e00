"""HYGRO utilities: timestamps and memoization."""

from hygro.utils.cache import LRUCache, content_key
from hygro.utils.timestamps import parse_timestamp_ms, format_timestamp_ms, is_valid_timestamp

__all__ = [
    'LRUCache',
    'content_key',
    'parse_timestamp_ms',
    'format_timestamp_ms',
    'is_valid_timestamp',
]
