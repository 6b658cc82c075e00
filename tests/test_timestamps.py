"""
Tests for timestamp parsing and formatting.
"""

import pytest

from hygro.utils.timestamps import MS_PER_HOUR, format_timestamp_ms, is_valid_timestamp, parse_timestamp_ms


class TestTimestamps:

    def test_epoch(self):
        assert parse_timestamp_ms('1970-01-01T00:00:00Z') == 0.0
        assert format_timestamp_ms(0) == '1970-01-01T00:00:00.000Z'

    def test_offsets_normalize_to_utc(self):
        assert parse_timestamp_ms('1970-01-01T02:00:00+01:00') == MS_PER_HOUR

    def test_naive_is_utc(self):
        assert parse_timestamp_ms('1970-01-01T01:00:00') == MS_PER_HOUR

    def test_format_keeps_milliseconds(self):
        assert format_timestamp_ms(MS_PER_HOUR + 123) == '1970-01-01T01:00:00.123Z'

    def test_parse_format_agree(self):
        ts = '2024-03-05T07:08:09.010Z'
        assert format_timestamp_ms(parse_timestamp_ms(ts)) == ts

    @pytest.mark.parametrize('value', ['', '   ', 'yesterday-ish', 'now', 'today', '01/02/2024', None, 12345])
    def test_invalid(self, value):
        assert not is_valid_timestamp(value)
        with pytest.raises(ValueError):
            parse_timestamp_ms(value)
