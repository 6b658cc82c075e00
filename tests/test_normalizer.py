"""
Tests for sorting, gap detection and resampling.
"""

import pytest

from conftest import hour_ts, point

from hygro.engines.normalizer import (
    INTERPOLATED,
    calculate_sampling_rate,
    find_gaps,
    interval_to_ms,
    normalize_series,
    process_time_series,
)
from hygro.engines.validation import ValidationError
from hygro.series import TimeSeriesData


HOUR_MS = 3_600_000


class TestIntervals:

    def test_known_intervals(self):
        assert interval_to_ms('hourly') == HOUR_MS
        assert interval_to_ms('daily') == 24 * HOUR_MS
        assert interval_to_ms('weekly') == 7 * 24 * HOUR_MS

    @pytest.mark.parametrize('interval', ['monthly', '', None])
    def test_unknown_interval(self, interval):
        with pytest.raises(ValidationError, match='interval'):
            interval_to_ms(interval)


class TestGaps:

    def test_single_gap(self):
        points = [point(1.0, 0), point(2.0, 1), point(3.0, 3)]
        gaps = find_gaps(points, 'hourly')
        assert len(gaps) == 1
        assert gaps[0].start == hour_ts(1)
        assert gaps[0].end == hour_ts(3)

    def test_within_tolerance(self):
        points = [point(1.0, 0), point(2.0, 1.4), point(3.0, 2.8)]
        assert find_gaps(points, 'hourly') == []

    def test_tolerance_is_configurable(self):
        points = [point(1.0, 0), point(2.0, 1.4)]
        assert len(find_gaps(points, 'hourly', tolerance=1.2)) == 1


class TestNormalize:

    def test_regular_series_unchanged(self, make_series):
        points = make_series([1.0, 2.0, 3.0, 4.0, 5.0])
        assert normalize_series(points) == points

    def test_interpolates_missing_step(self):
        points = [
            point(0.0, 0, x=0.0),
            point(10.0, 1, x=1.0),
            point(40.0, 4, x=4.0),
        ]
        normalized = normalize_series(points)

        assert len(normalized) == 3
        assert normalized[0] == points[0]
        assert normalized[-1] == points[-1]

        filled = normalized[1]
        assert filled.timestamp == hour_ts(2)
        assert filled.value == pytest.approx(20.0)
        assert filled.metadata.location_x == pytest.approx(2.0)
        assert filled.metadata.room == INTERPOLATED
        assert filled.metadata.floor == INTERPOLATED

    def test_identical_timestamps_terminate(self):
        points = [point(1.0, 0), point(2.0, 0), point(3.0, 0)]
        assert normalize_series(points) == points

    def test_last_point_always_present(self):
        points = [point(1.0, 0), point(2.0, 0.1), point(3.0, 0.2), point(4.0, 9)]
        normalized = normalize_series(points)
        assert normalized[0] == points[0]
        assert normalized[-1] == points[-1]

    def test_single_point(self):
        p = [point(1.0, 0)]
        assert normalize_series(p) == p


class TestProcessTimeSeries:

    def test_sorts_and_reports(self):
        data = {
            'points': [point(3.0, 3), point(1.0, 0), point(2.0, 1)],
            'interval': 'hourly',
        }
        result = process_time_series(data)

        assert [p.value for p in result.raw_data] == [1.0, 2.0, 3.0]
        assert result.sampling_rate == pytest.approx(1.5 * HOUR_MS)
        assert len(result.gaps) == 1
        assert result.normalized_data[0].value == 1.0
        assert result.normalized_data[-1].value == 3.0

    def test_dataclass_input(self, make_series):
        data = TimeSeriesData(points=tuple(make_series([1.0, 2.0, 3.0])), interval='daily')
        result = process_time_series(data)
        assert len(result.raw_data) == 3
        assert result.gaps == ()

    def test_accepts_dict_points(self, make_series):
        raw = [p.to_dict() for p in make_series([1.0, 2.0])]
        result = process_time_series({'points': raw, 'interval': 'hourly'})
        assert result.raw_data[0].value == 1.0

    def test_empty_points(self):
        with pytest.raises(ValidationError, match='Empty or missing'):
            process_time_series({'points': [], 'interval': 'hourly'})

    def test_missing_interval(self, make_series):
        with pytest.raises(ValidationError, match='interval'):
            process_time_series({'points': make_series([1.0, 2.0])})

    def test_malformed_point(self, make_series):
        points = make_series([1.0, 2.0]) + [{'value': 3.0}]
        with pytest.raises(ValidationError, match='index 2'):
            process_time_series({'points': points, 'interval': 'hourly'})

    def test_serializes(self, make_series):
        result = process_time_series({'points': make_series([1.0, 2.0]), 'interval': 'hourly'})
        out = result.to_dict()
        assert set(out) == {'rawData', 'normalizedData', 'samplingRate', 'gaps'}
        assert out['rawData'][0]['metadata']['locationX'] == 1.0


class TestSamplingRate:

    def test_mean_spacing(self, make_series):
        assert calculate_sampling_rate(make_series([1.0, 2.0, 3.0])) == pytest.approx(HOUR_MS)

    def test_single_point(self):
        assert calculate_sampling_rate([point(1.0)]) == 0.0
