"""
Tests for point validation, the error taxonomy and the IQR outlier filter.
"""

import math

import numpy as np
import pytest

from hygro.engines.validation import (
    AnalyticsError,
    DegenerateInputError,
    InsufficientDataError,
    ParameterRangeError,
    ValidationError,
    coerce_point,
    coerce_points,
    iqr_bounds,
    is_valid_point,
    point_problem,
    remove_outliers,
)
from hygro.series import PointMetadata, TimeSeriesPoint


# ─────────────────────────────────────────────────────────────────────
# Error taxonomy
# ─────────────────────────────────────────────────────────────────────

class TestErrorTaxonomy:

    def test_all_errors_share_a_base(self):
        for cls in (ValidationError, ParameterRangeError, InsufficientDataError, DegenerateInputError):
            assert issubclass(cls, AnalyticsError)

    def test_range_error_is_a_validation_error(self):
        assert issubclass(ParameterRangeError, ValidationError)

    def test_insufficient_data_is_distinct_from_validation(self):
        assert not issubclass(InsufficientDataError, ValidationError)

    def test_http_status(self):
        assert AnalyticsError.http_status == 500
        assert ValidationError.http_status == 400
        assert ParameterRangeError.http_status == 400
        assert InsufficientDataError.http_status == 400
        assert DegenerateInputError.http_status == 422


# ─────────────────────────────────────────────────────────────────────
# Point validation
# ─────────────────────────────────────────────────────────────────────

class TestPointValidation:

    def test_well_formed_point(self, make_point):
        assert point_problem(make_point(12.5)) is None
        assert is_valid_point(make_point(12.5))

    def test_zero_value_is_valid(self, make_point):
        assert is_valid_point(make_point(0.0))
        assert is_valid_point(make_point(0))

    @pytest.mark.parametrize('value', [math.nan, math.inf, '12', None, True])
    def test_bad_values(self, make_point, value):
        p = make_point(1.0)
        bad = TimeSeriesPoint(timestamp=p.timestamp, value=value, metadata=p.metadata)
        assert not is_valid_point(bad)

    def test_bad_timestamp(self, make_point):
        p = make_point(1.0)
        for ts in ('', 'not a date', None, 'now', 'today', 'yesterday'):
            bad = TimeSeriesPoint(timestamp=ts, value=1.0, metadata=p.metadata)
            assert not is_valid_point(bad)

    def test_bad_metadata(self, make_point):
        p = make_point(1.0)
        bad = TimeSeriesPoint(
            timestamp=p.timestamp,
            value=1.0,
            metadata=PointMetadata(room='kitchen', floor='1', location_x='left', location_y=1.0),
        )
        assert 'locationX' in point_problem(bad)

    def test_not_a_point(self):
        assert not is_valid_point({'value': 1})


class TestCoercion:

    def test_dict_form(self, make_point):
        raw = make_point(3.0).to_dict()
        p = coerce_point(raw, 0)
        assert isinstance(p, TimeSeriesPoint)
        assert p.value == 3.0
        assert p.metadata.location_x == 1.0

    def test_error_names_the_index(self, make_point):
        points = [make_point(1.0), make_point(2.0), {'timestamp': 'x'}]
        with pytest.raises(ValidationError, match='index 2'):
            coerce_points(points)

    @pytest.mark.parametrize('points', [None, [], (), 'abc', {'points': []}])
    def test_missing_or_empty(self, points):
        with pytest.raises(ValidationError, match='Empty or missing'):
            coerce_points(points)


# ─────────────────────────────────────────────────────────────────────
# Outlier filter
# ─────────────────────────────────────────────────────────────────────

class TestOutlierFilter:

    def test_iqr_bounds(self):
        lower, upper = iqr_bounds(np.array([1.0, 2.0, 3.0, 4.0, 5.0]))
        assert lower == pytest.approx(-1.0)
        assert upper == pytest.approx(7.0)

    def test_drops_spike(self, make_series):
        points = make_series([10.0, 11.0, 12.0, 13.0, 100.0])
        clean = remove_outliers(points)
        assert [p.value for p in clean] == [10.0, 11.0, 12.0, 13.0]

    def test_preserves_order(self, make_series):
        points = make_series([13.0, 100.0, 10.0, 12.0, 11.0])
        clean = remove_outliers(points)
        assert [p.value for p in clean] == [13.0, 10.0, 12.0, 11.0]

    def test_second_pass_is_noop(self, make_series):
        points = make_series([10.0, 11.0, 12.0, 13.0, 100.0, -50.0, 12.5, 11.5])
        once = remove_outliers(points)
        twice = remove_outliers(once)
        assert len(twice) == len(once)

    def test_small_input_untouched(self, make_series):
        points = make_series([1.0, 100.0, 1.0])
        assert len(remove_outliers(points)) == 3

    def test_returns_new_list(self, make_series):
        points = make_series([1.0, 2.0, 3.0, 4.0])
        clean = remove_outliers(points)
        assert clean == points
        assert clean is not points
