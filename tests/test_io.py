"""
Tests for the polars reading loaders.
"""

import json
import logging
from datetime import datetime

import polars as pl
import pytest

from hygro.engine import AnalyticsEngine
from hygro.engines.validation import ValidationError, is_valid_point
from hygro.io import (
    filter_valid_readings,
    load_points,
    points_from_frame,
    read_readings,
    readings_from_frame,
)


CSV_TEXT = """timestamp,value,room,floor,locationX,locationY
2024-01-01T00:00:00.000Z,12.5,kitchen,1,1.0,2.0
2024-01-01T01:00:00.000Z,14.0,kitchen,1,1.0,2.0
2024-01-01T02:00:00.000Z,-1.0,kitchen,1,1.0,2.0
2024-01-01T03:00:00.000Z,15.5,hall,1,-2.0,2.0
2024-01-01T04:00:00.000Z,0.0,hall,1,3.0,4.0
"""


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / 'readings.csv'
    path.write_text(CSV_TEXT)
    return path


class TestReadReadings:

    def test_csv(self, csv_file):
        df = read_readings(csv_file)
        assert df.height == 5
        assert df.schema['timestamp'] == pl.Utf8
        assert df.schema['floor'] == pl.Utf8
        assert df['floor'][0] == '1'
        assert df['z'].to_list() == [0.0] * 5
        assert df['location'].null_count() == 5

    def test_json(self, tmp_path):
        path = tmp_path / 'readings.json'
        path.write_text(json.dumps([
            {'timestamp': '2024-01-01T00:00:00.000Z', 'value': 3, 'locationX': 1, 'locationY': 1,
             'room': 'bath', 'floor': '2', 'location': 'Bath tub'},
            {'timestamp': '2024-01-01T01:00:00.000Z', 'value': 4, 'locationX': 1, 'locationY': 1,
             'room': 'bath', 'floor': '2', 'location': 'Bath tub'},
        ]))
        df = read_readings(path)
        assert df['value'].to_list() == [3.0, 4.0]
        assert df['location'][0] == 'Bath tub'

    def test_parquet_datetimes(self, tmp_path):
        path = tmp_path / 'readings.parquet'
        pl.DataFrame({
            'timestamp': [datetime(2024, 1, 1, 0), datetime(2024, 1, 1, 1, 30)],
            'value': [1.0, 2.0],
            'locationX': [0.0, 0.0],
            'locationY': [0.0, 0.0],
            'z': [1.5, None],
        }).write_parquet(path)

        df = read_readings(path)
        assert df['timestamp'].to_list() == ['2024-01-01T00:00:00.000Z', '2024-01-01T01:30:00.000Z']
        assert df['z'].to_list() == [1.5, 0.0]

    def test_missing_columns(self, tmp_path):
        path = tmp_path / 'readings.csv'
        path.write_text("timestamp,value\n2024-01-01T00:00:00Z,1.0\n")
        with pytest.raises(ValidationError, match='locationX'):
            read_readings(path)

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / 'readings.xlsx'
        path.write_text('')
        with pytest.raises(ValidationError, match='Unsupported'):
            read_readings(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_readings(tmp_path / 'absent.csv')


class TestFilterAndConvert:

    def test_drops_negative(self, csv_file, caplog):
        with caplog.at_level(logging.WARNING, logger='hygro.io'):
            df = filter_valid_readings(read_readings(csv_file))
        assert df['value'].to_list() == [12.5, 14.0, 0.0]
        assert 'Dropped 2/5' in caplog.text

    def test_drops_nan(self, tmp_path, caplog):
        path = tmp_path / 'readings.csv'
        path.write_text(
            "timestamp,value,locationX,locationY\n"
            "2024-01-01T00:00:00.000Z,12.5,1.0,2.0\n"
            "2024-01-01T01:00:00.000Z,NaN,1.0,2.0\n"
            "2024-01-01T02:00:00.000Z,13.0,NaN,2.0\n"
            "2024-01-01T03:00:00.000Z,14.0,1.0,2.0\n"
        )
        with caplog.at_level(logging.WARNING, logger='hygro.io'):
            df = filter_valid_readings(read_readings(path))
        assert df['value'].to_list() == [12.5, 14.0]
        assert 'Dropped 2/4' in caplog.text

    def test_nan_row_keeps_report_whole(self, tmp_path):
        lines = ['timestamp,value,locationX,locationY']
        for i in range(30):
            value = 'NaN' if i == 3 else ('10.0' if i < 15 else '50.0')
            lines.append(f"2024-01-{1 + i // 24:02d}T{i % 24:02d}:00:00.000Z,{value},1.0,1.0")
        path = tmp_path / 'readings.csv'
        path.write_text('\n'.join(lines) + '\n')

        df = filter_valid_readings(read_readings(path))
        assert df.height == 29
        report = AnalyticsEngine().report(
            {'points': points_from_frame(df), 'interval': 'hourly'},
            readings=readings_from_frame(df),
        )
        assert report.errors == {}
        assert 'NaN' not in json.dumps(report.to_dict())

    def test_points(self, csv_file):
        points = load_points(csv_file)
        assert len(points) == 3
        assert all(is_valid_point(p) for p in points)
        assert points[0].metadata.room == 'kitchen'
        assert points[0].location == (1.0, 2.0)

    def test_missing_room_becomes_empty(self, tmp_path):
        path = tmp_path / 'readings.csv'
        path.write_text("timestamp,value,locationX,locationY\n2024-01-01T00:00:00Z,1.0,0,0\n")
        (p,) = points_from_frame(read_readings(path))
        assert p.metadata.room == ''
        assert is_valid_point(p)

    def test_spatial_readings(self, csv_file):
        readings = readings_from_frame(filter_valid_readings(read_readings(csv_file)))
        assert [(r.x, r.y) for r in readings] == [(1.0, 2.0), (1.0, 2.0), (3.0, 4.0)]
        assert readings[0].label == '1/kitchen'
