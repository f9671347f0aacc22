"""Tests for the fitparse adapter.

fitparse is mocked for the field-mapping tests so no binary fixture is
needed; the error-path tests run the real library on garbage input.
"""
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from fitcompare.fit.decoder import (
    FitParseError,
    FitRecord,
    decode_fit_bytes,
    decode_fit_file,
    record_from_values,
)

TS = datetime(2025, 6, 1, 9, 0, 0)


def make_message(values):
    message = MagicMock()
    message.get_values.return_value = values
    return message


class TestRecordFromValues:
    def test_maps_all_fields(self):
        record = record_from_values({
            "timestamp": TS,
            "power": 245,
            "cadence": 88,
            "heart_rate": 152,
            "speed": 10.0,  # m/s
            "altitude": 312.4,
            "enhanced_altitude": 312.6,
            "position_lat": 123456789,  # ignored
        })
        assert record == FitRecord(
            timestamp=TS,
            power=245,
            cadence=88,
            heart_rate=152,
            speed=pytest.approx(36.0),
            altitude=312.4,
            enhanced_altitude=312.6,
        )

    def test_speed_converted_to_kmh(self):
        assert record_from_values({"speed": 5.0}).speed == pytest.approx(18.0)

    def test_enhanced_speed_used_when_speed_missing(self):
        assert record_from_values({"enhanced_speed": 2.5}).speed == pytest.approx(9.0)

    def test_zero_speed_is_kept(self):
        assert record_from_values({"speed": 0.0, "enhanced_speed": 3.0}).speed == 0.0

    def test_missing_fields_are_none(self):
        assert record_from_values({}) == FitRecord()


class TestDecodeFitBytes:
    def test_reads_record_messages_in_order(self):
        fit = MagicMock()
        fit.get_messages.return_value = iter([
            make_message({"timestamp": TS, "power": 100}),
            make_message({"timestamp": TS, "power": 200}),
        ])
        with patch("fitcompare.fit.decoder.fitparse.FitFile", return_value=fit) as fit_cls:
            records = decode_fit_bytes(b"fake")

        fit_cls.assert_called_once()
        fit.get_messages.assert_called_once_with("record")
        assert [r.power for r in records] == [100, 200]

    def test_no_records_gives_empty_list(self):
        fit = MagicMock()
        fit.get_messages.return_value = iter([])
        with patch("fitcompare.fit.decoder.fitparse.FitFile", return_value=fit):
            assert decode_fit_bytes(b"fake") == []

    def test_decoder_exception_wrapped(self):
        with patch(
            "fitcompare.fit.decoder.fitparse.FitFile", side_effect=ValueError("boom")
        ):
            with pytest.raises(FitParseError, match="boom"):
                decode_fit_bytes(b"fake")

    def test_garbage_bytes_raise_fit_parse_error(self):
        with pytest.raises(FitParseError):
            decode_fit_bytes(b"this is not a valid FIT file")

    def test_empty_bytes_raise_fit_parse_error(self):
        with pytest.raises(FitParseError):
            decode_fit_bytes(b"")


class TestDecodeFitFile:
    def test_missing_path_raises(self):
        with pytest.raises(FitParseError, match="not found"):
            decode_fit_file(Path("/nonexistent/ride.fit"))

    def test_non_fit_file_raises(self, tmp_path):
        bad_file = tmp_path / "not_a_fit.fit"
        bad_file.write_bytes(b"this is not a valid FIT file")
        with pytest.raises(FitParseError):
            decode_fit_file(bad_file)
