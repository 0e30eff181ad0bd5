"""Tests for occurrence validation and record parsing."""

from datetime import date, time

import pytest

from recurrence.config import DEFAULT_MAX_EXCEPTION_RATIO, ExportConfig, parse_utc_offset
from recurrence.errors import InvalidOccurrenceError
from recurrence.models import GroupKey, Occurrence, RecurrenceParams


class TestOccurrenceFromRecord:
    def test_page_record_with_period_slots(self):
        occ = Occurrence.from_record({
            "date": "02/09/2024",
            "periods": "3,1,2",
            "class_code": "20241MT1001001",
            "course": "  Advanced   Mathematics ",
            "location": "A-101",
        })
        assert occ.date == date(2024, 9, 2)
        assert occ.periods == (1, 2, 3)
        assert occ.start_time == time(7, 0)
        assert occ.end_time == time(9, 35)
        assert occ.course == "Advanced Mathematics"
        assert occ.instructor is None

    def test_iso_date_and_explicit_times(self):
        occ = Occurrence.from_record({
            "date": "2024-09-02",
            "start": "13:00",
            "end": "14:30",
            "periods": [7, 8],
            "classCode": "X1",
            "lecturer": "Tran B",
        })
        assert occ.start_time == time(13, 0)
        assert occ.end_time == time(14, 30)
        assert occ.class_code == "X1"
        assert occ.instructor == "Tran B"

    def test_blank_fields_become_none(self):
        occ = Occurrence.from_record({
            "date": "2024-09-02", "periods": [1], "class_code": "X1", "location": "   ",
        })
        assert occ.location is None

    @pytest.mark.parametrize("record", [
        {"date": "32/13/2024", "periods": [1], "class_code": "X1"},
        {"date": "", "periods": [1], "class_code": "X1"},
        {"date": "2024-09-02", "periods": [], "class_code": "X1"},
        {"date": "2024-09-02", "periods": "a,b", "class_code": "X1"},
        {"date": "2024-09-02", "periods": [1], "class_code": ""},
        {"date": "2024-09-02", "periods": [99], "class_code": "X1"},
        {"date": "2024-09-02", "periods": [1], "class_code": "X1", "start": "10:00", "end": "09:00"},
        {"date": "2024-09-02", "periods": [1], "class_code": "X1", "start": "25:00", "end": "26:00"},
    ])
    def test_invalid_records_raise(self, record):
        with pytest.raises(InvalidOccurrenceError):
            Occurrence.from_record(record)

    def test_to_record_roundtrip_keeps_identity(self, make_occurrence):
        occ = make_occurrence(date(2024, 9, 2))
        assert Occurrence.from_record(occ.to_record()) == occ

    def test_group_key(self, make_occurrence):
        occ = make_occurrence(date(2024, 9, 2), periods=(3, 1, 2))
        assert occ.group_key == GroupKey("20241MT1001001", (1, 2, 3))
        assert occ.group_key.signature == "1-2-3"


class TestRecurrenceParams:
    def test_byday(self):
        params = RecurrenceParams(0, 1, date(2024, 9, 2), date(2024, 12, 9))
        assert params.byday == "MO"

    def test_rejects_zero_interval(self):
        with pytest.raises(ValueError):
            RecurrenceParams(0, 0, date(2024, 9, 2), date(2024, 12, 9))


class TestConfig:
    @pytest.mark.parametrize("text,minutes", [
        ("+07:00", 7 * 60),
        ("7", 7 * 60),
        ("-0530", -(5 * 60 + 30)),
        ("-05:30", -(5 * 60 + 30)),
        ("+00:00", 0),
    ])
    def test_parse_utc_offset(self, text, minutes):
        assert parse_utc_offset(text).total_seconds() == minutes * 60

    @pytest.mark.parametrize("text", ["", "abc", "+07:75"])
    def test_parse_utc_offset_invalid(self, text):
        with pytest.raises(ValueError):
            parse_utc_offset(text)

    def test_config_rejects_out_of_range_offset(self):
        with pytest.raises(ValueError):
            ExportConfig(utc_offset=parse_utc_offset("+24:00"))

    def test_config_rejects_negative_ratio(self):
        with pytest.raises(ValueError):
            ExportConfig(max_exception_ratio=-0.1)

    def test_default_exception_ratio(self):
        assert ExportConfig().max_exception_ratio == DEFAULT_MAX_EXCEPTION_RATIO == 0.5
