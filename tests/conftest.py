"""Shared pytest fixtures for the test suite."""

from datetime import date, time, timedelta

import pytest

from recurrence.models import Occurrence


SEMESTER_START = date(2024, 9, 2)  # Monday


@pytest.fixture
def make_occurrence():
    """Factory for occurrences with sensible defaults."""
    def _make(day: date, **overrides) -> Occurrence:
        values = dict(
            date=day,
            start_time=time(7, 0),
            end_time=time(9, 35),
            periods=(1, 2, 3),
            class_code="20241MT1001001",
            course="Advanced Mathematics",
            location="A-101",
            instructor="Nguyen Van A",
            department="Faculty of IT",
        )
        values.update(overrides)
        return Occurrence(**values)
    return _make


@pytest.fixture
def mondays() -> list[date]:
    """15 consecutive Mondays, 2024-09-02 through 2024-12-09."""
    return [SEMESTER_START + timedelta(weeks=i) for i in range(15)]


@pytest.fixture
def weekly_series(make_occurrence, mondays) -> list[Occurrence]:
    return [make_occurrence(d) for d in mondays]
