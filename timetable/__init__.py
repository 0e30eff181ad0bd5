"""Timetable module for reading sessions and tracking their changes."""

from .parser import TimetableParser, parse_timetable_html
from .update_checker import (
    OccurrenceDiff,
    diff_occurrences,
    filter_by_semester,
    load_snapshot,
    occurrences_equal,
    save_snapshot,
)

__all__ = [
    "OccurrenceDiff",
    "TimetableParser",
    "diff_occurrences",
    "filter_by_semester",
    "load_snapshot",
    "occurrences_equal",
    "parse_timetable_html",
    "save_snapshot",
]
