"""Export configuration passed explicitly through the pipeline."""

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Optional


# Share of skipped plus added dates a weekly pattern may carry.
DEFAULT_MAX_EXCEPTION_RATIO = 0.5

# Period index -> (start, end) local clock time.
DEFAULT_PERIOD_SLOTS: dict[int, tuple[time, time]] = {
    1: (time(7, 0), time(7, 50)),
    2: (time(7, 50), time(8, 40)),
    3: (time(8, 45), time(9, 35)),
    4: (time(9, 40), time(10, 30)),
    5: (time(10, 35), time(11, 25)),
    6: (time(11, 25), time(12, 15)),
    7: (time(12, 30), time(13, 20)),
    8: (time(13, 20), time(14, 10)),
    9: (time(14, 15), time(15, 5)),
    10: (time(15, 10), time(16, 0)),
    11: (time(16, 5), time(16, 55)),
    12: (time(16, 55), time(17, 45)),
    13: (time(18, 0), time(18, 50)),
    14: (time(18, 50), time(19, 40)),
    15: (time(19, 45), time(20, 35)),
    16: (time(20, 35), time(21, 25)),
}


@dataclass(frozen=True)
class ExportConfig:
    """Parameters of a single export run.
    
    Attributes:
        utc_offset: Fixed offset of the timetable's local clock from UTC.
        max_exception_ratio: Quality gate. A weekly pattern is rejected when
            skipped plus added dates exceed this share of its ideal dates.
        period_slots: Clock times of each period, used when a record carries
            periods but no explicit start/end time.
        uid_domain: Right-hand side of every generated UID.
        calendar_name: Value of X-WR-CALNAME.
        prodid: Value of PRODID.
        dtstamp: Fixed DTSTAMP for every event. Derived from the data when
            omitted so repeated exports stay byte-identical.
    """
    
    utc_offset: timedelta = timedelta(hours=7)
    max_exception_ratio: float = DEFAULT_MAX_EXCEPTION_RATIO
    period_slots: dict[int, tuple[time, time]] = field(
        default_factory=lambda: dict(DEFAULT_PERIOD_SLOTS)
    )
    uid_domain: str = "timetable2ics"
    calendar_name: str = "Timetable"
    prodid: str = "-//Timetable to iCal//timetable2ics//EN"
    dtstamp: Optional[datetime] = None
    
    def __post_init__(self) -> None:
        if abs(self.utc_offset) >= timedelta(hours=24):
            raise ValueError(f"UTC offset must be within +/-24h, got {self.utc_offset}")
        if self.max_exception_ratio < 0:
            raise ValueError("Exception ratio must not be negative")
        if not self.uid_domain:
            raise ValueError("UID domain must not be empty")


def parse_utc_offset(value: str) -> timedelta:
    """Parse an offset such as "+07:00", "-0530" or "7" into a timedelta.
    
    Raises:
        ValueError: If the value is not a recognisable offset.
    """
    text = value.strip()
    if not text:
        raise ValueError("Empty UTC offset")
    
    sign = -1 if text[0] == "-" else 1
    if text[0] in "+-":
        text = text[1:]
    
    if ":" in text:
        hours_str, minutes_str = text.split(":", 1)
    elif len(text) > 2:
        hours_str, minutes_str = text[:-2], text[-2:]
    else:
        hours_str, minutes_str = text, "0"
    
    if not hours_str.isdigit() or not minutes_str.isdigit():
        raise ValueError(f"Invalid UTC offset: '{value}'")
    
    hours, minutes = int(hours_str), int(minutes_str)
    if minutes >= 60:
        raise ValueError(f"Invalid UTC offset: '{value}'")
    
    return sign * timedelta(hours=hours, minutes=minutes)
