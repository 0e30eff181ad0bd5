"""Data models shared by every stage of the export pipeline."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Mapping, NamedTuple, Optional

from .config import DEFAULT_PERIOD_SLOTS
from .errors import InvalidOccurrenceError


WEEKDAY_CODES = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")

# Descriptive fields that are voted on and compared against the master values.
VOTED_FIELDS = ("location", "instructor", "department")
# Fields whose deviation from the master values turns a session into an override.
OVERRIDE_FIELDS = VOTED_FIELDS + ("start_time", "end_time")

_DATE_FORMATS = ("%d/%m/%Y", "%Y-%m-%d")
_FIELD_ALIASES = {
    "classCode": "class_code",
    "lecturer": "instructor",
    "start_time": "start",
    "end_time": "end",
}


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


def parse_date(value: Any) -> date:
    """Parse a calendar day given as date, "dd/MM/yyyy" or "yyyy-MM-dd"."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    
    text = str(value or "").strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise InvalidOccurrenceError(f"Cannot parse date: '{value}'")


def parse_time(value: Any) -> time:
    """Parse a clock time given as time or "HH:MM"."""
    if isinstance(value, time):
        return value
    
    text = str(value or "").strip()
    try:
        return datetime.strptime(text, "%H:%M").time()
    except ValueError:
        raise InvalidOccurrenceError(f"Cannot parse time: '{value}'") from None


def parse_periods(value: Any) -> tuple[int, ...]:
    """Parse periods given as an iterable of ints or "1,2,3"."""
    try:
        if isinstance(value, str):
            parts: list[Any] = [p for p in value.replace(" ", "").split(",") if p]
        elif value is None:
            parts = []
        else:
            parts = list(value)
        periods = tuple(sorted({int(p) for p in parts}))
    except (TypeError, ValueError):
        raise InvalidOccurrenceError(f"Cannot parse periods: '{value}'") from None
    
    if not periods:
        raise InvalidOccurrenceError("Missing periods")
    return periods


class GroupKey(NamedTuple):
    """Identity of a candidate recurring series."""
    
    class_code: str
    periods: tuple[int, ...]
    
    @property
    def signature(self) -> str:
        return "-".join(str(p) for p in self.periods)
    
    def __str__(self) -> str:
        return f"{self.class_code}|P{self.signature}"


@dataclass(frozen=True)
class Occurrence:
    """One concrete class session."""
    
    date: date
    start_time: time
    end_time: time
    periods: tuple[int, ...]
    class_code: str
    course: Optional[str] = None
    location: Optional[str] = None
    instructor: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    
    def __post_init__(self) -> None:
        if not self.class_code or not self.class_code.strip():
            raise ValueError("Class code must not be empty")
        if not self.periods:
            raise ValueError("An occurrence needs at least one period")
        if any(p < 1 for p in self.periods):
            raise ValueError(f"Periods must be positive, got {self.periods}")
        if self.start_time >= self.end_time:
            raise ValueError("Start time must be before end time")
        # Frozen: normalise through object.__setattr__.
        object.__setattr__(self, "class_code", self.class_code.strip())
        object.__setattr__(self, "periods", tuple(sorted(self.periods)))
        for name in ("course", "location", "instructor", "department", "phone"):
            object.__setattr__(self, name, _clean(getattr(self, name)))
    
    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        period_slots: Optional[Mapping[int, tuple[time, time]]] = None,
    ) -> "Occurrence":
        """Build a validated occurrence from a loosely typed parser record.
        
        Args:
            record: Mapping with at least date, periods and class_code.
                start/end are looked up in ``period_slots`` when absent.
            period_slots: Period index to (start, end) clock times.
            
        Returns:
            The validated occurrence.
            
        Raises:
            InvalidOccurrenceError: If a required value is missing or malformed.
        """
        data = {_FIELD_ALIASES.get(k, k): v for k, v in record.items()}
        slots = DEFAULT_PERIOD_SLOTS if period_slots is None else period_slots
        
        class_code = _clean(data.get("class_code"))
        if not class_code:
            raise InvalidOccurrenceError("Missing class code")
        
        day = parse_date(data.get("date"))
        periods = parse_periods(data.get("periods"))
        
        if data.get("start") and data.get("end"):
            start, end = parse_time(data["start"]), parse_time(data["end"])
        else:
            first, last = slots.get(periods[0]), slots.get(periods[-1])
            if first is None or last is None:
                raise InvalidOccurrenceError(f"Unknown period in {periods}")
            start, end = first[0], last[1]
        
        try:
            return cls(
                date=day,
                start_time=start,
                end_time=end,
                periods=periods,
                class_code=class_code,
                course=data.get("course"),
                location=data.get("location"),
                instructor=data.get("instructor"),
                department=data.get("department"),
                phone=data.get("phone"),
            )
        except ValueError as e:
            raise InvalidOccurrenceError(str(e)) from e
    
    @property
    def group_key(self) -> GroupKey:
        return GroupKey(self.class_code, self.periods)
    
    @property
    def identity(self) -> tuple[str, tuple[int, ...], date]:
        """Unique identity: (class code, periods, date)."""
        return (self.class_code, self.periods, self.date)
    
    @property
    def sort_key(self) -> tuple:
        """Total ordering over every field, None sorting first."""
        return (
            self.date,
            self.start_time,
            self.end_time,
            self.location or "",
            self.instructor or "",
            self.department or "",
            self.course or "",
            self.phone or "",
        )
    
    def to_record(self) -> dict[str, Any]:
        """Serialize to a JSON friendly record accepted by ``from_record``."""
        return {
            "date": self.date.isoformat(),
            "start": self.start_time.strftime("%H:%M"),
            "end": self.end_time.strftime("%H:%M"),
            "periods": list(self.periods),
            "class_code": self.class_code,
            "course": self.course,
            "location": self.location,
            "instructor": self.instructor,
            "department": self.department,
            "phone": self.phone,
        }


class Confidence(str, Enum):
    """How clearly a field vote was won."""
    
    UNANIMOUS = "unanimous"
    MAJORITY = "majority"
    TIED = "tied"


@dataclass(frozen=True)
class MasterFields:
    """Canonical field values of a series, decided by majority vote."""
    
    location: Optional[str]
    instructor: Optional[str]
    department: Optional[str]
    course: Optional[str]
    start_time: time
    end_time: time
    confidence: dict[str, Confidence] = field(default_factory=dict, compare=False)
    
    def unanimous(self, name: str) -> bool:
        return self.confidence.get(name, Confidence.UNANIMOUS) is Confidence.UNANIMOUS
    
    def differing_fields(self, occurrence: Occurrence) -> tuple[str, ...]:
        """Names of override fields where ``occurrence`` deviates from the master."""
        return tuple(
            name for name in OVERRIDE_FIELDS
            if getattr(occurrence, name) != getattr(self, name)
        )


@dataclass(frozen=True)
class RecurrenceParams:
    """Every ``interval_weeks`` weeks on ``weekday`` (0=Monday) within bounds."""
    
    weekday: int
    interval_weeks: int
    first_date: date
    last_date: date
    
    def __post_init__(self) -> None:
        if not 0 <= self.weekday <= 6:
            raise ValueError(f"Weekday must be 0-6, got {self.weekday}")
        if self.interval_weeks < 1:
            raise ValueError("Repeat interval must be at least 1")
        if self.first_date > self.last_date:
            raise ValueError("First date must not be after last date")
    
    @property
    def byday(self) -> str:
        return WEEKDAY_CODES[self.weekday]


@dataclass(frozen=True)
class Override:
    """An ideal date whose actual session deviates from the master fields."""
    
    date: date
    occurrence: Occurrence
    fields: tuple[str, ...]


@dataclass(frozen=True)
class ExceptionSet:
    skipped: tuple[date, ...] = ()
    added: tuple[Occurrence, ...] = ()
    overrides: tuple[Override, ...] = ()
    
    @property
    def added_dates(self) -> tuple[date, ...]:
        return tuple(o.date for o in self.added)
    
    @property
    def override_dates(self) -> tuple[date, ...]:
        return tuple(o.date for o in self.overrides)
    
    def is_empty(self) -> bool:
        return not (self.skipped or self.added or self.overrides)


@dataclass(frozen=True)
class RecurringSeries:
    key: GroupKey
    master: MasterFields
    params: RecurrenceParams
    exceptions: ExceptionSet
    stable_id: str
    occurrences: tuple[Occurrence, ...] = ()


@dataclass(frozen=True)
class FlatEvent:
    """A single exported session that is not part of a recurring series."""
    
    occurrence: Occurrence
    stable_id: str
    
    @property
    def sort_key(self) -> tuple:
        o = self.occurrence
        return (o.class_code, o.periods, o.date, o.start_time)


class WarningKind(str, Enum):
    INVALID_OCCURRENCE = "invalid_occurrence"
    DUPLICATE = "duplicate"
    AMBIGUOUS_PATTERN = "ambiguous_pattern"
    LOW_CONFIDENCE = "low_confidence"
    ENCODING_FAILURE = "encoding_failure"


@dataclass(frozen=True)
class ExportWarning:
    """A non-fatal problem the caller may want to show to the user."""
    
    kind: WarningKind
    message: str
    identifiers: tuple[str, ...] = ()


@dataclass
class CalendarModel:
    """Assembled pipeline output, ready for encoding."""
    
    series: list[RecurringSeries] = field(default_factory=list)
    flat_events: list[FlatEvent] = field(default_factory=list)
    warnings: list[ExportWarning] = field(default_factory=list)
    
    def warnings_of(self, kind: WarningKind) -> list[ExportWarning]:
        return [w for w in self.warnings if w.kind is kind]
