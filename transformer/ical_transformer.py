"""iCalendar transformer for assembled timetable series."""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Iterable, Optional

from icalendar import Calendar, Event, vRecur

from recurrence.assembler import build_calendar_model
from recurrence.config import ExportConfig
from recurrence.detection import first_ideal_date
from recurrence.errors import EncodingFailureError
from recurrence.grouping import OccurrenceInput
from recurrence.models import (
    CalendarModel,
    ExportWarning,
    FlatEvent,
    MasterFields,
    Occurrence,
    RecurringSeries,
    WarningKind,
)
from .base import BaseTransformer

logger = logging.getLogger(__name__)

# Control characters other than HTAB and LF cannot appear in a content line.
_FORBIDDEN_CHARS = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")


@dataclass
class ExportResult:
    """Encoded document plus everything the caller may want to report."""
    
    document: str
    warnings: list[ExportWarning] = field(default_factory=list)
    model: Optional[CalendarModel] = None
    event_count: int = 0


class ICalTransformer(BaseTransformer):
    """Transformer that converts a calendar model to iCalendar format."""
    
    def __init__(self, config: Optional[ExportConfig] = None) -> None:
        """Initialize the iCalendar transformer.
        
        Args:
            config: Export parameters. The UTC offset converts every local
                session time to an absolute UTC instant.
        """
        self._config = config or ExportConfig()
        self._tz = timezone(self._config.utc_offset)
        self._calendar: Optional[Calendar] = None
        self._dtstamp = datetime(1970, 1, 1, tzinfo=timezone.utc)
    
    def _to_utc(self, day: date, clock: time) -> datetime:
        """Convert a local date and clock time to a UTC datetime."""
        return datetime.combine(day, clock, tzinfo=self._tz).astimezone(timezone.utc)
    
    def _resolve_dtstamp(self, model: CalendarModel) -> datetime:
        """DTSTAMP shared by every event of one document.
        
        Without a configured value, midnight UTC of the latest session date
        is used so that the same input always encodes to the same bytes.
        """
        if self._config.dtstamp is not None:
            stamp = self._config.dtstamp
            if stamp.tzinfo is None:
                stamp = stamp.replace(tzinfo=self._tz)
            return stamp.astimezone(timezone.utc)
        
        dates = [f.occurrence.date for f in model.flat_events]
        for series in model.series:
            dates.append(series.params.last_date)
        if not dates:
            return datetime(1970, 1, 1, tzinfo=timezone.utc)
        return datetime.combine(max(dates), time(0, 0), tzinfo=timezone.utc)
    
    @staticmethod
    def _text(value: str, uid: str) -> str:
        if _FORBIDDEN_CHARS.search(value):
            raise EncodingFailureError(
                f"Value {value!r} contains characters not allowed in iCalendar", uid
            )
        return value
    
    @staticmethod
    def _summary(course: Optional[str], class_code: str) -> str:
        return course or class_code
    
    @staticmethod
    def _class_line(class_code: str, periods: Iterable[int]) -> str:
        return f"Class: {class_code} ({', '.join(str(p) for p in periods)})"
    
    @staticmethod
    def _lecturer_line(instructor: str, phone: Optional[str]) -> str:
        return f"{instructor} - {phone}" if phone else instructor
    
    def _occurrence_description(self, occurrence: Occurrence) -> str:
        """Build event description for a single session."""
        parts = [self._class_line(occurrence.class_code, occurrence.periods)]
        if occurrence.instructor:
            parts.append(self._lecturer_line(occurrence.instructor, occurrence.phone))
        if occurrence.department:
            parts.append(occurrence.department)
        return "\n".join(parts)
    
    def _series_description(self, series: RecurringSeries) -> str:
        """Build description for a master event.
        
        A field whose vote was not unanimous lists every value seen.
        Values that cannot be encoded are left out of the list; the block
        of the session carrying them reports the failure.
        """
        master = series.master
        parts = [self._class_line(series.key.class_code, series.key.periods)]
        
        def distinct(name: str) -> list[str]:
            seen: list[str] = []
            for occurrence in series.occurrences:
                value = getattr(occurrence, name)
                if value and value not in seen and not _FORBIDDEN_CHARS.search(value):
                    seen.append(value)
            return seen
        
        if master.unanimous("instructor"):
            if master.instructor:
                phone = next(
                    (o.phone for o in series.occurrences
                     if o.instructor == master.instructor and o.phone),
                    None,
                )
                parts.append(self._lecturer_line(master.instructor, phone))
        else:
            parts.append(f"Instructors: {', '.join(distinct('instructor'))}")
        
        if master.department:
            parts.append(master.department)
        
        if not master.unanimous("location"):
            parts.append(f"Rooms: {', '.join(distinct('location'))}")
        
        return "\n".join(parts)
    
    def _base_event(
        self,
        uid: str,
        summary: str,
        start: datetime,
        end: datetime,
        location: Optional[str],
        description: str,
    ) -> Event:
        ical_event = Event()
        ical_event.add("uid", uid)
        ical_event.add("dtstamp", self._dtstamp)
        ical_event.add("dtstart", start)
        ical_event.add("dtend", end)
        ical_event.add("summary", self._text(summary, uid))
        if location:
            ical_event.add("location", self._text(location, uid))
        ical_event.add("description", self._text(description, uid))
        ical_event.add("status", "CONFIRMED")
        return ical_event
    
    def _master_event(self, series: RecurringSeries) -> Event:
        """Create the recurring VEVENT carrying RRULE, EXDATE and RDATE."""
        master: MasterFields = series.master
        params = series.params
        anchor = first_ideal_date(params)
        
        ical_event = self._base_event(
            series.stable_id,
            self._summary(master.course, series.key.class_code),
            self._to_utc(anchor, master.start_time),
            self._to_utc(anchor, master.end_time),
            master.location,
            self._series_description(series),
        )
        
        rrule = vRecur({
            "freq": "WEEKLY",
            "interval": params.interval_weeks,
            "byday": params.byday,
            "until": self._to_utc(params.last_date, master.start_time),
        })
        ical_event.add("rrule", rrule)
        
        for skipped in series.exceptions.skipped:
            ical_event.add("exdate", self._to_utc(skipped, master.start_time))
        for added in series.exceptions.added:
            ical_event.add("rdate", self._to_utc(added.date, added.start_time))
        
        return ical_event
    
    def _instance_event(
        self,
        series: RecurringSeries,
        occurrence: Occurrence,
        recurrence_id: datetime,
    ) -> Event:
        """Create a VEVENT replacing one instance of a series."""
        ical_event = self._base_event(
            series.stable_id,
            self._summary(occurrence.course or series.master.course, series.key.class_code),
            self._to_utc(occurrence.date, occurrence.start_time),
            self._to_utc(occurrence.date, occurrence.end_time),
            occurrence.location,
            self._occurrence_description(occurrence),
        )
        ical_event.add("recurrence-id", recurrence_id)
        return ical_event
    
    def _flat_event(self, flat: FlatEvent) -> Event:
        """Create a standalone VEVENT for a single session."""
        occurrence = flat.occurrence
        return self._base_event(
            flat.stable_id,
            self._summary(occurrence.course, occurrence.class_code),
            self._to_utc(occurrence.date, occurrence.start_time),
            self._to_utc(occurrence.date, occurrence.end_time),
            occurrence.location,
            self._occurrence_description(occurrence),
        )
    
    def _series_instances(self, series: RecurringSeries) -> list[tuple[date, Occurrence, datetime]]:
        """Sessions of a series that need their own RECURRENCE-ID block.
        
        Overrides point at the master start time on their date. Added
        sessions that deviate from the master fields point at their RDATE
        instant. Returned in date order.
        """
        master = series.master
        instances = [
            (override.date, override.occurrence, self._to_utc(override.date, master.start_time))
            for override in series.exceptions.overrides
        ]
        for added in series.exceptions.added:
            if master.differing_fields(added):
                instances.append((added.date, added, self._to_utc(added.date, added.start_time)))
        instances.sort(key=lambda item: item[0])
        return instances
    
    def _encode_series(self, series: RecurringSeries, warnings: list[ExportWarning]) -> int:
        """Add a master event and its instance blocks, returning how many were added.
        
        A master that cannot be encoded drops the whole series. An instance
        that cannot be encoded drops only that block.
        """
        try:
            master_event = self._master_event(series)
        except EncodingFailureError as e:
            logger.warning("Dropping series %s: %s", series.stable_id, e)
            warnings.append(ExportWarning(
                WarningKind.ENCODING_FAILURE,
                f"Series {series.key} not exported: {e}",
                (series.stable_id,),
            ))
            return 0
        self._calendar.add_component(master_event)
        count = 1
        
        for day, occurrence, recurrence_id in self._series_instances(series):
            try:
                ical_event = self._instance_event(series, occurrence, recurrence_id)
            except EncodingFailureError as e:
                logger.warning(
                    "Dropping instance %s of series %s: %s",
                    day.isoformat(), series.stable_id, e,
                )
                warnings.append(ExportWarning(
                    WarningKind.ENCODING_FAILURE,
                    f"Session {series.key.class_code} on {day.isoformat()} "
                    f"not exported: {e}",
                    (series.stable_id, day.isoformat()),
                ))
                continue
            self._calendar.add_component(ical_event)
            count += 1
        return count
    
    def _encode_flat(self, flat: FlatEvent, warnings: list[ExportWarning]) -> int:
        try:
            ical_event = self._flat_event(flat)
        except EncodingFailureError as e:
            logger.warning("Dropping event %s: %s", flat.stable_id, e)
            warnings.append(ExportWarning(
                WarningKind.ENCODING_FAILURE,
                f"Session {flat.occurrence.class_code} on "
                f"{flat.occurrence.date.isoformat()} not exported: {e}",
                (flat.stable_id,),
            ))
            return 0
        self._calendar.add_component(ical_event)
        return 1
    
    @staticmethod
    def _block_order(model: CalendarModel) -> list[tuple[tuple, object]]:
        """Series and flat events interleaved by class code, periods and date.
        
        A series sorts at its first ideal date.
        """
        blocks: list[tuple[tuple, object]] = [
            (
                (s.key.class_code, s.key.periods, first_ideal_date(s.params), s.master.start_time),
                s,
            )
            for s in model.series
        ]
        blocks.extend((flat.sort_key, flat) for flat in model.flat_events)
        blocks.sort(key=lambda item: item[0])
        return blocks
    
    def _new_calendar(self) -> Calendar:
        calendar = Calendar()
        calendar.add("prodid", self._config.prodid)
        calendar.add("version", "2.0")
        calendar.add("calscale", "GREGORIAN")
        calendar.add("method", "PUBLISH")
        calendar.add("x-wr-calname", self._config.calendar_name)
        return calendar
    
    def transform(self, model: CalendarModel) -> ExportResult:
        """Transform a calendar model into an iCalendar document.
        
        Blocks are written in class code, period range and date order. A
        block that cannot be encoded is left out and reported; the rest of
        the document is still produced.
        
        Args:
            model: Assembled series and flat events.
            
        Returns:
            The document text with the model's warnings plus encoding ones.
        """
        self._calendar = self._new_calendar()
        self._dtstamp = self._resolve_dtstamp(model)
        warnings = list(model.warnings)
        count = 0
        
        for _, block in self._block_order(model):
            if isinstance(block, RecurringSeries):
                count += self._encode_series(block, warnings)
            else:
                count += self._encode_flat(block, warnings)
        
        document = self._calendar.to_ical().decode("utf-8")
        return ExportResult(document=document, warnings=warnings, model=model, event_count=count)
    
    def save(self, output_path: str) -> None:
        """Save the calendar to an .ics file.
        
        Args:
            output_path: Path to the output file.
            
        Raises:
            RuntimeError: If transform() hasn't been called yet.
        """
        if self._calendar is None:
            raise RuntimeError("No calendar data. Call transform() first.")
        
        with open(output_path, "wb") as f:
            f.write(self._calendar.to_ical())


def export_timetable(
    items: Iterable[OccurrenceInput],
    config: Optional[ExportConfig] = None,
) -> ExportResult:
    """Run the whole pipeline: raw sessions in, iCalendar document out."""
    config = config or ExportConfig()
    model = build_calendar_model(items, config)
    return ICalTransformer(config).transform(model)
