"""Recurrence module: turns class sessions into weekly series with exceptions."""

from .assembler import build_calendar_model
from .config import (
    DEFAULT_MAX_EXCEPTION_RATIO,
    DEFAULT_PERIOD_SLOTS,
    ExportConfig,
    parse_utc_offset,
)
from .models import (
    CalendarModel,
    Confidence,
    ExceptionSet,
    ExportWarning,
    FlatEvent,
    GroupKey,
    MasterFields,
    Occurrence,
    Override,
    RecurrenceParams,
    RecurringSeries,
    WarningKind,
)

__all__ = [
    "CalendarModel",
    "Confidence",
    "DEFAULT_MAX_EXCEPTION_RATIO",
    "DEFAULT_PERIOD_SLOTS",
    "ExceptionSet",
    "ExportConfig",
    "ExportWarning",
    "FlatEvent",
    "GroupKey",
    "MasterFields",
    "Occurrence",
    "Override",
    "RecurrenceParams",
    "RecurringSeries",
    "WarningKind",
    "build_calendar_model",
    "parse_utc_offset",
]
