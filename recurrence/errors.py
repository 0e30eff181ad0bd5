"""Error taxonomy of the export pipeline.

Only configuration mistakes reach the caller as exceptions. Everything
below is raised and caught inside the stage that owns it and turned into
an ``ExportWarning``.
"""


class TimetableExportError(Exception):
    """Base class for all export pipeline errors."""


class InvalidOccurrenceError(TimetableExportError, ValueError):
    """An input record has an unparseable date/time or lacks required fields."""


class AmbiguousPatternError(TimetableExportError):
    """No weekday repeats often enough to anchor a weekly pattern."""


class LowConfidencePatternError(TimetableExportError):
    """An inferred pattern needs too many exceptions to be trusted."""
    
    def __init__(self, message: str, exception_count: int, ideal_count: int) -> None:
        super().__init__(message)
        self.exception_count = exception_count
        self.ideal_count = ideal_count


class EncodingFailureError(TimetableExportError):
    """A value cannot be represented in an iCalendar content line."""
    
    def __init__(self, message: str, uid: str = "") -> None:
        super().__init__(message)
        self.uid = uid
