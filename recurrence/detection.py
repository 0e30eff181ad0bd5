"""Exception Detector: diffs the ideal weekly schedule against real sessions."""

import logging
from datetime import date, timedelta
from typing import Sequence

from .config import DEFAULT_MAX_EXCEPTION_RATIO
from .errors import LowConfidencePatternError
from .models import ExceptionSet, MasterFields, Occurrence, Override, RecurrenceParams

logger = logging.getLogger(__name__)


def first_ideal_date(params: RecurrenceParams) -> date:
    """First date on or after ``first_date`` that falls on the pattern weekday."""
    days_ahead = (params.weekday - params.first_date.weekday()) % 7
    return params.first_date + timedelta(days=days_ahead)


def generate_ideal_dates(params: RecurrenceParams) -> list[date]:
    """Expand the pattern into every date it predicts, bounds inclusive."""
    step = timedelta(weeks=params.interval_weeks)
    current = first_ideal_date(params)
    
    dates: list[date] = []
    while current <= params.last_date:
        dates.append(current)
        current += step
    return dates


def detect_exceptions(
    params: RecurrenceParams,
    occurrences: Sequence[Occurrence],
    master: MasterFields,
    max_exception_ratio: float = DEFAULT_MAX_EXCEPTION_RATIO,
) -> ExceptionSet:
    """Compare the ideal schedule with the actual sessions of a group.
    
    - ideal date without a session -> skipped
    - session outside the ideal dates -> added, with its own fields
    - session on an ideal date with non-master fields -> override
    
    Args:
        params: The inferred weekly pattern.
        occurrences: Date-sorted sessions of the group, one per date.
        master: Reconciled master fields of the group.
        max_exception_ratio: Maximum share of skipped plus added dates
            relative to the number of ideal dates.
            
    Returns:
        The exceptions needed to reproduce ``occurrences`` exactly.
        
    Raises:
        LowConfidencePatternError: If the pattern needs too many exceptions.
    """
    ideal = generate_ideal_dates(params)
    ideal_set = set(ideal)
    actual = {o.date: o for o in occurrences}
    
    skipped = tuple(d for d in ideal if d not in actual)
    added = tuple(o for o in occurrences if o.date not in ideal_set)
    
    overrides: list[Override] = []
    for occurrence in occurrences:
        if occurrence.date not in ideal_set:
            continue
        fields = master.differing_fields(occurrence)
        if fields:
            overrides.append(Override(occurrence.date, occurrence, fields))
    
    exception_count = len(skipped) + len(added)
    if exception_count > max_exception_ratio * len(ideal):
        raise LowConfidencePatternError(
            f"{exception_count} exceptions for {len(ideal)} ideal dates",
            exception_count,
            len(ideal),
        )
    
    logger.debug(
        "Exceptions: %d skipped, %d added, %d overrides",
        len(skipped), len(added), len(overrides),
    )
    return ExceptionSet(skipped=skipped, added=added, overrides=tuple(overrides))
