"""Pattern Inferencer: derives the weekly rule behind a group's dates."""

import logging
from collections import Counter
from datetime import date
from typing import Sequence

from .errors import AmbiguousPatternError
from .models import RecurrenceParams

logger = logging.getLogger(__name__)


def mode(values: Sequence[int], default: int = 1) -> int:
    """Most frequent value, the smallest one on a tie."""
    if not values:
        return default
    counts = Counter(values)
    return min(counts, key=lambda v: (-counts[v], v))


def week_gap(earlier: date, later: date) -> int:
    return round((later - earlier).days / 7)


def majority_weekday(dates: Sequence[date]) -> int:
    """Most common weekday of ``dates`` (ascending); earliest date's on a tie."""
    counts = Counter(d.weekday() for d in dates)
    best = max(counts.values())
    return next(d.weekday() for d in dates if counts[d.weekday()] == best)


def infer_pattern(dates: Sequence[date]) -> RecurrenceParams:
    """Find the weekday and interval that best explain ``dates``.
    
    Args:
        dates: Actual session dates of one group, ascending and unique.
        
    Returns:
        Recurrence parameters spanning the first to the last date.
        
    Raises:
        AmbiguousPatternError: If fewer than two sessions share a weekday.
    """
    if len(dates) < 2:
        raise AmbiguousPatternError("A single session has no pattern")
    
    weekday = majority_weekday(dates)
    anchored = [d for d in dates if d.weekday() == weekday]
    if len(anchored) < 2:
        raise AmbiguousPatternError("No weekday repeats")
    
    gaps = [week_gap(a, b) for a, b in zip(anchored, anchored[1:])]
    interval = mode([g for g in gaps if g > 0])
    
    logger.debug("Inferred weekday=%d interval=%d from %d dates", weekday, interval, len(dates))
    return RecurrenceParams(
        weekday=weekday,
        interval_weeks=interval,
        first_date=dates[0],
        last_date=dates[-1],
    )
