"""Field Reconciler: majority vote over a group's descriptive fields."""

from collections import Counter
from typing import Hashable, Optional, Sequence, TypeVar

from .models import Confidence, MasterFields, Occurrence, VOTED_FIELDS

T = TypeVar("T", bound=Hashable)


def majority_vote(values: Sequence[Optional[T]]) -> tuple[Optional[T], Confidence]:
    """Pick the most frequent value.
    
    ``values`` must be in chronological order: on a tie the value seen
    first wins. Missing values do not vote.
    
    Returns:
        The winning value (None when nothing voted) and the vote confidence.
    """
    present = [v for v in values if v is not None]
    if not present:
        return None, Confidence.UNANIMOUS
    
    counts = Counter(present)
    best = max(counts.values())
    leaders = {v for v, c in counts.items() if c == best}
    winner = next(v for v in present if v in leaders)
    
    if len(counts) == 1:
        return winner, Confidence.UNANIMOUS
    if len(leaders) > 1:
        return winner, Confidence.TIED
    return winner, Confidence.MAJORITY


def reconcile_fields(occurrences: Sequence[Occurrence]) -> MasterFields:
    """Compute the master fields of a date-sorted, non-empty group."""
    if not occurrences:
        raise ValueError("Cannot reconcile an empty group")
    
    confidence: dict[str, Confidence] = {}
    winners: dict[str, Optional[str]] = {}
    for name in VOTED_FIELDS + ("course",):
        winners[name], confidence[name] = majority_vote(
            [getattr(o, name) for o in occurrences]
        )
    
    slot, confidence["time"] = majority_vote(
        [(o.start_time, o.end_time) for o in occurrences]
    )
    
    return MasterFields(
        location=winners["location"],
        instructor=winners["instructor"],
        department=winners["department"],
        course=winners["course"],
        start_time=slot[0],
        end_time=slot[1],
        confidence=confidence,
    )
