"""Entry Grouper: partitions occurrences into candidate series."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import time
from typing import Any, Iterable, Mapping, Optional, Union

from .errors import InvalidOccurrenceError
from .models import ExportWarning, GroupKey, Occurrence, WarningKind

logger = logging.getLogger(__name__)

OccurrenceInput = Union[Occurrence, Mapping[str, Any]]


@dataclass
class GroupingResult:
    """Groups keyed by GroupKey plus the records that did not make it in."""
    
    groups: dict[GroupKey, list[Occurrence]] = field(default_factory=dict)
    warnings: list[ExportWarning] = field(default_factory=list)
    
    @property
    def invalid_count(self) -> int:
        return sum(1 for w in self.warnings if w.kind is WarningKind.INVALID_OCCURRENCE)


def _describe(record: Mapping[str, Any]) -> str:
    code = record.get("class_code") or record.get("classCode") or "?"
    return f"{code}@{record.get('date', '?')}"


def normalize_occurrences(
    items: Iterable[OccurrenceInput],
    period_slots: Optional[Mapping[int, tuple[time, time]]] = None,
) -> tuple[list[Occurrence], list[ExportWarning]]:
    """Validate raw records into occurrences.
    
    Invalid records are dropped and reported, never raised.
    """
    occurrences: list[Occurrence] = []
    warnings: list[ExportWarning] = []
    
    for index, item in enumerate(items):
        if isinstance(item, Occurrence):
            occurrences.append(item)
            continue
        try:
            occurrences.append(Occurrence.from_record(item, period_slots))
        except InvalidOccurrenceError as e:
            label = _describe(item) if isinstance(item, Mapping) else f"#{index}"
            logger.warning("Skipping invalid occurrence %s: %s", label, e)
            warnings.append(ExportWarning(
                WarningKind.INVALID_OCCURRENCE,
                f"Record {label} skipped: {e}",
                (label,),
            ))
        except (AttributeError, TypeError) as e:
            logger.warning("Skipping malformed record #%d: %s", index, e)
            warnings.append(ExportWarning(
                WarningKind.INVALID_OCCURRENCE,
                f"Record #{index} skipped: not a record",
                (f"#{index}",),
            ))
    
    return occurrences, warnings


def group_occurrences(
    items: Iterable[OccurrenceInput],
    period_slots: Optional[Mapping[int, tuple[time, time]]] = None,
) -> GroupingResult:
    """Partition occurrences by (class code, periods).
    
    Each group is sorted by date. Ties fall back to the remaining fields
    and only then to input position, so the result does not depend on the
    order of the input. A second session with the same key and date is a
    duplicate scrape: the first after sorting is kept.
    
    Args:
        items: Occurrences or raw parser records, in any order.
        period_slots: Period clock times for records without start/end.
        
    Returns:
        Groups in GroupKey order and the warnings for dropped records.
    """
    occurrences, warnings = normalize_occurrences(items, period_slots)
    
    buckets: dict[GroupKey, list[tuple[tuple, int, Occurrence]]] = defaultdict(list)
    for position, occurrence in enumerate(occurrences):
        buckets[occurrence.group_key].append((occurrence.sort_key, position, occurrence))
    
    result = GroupingResult(warnings=warnings)
    for key in sorted(buckets):
        entries = [occ for _, _, occ in sorted(buckets[key], key=lambda e: (e[0], e[1]))]
        kept: list[Occurrence] = []
        for occurrence in entries:
            if kept and kept[-1].date == occurrence.date:
                label = f"{key}@{occurrence.date.isoformat()}"
                logger.warning("Dropping duplicate occurrence %s", label)
                result.warnings.append(ExportWarning(
                    WarningKind.DUPLICATE,
                    f"Duplicate session {label} ignored",
                    (label,),
                ))
                continue
            kept.append(occurrence)
        result.groups[key] = kept
    
    logger.info(
        "Grouped %d occurrences into %d groups (%d skipped)",
        len(occurrences), len(result.groups), result.invalid_count,
    )
    return result
