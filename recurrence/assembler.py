"""Series Assembler: runs the pipeline and builds the calendar model."""

import hashlib
import logging
from typing import Iterable, Optional, Sequence

from .config import ExportConfig
from .detection import detect_exceptions
from .errors import AmbiguousPatternError, LowConfidencePatternError
from .grouping import OccurrenceInput, group_occurrences
from .models import (
    CalendarModel,
    ExportWarning,
    FlatEvent,
    GroupKey,
    Occurrence,
    RecurringSeries,
    WarningKind,
)
from .pattern import infer_pattern
from .voting import reconcile_fields

logger = logging.getLogger(__name__)


def _digest(unique_string: str, domain: str) -> str:
    return hashlib.md5(unique_string.encode()).hexdigest() + f"@{domain}"


def series_uid(key: GroupKey, domain: str) -> str:
    """Stable UID of a series; depends only on class code and periods."""
    return _digest(f"{key.class_code}|{key.signature}", domain)


def flat_event_uid(occurrence: Occurrence, domain: str) -> str:
    """Stable UID of a standalone session."""
    key = occurrence.group_key
    return _digest(
        f"{key.class_code}|{key.signature}|{occurrence.date.isoformat()}", domain
    )


def explode(occurrences: Sequence[Occurrence], domain: str) -> list[FlatEvent]:
    return [FlatEvent(o, flat_event_uid(o, domain)) for o in occurrences]


def assemble_series(
    key: GroupKey,
    occurrences: Sequence[Occurrence],
    config: ExportConfig,
) -> RecurringSeries:
    """Turn one date-sorted group into a recurring series.
    
    Raises:
        AmbiguousPatternError: If no weekly pattern can be inferred.
        LowConfidencePatternError: If the pattern fails the quality gate.
    """
    params = infer_pattern([o.date for o in occurrences])
    master = reconcile_fields(occurrences)
    exceptions = detect_exceptions(
        params, occurrences, master, config.max_exception_ratio
    )
    return RecurringSeries(
        key=key,
        master=master,
        params=params,
        exceptions=exceptions,
        stable_id=series_uid(key, config.uid_domain),
        occurrences=tuple(occurrences),
    )


def build_calendar_model(
    items: Iterable[OccurrenceInput],
    config: Optional[ExportConfig] = None,
) -> CalendarModel:
    """Run grouping, voting, inference and detection over raw sessions.
    
    Every group ends up either as one recurring series or as flat events,
    one per session. Failures are isolated per record and per group.
    
    Args:
        items: Occurrences or raw parser records, in any order.
        config: Export parameters; defaults apply when omitted.
        
    Returns:
        Series and flat events in (class code, periods, date) order, plus
        the warnings collected on the way.
    """
    config = config or ExportConfig()
    grouping = group_occurrences(items, config.period_slots)
    model = CalendarModel(warnings=list(grouping.warnings))
    
    for key, occurrences in grouping.groups.items():
        if len(occurrences) < 2:
            model.flat_events.extend(explode(occurrences, config.uid_domain))
            continue
        
        try:
            model.series.append(assemble_series(key, occurrences, config))
        except AmbiguousPatternError as e:
            logger.debug("Group %s has no weekly pattern: %s", key, e)
            model.warnings.append(ExportWarning(
                WarningKind.AMBIGUOUS_PATTERN,
                f"Group {key} exported as single events: {e}",
                (str(key),),
            ))
            model.flat_events.extend(explode(occurrences, config.uid_domain))
        except LowConfidencePatternError as e:
            logger.info("Group %s rejected by quality gate: %s", key, e)
            model.warnings.append(ExportWarning(
                WarningKind.LOW_CONFIDENCE,
                f"Group {key} exported as single events: {e}",
                (str(key),),
            ))
            model.flat_events.extend(explode(occurrences, config.uid_domain))
    
    model.series.sort(key=lambda s: s.key)
    model.flat_events.sort(key=lambda f: f.sort_key)
    
    logger.info(
        "Assembled %d recurring series and %d single events",
        len(model.series), len(model.flat_events),
    )
    return model
