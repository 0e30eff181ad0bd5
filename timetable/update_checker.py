"""Update checker: compares a stored timetable snapshot with a fresh parse."""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Iterable, Union

from recurrence.grouping import OccurrenceInput, normalize_occurrences
from recurrence.models import Occurrence

logger = logging.getLogger(__name__)

OccurrenceIdentity = tuple[str, tuple[int, ...], date]


@dataclass
class OccurrenceDiff:
    added: list[Occurrence] = field(default_factory=list)
    removed: list[Occurrence] = field(default_factory=list)
    changed: list[tuple[Occurrence, Occurrence]] = field(default_factory=list)
    unchanged: int = 0
    
    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.changed)
    
    def summary(self) -> str:
        return (
            f"{len(self.added)} added, {len(self.removed)} removed, "
            f"{len(self.changed)} changed, {self.unchanged} unchanged"
        )


def _index(items: Iterable[OccurrenceInput]) -> dict[OccurrenceIdentity, Occurrence]:
    occurrences, _ = normalize_occurrences(items)
    indexed: dict[OccurrenceIdentity, Occurrence] = {}
    for occurrence in sorted(occurrences, key=lambda o: o.sort_key):
        indexed.setdefault(occurrence.identity, occurrence)
    return indexed


def _ordered(occurrences: Iterable[Occurrence]) -> list[Occurrence]:
    return sorted(occurrences, key=lambda o: (o.class_code, o.periods, o.date))


def diff_occurrences(
    previous: Iterable[OccurrenceInput],
    current: Iterable[OccurrenceInput],
) -> OccurrenceDiff:
    """Compute which sessions were added, removed or changed.
    
    Sessions are matched on (class code, periods, date). Invalid records
    on either side are ignored.
    """
    old = _index(previous)
    new = _index(current)
    diff = OccurrenceDiff()
    
    for identity, occurrence in new.items():
        before = old.get(identity)
        if before is None:
            diff.added.append(occurrence)
        elif before != occurrence:
            diff.changed.append((before, occurrence))
        else:
            diff.unchanged += 1
    
    diff.removed = [o for identity, o in old.items() if identity not in new]
    diff.added = _ordered(diff.added)
    diff.removed = _ordered(diff.removed)
    diff.changed.sort(key=lambda pair: (pair[1].class_code, pair[1].periods, pair[1].date))
    return diff


def occurrences_equal(a: Iterable[OccurrenceInput], b: Iterable[OccurrenceInput]) -> bool:
    """Order-insensitive equality of two session lists."""
    return not diff_occurrences(a, b).has_changes


def filter_by_semester(occurrences: Iterable[Occurrence], semester_id: str) -> list[Occurrence]:
    """Keep sessions whose class code starts with the semester id (e.g. "20252")."""
    return [o for o in occurrences if o.class_code.startswith(semester_id)]


def save_snapshot(occurrences: Iterable[Occurrence], path: Union[str, Path]) -> None:
    """Write sessions as a JSON list of records, in a stable order."""
    snapshot_path = Path(path)
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)
    payload = [o.to_record() for o in _ordered(occurrences)]
    snapshot_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def load_snapshot(path: Union[str, Path]) -> list[dict]:
    """Read a snapshot written by ``save_snapshot``.
    
    Raises:
        ValueError: If the file does not hold a JSON list.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Snapshot {path} does not contain a list of records")
    logger.debug("Loaded %d records from snapshot %s", len(data), path)
    return data
