"""Tests for the entry grouper and the field reconciler."""

import random
from datetime import date, time

from recurrence.grouping import group_occurrences
from recurrence.models import Confidence, GroupKey, WarningKind
from recurrence.voting import majority_vote, reconcile_fields


class TestGroupOccurrences:
    def test_groups_by_class_code_and_periods(self, make_occurrence):
        items = [
            make_occurrence(date(2024, 9, 2), class_code="A001", periods=(1, 2)),
            make_occurrence(date(2024, 9, 4), class_code="A001", periods=(1, 2)),
            make_occurrence(date(2024, 9, 2), class_code="A001", periods=(7, 8),
                            start_time=time(12, 30), end_time=time(14, 10)),
            make_occurrence(date(2024, 9, 3), class_code="B002", periods=(1, 2)),
        ]
        result = group_occurrences(items)
        assert list(result.groups) == [
            GroupKey("A001", (1, 2)),
            GroupKey("A001", (7, 8)),
            GroupKey("B002", (1, 2)),
        ]
        assert len(result.groups[GroupKey("A001", (1, 2))]) == 2
        assert result.warnings == []

    def test_groups_are_sorted_by_date(self, weekly_series):
        shuffled = list(weekly_series)
        random.Random(3).shuffle(shuffled)
        result = group_occurrences(shuffled)
        (group,) = result.groups.values()
        assert [o.date for o in group] == [o.date for o in weekly_series]

    def test_invalid_record_is_reported_not_grouped(self, weekly_series):
        items = list(weekly_series) + [
            {"date": "31/02/2024", "periods": "1,2,3", "class_code": "20241MT1001001"},
        ]
        result = group_occurrences(items)
        assert result.invalid_count == 1
        assert sum(len(g) for g in result.groups.values()) == len(weekly_series)

    def test_non_mapping_record_is_reported(self):
        result = group_occurrences([42])
        assert result.invalid_count == 1
        assert result.groups == {}

    def test_duplicate_keeps_one_regardless_of_order(self, make_occurrence):
        first = make_occurrence(date(2024, 9, 2), location="B-202")
        second = make_occurrence(date(2024, 9, 2), location="A-101")
        for items in ([first, second], [second, first]):
            result = group_occurrences(items)
            (group,) = result.groups.values()
            assert [o.location for o in group] == ["A-101"]
            (warning,) = result.warnings
            assert warning.kind is WarningKind.DUPLICATE


class TestMajorityVote:
    def test_majority_wins(self):
        assert majority_vote(["A", "B", "B"]) == ("B", Confidence.MAJORITY)

    def test_unanimous(self):
        assert majority_vote(["A", "A"]) == ("A", Confidence.UNANIMOUS)

    def test_tie_goes_to_earliest_value(self):
        assert majority_vote(["B", "A", "A", "B"]) == ("B", Confidence.TIED)
        assert majority_vote(["A", "B"]) == ("A", Confidence.TIED)

    def test_missing_values_do_not_vote(self):
        assert majority_vote([None, "A", None]) == ("A", Confidence.UNANIMOUS)

    def test_all_missing(self):
        assert majority_vote([None, None]) == (None, Confidence.UNANIMOUS)


class TestReconcileFields:
    def test_strict_majority_location(self, make_occurrence, mondays):
        group = [make_occurrence(d) for d in mondays]
        group[10] = make_occurrence(mondays[10], location="B-202")
        master = reconcile_fields(group)
        assert master.location == "A-101"
        assert master.confidence["location"] is Confidence.MAJORITY
        assert not master.unanimous("location")
        assert master.unanimous("instructor")
        assert master.start_time == time(7, 0)
        assert master.end_time == time(9, 35)

    def test_exact_tie_uses_earliest_occurrence(self, make_occurrence, mondays):
        group = [
            make_occurrence(d, location="B-202" if i % 2 == 0 else "A-101")
            for i, d in enumerate(mondays[:4])
        ]
        master = reconcile_fields(group)
        assert master.location == "B-202"
        assert master.confidence["location"] is Confidence.TIED

    def test_differing_fields(self, make_occurrence, weekly_series):
        master = reconcile_fields(weekly_series)
        moved = make_occurrence(date(2024, 9, 2), location="C-303", start_time=time(8, 0))
        assert master.differing_fields(moved) == ("location", "start_time")
        assert master.differing_fields(weekly_series[0]) == ()
