"""
Tests for availability aggregation and the all-free helpers.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from analyze import (
    aggregate,
    availability_by_token,
    find_available_times,
    merge_consecutive_slots,
    slot_minutes_of,
)
from codec import MalformedToken
from expand import expand

TODAY = date(2025, 11, 12)
INSTANTS = expand(["0900-15112025", "1700-15112025"], TODAY)
PEOPLE = [
    {"name": "A", "availability": ["0900-15112025"]},
    {"name": "B", "availability": ["0900-15112025", "1700-15112025"]},
]


def test_two_people_two_slots():
    result = aggregate(INSTANTS, PEOPLE)

    assert [a["people"] for a in result["per_instant"]] == [["A", "B"], ["B"]]
    assert result["min"] == 1
    assert result["max"] == 2


def test_people_keep_input_order():
    result = aggregate(INSTANTS, list(reversed(PEOPLE)))
    assert result["per_instant"][0]["people"] == ["B", "A"]


def test_zero_people():
    result = aggregate(INSTANTS, [])
    assert all(a["people"] == [] for a in result["per_instant"])
    assert result["min"] == result["max"] == 0


def test_no_instants():
    assert aggregate([], PEOPLE) == {"per_instant": [], "min": 0, "max": 0}


def test_one_entry_per_instant_within_bounds():
    instants = expand(["0900-1", "1000-1", "0900-17112025"], TODAY, window_weeks=2)
    people = [
        {"name": "A", "availability": ["0900-17112025", "1000-24112025"]},
        {"name": "B", "availability": ["1000-1"]},
        {"name": "C", "availability": []},
    ]
    result = aggregate(instants, people)

    assert [a["token"] for a in result["per_instant"]] == [i["token"] for i in instants]
    for entry in result["per_instant"]:
        assert result["min"] <= len(entry["people"]) <= result["max"]


def test_weekday_marking_matches_expanded_date():
    instants = expand(["0900-1"], TODAY, window_weeks=1)
    people = [
        {"name": "weekly", "availability": ["0900-1"]},
        {"name": "once", "availability": ["0900-17112025"]},
    ]
    result = aggregate(instants, people)

    assert result["per_instant"][0]["people"] == ["weekly", "once"]
    assert result["per_instant"][1]["people"] == ["weekly"]


def test_bare_tokens_accepted():
    result = aggregate(["0900-15112025"], PEOPLE)
    assert result["per_instant"][0]["people"] == ["A", "B"]


def test_malformed_person_token_strict():
    people = [{"name": "X", "availability": ["9am-friday"]}]
    with pytest.raises(MalformedToken):
        aggregate(INSTANTS, people)


def test_malformed_person_token_lenient():
    people = [{"name": "X", "availability": ["9am-friday", "1700-15112025"]}]
    result = aggregate(INSTANTS, people, strict=False)
    assert [a["people"] for a in result["per_instant"]] == [[], ["X"]]


def test_input_not_mutated():
    people = [{"name": "A", "availability": ["0900-15112025"]}]
    aggregate(INSTANTS, people)
    assert people == [{"name": "A", "availability": ["0900-15112025"]}]


def test_availability_by_token():
    result = aggregate(INSTANTS, PEOPLE)
    assert availability_by_token(result) == {
        "0900-15112025": ["A", "B"],
        "1700-15112025": ["B"],
    }


class TestAllFree:
    def test_find_available_times(self):
        result = aggregate(INSTANTS, PEOPLE)
        assert list(find_available_times(result, ["A", "B"])) == [
            datetime(2025, 11, 15, 9, tzinfo=timezone.utc),
        ]
        assert len(list(find_available_times(result, ["B"]))) == 2

    def test_merge_consecutive_slots(self):
        start = datetime(2025, 11, 15, 9, tzinfo=timezone.utc)
        slots = [start, start + timedelta(minutes=15), start + timedelta(hours=2)]
        assert merge_consecutive_slots(slots, 15) == [
            (start, start + timedelta(minutes=30)),
            (start + timedelta(hours=2), start + timedelta(hours=2, minutes=15)),
        ]

    def test_merge_min_duration(self):
        start = datetime(2025, 11, 15, 9, tzinfo=timezone.utc)
        slots = [start, start + timedelta(hours=2)]
        assert merge_consecutive_slots(slots, 60, min_duration_minutes=120) == []

    def test_merge_empty(self):
        assert merge_consecutive_slots([]) == []

    def test_slot_minutes_of(self):
        assert slot_minutes_of(["0900-15112025", "0930-15112025", "1100-15112025"]) == 30
        assert slot_minutes_of(["0900-15112025"]) == 60


def test_repeated_and_unordered_instants_give_one_sorted_entry_each():
    tokens = ["1700-15112025", "0900-15112025", "0900-15112025"]
    result = aggregate(tokens, PEOPLE)

    assert [a["token"] for a in result["per_instant"]] == ["0900-15112025", "1700-15112025"]
    assert [a["people"] for a in result["per_instant"]] == [["A", "B"], ["B"]]
    assert (result["min"], result["max"]) == (1, 2)
