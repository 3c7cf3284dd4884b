from __future__ import annotations

import math

from ai.coercion import Bounded, Choice, ListOf, defaults, repair

TEMPLATE = {
    "name": "Unknown",
    "active": False,
    "level": Choice("Low", "Low", "Medium", "High"),
    "score": Bounded(50, 0, 100),
    "tags": ["General"],
    "items": ListOf({"title": "Untitled", "note": ""}, []),
    "nested": {"city": "Not specified"},
}


def test_defaults_for_missing_input():
    assert defaults(TEMPLATE) == {
        "name": "Unknown",
        "active": False,
        "level": "Low",
        "score": 50,
        "tags": ["General"],
        "items": [],
        "nested": {"city": "Not specified"},
    }


def test_repair_keeps_valid_values_and_drops_extra_keys():
    value = {
        "name": "  Monash  ",
        "active": "yes",
        "level": "high",
        "score": "85%",
        "tags": ["STEM", "", None],
        "items": [{"title": "A", "extra": 1}, "loose string", None],
        "nested": {"city": "Clayton", "zip": "3800"},
        "unexpected": True,
    }
    assert repair(value, TEMPLATE) == {
        "name": "Monash",
        "active": True,
        "level": "High",
        "score": 85,
        "tags": ["STEM"],
        "items": [{"title": "A", "note": ""}],
        "nested": {"city": "Clayton"},
    }


def test_wrong_types_take_defaults():
    value = {
        "name": None,
        "active": None,
        "level": "Extreme",
        "score": math.nan,
        "tags": "not a list",
        "items": {"title": "not a list"},
        "nested": ["nope"],
    }
    assert repair(value, TEMPLATE) == defaults(TEMPLATE)


def test_numbers_become_strings_and_scores_clamp():
    result = repair({"name": 42, "score": 250}, TEMPLATE)
    assert result["name"] == "42"
    assert result["score"] == 100
    assert repair({"score": -3}, TEMPLATE)["score"] == 0


def test_empty_list_takes_default_copy():
    first = repair({"tags": []}, TEMPLATE)
    first["tags"].append("mutated")
    assert repair({"tags": []}, TEMPLATE)["tags"] == ["General"]


def test_never_raises_on_non_dict_root():
    assert repair("garbage", TEMPLATE) == defaults(TEMPLATE)
    assert repair(["x"], {"a": "b"}) == {"a": "b"}


def test_infinite_scores_take_default():
    for value in (math.inf, -math.inf, "inf", "-Infinity"):
        assert repair({"score": value}, TEMPLATE)["score"] == 50
