# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import pytest

from selection_actions.actions.base import (
    EventAction,
    MiscCondition,
    RangeCondition,
    RegexCondition,
    ValueCondition,
    WebhookAction,
)
from selection_actions.actions.conditions import evaluate_action_condition, evaluate_condition, get_visible_actions


@pytest.mark.parametrize(
    "value, expected",
    [("firing", True), ("resolved", False), (None, False)],
)
def test_value_condition(value, expected):
    assert evaluate_condition(ValueCondition("firing"), value) is expected


def test_value_condition_compares_string_forms():
    assert evaluate_condition(ValueCondition("42"), 42)
    assert evaluate_condition(ValueCondition("true"), True)


@pytest.mark.parametrize(
    "value, expected",
    [(5, True), ("7.5", True), (0, False), (11, False), ("abc", False), ("", False), (None, False), (True, False)],
)
def test_range_condition(value, expected):
    assert evaluate_condition(RangeCondition(min=1, max=10), value) is expected


def test_open_ended_range():
    assert evaluate_condition(RangeCondition(min=100), 1e9)
    assert evaluate_condition(RangeCondition(max=0), -3)


def test_regex_condition():
    assert evaluate_condition(RegexCondition(r"^prod-\d+$"), "prod-12")
    assert not evaluate_condition(RegexCondition(r"^prod-\d+$"), "staging-1")


def test_invalid_regex_is_false():
    assert evaluate_condition(RegexCondition("(unclosed"), "anything") is False


@pytest.mark.parametrize(
    "test, value",
    [("empty", ""), ("null", None), ("NaN", float("nan")), ("true", True), ("false", "false")],
)
def test_misc_conditions(test, value):
    assert evaluate_condition(MiscCondition(test), value)


def test_misc_empty_does_not_match_null():
    assert not evaluate_condition(MiscCondition("empty"), None)
    assert not evaluate_condition(MiscCondition("null"), "")


def test_action_condition_matches_any_field():
    item = {"name": "db-1", "state": "firing"}
    assert evaluate_action_condition(ValueCondition("firing"), item)
    assert not evaluate_action_condition(ValueCondition("ok"), item)


def test_visible_actions(rows):
    unconditional = EventAction(name="details", event_name="details")
    firing_only = WebhookAction(name="ack", url="http://x", condition=ValueCondition("firing"))
    never = WebhookAction(name="never", url="http://x", condition=ValueCondition("unknown"))
    disabled = EventAction(name="off", event_name="off", enabled=False)

    visible = get_visible_actions([unconditional, firing_only, never, disabled], list(rows.values()))
    assert [a.name for a in visible] == ["details", "ack"]


def test_visible_actions_without_matching_rows(rows):
    firing_only = WebhookAction(name="ack", url="http://x", condition=ValueCondition("firing"))
    assert get_visible_actions([firing_only], [rows["b"]]) == []
