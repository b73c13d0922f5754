# SPDX-License-Identifier: Apache-2.0
"""Visibility conditions for selection actions."""
from __future__ import annotations

import logging
import math
import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from selection_actions.interpolation.fields import js_string

from .base import Action, ActionCondition, MiscCondition, RangeCondition, RegexCondition, ValueCondition

log = logging.getLogger(__name__)


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


def _misc_matches(test: str, value: Any) -> bool:
    if test == "empty":
        return value == ""
    if test == "null":
        return value is None
    if test == "NaN":
        return isinstance(value, float) and math.isnan(value)
    if test == "true":
        return value is True or value == "true"
    if test == "false":
        return value is False or value == "false"
    return False


def evaluate_condition(condition: ActionCondition, value: Any) -> bool:
    """Test a single field value. Malformed conditions evaluate to False."""
    if isinstance(condition, ValueCondition):
        return js_string(value) == condition.value
    if isinstance(condition, RangeCondition):
        number = _to_number(value)
        if number is None:
            return False
        if condition.min is not None and number < condition.min:
            return False
        if condition.max is not None and number > condition.max:
            return False
        return True
    if isinstance(condition, RegexCondition):
        try:
            return re.search(condition.expr, js_string(value)) is not None
        except re.error:
            log.debug("ignoring invalid condition regex %r", condition.expr)
            return False
    if isinstance(condition, MiscCondition):
        return _misc_matches(condition.value, value)
    return False


def evaluate_action_condition(condition: ActionCondition, item: Mapping[str, Any]) -> bool:
    return any(evaluate_condition(condition, value) for value in item.values())


def get_visible_actions(actions: Iterable[Action], items: Sequence[Mapping[str, Any]]) -> List[Action]:
    """Actions that are enabled and whose condition matches at least one selected row."""
    visible: List[Action] = []
    for action in actions:
        if not action.enabled:
            continue
        if action.condition is None or any(evaluate_action_condition(action.condition, item) for item in items):
            visible.append(action)
    return visible
