# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import pytest

from selection_actions.interpolation.variables import VariableState, replace_variables


@pytest.mark.parametrize(
    "text, state, extra, expected",
    [
        ("hello $var1 $var1", {"var1": VariableState("world")}, None, "hello world world"),
        ("hello $var1 $var2", {"var1": VariableState("world")}, {"var2": "perses"}, "hello world perses"),
        (
            "hello __from world __to",
            {"__from": VariableState("123"), "__to": VariableState("456")},
            None,
            "hello 123 world 456",
        ),
        (
            "$var1 ${var1} __from __to",
            {"var1": VariableState("world"), "__from": VariableState("123"), "__to": VariableState("456")},
            None,
            "world world 123 456",
        ),
        ("$from __from", {"from": VariableState("123"), "__from": VariableState("456")}, None, "123 456"),
        ("__range_ms", {"__range_ms": VariableState("3600000")}, None, "3600000"),
    ],
)
def test_replace_variables(text, state, extra, expected):
    assert replace_variables(text, state, extra) == expected


def test_plain_mapping_state_is_accepted():
    assert replace_variables("env=$env", {"env": {"value": "prod", "loading": False}}) == "env=prod"


def test_unknown_references_are_kept():
    assert replace_variables("$missing ${other} __nope", {}) == "$missing ${other} __nope"


def test_fallback_only_applies_to_dollar_references():
    assert replace_variables("$missing __nope", {}, fallback="") == " __nope"


def test_multi_value_formats():
    state = {"hosts": VariableState(["a.b", "c"])}
    assert replace_variables("$hosts", state) == "a.b,c"
    assert replace_variables("${hosts:pipe}", state) == "a.b|c"
    assert replace_variables("${hosts:regex}", state) == r"(a\.b|c)"
    assert replace_variables("${hosts:queryparam}", state) == "hosts=a.b&hosts=c"


def test_single_value_with_format():
    assert replace_variables("${q:percentencode}", {"q": VariableState("a b")}) == "a%20b"


def test_empty_value_renders_nothing():
    assert replace_variables("[$v]", {"v": VariableState(None)}) == "[]"
