# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import pytest

from selection_actions.interpolation.fields import js_string, lookup_field, resolve_field


def test_literal_dotted_key_wins_over_nested_path():
    item = {"foo.bar": "literal", "foo": {"bar": "nested"}}
    assert resolve_field(item, "foo.bar") == "literal"


def test_nested_path_traversal():
    assert resolve_field({"a": {"b": {"c": {"d": "deep"}}}}, "a.b.c.d") == "deep"


@pytest.mark.parametrize(
    "item",
    [
        {"foo": {"bar": "string value"}},
        {"foo": None},
        {"foo": "scalar"},
    ],
)
def test_broken_paths_resolve_to_empty(item):
    value, found = lookup_field(item, "foo.bar.baz")
    assert value == ""
    assert not found


def test_empty_value_is_found_but_missing_key_is_not():
    assert lookup_field({"name": ""}, "name") == ("", True)
    assert lookup_field({"name": None}, "name") == ("", True)
    assert lookup_field({}, "name") == ("", False)


def test_values_are_rendered_like_the_dashboard():
    item = {"n": 42, "f": 1.5, "whole": 3.0, "flag": True, "obj": {"key": "value"}, "arr": [1, "x"]}
    assert resolve_field(item, "n") == "42"
    assert resolve_field(item, "f") == "1.5"
    assert resolve_field(item, "whole") == "3"
    assert resolve_field(item, "flag") == "true"
    assert resolve_field(item, "obj") == '{"key":"value"}'
    assert resolve_field(item, "arr") == '[1,"x"]'


def test_js_string_special_values():
    assert js_string(None) == "null"
    assert js_string(False) == "false"
    assert js_string(float("nan")) == "NaN"
    assert js_string(float("-inf")) == "-Infinity"
    assert js_string({"a": 1}) == "[object Object]"


@pytest.mark.parametrize(
    "value, expected",
    [
        (1e-7, "1e-7"),
        (-2.5e-8, "-2.5e-8"),
        (1e-5, "0.00001"),
        (1.5e-6, "0.0000015"),
        (0.1, "0.1"),
        (1e21, "1e+21"),
        (1.5e22, "1.5e+22"),
        (1e20, "100000000000000000000"),
    ],
)
def test_js_string_number_notation(value, expected):
    assert js_string(value) == expected
    assert resolve_field({"n": value}, "n") == expected
