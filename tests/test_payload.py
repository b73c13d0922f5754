# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import json

from selection_actions.actions.base import EventAction, FieldMapping, WebhookAction
from selection_actions.actions.payload import (
    apply_field_mapping,
    build_bulk_payload,
    build_payload,
    generate_mock_data_hint,
    preview_payload,
    substitute_selection_variables,
)


def _identity(text: str) -> str:
    return text


ITEM = {"name": "Alice", "id": 1, "meta": {"team": "ops"}}


def test_template_becomes_json():
    action = WebhookAction(name="ack", url="http://x", body_template='{"who": "${__data.fields["name"]}", "id": ${__data.fields["id"]}}')
    assert build_payload(ITEM, action, _identity) == {"who": "Alice", "id": 1}


def test_template_that_is_not_json_is_sent_as_text():
    action = EventAction(name="note", event_name="note", body_template='hello ${__data.fields["name"]}')
    assert build_payload(ITEM, action, _identity) == "hello Alice"


def test_template_runs_variable_replacement_last():
    action = EventAction(name="note", event_name="note", body_template='${__data.fields["name"]}@$env')
    assert build_payload(ITEM, action, lambda text: text.replace("$env", "prod")) == "Alice@prod"


def test_field_mapping():
    action = WebhookAction(
        name="ack",
        url="http://x",
        field_mapping=[FieldMapping("name", "user"), FieldMapping("missing", "gone"), FieldMapping("", "skipped")],
    )
    assert build_payload(ITEM, action, _identity) == {"user": "Alice", "gone": None}


def test_row_is_sent_as_is_without_template_or_mapping():
    action = EventAction(name="raw", event_name="raw")
    payload = build_payload(ITEM, action, _identity)
    assert payload == ITEM
    assert payload is not ITEM


def test_bulk_payload():
    action = WebhookAction(name="ack", url="http://x", field_mapping=[FieldMapping("id", "alert")])
    assert build_bulk_payload([{"id": 1}, {"id": 2}], action, _identity) == [{"alert": 1}, {"alert": 2}]


def test_substitute_uses_raw_values():
    assert substitute_selection_variables('/u/${__data.fields["name"]}', {"name": "a b"}, _identity) == "/u/a b"


def test_apply_field_mapping_nested_source_is_not_traversed():
    assert apply_field_mapping(ITEM, [FieldMapping("meta.team", "team")]) == {"team": None}


def test_mock_hint():
    assert json.loads(generate_mock_data_hint(["a", "b"])) == {"a": "<value>", "b": "<value>"}
    assert json.loads(generate_mock_data_hint([])) == {"column1": "<value>", "column2": "<value>"}


def test_preview_without_rows_is_mock():
    preview = preview_payload([], columns=["host"])
    assert preview.is_mock
    assert preview.is_valid
    assert json.loads(preview.preview) == {"host": "<value>"}


def test_preview_with_template():
    rows = [{"name": "a", "n": 1}, {"name": "b", "n": None}]
    preview = preview_payload(rows, payload_template='{"v": ${__data.fields["n"]}}', row_index=1)
    assert preview.is_valid
    assert json.loads(preview.preview) == {"v": None}


def test_preview_reports_invalid_json():
    preview = preview_payload([{"name": "a"}], payload_template='{"v": ${__data.fields["name"]}}')
    assert not preview.is_valid
    assert preview.preview.startswith("Invalid JSON after template substitution:")
    assert '{"v": a}' in preview.preview


def test_bulk_preview_covers_first_three_rows():
    rows = [{"i": i} for i in range(5)]
    preview = preview_payload(rows, field_mapping=[FieldMapping("i", "index")], bulk=True)
    assert json.loads(preview.preview) == [{"index": 0}, {"index": 1}, {"index": 2}]
