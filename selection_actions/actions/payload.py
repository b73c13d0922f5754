# SPDX-License-Identifier: Apache-2.0
"""Payload shaping for actions: templates, field mappings and previews."""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from selection_actions.interpolation.fields import js_string, resolve_field

from .base import Action, FieldMapping

ReplaceVariables = Callable[[str], str]

_PAYLOAD_FIELD_RE = re.compile(r'\$\{__data\.fields\["([^"]+)"\]\}')

MOCK_PLACEHOLDER = "<value>"


def substitute_selection_variables(
    template: str, item: Mapping[str, Any], replace_variables: ReplaceVariables
) -> str:
    """Insert raw row values, then hand the text to the dashboard variable replacer."""
    result = _PAYLOAD_FIELD_RE.sub(lambda m: resolve_field(item, m.group(1)), template)
    return replace_variables(result)


def apply_field_mapping(item: Mapping[str, Any], mappings: Sequence[FieldMapping]) -> Dict[str, Any]:
    return {m.target: item.get(m.source) for m in mappings if m.source and m.target}


def build_payload(item: Mapping[str, Any], action: Action, replace_variables: ReplaceVariables) -> Any:
    """Payload for one row.

    A body template is substituted and parsed as JSON; when the result is not
    valid JSON the substituted text itself becomes the payload. Without a
    template the field mapping is applied, and without either the row is sent
    as is.
    """
    if action.body_template:
        substituted = substitute_selection_variables(action.body_template, item, replace_variables)
        try:
            return json.loads(substituted)
        except ValueError:
            return substituted
    if action.field_mapping:
        return apply_field_mapping(item, action.field_mapping)
    return dict(item)


def build_bulk_payload(
    items: Sequence[Mapping[str, Any]], action: Action, replace_variables: ReplaceVariables
) -> List[Any]:
    return [build_payload(item, action, replace_variables) for item in items]


def generate_mock_data_hint(columns: Sequence[str]) -> str:
    if not columns:
        return '{\n  "column1": "<value>",\n  "column2": "<value>"\n}'
    return json.dumps({col: MOCK_PLACEHOLDER for col in columns}, indent=2)


@dataclass(slots=True)
class PayloadPreview:
    preview: str
    is_valid: bool
    is_mock: bool


def _apply_preview_template(template: str, row: Mapping[str, Any]) -> Any:
    def _value(match: re.Match) -> str:
        value = row.get(match.group(1))
        return "null" if value is None else js_string(value)

    result = _PAYLOAD_FIELD_RE.sub(_value, template)
    try:
        return json.loads(result)
    except ValueError as exc:
        raise ValueError(f"Invalid JSON after template substitution:\n{result}") from exc


def preview_payload(
    sample_rows: Sequence[Mapping[str, Any]],
    *,
    payload_template: Optional[str] = None,
    field_mapping: Sequence[FieldMapping] = (),
    columns: Sequence[str] = (),
    row_index: int = 0,
    bulk: bool = False,
) -> PayloadPreview:
    """Render what an action would send for sample rows.

    Bulk previews cover the first three rows. Unlike ``build_payload``, a
    template that does not produce valid JSON is reported as invalid with the
    parse error as the preview text.
    """
    if not sample_rows:
        return PayloadPreview(generate_mock_data_hint(columns), is_valid=True, is_mock=True)

    rows = list(sample_rows[:3]) if bulk else [sample_rows[row_index] if row_index < len(sample_rows) else {}]
    if payload_template:
        transform: Callable[[Mapping[str, Any]], Any] = lambda row: _apply_preview_template(payload_template, row)
    elif field_mapping:
        transform = lambda row: apply_field_mapping(row, field_mapping)
    else:
        transform = dict

    try:
        transformed = [transform(row) for row in rows]
    except ValueError as exc:
        return PayloadPreview(str(exc), is_valid=False, is_mock=False)
    shown = transformed if bulk else transformed[0]
    return PayloadPreview(json.dumps(shown, indent=2, default=str), is_valid=True, is_mock=False)
