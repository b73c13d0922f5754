# SPDX-License-Identifier: Apache-2.0
"""Replacement of ``${__data...}`` placeholders with values from selected rows.

Supported patterns:

- ``${__data.fields["name"]}``, ``${__data.fields['name']}``, ``${__data.fields.name}``
  with an optional ``:format`` suffix
- ``${__data[N].fields["name"]}`` (batch only)
- ``${__data.index}`` and ``${__data.count}``
- ``${__data}`` and ``${__data:format}`` for the whole row (or all rows in batch)

Interpolation never raises: unresolved fields and bad indexes are reported in
``InterpolationResult.errors`` and the best-effort text is still returned.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence

from .fields import json_dumps, lookup_field
from .formats import FormatKind, encode, parse_format, percent_encode

SINGLE_FIELD_RE = re.compile(
    r"""\$\{__data\.fields(?:\[["']([^"']+)["']\]|\.([a-zA-Z_][a-zA-Z0-9_]*))(?::([a-z]+))?\}"""
)
INDEXED_FIELD_RE = re.compile(r"""\$\{__data\[(\d+)\]\.fields\[["']([^"']+)["']\]\}""")
FORMATTED_FIELD_RE = re.compile(r"""\$\{__data\.fields(?:\[["'][^"']+["']\]|\.[a-zA-Z_][a-zA-Z0-9_]*):[a-z]+\}""")
FULL_DATA_RE = re.compile(r"""(["'])?\$\{__data(?::([a-z]+))?\}(["'])?""")

DATA_INDEX = "${__data.index}"
DATA_COUNT = "${__data.count}"


@dataclass(slots=True)
class InterpolationResult:
    text: str
    errors: Optional[List[str]] = None


def _result(text: str, errors: List[str]) -> InterpolationResult:
    return InterpolationResult(text=text, errors=errors or None)


def _replace_full_data(template: str, rendered_json: str, json_values: Sequence[str]) -> str:
    def _sub(match: re.Match) -> str:
        leading, fmt_name, trailing = match.group(1), match.group(2), match.group(3)
        fmt = parse_format(fmt_name) or FormatKind.RAW
        if fmt is FormatKind.JSON:
            rendered = rendered_json
        else:
            rendered = encode(json_values, "", fmt)
        if leading and trailing:
            # the quotes wrapped the placeholder itself, e.g. "${__data:json}"
            return rendered
        return f"{leading or ''}{rendered}{trailing or ''}"

    return FULL_DATA_RE.sub(_sub, template)


def replace_data_fields(
    template: str,
    item: Mapping[str, Any],
    *,
    url_encode: bool = True,
    index: Optional[int] = None,
    count: Optional[int] = None,
) -> InterpolationResult:
    """Interpolate a template against a single row.

    Field values are percent-encoded unless ``url_encode`` is False or the
    pattern carries an explicit format, in which case the format alone decides
    the encoding. ``${__data.index}`` and ``${__data.count}`` are only replaced
    when the matching argument is given.
    """
    errors: List[str] = []
    result = template

    if index is not None:
        result = result.replace(DATA_INDEX, str(index))
    if count is not None:
        result = result.replace(DATA_COUNT, str(count))

    result = _replace_full_data(
        result,
        json_dumps(dict(item)),
        [json_dumps(v) for v in item.values()],
    )

    def _field(match: re.Match) -> str:
        field_name = match.group(1) or match.group(2) or ""
        value, found = lookup_field(item, field_name)
        if not found:
            errors.append(f'Field "{field_name}" not found in data')
        fmt = parse_format(match.group(3))
        if fmt is not None:
            return encode([value], field_name, fmt)
        return percent_encode(value) if url_encode else value

    result = SINGLE_FIELD_RE.sub(_field, result)
    return _result(result, errors)


def replace_data_fields_batch(
    template: str,
    items: Sequence[Mapping[str, Any]],
    *,
    url_encode: bool = True,
) -> InterpolationResult:
    """Interpolate a template against all selected rows at once.

    Aggregated ``${__data.fields[...]}`` patterns join the values of every row
    (csv unless a format is given). Indexed patterns pick one row and are left
    untouched when the index is out of range.
    """
    errors: List[str] = []
    result = template.replace(DATA_COUNT, str(len(items)))

    result = _replace_full_data(
        result,
        json_dumps([dict(i) for i in items]),
        [json_dumps(dict(i)) for i in items],
    )

    def _indexed(match: re.Match) -> str:
        idx = int(match.group(1))
        field_name = match.group(2)
        if idx >= len(items):
            errors.append(f"Index {idx} out of bounds (0-{len(items) - 1})")
            return match.group(0)
        value, found = lookup_field(items[idx], field_name)
        if not found:
            errors.append(f'Field "{field_name}" not found in data at index {idx}')
        return percent_encode(value) if url_encode else value

    result = INDEXED_FIELD_RE.sub(_indexed, result)

    def _aggregated(match: re.Match) -> str:
        field_name = match.group(1) or match.group(2) or ""
        values = []
        for idx, item in enumerate(items):
            value, found = lookup_field(item, field_name)
            if not found:
                errors.append(f'Field "{field_name}" not found in data at index {idx}')
            values.append(value)
        fmt = parse_format(match.group(3)) or FormatKind.CSV
        return encode(values, field_name, fmt)

    result = SINGLE_FIELD_RE.sub(_aggregated, result)
    return _result(result, errors)


def has_batch_patterns(template: str) -> bool:
    """True when the template only makes sense in batch mode."""
    return bool(INDEXED_FIELD_RE.search(template) or FORMATTED_FIELD_RE.search(template))


def has_indexed_patterns(template: str) -> bool:
    return INDEXED_FIELD_RE.search(template) is not None


def has_data_field_patterns(template: str) -> bool:
    return bool(SINGLE_FIELD_RE.search(template) or INDEXED_FIELD_RE.search(template))


def extract_field_names(template: str) -> List[str]:
    names: dict[str, None] = {}
    for match in SINGLE_FIELD_RE.finditer(template):
        names.setdefault(match.group(1) or match.group(2), None)
    for match in INDEXED_FIELD_RE.finditer(template):
        names.setdefault(match.group(2), None)
    return list(names)
