# SPDX-License-Identifier: Apache-2.0
"""Template grammar over selected data rows."""
from __future__ import annotations

from .data_fields import (
    InterpolationResult,
    extract_field_names,
    has_batch_patterns,
    has_data_field_patterns,
    has_indexed_patterns,
    replace_data_fields,
    replace_data_fields_batch,
)
from .fields import DataItem, js_string, json_dumps, lookup_field, resolve_field
from .formats import FormatKind, encode, parse_format, percent_encode
from .selection import interpolate_selection_batch, interpolate_selection_individual
from .variables import VariableState, VariableStateMap, replace_variables

__all__ = [
    "DataItem",
    "FormatKind",
    "InterpolationResult",
    "VariableState",
    "VariableStateMap",
    "encode",
    "extract_field_names",
    "has_batch_patterns",
    "has_data_field_patterns",
    "has_indexed_patterns",
    "interpolate_selection_batch",
    "interpolate_selection_individual",
    "js_string",
    "json_dumps",
    "lookup_field",
    "parse_format",
    "percent_encode",
    "replace_data_fields",
    "replace_data_fields_batch",
    "replace_variables",
    "resolve_field",
]
