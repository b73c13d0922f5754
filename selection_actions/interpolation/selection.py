# SPDX-License-Identifier: Apache-2.0
"""Template interpolation for selected rows, followed by dashboard variables."""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from .data_fields import InterpolationResult, replace_data_fields, replace_data_fields_batch
from .variables import VariableStateMap, replace_variables


def _finish(result: InterpolationResult, variable_state: Optional[VariableStateMap]) -> InterpolationResult:
    errors: List[str] = [e.replace("in data", "in selection data") for e in result.errors or []]
    text = result.text
    if variable_state:
        text = replace_variables(text, variable_state)
    return InterpolationResult(text=text, errors=errors or None)


def interpolate_selection_individual(
    template: str,
    item: Mapping[str, Any],
    index: int,
    count: int,
    variable_state: Optional[VariableStateMap] = None,
) -> InterpolationResult:
    """Interpolate one selected row; ``${__data.index}``/``${__data.count}`` are filled in."""
    return _finish(replace_data_fields(template, item, index=index, count=count), variable_state)


def interpolate_selection_batch(
    template: str,
    items: Sequence[Mapping[str, Any]],
    variable_state: Optional[VariableStateMap] = None,
) -> InterpolationResult:
    """Interpolate all selected rows into a single text."""
    return _finish(replace_data_fields_batch(template, items), variable_state)
