# SPDX-License-Identifier: Apache-2.0
"""Dashboard variable substitution (``$name`` / ``${name}`` / ``${name:format}``)."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from .formats import FormatKind, encode, parse_format

VariableValue = Union[str, List[str], None]

# ${name} / ${name:format}, then $name, then bare built-ins such as __from
VARIABLE_RE = re.compile(r"\$\{(\w+)(?::(\w+))?\}|\$(\w+)|(?<![\w$])(__\w+)")


@dataclass(slots=True)
class VariableState:
    value: VariableValue = None
    loading: bool = False


VariableStateMap = Mapping[str, Union[VariableState, Mapping[str, Any]]]


def _value_of(state: Union[VariableState, Mapping[str, Any]]) -> VariableValue:
    if isinstance(state, VariableState):
        return state.value
    return state.get("value")


def format_variable(name: str, value: VariableValue, fmt: Optional[FormatKind]) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return encode([str(v) for v in value], name, fmt or FormatKind.CSV)
    if fmt is not None:
        return encode([str(value)], name, fmt)
    return str(value)


def replace_variables(
    text: str,
    variable_state: Optional[VariableStateMap],
    extra_variables: Optional[Mapping[str, str]] = None,
    fallback: Optional[str] = None,
) -> str:
    """Replace variable references in ``text``.

    Names are matched as whole tokens, so ``$from`` and ``$__from`` never
    resolve to each other. Built-in names (leading ``__``) are also replaced
    when written without the ``$``. Unknown ``$`` references stay as they are
    unless ``fallback`` is given.
    """
    values: Dict[str, VariableValue] = {}
    for name, state in (variable_state or {}).items():
        values[name] = _value_of(state)
    for name, value in (extra_variables or {}).items():
        values[name] = value

    def _sub(match: re.Match) -> str:
        braced, fmt_name, plain, bare = match.groups()
        if bare is not None:
            if bare not in values:
                return match.group(0)
            return format_variable(bare, values[bare], None)
        name = braced or plain
        if name not in values:
            return fallback if fallback is not None else match.group(0)
        return format_variable(name, values[name], parse_format(fmt_name))

    return VARIABLE_RE.sub(_sub, text)
