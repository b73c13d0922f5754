# SPDX-License-Identifier: Apache-2.0
"""Field lookup and value rendering for selected data rows."""
from __future__ import annotations

import json
import math
from decimal import Decimal
from typing import Any, Dict, Mapping, Tuple

DataItem = Dict[str, Any]


def json_dumps(value: Any) -> str:
    """Compact JSON rendering matching what browsers emit for JSON.stringify."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def _js_float(value: float) -> str:
    text = repr(value)
    if "e" not in text:
        return text
    mantissa, exponent = text.split("e")
    exp = int(exponent)
    # positional for exponents -6 through 20, otherwise e-notation without zero padding
    if -7 < exp < 21:
        return format(Decimal(text), "f")
    return f"{mantissa}e{exp:+d}"


def js_string(value: Any) -> str:
    """Render a value the way string coercion does in the dashboard runtime."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return _js_float(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else js_string(v) for v in value)
    if isinstance(value, Mapping):
        return "[object Object]"
    return str(value)


def _render(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (Mapping, list, tuple)):
        return json_dumps(value)
    return js_string(value)


def lookup_field(item: Mapping[str, Any], field_name: str) -> Tuple[str, bool]:
    """Resolve ``field_name`` against ``item``.

    A literal key wins over nested traversal, so ``"foo.bar"`` first looks for a
    key spelled exactly ``foo.bar`` and only then walks ``item["foo"]["bar"]``.

    Returns the rendered value and whether the field exists at all. A key that
    is present but empty or null is found; a path that leads nowhere is not.
    """
    if field_name in item:
        return _render(item[field_name]), True

    if "." not in field_name:
        return "", False

    current: Any = item
    for part in field_name.split("."):
        if current is None or not isinstance(current, Mapping):
            return "", False
        current = current.get(part)
    if current is None:
        return "", False
    return _render(current), True


def resolve_field(item: Mapping[str, Any], field_name: str) -> str:
    value, _ = lookup_field(item, field_name)
    return value
