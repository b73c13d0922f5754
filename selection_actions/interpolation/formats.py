# SPDX-License-Identifier: Apache-2.0
"""Output encodings for interpolated values."""
from __future__ import annotations

import enum
import re
from typing import Iterable, Optional
from urllib.parse import quote

from .fields import json_dumps

# Characters left alone by encodeURIComponent besides ASCII letters and digits.
_URI_COMPONENT_SAFE = "-_.!~*'()"

_REGEX_SPECIAL = re.compile(r"[.*+?^${}()|\[\]\\]")


class FormatKind(str, enum.Enum):
    RAW = "raw"
    CSV = "csv"
    PIPE = "pipe"
    JSON = "json"
    REGEX = "regex"
    QUERYPARAM = "queryparam"
    PERCENTENCODE = "percentencode"


def parse_format(text: Optional[str]) -> Optional[FormatKind]:
    if not text:
        return None
    try:
        return FormatKind(text.lower())
    except ValueError:
        return None


def percent_encode(value: str) -> str:
    # lone surrogates are encoded as their raw UTF-8 bytes instead of failing
    return quote(value, safe=_URI_COMPONENT_SAFE, errors="surrogatepass")


def escape_regex(value: str) -> str:
    return _REGEX_SPECIAL.sub(lambda m: "\\" + m.group(0), value)


def encode(values: Iterable[str], name: str, fmt: FormatKind) -> str:
    """Join ``values`` according to ``fmt``.

    ``name`` is only used by ``queryparam``, which renders ``name=value`` pairs.
    Formats that percent-encode do it here, so callers must not encode the
    result again.
    """
    values = list(values)
    if fmt is FormatKind.PIPE:
        return "|".join(values)
    if fmt is FormatKind.JSON:
        return json_dumps(values)
    if fmt is FormatKind.REGEX:
        return "(" + "|".join(escape_regex(v) for v in values) + ")"
    if fmt is FormatKind.QUERYPARAM:
        return "&".join(f"{name}={percent_encode(v)}" for v in values)
    if fmt is FormatKind.PERCENTENCODE:
        return percent_encode(",".join(values))
    # csv and raw share the comma join; raw only differs in skipping URL encoding
    return ",".join(values)
