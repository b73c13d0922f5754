# SPDX-License-Identifier: Apache-2.0
"""Utility helpers for wiring configured handlers."""
from __future__ import annotations

import importlib
import json
from pathlib import Path
from typing import Any, Dict

import yaml


def resolve_callable(qualname: str) -> Any:
    """Resolve a dotted path to a callable.

    Supports `package.module:function` and `package.module.function`.
    """
    if ":" in qualname:
        module_name, func_name = qualname.split(":", 1)
    else:
        module_name, _, func_name = qualname.rpartition(".")
    if not module_name:
        raise ValueError(f"callable '{qualname}' must include a module path")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, func_name)
    except AttributeError as exc:
        raise AttributeError(f"callable '{qualname}' not found in module '{module_name}'") from exc


def load_rows(path: str | Path) -> Dict[str, Dict[str, Any]]:
    """Load selected rows from JSON or YAML.

    A list is keyed by position; a mapping keeps its own identifiers.
    """
    path = Path(path)
    text = path.read_text()
    data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    if isinstance(data, list):
        return {str(i): dict(row) for i, row in enumerate(data)}
    if isinstance(data, dict):
        return {str(k): dict(v) for k, v in data.items()}
    raise ValueError(f"rows file {path} must contain a list or a mapping of rows")
