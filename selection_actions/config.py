# SPDX-License-Identifier: Apache-2.0
"""Configuration loader for selection actions."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from selection_actions.actions import build_action
from selection_actions.actions.base import (
    Action,
    ActionCondition,
    EventAction,
    FieldMapping,
    MiscCondition,
    RangeCondition,
    RateLimiterConfig,
    RegexCondition,
    ValueCondition,
    WebhookAction,
)
from selection_actions.interpolation.variables import VariableState

log = logging.getLogger(__name__)

DEFAULT_CONFIRM_MESSAGE = "Are you sure you want to perform this action?"

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

_ALIASES = {
    "payload_template": "body_template",
    "confirmation_message": "confirm_message",
    "rate_limit_config": "rate_limit",
}


@dataclass(slots=True)
class WebhookConfig:
    timeout_s: float = 5.0


@dataclass(slots=True)
class DispatchConfig:
    version: int
    actions: List[Action]
    variables: Dict[str, VariableState] = field(default_factory=dict)
    events: Dict[str, str] = field(default_factory=dict)
    webhook: WebhookConfig = field(default_factory=WebhookConfig)
    metrics_port: int = 0

    def get_action(self, name: str) -> Action:
        for action in self.actions:
            if action.name == name:
                return action
        raise KeyError(f"action '{name}' not configured")


def _snake(key: str) -> str:
    key = _CAMEL_RE.sub("_", key).lower()
    return _ALIASES.get(key, key)


def _normalise(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {_snake(str(k)): v for k, v in data.items()}


def parse_condition(data: Optional[Mapping[str, Any]]) -> Optional[ActionCondition]:
    if not data:
        return None
    kind = data.get("kind")
    spec = data.get("spec") or {k: v for k, v in data.items() if k != "kind"}
    if kind == "Value":
        return ValueCondition(value=str(spec["value"]))
    if kind == "Range":
        lo, hi = spec.get("min"), spec.get("max")
        return RangeCondition(min=None if lo is None else float(lo), max=None if hi is None else float(hi))
    if kind == "Regex":
        return RegexCondition(expr=str(spec["expr"]))
    if kind == "Misc":
        value = str(spec["value"])
        if value not in {"empty", "null", "NaN", "true", "false"}:
            raise ValueError(f"unsupported Misc condition '{value}'")
        return MiscCondition(value=value)  # type: ignore[arg-type]
    raise ValueError(f"unsupported condition kind '{kind}'")


def _parse_rate_limit(data: Optional[Mapping[str, Any]]) -> RateLimiterConfig:
    opts = _normalise(data or {})
    rps = opts.get("requests_per_second")
    concurrent = opts.get("max_concurrent")
    return RateLimiterConfig(
        requests_per_second=None if rps is None else float(rps),
        max_concurrent=None if concurrent is None else int(concurrent),
    )


def parse_action(data: Mapping[str, Any]) -> Action:
    """Build an action from a mapping.

    Accepts snake_case or camelCase keys, and the older
    ``{kind: callback|webhook, spec: {...}, bulkMode, payloadTemplate}`` shape.
    """
    if not isinstance(data, Mapping):
        raise ValueError("action definition must be a mapping")
    opts = _normalise(data)
    action_type = opts.pop("type", None) or opts.pop("kind", None)
    opts.pop("kind", None)
    if not action_type:
        raise ValueError(f"action {opts.get('name') or opts.get('id')!r} is missing a type")
    opts.update(_normalise(opts.pop("spec", None) or {}))

    action_id = opts.pop("id", None)
    if not opts.get("name"):
        opts["name"] = action_id or opts.get("label")
    if not opts.get("name"):
        raise ValueError("action is missing a name")

    if "bulk_mode" in opts:
        opts["batch_mode"] = "batch" if opts.pop("bulk_mode") else "individual"
    if opts.pop("require_confirmation", False) and not opts.get("confirm_message"):
        opts["confirm_message"] = DEFAULT_CONFIRM_MESSAGE
    if opts.get("batch_mode", "individual") not in ("batch", "individual"):
        raise ValueError(f"action '{opts['name']}' has invalid batch_mode '{opts['batch_mode']}'")

    opts["condition"] = parse_condition(opts.get("condition"))
    opts["field_mapping"] = [
        FieldMapping(source=m.get("source", ""), target=m.get("target", "")) for m in opts.get("field_mapping") or []
    ]
    if "method" in opts:
        opts["method"] = str(opts["method"]).upper()
    if "rate_limit" in opts:
        opts["rate_limit"] = _parse_rate_limit(opts["rate_limit"])
    if "headers" in opts:
        opts["headers"] = {str(k): str(v) for k, v in (opts["headers"] or {}).items()}

    target = WebhookAction if action_type == "webhook" else EventAction
    allowed = {f.name for f in fields(target)}
    ignored = sorted(set(opts) - allowed)
    if ignored:
        log.debug("action %s: ignoring keys %s", opts["name"], ignored)
    return build_action(action_type, **{k: v for k, v in opts.items() if k in allowed})


def _parse_variables(items: Mapping[str, Any]) -> Dict[str, VariableState]:
    variables: Dict[str, VariableState] = {}
    for name, payload in (items or {}).items():
        if isinstance(payload, Mapping):
            variables[name] = VariableState(value=payload.get("value"), loading=bool(payload.get("loading", False)))
        else:
            variables[name] = VariableState(value=payload)
    return variables


def _parse_webhook(data: Mapping[str, Any]) -> WebhookConfig:
    return WebhookConfig(timeout_s=float((data or {}).get("timeout_s", 5.0)))


def load_config(path: str | Path) -> DispatchConfig:
    raw = yaml.safe_load(Path(path).read_text()) or {}
    actions = [parse_action(item) for item in raw.get("actions", []) or []]
    names = [a.name for a in actions]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(f"duplicate action names: {duplicates}")
    return DispatchConfig(
        version=int(raw.get("version", 1)),
        actions=actions,
        variables=_parse_variables(raw.get("variables", {})),
        events=dict(raw.get("events", {}) or {}),
        webhook=_parse_webhook(raw.get("webhook", {})),
        metrics_port=int(raw.get("metrics_port", 0)),
    )
