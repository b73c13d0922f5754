# SPDX-License-Identifier: Apache-2.0
"""Templated actions dispatched over selected data rows."""
from __future__ import annotations

from selection_actions.actions.base import (
    Action,
    EventAction,
    ExecutionResult,
    ItemResult,
    RateLimiterConfig,
    WebhookAction,
)
from selection_actions.actions.conditions import evaluate_action_condition, evaluate_condition, get_visible_actions
from selection_actions.actions.dispatcher import ActionDispatcher, execute_action, execute_selection_action
from selection_actions.actions.events import EventBus, LocalEvent
from selection_actions.actions.payload import build_bulk_payload, build_payload
from selection_actions.actions.rate_limit import RateLimiter
from selection_actions.actions.status import ActionStatus, ActionStatusStore, ItemActionStatus
from selection_actions.interpolation import (
    InterpolationResult,
    VariableState,
    interpolate_selection_batch,
    interpolate_selection_individual,
    replace_data_fields,
    replace_data_fields_batch,
    replace_variables,
)

__all__ = [
    "Action",
    "ActionDispatcher",
    "ActionStatus",
    "ActionStatusStore",
    "EventAction",
    "EventBus",
    "ExecutionResult",
    "InterpolationResult",
    "ItemActionStatus",
    "ItemResult",
    "LocalEvent",
    "RateLimiter",
    "RateLimiterConfig",
    "VariableState",
    "WebhookAction",
    "build_bulk_payload",
    "build_payload",
    "evaluate_action_condition",
    "evaluate_condition",
    "execute_action",
    "execute_selection_action",
    "get_visible_actions",
    "interpolate_selection_batch",
    "interpolate_selection_individual",
    "replace_data_fields",
    "replace_data_fields_batch",
    "replace_variables",
]
