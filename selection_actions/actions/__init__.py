# SPDX-License-Identifier: Apache-2.0
"""Action factory."""
from __future__ import annotations

from typing import Any, Callable

from .base import Action, EventAction, WebhookAction

ACTION_TYPES: dict[str, Callable[..., Action]] = {}


def register(action_type: str, factory: Callable[..., Action]) -> None:
    ACTION_TYPES[action_type] = factory


def build_action(action_type: str, **options: Any) -> Action:
    if action_type not in ACTION_TYPES:
        raise ValueError(f"unknown action type '{action_type}'")
    return ACTION_TYPES[action_type](**options)


register("event", EventAction)
register("callback", EventAction)
register("webhook", WebhookAction)
