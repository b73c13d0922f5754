# SPDX-License-Identifier: Apache-2.0
"""Action status store shared between the dispatcher and its callers."""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Protocol

log = logging.getLogger(__name__)

NO_ITEM: Any = object()


@dataclass(slots=True)
class ItemActionStatus:
    loading: bool = False
    success: Optional[bool] = None
    error: Optional[Exception] = None


@dataclass(slots=True)
class ActionStatus:
    loading: bool = False
    success: Optional[bool] = None
    error: Optional[Exception] = None
    item_statuses: Optional[Dict[Any, ItemActionStatus]] = None


class SetActionStatus(Protocol):
    def __call__(self, action_name: str, status: Mapping[str, Any], item_id: Any = NO_ITEM) -> None: ...


def _merge(current, update: Mapping[str, Any]):
    unknown = set(update) - {f.name for f in dataclasses.fields(current)}
    if unknown:
        raise ValueError(f"unknown status fields: {sorted(unknown)}")
    return dataclasses.replace(current, **update)


class ActionStatusStore:
    """Keeps one ``ActionStatus`` per action name.

    Updates are partial: only the keys passed in ``status`` change. Item-level
    updates go to ``item_statuses`` and leave the action-level fields alone, and
    the other way round. Stored objects are replaced, never mutated, so a status
    read earlier is a stable snapshot.
    """

    def __init__(self) -> None:
        self._statuses: Dict[str, ActionStatus] = {}

    def set_action_status(self, action_name: str, status: Mapping[str, Any], item_id: Any = NO_ITEM) -> None:
        existing = self._statuses.get(action_name) or ActionStatus()
        if item_id is NO_ITEM:
            self._statuses[action_name] = _merge(existing, status)
            return
        item_statuses = dict(existing.item_statuses or {})
        item_statuses[item_id] = _merge(item_statuses.get(item_id) or ItemActionStatus(), status)
        self._statuses[action_name] = dataclasses.replace(existing, item_statuses=item_statuses)

    def clear_action_status(self, action_name: Optional[str] = None) -> None:
        if action_name is None:
            self._statuses.clear()
            return
        self._statuses.pop(action_name, None)

    def get(self, action_name: str) -> Optional[ActionStatus]:
        return self._statuses.get(action_name)

    def all(self) -> Dict[str, ActionStatus]:
        return dict(self._statuses)


def discard_status(action_name: str, status: Mapping[str, Any], item_id: Any = NO_ITEM) -> None:
    """Status callback for callers that do not track progress."""
    log.debug("action %s status %s item=%s", action_name, dict(status), None if item_id is NO_ITEM else item_id)
