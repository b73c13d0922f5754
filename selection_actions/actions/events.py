# SPDX-License-Identifier: Apache-2.0
"""In-process event bus used by event actions."""
from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

log = logging.getLogger(__name__)


@dataclass(slots=True)
class LocalEvent:
    name: str
    detail: Any
    timestamp: float = field(default_factory=time.time)


EventHandler = Callable[[LocalEvent], None]


class EventBus:
    """Synchronous publish/subscribe keyed by event name.

    Handlers run in subscription order inside ``dispatch``; an exception raised
    by a handler propagates to the caller.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        self._handlers[event_name].append(handler)

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_name)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def dispatch(self, event: LocalEvent) -> int:
        handlers = list(self._handlers.get(event.name, ()))
        if not handlers:
            log.info("[event %s] no subscribers detail=%s", event.name, event.detail)
            return 0
        for handler in handlers:
            handler(event)
        return len(handlers)
