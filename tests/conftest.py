# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures for selection action tests."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web

from selection_actions.actions.events import EventBus, LocalEvent
from selection_actions.actions.status import ActionStatusStore
from selection_actions.actions.webhook import TransportResponse


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: Dict[str, str]
    body: Optional[str]


@dataclass
class RecordingTransport:
    """Transport double that records calls and answers with canned statuses."""

    statuses: Dict[str, int] = field(default_factory=dict)
    default_status: int = 200
    raise_for: Dict[str, Exception] = field(default_factory=dict)
    requests: List[RecordedRequest] = field(default_factory=list)
    delay: float = 0.0
    in_flight: int = 0
    peak: int = 0

    async def __call__(self, method: str, url: str, *, headers: Dict[str, str], body: Optional[str]):
        self.requests.append(RecordedRequest(method, url, dict(headers), body))
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        for fragment, exc in self.raise_for.items():
            if fragment in url:
                raise exc
        for fragment, status in self.statuses.items():
            if fragment in url:
                return TransportResponse(status=status, reason="Internal Server Error" if status >= 500 else "")
        return TransportResponse(status=self.default_status, reason="OK")


class EventRecorder:
    def __init__(self) -> None:
        self.events: List[LocalEvent] = []

    def __call__(self, event: LocalEvent) -> None:
        self.events.append(event)


class StubWebhookServer:
    """Minimal aiohttp server that records webhook calls for end-to-end tests."""

    def __init__(self, failing_ids: tuple[str, ...] = ()):
        self.failing_ids = set(failing_ids)
        self.received: List[dict] = []
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    @property
    def base_url(self) -> str:
        if not self._runner:
            raise RuntimeError("server not started")
        host, port = self._runner.addresses[0][:2]
        return f"http://{host}:{port}"

    async def _handle(self, request: web.Request) -> web.Response:
        body = await request.text()
        self.received.append(
            {
                "method": request.method,
                "path": request.path,
                "query": dict(request.query),
                "content_type": request.headers.get("Content-Type"),
                "body": body,
            }
        )
        if request.query.get("id") in self.failing_ids:
            return web.Response(status=500, text="boom")
        return web.json_response({"ok": True})

    async def start(self) -> None:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._handle)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, "127.0.0.1", 0)
        await self._site.start()

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def store() -> ActionStatusStore:
    return ActionStatusStore()


@pytest.fixture
def rows() -> Dict[str, dict]:
    return {
        "a": {"name": "Alice", "id": "1", "state": "firing"},
        "b": {"name": "Bob", "id": "2", "state": "ok"},
        "c": {"name": "Charlie", "id": "3", "state": "firing"},
    }


@pytest_asyncio.fixture
async def webhook_server():
    server = StubWebhookServer(failing_ids=("2",))
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def make_transport():
    return RecordingTransport
