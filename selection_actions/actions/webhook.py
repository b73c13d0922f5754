# SPDX-License-Identifier: Apache-2.0
"""HTTP transport for webhook actions."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Dict, Optional, Protocol

import aiohttp

from .base import BODY_METHODS, WebhookAction

log = logging.getLogger(__name__)


@dataclass(slots=True)
class TransportResponse:
    status: int
    reason: str = ""
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    def __call__(
        self, method: str, url: str, *, headers: Dict[str, str], body: Optional[str]
    ) -> Awaitable[TransportResponse]: ...


class HTTPStatusError(Exception):
    def __init__(self, status: int, reason: str = ""):
        super().__init__(f"HTTP {status}: {reason}")
        self.status = status
        self.reason = reason


def build_webhook_headers(action: WebhookAction) -> Dict[str, str]:
    """User headers plus a Content-Type derived from the body kind."""
    headers = dict(action.headers or {})
    if action.method in BODY_METHODS:
        if action.content_type == "json":
            headers["Content-Type"] = "application/json"
        elif action.content_type == "text":
            headers["Content-Type"] = "text/plain; charset=utf-8"
    return headers


def check_response(response) -> None:
    status = int(response.status)
    if not 200 <= status < 300:
        raise HTTPStatusError(status, getattr(response, "reason", "") or "")


class WebhookTransport:
    """Default request function backed by a lazily created aiohttp session."""

    def __init__(self, timeout_s: float = 5.0):
        self.timeout_s = timeout_s
        self._session: aiohttp.ClientSession | None = None
        self._lock = asyncio.Lock()

    async def _ensure(self) -> aiohttp.ClientSession:
        async with self._lock:
            if self._session is not None and not self._session.closed:
                return self._session
            timeout = aiohttp.ClientTimeout(total=self.timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
            return self._session

    async def __call__(
        self, method: str, url: str, *, headers: Dict[str, str], body: Optional[str]
    ) -> TransportResponse:
        session = await self._ensure()
        data = body.encode("utf-8") if body is not None else None
        async with session.request(method, url, data=data, headers=headers) as resp:
            text = await resp.text()
            if resp.status >= 400:
                log.error("webhook %s %s failed status=%s body=%s", method, url, resp.status, text[:200])
            return TransportResponse(status=resp.status, reason=resp.reason or "", body=text)

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None
