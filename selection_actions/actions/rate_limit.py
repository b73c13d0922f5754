# SPDX-License-Identifier: Apache-2.0
"""Token bucket with a concurrency ceiling for outbound webhook calls."""
from __future__ import annotations

import asyncio
import collections
import math
import time
from typing import Deque, Optional

from selection_actions.metrics import ACTIVE_REQUESTS, RATE_LIMIT_WAIT

from .base import RateLimiterConfig

CONCURRENCY_POLL_S = 0.05
MIN_TOKEN_WAIT_S = 0.01


class RateLimiter:
    """Gate for concurrent requests issued from one event loop.

    ``acquire`` waits until fewer than ``max_concurrent`` requests are active
    and a token is available. Tokens refill lazily from elapsed time at
    ``requests_per_second``. Waiters are woken by ``release`` and also re-check
    on a short poll, so a free slot is never left unused.
    """

    def __init__(self, config: Optional[RateLimiterConfig] = None):
        config = config or RateLimiterConfig()
        rps = config.requests_per_second
        concurrent = config.max_concurrent
        if rps is not None and rps <= 0:
            raise ValueError(f"requests_per_second must be positive, got {rps}")
        if concurrent is not None and concurrent < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {concurrent}")
        self.refill_rate = float(rps) if rps is not None else math.inf
        self.max_concurrent = concurrent if concurrent is not None else math.inf
        # a bucket smaller than one token would never let a request through
        self.max_tokens = max(self.refill_rate, 1.0)
        self.tokens = self.max_tokens
        self.active_requests = 0
        self._last_refill = time.monotonic()
        self._waiters: Deque[asyncio.Future] = collections.deque()

    def _refill(self) -> None:
        now = time.monotonic()
        if math.isinf(self.refill_rate):
            self.tokens = self.max_tokens
        else:
            elapsed = now - self._last_refill
            self.tokens = min(self.max_tokens, self.tokens + elapsed * self.refill_rate)
        self._last_refill = now

    async def _wait(self, timeout: float) -> None:
        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            await asyncio.wait_for(fut, timeout)
        except asyncio.TimeoutError:
            pass
        finally:
            try:
                self._waiters.remove(fut)
            except ValueError:
                pass

    async def acquire(self) -> None:
        started = time.monotonic()
        while True:
            if self.active_requests < self.max_concurrent:
                self._refill()
                if self.tokens >= 1:
                    break
                await self._wait(max((1 - self.tokens) / self.refill_rate, MIN_TOKEN_WAIT_S))
            else:
                await self._wait(CONCURRENCY_POLL_S)
        self.tokens -= 1
        self.active_requests += 1
        ACTIVE_REQUESTS.inc()
        RATE_LIMIT_WAIT.observe((time.monotonic() - started) * 1000)

    def release(self) -> None:
        if self.active_requests > 0:
            self.active_requests -= 1
            ACTIVE_REQUESTS.dec()
        for fut in self._waiters:
            if not fut.done():
                fut.set_result(None)
                break

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()
