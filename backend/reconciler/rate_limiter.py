"""
Fixed-delay throttle between consecutive outbound requests.
No token bucket and no burst: entities are processed strictly one at a time
so the target site only ever sees a slow, evenly spaced request stream.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

Sleeper = Callable[[float], Awaitable[None]]


class FixedDelayThrottle:
    """Suspends for ``delay_s`` before every request except the first."""

    def __init__(self, delay_s: float, sleep: Sleeper = asyncio.sleep) -> None:
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        self._delay_s = delay_s
        self._sleep = sleep
        self._started = False

    @property
    def delay_s(self) -> float:
        return self._delay_s

    async def wait(self) -> None:
        if self._started and self._delay_s > 0:
            await self._sleep(self._delay_s)
        self._started = True
