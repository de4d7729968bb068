from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field


@dataclass(slots=True)
class RateLimiter:
    """Spaces calls evenly so that at most ``rate_per_sec`` start each second.

    Callers over the ceiling wait for their slot; nothing is rejected. A rate
    of zero disables the limiter.
    """

    rate_per_sec: float
    _next_slot: float = 0.0
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def acquire(self) -> float:
        if self.rate_per_sec <= 0:
            return 0.0
        interval = 1.0 / self.rate_per_sec
        async with self._lock:
            now = time.perf_counter()
            slot = max(now, self._next_slot)
            self._next_slot = slot + interval
        delay = slot - now
        if delay > 0:
            await asyncio.sleep(delay)
        return delay
