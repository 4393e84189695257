"""Global minimum-interval gate for outbound model calls."""

import time
from typing import Optional

from aiolimiter import AsyncLimiter


class CallIntervalGate:
    """Shared throttle allowing at most one outbound call per interval.

    One gate is owned by one orchestrator and shared by every batch member,
    so the interval holds regardless of batch size or concurrency. Backed by
    an aiolimiter AsyncLimiter with a capacity of one call per interval.
    """

    def __init__(self, min_interval: float = 1.0):
        """Initialize the gate.

        Args:
            min_interval: Minimum seconds between outbound calls (0 disables throttling)
        """
        self.min_interval = min_interval
        self._limiter: Optional[AsyncLimiter] = (
            AsyncLimiter(max_rate=1, time_period=min_interval)
            if min_interval > 0
            else None
        )
        self.last_call_time: Optional[float] = None
        self.call_count = 0

    async def acquire(self) -> None:
        """Wait until the interval since the previous call has elapsed."""
        if self._limiter is not None:
            await self._limiter.acquire()
        self.last_call_time = time.time()
        self.call_count += 1
