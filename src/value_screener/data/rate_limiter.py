"""Shared per-minute API call budget for all concurrent screening tasks."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Awaitable, Callable

from value_screener.config import DataFetchConfig

logger = logging.getLogger(__name__)

# Floor on a single wait so clock rounding at the boundary cannot spin the loop.
_MIN_WAIT = 0.001


class RateLimiter:
    """Fixed-window call counter aligned to the provider's quota window.

    Windows start on wall-clock multiples of ``window_seconds`` shifted by
    ``reset_offset_seconds`` (Finnhub counts per minute; resetting one second
    past the minute tolerates clock skew). Once ``max_calls`` slots are taken in
    a window every further caller waits for the shared reset time.

    The check-and-increment in :meth:`try_acquire` has no suspension point, so
    it is atomic on the event loop. A caller cancelled while waiting never took
    a slot.
    """

    def __init__(
        self,
        max_calls: int,
        window_seconds: float = 60.0,
        reset_offset_seconds: float = 1.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_calls <= 0:
            raise ValueError(f"max_calls must be positive, got {max_calls}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self.reset_offset_seconds = reset_offset_seconds
        self._clock = clock
        self._sleep = sleep
        self._window_index = self._index(clock())
        self._count = 0
        self._total = 0
        self._announced_window: int | None = None

    @classmethod
    def from_config(cls, config: DataFetchConfig) -> RateLimiter:
        return cls(
            max_calls=config.max_api_calls_per_minute,
            window_seconds=config.rate_window_seconds,
            reset_offset_seconds=config.rate_reset_offset_seconds,
        )

    def _index(self, now: float) -> int:
        return math.floor((now - self.reset_offset_seconds) / self.window_seconds)

    def _roll_window(self) -> None:
        index = self._index(self._clock())
        if index != self._window_index:
            self._window_index = index
            self._count = 0

    @property
    def next_reset(self) -> float:
        """Clock time at which the current window's counter resets."""
        return (self._window_index + 1) * self.window_seconds + self.reset_offset_seconds

    @property
    def calls_in_window(self) -> int:
        self._roll_window()
        return self._count

    @property
    def total_acquired(self) -> int:
        return self._total

    def try_acquire(self) -> bool:
        """Take a slot if one is free in the current window."""
        self._roll_window()
        if self._count >= self.max_calls:
            return False
        self._count += 1
        self._total += 1
        return True

    async def acquire(self) -> None:
        """Wait until a call slot is available and take it."""
        while not self.try_acquire():
            delay = max(self.next_reset - self._clock(), _MIN_WAIT)
            if self._announced_window != self._window_index:
                self._announced_window = self._window_index
                logger.info(
                    "Reached API call limit (%d per %.0fs), waiting %.1fs for reset",
                    self.max_calls,
                    self.window_seconds,
                    delay,
                )
            await self._sleep(delay)
