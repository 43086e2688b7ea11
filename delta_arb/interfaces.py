"""
Injectable clock for the bot scheduler.

The loop measures its cadence and sleeps through a Clock so tests can drive
it with virtual time instead of real 180-second waits.
"""

import asyncio
import time
from typing import List, Optional, Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Protocol for scheduler time operations."""

    def monotonic(self) -> float:
        """Current monotonic time in seconds."""
        ...

    async def sleep(self, duration: float, stop_event: Optional[asyncio.Event] = None) -> bool:
        """
        Sleep for duration seconds, waking early if stop_event is set.

        Returns:
            True if woken by the stop event, False if the full duration elapsed
        """
        ...


class SystemClock:
    """Production clock using the event loop and time.monotonic()."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, duration: float, stop_event: Optional[asyncio.Event] = None) -> bool:
        if duration <= 0:
            return bool(stop_event and stop_event.is_set())
        if stop_event is None:
            await asyncio.sleep(duration)
            return False
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=duration)
            return True
        except asyncio.TimeoutError:
            return False


class DeterministicClock:
    """Virtual clock for tests: sleeping advances time instantly."""

    def __init__(self, start_time: float = 0.0):
        self._current_time = start_time
        self.sleeps: List[float] = []

    def monotonic(self) -> float:
        return self._current_time

    async def sleep(self, duration: float, stop_event: Optional[asyncio.Event] = None) -> bool:
        self.sleeps.append(duration)
        if duration > 0:
            self._current_time += duration
        # Let other tasks (e.g. a stop() caller) run
        await asyncio.sleep(0)
        return bool(stop_event and stop_event.is_set())

    def advance_time(self, seconds: float) -> None:
        """Manually advance time, e.g. to simulate a slow cycle."""
        self._current_time += seconds
