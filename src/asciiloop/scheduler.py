"""Cancelable timers on a single-threaded event loop.

Playback and reload debouncing only ever touch timers through the
``Scheduler`` protocol so that tests can drive them with a fake clock.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol


class Timer(Protocol):
    """Handle for a scheduled callback."""

    def cancel(self) -> None: ...

    @property
    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    """Schedules callbacks on one logical thread."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer: ...

    def call_repeating(self, interval: float, callback: Callable[[], None]) -> Timer: ...

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None: ...


class _AsyncioTimer:
    """Timer wrapping the current ``asyncio.TimerHandle`` of a callback."""

    def __init__(self) -> None:
        self._handle: asyncio.TimerHandle | None = None
        self._cancelled = False

    def cancel(self) -> None:
        """Cancel the timer. Safe to call more than once."""
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    Repeating callbacks run on a fixed cadence anchored to the time they were
    scheduled, so a slow callback delays one tick without shifting every
    later one.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer:
        timer = _AsyncioTimer()

        def fire() -> None:
            timer._handle = None
            if not timer.cancelled:
                callback()

        timer._handle = self._loop.call_later(delay, fire)
        return timer

    def call_repeating(self, interval: float, callback: Callable[[], None]) -> Timer:
        if interval <= 0:
            raise ValueError("interval must be positive")

        timer = _AsyncioTimer()
        start = self._loop.time()
        tick = 0

        def fire() -> None:
            if timer.cancelled:
                return
            try:
                callback()
            finally:
                if not timer.cancelled:
                    schedule_next()

        def schedule_next() -> None:
            nonlocal tick
            tick += 1
            deadline = start + (tick + 1) * interval
            # Skip deadlines already missed rather than bursting to catch up
            now = self._loop.time()
            if deadline < now:
                tick = int((now - start) / interval)
                deadline = start + (tick + 1) * interval
            timer._handle = self._loop.call_at(deadline, fire)

        timer._handle = self._loop.call_at(start + interval, fire)
        return timer

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        self._loop.call_soon_threadsafe(callback)
