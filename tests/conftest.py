"""Shared fixtures for asciiloop tests."""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from asciiloop.sinks import SinkUnavailable

RED_GREEN_FRAMES = "@FRAME@\x1b[31mA\x1b[0m@FRAME@\x1b[32mB\x1b[0m@FRAME@"


class ManualTimer:
    """Timer driven by ManualScheduler."""

    def __init__(
        self,
        deadline: float,
        callback: Callable[[], None],
        interval: float | None = None,
    ) -> None:
        self.deadline = deadline
        self.callback = callback
        self.interval = interval
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler:
    """Fake-clock scheduler: nothing runs until advance() or run_soon()."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[ManualTimer] = []
        self._soon: list[Callable[[], None]] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    def call_repeating(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + interval, callback, interval)
        self._timers.append(timer)
        return timer

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        self._soon.append(callback)

    def run_soon(self) -> None:
        while self._soon:
            self._soon.pop(0)()

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every timer that comes due in order."""
        end = self.now + seconds
        self.run_soon()
        while True:
            due = [t for t in self._timers if not t.cancelled and t.deadline <= end + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: t.deadline)
            self.now = timer.deadline
            if timer.interval is None:
                self._timers.remove(timer)
            else:
                timer.deadline += timer.interval
            timer.callback()
            self.run_soon()
        self.now = end

    @property
    def active_repeating(self) -> int:
        """Number of live repeating timers."""
        return sum(1 for t in self._timers if t.interval is not None and not t.cancelled)


class RecordingSink:
    """Display sink that records every markup string it receives."""

    def __init__(self) -> None:
        self.renders: list[str] = []
        self.closed = False

    def render(self, markup: str) -> None:
        if self.closed:
            raise SinkUnavailable("recording sink closed")
        self.renders.append(markup)

    def close(self) -> None:
        self.closed = True


class FlakySink:
    """Sink whose first render fails with an OS error."""

    def __init__(self) -> None:
        self.calls = 0
        self.renders: list[str] = []

    def render(self, markup: str) -> None:
        self.calls += 1
        if self.calls == 1:
            raise OSError("terminal write failed")
        self.renders.append(markup)


class FakeWatcher:
    """Stands in for FrameFileWatcher without starting observer threads."""

    instances: list[FakeWatcher] = []

    def __init__(self, path: Path, on_change: Callable[..., None]) -> None:
        self.path = path
        self.on_change = on_change
        self.started = False
        self.stopped = False
        FakeWatcher.instances.append(self)

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def fire(self) -> None:
        self.on_change(None)


@pytest.fixture
def temp_project(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary project directory and change to it."""
    original_dir = os.getcwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(original_dir)


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Fake-clock scheduler."""
    return ManualScheduler()


@pytest.fixture
def sink() -> RecordingSink:
    """Sink recording rendered markup."""
    return RecordingSink()


@pytest.fixture
def frame_file(tmp_path: Path) -> Path:
    """Frame-data file containing a red 'A' and a green 'B' frame."""
    path = tmp_path / "output.data"
    path.write_text(RED_GREEN_FRAMES, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _reset_fake_watchers() -> Generator[None, None, None]:
    FakeWatcher.instances.clear()
    yield
    FakeWatcher.instances.clear()
