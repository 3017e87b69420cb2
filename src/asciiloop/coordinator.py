"""Watch coordinator: reloads and restarts playback when the frame file changes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from asciiloop.config import AsciiloopConfig
from asciiloop.file_watcher import FrameFileWatcher
from asciiloop.frames import DecodeError, decode, read_frame_file
from asciiloop.playback import DEFAULT_INTERVAL_MS, PlaybackSession, start_playback, stop_playback
from asciiloop.scheduler import Scheduler, Timer
from asciiloop.sinks import DisplaySink
from asciiloop.style import DEFAULT_BACKGROUND, MarkupFlavor, translate_frames

if TYPE_CHECKING:
    from watchdog.events import FileSystemEvent

logger = logging.getLogger(__name__)


class WatchPhase(str, Enum):
    """Lifecycle phases of the coordinator."""

    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    FAILED = "failed"


@dataclass
class WatchState:
    """State owned by one coordinator between activate() and deactivate().

    Attributes:
        frame_file: Path of the watched frame-data file.
        subscription: Active file watcher, if activated.
        session: Playback session currently allowed to write to the sink.
        phase: Current lifecycle phase.
        last_error: Description of the most recent failed reload.
        generation: Number of sessions started, bumped by each successful reload.
    """

    frame_file: Path
    subscription: FrameFileWatcher | None = None
    session: PlaybackSession | None = None
    phase: WatchPhase = WatchPhase.IDLE
    last_error: str | None = None
    generation: int = 0


class WatchCoordinator:
    """Keeps exactly one playback session in sync with the frame file.

    Change notifications may arrive on any thread; they are handed to the
    scheduler and coalesced over a short debounce window. A reload reads,
    decodes and translates the new frames completely before the running
    session is stopped, so a failed reload leaves the current animation on
    screen.
    """

    def __init__(
        self,
        state: WatchState,
        sink: DisplaySink,
        scheduler: Scheduler,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        debounce_ms: int = 50,
        flavor: MarkupFlavor = "html",
        background: str = DEFAULT_BACKGROUND,
        watcher_factory: Callable[..., FrameFileWatcher] = FrameFileWatcher,
    ) -> None:
        self._state = state
        self._sink = sink
        self._scheduler = scheduler
        self._interval_ms = interval_ms
        self._debounce_ms = debounce_ms
        self._flavor: MarkupFlavor = flavor
        self._background = background
        self._watcher_factory = watcher_factory
        self._pending: Timer | None = None

    @classmethod
    def from_config(
        cls,
        config: AsciiloopConfig,
        sink: DisplaySink,
        scheduler: Scheduler,
        frame_file: str | Path | None = None,
    ) -> WatchCoordinator:
        """Build a coordinator from configuration.

        Args:
            config: Loaded configuration.
            sink: Display surface for the animation.
            scheduler: Scheduler running playback and reloads.
            frame_file: Overrides the configured frame file path.
        """
        path = Path(frame_file if frame_file is not None else config.watch.frame_file)
        return cls(
            WatchState(frame_file=path),
            sink,
            scheduler,
            interval_ms=config.playback.interval_ms,
            debounce_ms=config.watch.debounce_ms,
            flavor=config.display.markup,
            background=config.playback.background,
        )

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state.subscription is not None

    def activate(self) -> None:
        """Subscribe to the frame file and play its current content, if any."""
        if self.is_active:
            return

        subscription = self._watcher_factory(self._state.frame_file, self.on_file_change)
        subscription.start()
        self._state.subscription = subscription
        logger.info("Watching frame file %s", self._state.frame_file)

        if self._state.frame_file.exists():
            self.reload()

    def deactivate(self) -> None:
        """Stop playback and release the file subscription."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

        stop_playback(self._state.session)
        self._state.session = None

        subscription, self._state.subscription = self._state.subscription, None
        if subscription is not None:
            subscription.stop()

        self._set_phase(WatchPhase.IDLE)

    def on_file_change(self, event: FileSystemEvent | None = None) -> None:
        """Note that the frame file changed. Safe to call from any thread."""
        if event is not None:
            logger.debug("Frame file event: %s", event.event_type)
        self._scheduler.call_soon_threadsafe(self._schedule_reload)

    def _schedule_reload(self) -> None:
        if not self.is_active:
            return
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self._scheduler.call_later(self._debounce_ms / 1000, self._run_pending)

    def _run_pending(self) -> None:
        self._pending = None
        if self.is_active:
            self.reload()

    def reload(self) -> bool:
        """Replace the running animation with the frame file's current content.

        Returns:
            True if a new session was started; False if the content could
            not be decoded, in which case any running session is left alone.
        """
        self._set_phase(WatchPhase.LOADING)

        raw = read_frame_file(self._state.frame_file)
        try:
            frames = decode(raw)
        except DecodeError as e:
            self._fail(str(e))
            return False

        rendered = translate_frames(frames, self._flavor, self._background)
        anomalies = sum(len(frame.anomalies) for frame in rendered)
        if anomalies:
            logger.warning("%d escape sequence(s) shown as literal text", anomalies)

        stop_playback(self._state.session)
        self._state.session = start_playback(
            rendered,
            self._sink,
            self._scheduler,
            self._interval_ms,
            on_sink_lost=self._on_sink_lost,
        )
        self._state.last_error = None
        self._state.generation += 1
        self._set_phase(WatchPhase.PLAYING)
        logger.info("Playing %d frame(s) from %s", len(rendered), self._state.frame_file)
        return True

    def _fail(self, message: str) -> None:
        self._state.last_error = message
        session = self._state.session
        if session is not None and session.is_running:
            logger.warning("Reload failed, keeping current animation: %s", message)
            self._set_phase(WatchPhase.PLAYING)
            return

        logger.warning("Reload failed: %s", message)
        self._set_phase(WatchPhase.FAILED)
        self._set_phase(WatchPhase.IDLE)

    def _on_sink_lost(self, session: PlaybackSession) -> None:
        if self._state.session is session:
            self._state.session = None
            self._set_phase(WatchPhase.IDLE)

    def _set_phase(self, phase: WatchPhase) -> None:
        if phase is not self._state.phase:
            logger.debug("Watch phase %s -> %s", self._state.phase.value, phase.value)
            self._state.phase = phase
