"""Fixed-rate animation loop over rendered frames."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from asciiloop.scheduler import Scheduler, Timer
from asciiloop.sinks import DisplaySink, SinkUnavailable
from asciiloop.style import RenderedFrame

logger = logging.getLogger(__name__)

# ~12 frames per second
DEFAULT_INTERVAL_MS = 83


class PlaybackSession:
    """One run of the animation loop over one frame sequence.

    The session owns its repeating timer exclusively. Each tick pushes the
    frame at the current index into the sink and advances the index,
    wrapping back to the first frame after the last.
    """

    def __init__(
        self,
        frames: Sequence[RenderedFrame],
        sink: DisplaySink,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        on_sink_lost: Callable[[PlaybackSession], None] | None = None,
    ) -> None:
        """Initialise the session.

        Args:
            frames: Rendered frames to cycle through; must not be empty.
            sink: Display surface receiving each frame's markup.
            interval_ms: Milliseconds between ticks.
            on_sink_lost: Called once if the sink reports it is unavailable.

        Raises:
            ValueError: If ``frames`` is empty or ``interval_ms`` is not positive.
        """
        if not frames:
            raise ValueError("Cannot play an empty frame sequence")
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

        self._frames = tuple(frames)
        self._sink = sink
        self._interval_ms = interval_ms
        self._on_sink_lost = on_sink_lost
        self._timer: Timer | None = None
        self._index = 0
        self._ticks = 0
        self._stopped = False

    @property
    def index(self) -> int:
        """Index of the frame the next tick will show."""
        return self._index

    @property
    def ticks(self) -> int:
        """Number of frames delivered to the sink so far."""
        return self._ticks

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    def start(self, scheduler: Scheduler) -> None:
        """Schedule the repeating tick.

        A session runs at most once; starting a stopped session or starting
        twice is a no-op.
        """
        if self._timer is not None or self._stopped:
            return
        self._timer = scheduler.call_repeating(self._interval_ms / 1000, self._tick)
        logger.debug(
            "Playback started: %d frame(s) every %d ms", len(self._frames), self._interval_ms
        )

    def stop(self) -> None:
        """Cancel the repeating tick. Safe to call more than once."""
        self._stopped = True
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            logger.debug("Playback stopped after %d tick(s)", self._ticks)

    def _tick(self) -> None:
        if self._timer is None:
            return

        frame = self._frames[self._index]
        try:
            self._sink.render(frame.markup)
        except SinkUnavailable as e:
            logger.warning("Display closed, stopping playback: %s", e)
            self.stop()
            if self._on_sink_lost is not None:
                self._on_sink_lost(self)
            return
        except Exception:
            # The frame is dropped; the next tick tries the following one
            logger.exception("Display failed to show frame %d", self._index)
        else:
            self._ticks += 1

        self._index = (self._index + 1) % len(self._frames)


def start_playback(
    frames: Sequence[RenderedFrame],
    sink: DisplaySink,
    scheduler: Scheduler,
    interval_ms: int = DEFAULT_INTERVAL_MS,
    on_sink_lost: Callable[[PlaybackSession], None] | None = None,
) -> PlaybackSession:
    """Create and start a playback session.

    Returns:
        The running session, which doubles as the handle for stop_playback().
    """
    session = PlaybackSession(frames, sink, interval_ms, on_sink_lost)
    session.start(scheduler)
    return session


def stop_playback(session: PlaybackSession | None) -> None:
    """Stop a session. Stopping None or an already stopped session is a no-op."""
    if session is not None:
        session.stop()
