"""File system watcher for the frame-data file."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import (
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

if TYPE_CHECKING:
    from watchdog.events import FileSystemEvent

logger = logging.getLogger(__name__)


def _as_str(path: str | bytes) -> str:
    if isinstance(path, bytes):
        return path.decode("utf-8")
    return path


class _FrameFileHandler(FileSystemEventHandler):
    """Internal handler that forwards events touching one file."""

    def __init__(self, target: Path, on_change: Callable[[FileSystemEvent], None]) -> None:
        """Initialise the handler.

        Args:
            target: Resolved path of the watched file.
            on_change: Called from the observer thread for each relevant event.
        """
        super().__init__()
        self._target = target
        self._on_change = on_change

    def _is_target(self, path: str | bytes) -> bool:
        return Path(_as_str(path)).resolve() == self._target

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file creation events."""
        if isinstance(event, FileCreatedEvent) and self._is_target(event.src_path):
            self._on_change(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification events."""
        if isinstance(event, FileModifiedEvent) and self._is_target(event.src_path):
            self._on_change(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle a file being moved over the target (atomic replace)."""
        if isinstance(event, FileMovedEvent) and self._is_target(event.dest_path):
            self._on_change(event)


class FrameFileWatcher:
    """Watches a single file for changes using watchdog.

    The parent directory is watched non-recursively so the subscription
    survives the file being deleted and recreated by its writer.

    Example:
        watcher = FrameFileWatcher("output.data", lambda event: print(event))
        watcher.start()
        # ... file gets rewritten ...
        watcher.stop()
    """

    def __init__(
        self,
        path: str | Path,
        on_change: Callable[[FileSystemEvent], None],
    ) -> None:
        """Initialise the file watcher.

        Args:
            path: File to watch. Its parent directory must exist when the
                watcher starts.
            on_change: Called from the observer thread on every change.
        """
        self._path = Path(path)
        self._handler = _FrameFileHandler(self._path.resolve(), on_change)
        self._observer = Observer()
        self._started = False

    def start(self) -> None:
        """Start watching the file.

        Creates a new observer if the previous one was stopped (threads can
        only be started once).
        """
        if self._started:
            return

        if not self._observer.is_alive():
            self._observer = Observer()

        self._observer.schedule(
            self._handler,
            str(self._path.resolve().parent),
            recursive=False,
        )
        self._observer.start()
        self._started = True
        logger.debug("Watching %s", self._path)

    def stop(self) -> None:
        """Stop watching and wait for the observer thread to finish."""
        if not self._started:
            return

        self._observer.stop()
        self._observer.join()
        self._started = False
        logger.debug("Stopped watching %s", self._path)

    @property
    def is_running(self) -> bool:
        """Check if the watcher is currently running."""
        return self._started
