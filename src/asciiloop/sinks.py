"""Display sinks that show the current animation frame."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol

from rich.console import Console
from rich.live import Live
from rich.text import Text


class SinkUnavailable(RuntimeError):
    """Raised by a sink whose display surface has been torn down."""


class DisplaySink(Protocol):
    """Surface that replaces its content with each rendered frame."""

    def render(self, markup: str) -> None: ...


class LiveSink:
    """Terminal preview using a Rich Live display.

    Expects console-flavoured markup. The live region is started lazily on
    the first frame.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()
        self._live: Live | None = None
        self._closed = False

    def render(self, markup: str) -> None:
        """Replace the displayed frame.

        Raises:
            SinkUnavailable: If the sink has been closed.
        """
        if self._closed:
            raise SinkUnavailable("Live display has been closed")

        renderable = Text.from_markup(markup)
        if self._live is None:
            self._live = Live(
                renderable,
                console=self._console,
                auto_refresh=False,
                transient=True,
            )
            self._live.start()
        else:
            self._live.update(renderable)
        self._live.refresh()

    def close(self) -> None:
        """Stop the live display. Safe to call more than once."""
        if self._live is not None:
            self._live.stop()
            self._live = None
        self._closed = True

    @property
    def is_closed(self) -> bool:
        return self._closed


class HtmlFileSink:
    """Writes each frame as a standalone HTML document for a web view.

    Writes go to a temporary file in the same directory which then replaces
    the target, so readers never see a half-written frame.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._closed = False

    def render(self, markup: str) -> None:
        """Replace the HTML document with ``markup``.

        Raises:
            SinkUnavailable: If the sink is closed or the target directory
                can no longer be written to.
        """
        if self._closed:
            raise SinkUnavailable(f"HTML sink for {self._path} has been closed")

        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        except OSError as e:
            raise SinkUnavailable(f"Cannot write {self._path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(_HTML_DOCUMENT.format(body=markup))
            os.replace(tmp_name, self._path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise SinkUnavailable(f"Cannot write {self._path}: {e}") from e

    def close(self) -> None:
        self._closed = True


_HTML_DOCUMENT = """\
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body>{body}</body>
</html>
"""
