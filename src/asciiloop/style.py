"""Translate terminal SGR styling in frames into display markup.

Frames arrive as plain text with embedded ANSI escape sequences. Each frame is
parsed into a Rich ``Text`` and then emitted either as HTML (for web views) or
as Rich console markup (for the terminal preview). Translation never fails:
any escape sequence that is not a fully understood SGR sequence is kept as
literal text and reported as an anomaly.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, fields, replace
from typing import Literal

from jinja2 import BaseLoader, Environment
from markupsafe import Markup
from rich.color import Color
from rich.console import Console
from rich.style import Style
from rich.terminal_theme import DEFAULT_TERMINAL_THEME
from rich.text import Text

logger = logging.getLogger(__name__)

MarkupFlavor = Literal["html", "console"]

DEFAULT_BACKGROUND = "#333333"

# CSI sequences, OSC strings, then any other lone ESC
_ESCAPE_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)?|\x1b")
_SGR_RE = re.compile(r"\x1b\[([0-9;]*)m")

_SET_ATTRIBUTES: dict[int, tuple[str, ...]] = {
    1: ("bold",),
    2: ("dim",),
    3: ("italic",),
    4: ("underline",),
    5: ("blink",),
    6: ("blink",),
    7: ("reverse",),
    8: ("conceal",),
    9: ("strike",),
}

_CLEAR_ATTRIBUTES: dict[int, tuple[str, ...]] = {
    22: ("bold", "dim"),
    23: ("italic",),
    24: ("underline",),
    25: ("blink",),
    27: ("reverse",),
    28: ("conceal",),
    29: ("strike",),
}

_HTML_TEMPLATE = Environment(loader=BaseLoader(), autoescape=True).from_string(
    "<pre><style>body { background-color: {{ background }}; }</style>{{ body }}</pre>"
)

# Only used to resolve styles into segments, never printed to
_render_console = Console(color_system="truecolor", force_terminal=False)


@dataclass(frozen=True)
class StyleAnomaly:
    """An escape sequence that was passed through as literal text.

    Attributes:
        offset: Character offset of the sequence within the raw frame.
        sequence: The sequence exactly as it appeared.
        reason: Short description of why it was not applied.
    """

    offset: int
    sequence: str
    reason: str


@dataclass(frozen=True)
class RenderedFrame:
    """A frame translated into display markup."""

    markup: str
    text: Text
    anomalies: tuple[StyleAnomaly, ...] = ()

    @property
    def status(self) -> Literal["rendered", "rendered_with_anomalies"]:
        """Tag describing whether any sequence was passed through literally."""
        return "rendered_with_anomalies" if self.anomalies else "rendered"


@dataclass
class _SgrState:
    """Current graphic rendition while scanning a frame."""

    color: Color | None = None
    bgcolor: Color | None = None
    bold: bool = False
    dim: bool = False
    italic: bool = False
    underline: bool = False
    blink: bool = False
    reverse: bool = False
    conceal: bool = False
    strike: bool = False

    def style(self) -> Style:
        flags = {f.name: getattr(self, f.name) or None for f in fields(self)[2:]}
        return Style(color=self.color, bgcolor=self.bgcolor, **flags)


def _extended_color(params: list[int]) -> tuple[Color | None, int]:
    """Parse the arguments following a 38 or 48 code.

    Returns:
        The colour and the number of parameters consumed, or (None, 0)
        when the arguments are missing or out of range.
    """
    if params[:1] == [5] and len(params) >= 2 and params[1] <= 255:
        return Color.from_ansi(params[1]), 2
    if params[:1] == [2] and len(params) >= 4 and all(p <= 255 for p in params[1:4]):
        red, green, blue = params[1:4]
        return Color.from_rgb(red, green, blue), 4
    return None, 0


def _apply_sgr(state: _SgrState, params: list[int]) -> _SgrState | None:
    """Apply SGR parameters to a copy of ``state``.

    Returns:
        The new state, or None if any parameter is unsupported. A sequence
        is applied entirely or not at all.
    """
    state = replace(state)
    i = 0
    while i < len(params):
        code = params[i]
        if code == 0:
            state = _SgrState()
        elif code in _SET_ATTRIBUTES:
            for name in _SET_ATTRIBUTES[code]:
                setattr(state, name, True)
        elif code in _CLEAR_ATTRIBUTES:
            for name in _CLEAR_ATTRIBUTES[code]:
                setattr(state, name, False)
        elif 30 <= code <= 37:
            state.color = Color.from_ansi(code - 30)
        elif 40 <= code <= 47:
            state.bgcolor = Color.from_ansi(code - 40)
        elif 90 <= code <= 97:
            state.color = Color.from_ansi(code - 90 + 8)
        elif 100 <= code <= 107:
            state.bgcolor = Color.from_ansi(code - 100 + 8)
        elif code == 39:
            state.color = None
        elif code == 49:
            state.bgcolor = None
        elif code in (38, 48):
            color, consumed = _extended_color(params[i + 1 :])
            if color is None:
                return None
            if code == 38:
                state.color = color
            else:
                state.bgcolor = color
            i += consumed
        else:
            return None
        i += 1
    return state


def _classify(sequence: str) -> str:
    """Describe why an escape sequence could not be applied."""
    if _SGR_RE.fullmatch(sequence):
        return "unsupported SGR parameter"
    if sequence == "\x1b":
        return "incomplete escape sequence"
    return "unsupported control sequence"


def parse_ansi(raw: str) -> tuple[Text, list[StyleAnomaly]]:
    """Parse a raw frame into styled text.

    Args:
        raw: Frame text containing ANSI escape sequences.

    Returns:
        The styled text and any sequences kept as literal text.
    """
    text = Text()
    anomalies: list[StyleAnomaly] = []
    state = _SgrState()
    position = 0

    for match in _ESCAPE_RE.finditer(raw):
        text.append(raw[position : match.start()], style=state.style())
        sequence = match.group()
        sgr = _SGR_RE.fullmatch(sequence)
        new_state = None
        if sgr:
            params = [int(p) if p else 0 for p in sgr.group(1).split(";")]
            new_state = _apply_sgr(state, params)
        if new_state is None:
            anomalies.append(StyleAnomaly(match.start(), sequence, _classify(sequence)))
            text.append(sequence, style=state.style())
        else:
            state = new_state
        position = match.end()

    text.append(raw[position:], style=state.style())
    return text, anomalies


def to_html(text: Text, background: str = DEFAULT_BACKGROUND) -> str:
    """Render styled text as a ``<pre>`` block on a fixed dark background."""
    body = Markup()
    for segment in text.render(_render_console):
        css = segment.style.get_html_style(DEFAULT_TERMINAL_THEME) if segment.style else ""
        if css:
            body += Markup('<span style="{}">{}</span>').format(css, segment.text)
        else:
            body += segment.text
    return _HTML_TEMPLATE.render(background=background, body=body)


def to_console_markup(text: Text, background: str = DEFAULT_BACKGROUND) -> str:
    """Render styled text as Rich console markup on a fixed dark background."""
    return f"[on {background}]{text.markup}[/]"


def translate(
    raw: str,
    flavor: MarkupFlavor = "html",
    background: str = DEFAULT_BACKGROUND,
) -> RenderedFrame:
    """Translate one raw frame into display markup.

    Args:
        raw: Frame text containing ANSI escape sequences.
        flavor: 'html' for web views, 'console' for Rich terminal output.
        background: Colour painted behind the whole frame.

    Returns:
        The rendered frame, tagged with any anomalies found.
    """
    text, anomalies = parse_ansi(raw)
    if flavor == "html":
        markup = to_html(text, background)
    else:
        markup = to_console_markup(text, background)
    if anomalies:
        logger.debug("Passed %d escape sequence(s) through as text", len(anomalies))
    return RenderedFrame(markup=markup, text=text, anomalies=tuple(anomalies))


def translate_frames(
    frames: list[str],
    flavor: MarkupFlavor = "html",
    background: str = DEFAULT_BACKGROUND,
) -> list[RenderedFrame]:
    """Translate every frame of a decoded sequence, preserving order."""
    return [translate(frame, flavor, background) for frame in frames]
