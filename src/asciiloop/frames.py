"""Frame-data file decoding.

The external converter writes every frame of an animation into a single text
file, joined by a literal delimiter token. The file both begins and ends with
the delimiter, so the first and last pieces of a split are framing artifacts
and never frames themselves.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

FRAME_DELIMITER = "@FRAME@"


class DecodeError(ValueError):
    """Raised when frame-data content yields no renderable frames."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


def decode(raw: str) -> list[str]:
    """Split frame-data content into its raw frames.

    Args:
        raw: Full content of the frame-data file.

    Returns:
        Raw frame strings in file order.

    Raises:
        DecodeError: If no frames remain once the leading and trailing
            pieces of the split are dropped, or every remaining frame is
            empty.
    """
    frames = raw.split(FRAME_DELIMITER)[1:-1]
    if not any(frames):
        raise DecodeError("empty", "Frame data contains no frames")
    return frames


def read_frame_file(path: str | Path) -> str:
    """Read the frame-data file as UTF-8 text.

    An unreadable file (missing, permission denied, not valid UTF-8) is
    treated as having no content; the problem is logged instead of raised.

    Args:
        path: Path to the frame-data file.

    Returns:
        File content, or an empty string if the file could not be read.
    """
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read frame file %s: %s", path, e)
        return ""


def load_frames(path: str | Path) -> list[str]:
    """Read and decode the frame-data file at ``path``."""
    return decode(read_frame_file(path))
