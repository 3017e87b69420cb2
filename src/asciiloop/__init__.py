"""asciiloop - play ANSI-coloured ASCII-art animations from a watched frame file."""

__version__ = "0.1.0"
