"""MM:SS timestamp formatting and parsing."""

from lib.errors import ParseError


def format_timestamp(seconds: float) -> str:
    """Format seconds as MM:SS, truncating any fractional part."""
    seconds = max(0, seconds)
    m = int(seconds // 60)
    s = int(seconds % 60)
    return f"{m:02d}:{s:02d}"


def parse_timestamp(text: str) -> int:
    """Parse MM:SS into whole seconds.

    Raises ParseError on a wrong part count or any non-numeric part.
    """
    parts = text.strip().split(":")
    if len(parts) != 2:
        raise ParseError(f"Expected MM:SS, got {text!r}")
    minutes, seconds = parts
    if not all(p.isascii() and p.isdigit() for p in parts):
        raise ParseError(f"Non-numeric timestamp part in {text!r}")
    return int(minutes) * 60 + int(seconds)
