"""FFprobe wrapper -- single source of truth for media file probing."""

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameRateHint:
    """Rational frame rate discovered from a source (defaults to 30/1)."""

    num: int = 30
    den: int = 1

    @property
    def fps(self) -> float:
        return self.num / self.den

    def __str__(self) -> str:
        return f"{self.num}/{self.den}"

    @classmethod
    def parse(cls, text: str) -> Optional["FrameRateHint"]:
        """Parse "30000/1001" or "25". Returns None for degenerate values like 0/0."""
        text = text.strip().rstrip(",").strip()
        if not text:
            return None
        num_text, _, den_text = text.partition("/")
        try:
            num = int(num_text)
            den = int(den_text) if den_text else 1
        except ValueError:
            return None
        if num <= 0 or den <= 0:
            return None
        return cls(num, den)


DEFAULT_FRAME_RATE = FrameRateHint(30, 1)


def probe(path: Path) -> dict:
    """Run ffprobe and return parsed JSON with format + streams info.

    Raises subprocess.CalledProcessError if ffprobe fails.
    """
    cmd = [
        "ffprobe", "-v", "quiet",
        "-print_format", "json",
        "-show_format", "-show_streams",
        str(path),
    ]
    result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    return json.loads(result.stdout)


def get_duration(path: Path) -> float:
    """Get media file duration in seconds."""
    data = probe(path)
    return float(data.get("format", {}).get("duration", 0))


def get_frame_rate(path: Path) -> FrameRateHint:
    """Read r_frame_rate of the first video stream.

    Never raises: a failed probe or a degenerate 0/0 rate yields 30/1.
    """
    cmd = [
        "ffprobe", "-v", "0",
        "-of", "csv=p=0",
        "-select_streams", "v:0",
        "-show_entries", "stream=r_frame_rate",
        str(path),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("Frame rate probe failed for %s: %s", path.name, e)
        return DEFAULT_FRAME_RATE

    if result.returncode != 0:
        return DEFAULT_FRAME_RATE
    hint = FrameRateHint.parse(result.stdout.splitlines()[0] if result.stdout else "")
    return hint or DEFAULT_FRAME_RATE
