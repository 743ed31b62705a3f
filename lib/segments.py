"""Timed transcript segments: JSON I/O, transcript rendering, and insight extraction."""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List

from lib.errors import ExtractionError
from lib.timecode import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

# [00:05-00:10] text ... up to the next range token or end of input
TIME_RANGE_RE = re.compile(
    r"\[?(\d{1,2}:\d{2})-(\d{1,2}:\d{2})\]?(.*?)(?=\[?\d{1,2}:\d{2}-\d{1,2}:\d{2}\]?|$)",
    re.DOTALL,
)

MIN_PROMPT_WORD_LENGTH = 3

# generate(transcript_text, prompt) -> free-form model response
Generator = Callable[[str, str], str]


@dataclass(frozen=True)
class TimedSegment:
    """A time-bounded span of transcribed or extracted text."""

    start: float
    end: float
    text: str

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"Segment start must be non-negative, got {self.start}")
        if self.end <= self.start:
            raise ValueError(f"Segment end ({self.end}) must be after start ({self.start})")

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict) -> "TimedSegment":
        """Build from a dict, accepting start/end or start_seconds/end_seconds."""
        start = data["start"] if "start" in data else data["start_seconds"]
        end = data["end"] if "end" in data else data["end_seconds"]
        return cls(start=float(start), end=float(end), text=str(data.get("text", "")))


def segments_from_payload(items: list) -> List[TimedSegment]:
    return [TimedSegment.from_dict(item) for item in items]


def segments_to_payload(segments: List[TimedSegment]) -> List[dict]:
    return [seg.to_dict() for seg in segments]


def load_segments(session_dir: Path, filename: str = "transcript.json") -> List[TimedSegment]:
    """Load segments from a JSON file in the session directory.

    Returns empty list if file doesn't exist.
    """
    path = session_dir / filename
    if not path.exists():
        return []
    with open(path) as f:
        data = json.load(f)
    items = data.get("segments", []) if isinstance(data, dict) else data
    return segments_from_payload(items)


def save_segments(session_dir: Path, segments: List[TimedSegment], filename: str = "transcript.json"):
    """Save segments to a JSON file in the session directory."""
    path = session_dir / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump({"segments": segments_to_payload(segments)}, f, indent=2)


def render_transcript(segments: List[TimedSegment]) -> str:
    """Render segments as one `[MM:SS-MM:SS] text` line each."""
    return "\n".join(
        f"[{format_timestamp(seg.start)}-{format_timestamp(seg.end)}] {seg.text}"
        for seg in segments
    )


def parse_time_ranges(response_text: str) -> List[TimedSegment]:
    """Pull `MM:SS-MM:SS text` ranges out of free-form model output.

    Malformed or inverted ranges and ranges with no text are skipped.
    """
    segments = []
    for match in TIME_RANGE_RE.finditer(response_text):
        text = match.group(3).strip()
        if not text:
            continue
        try:
            start = parse_timestamp(match.group(1))
            end = parse_timestamp(match.group(2))
            segments.append(TimedSegment(start=start, end=end, text=text))
        except ValueError as e:
            logger.debug("Skipping time range %r: %s", match.group(0)[:40], e)
    return segments


def lexical_fallback(segments: List[TimedSegment], prompt: str) -> List[TimedSegment]:
    """Keep segments whose text contains any prompt word longer than 3 characters."""
    words = [w for w in prompt.lower().split() if len(w) > MIN_PROMPT_WORD_LENGTH]
    return [
        seg for seg in segments
        if any(word in seg.text.lower() for word in words)
    ]


def extract(segments: List[TimedSegment], prompt: str, generate: Generator) -> List[TimedSegment]:
    """Find the segments relevant to ``prompt``.

    Asks the generation collaborator for time ranges and parses them out of its
    response. When the response carries no parseable ranges, degrades to a
    lexical filter over the original segments.

    Raises:
        ExtractionError: the collaborator call failed.
    """
    if not prompt or not prompt.strip() or not segments:
        return []

    transcript_text = render_transcript(segments)
    try:
        response_text = generate(transcript_text, prompt)
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(str(e)) from e

    found = parse_time_ranges(response_text or "")
    if found:
        logger.info("Extracted %d time ranges from model response", len(found))
        return found

    fallback = lexical_fallback(segments, prompt)
    logger.info("No time ranges in model response; lexical fallback matched %d segments", len(fallback))
    return fallback
