"""Trim planner - validates a range and builds the ffmpeg invocation for it.

Two strategies:

* ``StreamCopy`` repackages the bitstream without decoding. Fast, but the
  start may snap to the preceding keyframe.
* ``ReEncode`` decodes and re-encodes with video/audio presentation timestamps
  reset to zero and the source frame rate pinned on output. Frame-accurate and
  sync-correct; this is the default.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from lib.encoding import get_audio_encoder_args, get_video_encoder_args
from lib.errors import RangeError
from lib.ffprobe import DEFAULT_FRAME_RATE, FrameRateHint


class SyncMode(str, Enum):
    STREAM_COPY = "copy"
    RE_ENCODE = "reencode"


@dataclass(frozen=True)
class StreamCopy:
    pass


@dataclass(frozen=True)
class ReEncode:
    frame_rate: FrameRateHint = DEFAULT_FRAME_RATE


TrimStrategy = Union[StreamCopy, ReEncode]


@dataclass(frozen=True)
class TrimPlan:
    start: float
    end: float
    duration: float
    strategy: TrimStrategy
    video_args: List[str] = field(default_factory=list)
    audio_args: List[str] = field(default_factory=list)

    @property
    def frame_rate(self) -> Optional[FrameRateHint]:
        if isinstance(self.strategy, ReEncode):
            return self.strategy.frame_rate
        return None

    def build_args(self, input_path: Path, output_path: Path) -> List[str]:
        """Render the ffmpeg argument list (without the binary name)."""
        args = [
            "-y",
            "-ss", _fmt_seconds(self.start),
            "-i", str(input_path),
            "-t", _fmt_seconds(self.duration),
        ]
        if isinstance(self.strategy, ReEncode):
            args += [
                "-vf", "setpts=PTS-STARTPTS",
                "-af", "asetpts=PTS-STARTPTS",
                "-r", str(self.strategy.frame_rate),
                *self.video_args,
                *self.audio_args,
                "-movflags", "+faststart",
            ]
        else:
            args += [
                "-c", "copy",
                "-avoid_negative_ts", "make_zero",
                "-fflags", "+genpts",
            ]
        args.append(str(output_path))
        return args


def _fmt_seconds(value: float) -> str:
    # Millisecond precision, no float noise like 10.200000000000001
    return f"{value:.3f}".rstrip("0").rstrip(".") or "0"


def validate_range(start: float, end: float, source_duration: Optional[float] = None):
    """Raise RangeError unless 0 <= start < end <= source_duration."""
    if start < 0:
        raise RangeError(f"Start time must be non-negative, got {start}")
    if end <= start:
        raise RangeError(f"End time ({end}) must be greater than start time ({start})")
    if source_duration is not None and end > source_duration:
        raise RangeError(
            f"End time ({end}) exceeds source duration ({source_duration})"
        )


def plan_trim(
    source_duration: Optional[float],
    start: float,
    end: float,
    sync_mode: SyncMode = SyncMode.RE_ENCODE,
    frame_rate: Optional[FrameRateHint] = None,
    config: Optional[dict] = None,
) -> TrimPlan:
    """Validate the requested range and plan the ffmpeg invocation.

    ``source_duration`` may be None when it is unknown, in which case only the
    start/end ordering is checked. ``frame_rate`` is the probed source rate for
    re-encode plans; None falls back to 30/1.
    """
    validate_range(start, end, source_duration)
    config = config or {}
    duration = end - start

    if sync_mode == SyncMode.STREAM_COPY:
        return TrimPlan(start=start, end=end, duration=duration, strategy=StreamCopy())

    return TrimPlan(
        start=start,
        end=end,
        duration=duration,
        strategy=ReEncode(frame_rate or DEFAULT_FRAME_RATE),
        video_args=get_video_encoder_args(config),
        audio_args=get_audio_encoder_args(config),
    )
