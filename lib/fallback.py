"""Fallback trimmer - frame-by-frame redraw without ffmpeg.

Used when no server-side tool is available. Each step seeks the source,
draws the current frame into a fixed-size frame buffer, and writes that
buffer to the capture stream at a constant 30 fps cadence. Audio is not
carried and sync is approximate; prefer the ffmpeg re-encode path.

States: Idle -> MetadataLoaded -> Seeking -> Capturing -> Finalized
(Failed / Cancelled are terminal).
"""

import logging
import math
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol

import numpy as np

from lib.errors import CaptureError, DecodeError
from lib.storage import Storage
from lib.trim import validate_range

logger = logging.getLogger(__name__)

TARGET_FRAME_RATE = 30


class TrimState(str, Enum):
    IDLE = "idle"
    METADATA_LOADED = "metadata_loaded"
    SEEKING = "seeking"
    CAPTURING = "capturing"
    FINALIZED = "finalized"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SourceMetadata:
    width: int
    height: int
    duration: float


class FrameSource(Protocol):
    def open(self) -> SourceMetadata: ...
    def seek(self, seconds: float) -> Optional[np.ndarray]: ...
    def close(self) -> None: ...


class FrameSink(Protocol):
    def open(self, path: Path, width: int, height: int, fps: int) -> None: ...
    def write(self, frame: np.ndarray) -> None: ...
    def close(self) -> None: ...


class OpenCVFrameSource:
    """Decode frames with cv2.VideoCapture, seeking by timestamp."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._cap = None

    def open(self) -> SourceMetadata:
        import cv2

        cap = cv2.VideoCapture(str(self.path))
        if not cap.isOpened():
            raise DecodeError(f"Cannot open video: {self.path.name}")
        self._cap = cap

        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        fps = cap.get(cv2.CAP_PROP_FPS) or 0
        frames = cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0
        duration = frames / fps if fps > 0 else 0.0
        if width <= 0 or height <= 0:
            raise DecodeError(f"No video dimensions for {self.path.name}")
        return SourceMetadata(width=width, height=height, duration=duration)

    def seek(self, seconds: float) -> Optional[np.ndarray]:
        import cv2

        self._cap.set(cv2.CAP_PROP_POS_MSEC, seconds * 1000)
        ok, frame = self._cap.read()
        return frame if ok else None

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None


class OpenCVFrameSink:
    """Encode frames with cv2.VideoWriter (mp4v)."""

    def __init__(self, fourcc: str = "mp4v"):
        self.fourcc = fourcc
        self._writer = None

    def open(self, path: Path, width: int, height: int, fps: int) -> None:
        import cv2

        writer = cv2.VideoWriter(
            str(path), cv2.VideoWriter_fourcc(*self.fourcc), fps, (width, height)
        )
        if not writer.isOpened():
            raise CaptureError(f"Cannot open capture stream at {path.name}")
        self._writer = writer

    def write(self, frame: np.ndarray) -> None:
        self._writer.write(frame)

    def close(self) -> None:
        if self._writer is not None:
            self._writer.release()
            self._writer = None


class FallbackTrimmer:
    """Redraw [start, end) of a source into a new file at a fixed frame rate."""

    def __init__(self, source: FrameSource, sink: FrameSink, target_rate: int = TARGET_FRAME_RATE):
        self.source = source
        self.sink = sink
        self.target_rate = target_rate
        self.state = TrimState.IDLE
        self.frames_written = 0
        self._cancel = threading.Event()
        self._surface: Optional[np.ndarray] = None

    def cancel(self):
        """Stop after the current frame step. Safe to call from another thread."""
        self._cancel.set()

    @staticmethod
    def expected_frames(start: float, end: float, rate: int = TARGET_FRAME_RATE) -> int:
        return math.ceil((end - start) * rate)

    def run(self, start: float, end: float, output_path: Path) -> Path:
        """Capture the range into ``output_path``.

        Raises:
            RangeError: bad bounds.
            DecodeError: source metadata could not be loaded.
            CaptureError: capture failed or was cancelled.
        """
        validate_range(start, end)
        try:
            meta = self.source.open()
            self.state = TrimState.METADATA_LOADED
            if meta.duration > 0:
                validate_range(start, end, meta.duration)
            self._capture(meta, start, end, Path(output_path))
        except BaseException:
            if self.state != TrimState.CANCELLED:
                self.state = TrimState.FAILED
            # Release the writer before removing its partial output
            self._release()
            Path(output_path).unlink(missing_ok=True)
            raise
        self._release()

        self.state = TrimState.FINALIZED
        logger.info(
            "Fallback trim wrote %d frames (%.3fs-%.3fs) to %s",
            self.frames_written, start, end, Path(output_path).name,
        )
        return Path(output_path)

    def _release(self):
        self.sink.close()
        self.source.close()

    def _capture(self, meta: SourceMetadata, start: float, end: float, output_path: Path):
        self.state = TrimState.SEEKING
        self._surface = np.zeros((meta.height, meta.width, 3), dtype=np.uint8)
        self.sink.open(output_path, meta.width, meta.height, self.target_rate)

        self.state = TrimState.CAPTURING
        step = 1.0 / self.target_rate
        expected = self.expected_frames(start, end, self.target_rate)
        position = start

        while position < end and self.frames_written < expected:
            if self._cancel.is_set():
                self.state = TrimState.CANCELLED
                raise CaptureError("Capture cancelled")

            frame = self.source.seek(position)
            if frame is None:
                if self.frames_written == 0:
                    raise CaptureError(f"No frame decoded at {position:.3f}s")
                # Past the last decodable frame; hold the previous one
                logger.debug("No frame at %.3fs, repeating last frame", position)
            else:
                self._draw(frame)

            try:
                self.sink.write(self._surface)
            except Exception as e:
                raise CaptureError(f"Failed to write frame {self.frames_written}: {e}") from e
            self.frames_written += 1
            position = min(position + step, end)

    def _draw(self, frame: np.ndarray):
        h, w = self._surface.shape[:2]
        if frame.shape[:2] != (h, w):
            import cv2

            frame = cv2.resize(frame, (w, h))
        np.copyto(self._surface, frame[:, :, :3])


def trim_client_side(
    source_path: Path,
    start: float,
    end: float,
    storage: Storage,
    output_name: str,
    work_dir: Path,
    target_rate: int = TARGET_FRAME_RATE,
) -> str:
    """Fallback trim of a local file; returns the stored output reference."""
    work_dir = Path(work_dir)
    work_dir.mkdir(parents=True, exist_ok=True)
    output_path = work_dir / output_name

    trimmer = FallbackTrimmer(OpenCVFrameSource(source_path), OpenCVFrameSink(), target_rate)
    try:
        trimmer.run(start, end, output_path)
        return storage.put(output_path, output_name)
    finally:
        output_path.unlink(missing_ok=True)
