"""Trim executor - runs a planned trim against uploaded bytes and stores the result.

Temp input/output files are request-unique and removed on every exit path,
including tool failure, upload failure, and cancellation.
"""

import logging
import subprocess
import tempfile
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple

from lib import ffprobe
from lib.accuracy import check_trim_accuracy
from lib.errors import ToolError, TrimIOError
from lib.runner import MediaToolRunner
from lib.storage import Storage
from lib.trim import SyncMode, TrimPlan, plan_trim, validate_range

logger = logging.getLogger(__name__)

STDERR_LIMIT = 2000


@dataclass(frozen=True)
class TrimRequest:
    source_ref: str
    start_time: float
    end_time: float
    output_name: Optional[str] = None


@dataclass(frozen=True)
class TrimResult:
    output_ref: str
    actual_duration: float
    start_time: float
    end_time: float
    filename: str
    measured_duration: Optional[float] = None

    def to_response(self) -> dict:
        return {
            "success": True,
            "trimmedVideoUrl": self.output_ref,
            "filename": self.filename,
            "duration": self.actual_duration,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }


def default_output_name() -> str:
    return f"trimmed_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}.mp4"


def sanitize_output_name(name: Optional[str]) -> str:
    """Reduce a requested output name to a bare filename (default if empty)."""
    if not name:
        return default_output_name()
    cleaned = Path(name.replace("\\", "/")).name.strip()
    if cleaned in ("", ".", ".."):
        return default_output_name()
    if not Path(cleaned).suffix:
        cleaned += ".mp4"
    return cleaned


@contextmanager
def scratch_files(suffix: str = ".mp4", temp_dir: Optional[Path] = None) -> Iterator[Tuple[Path, Path]]:
    """Yield unique (input, output) temp paths; both are deleted on exit."""
    base = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
    token = uuid.uuid4().hex
    input_path = base / f"reelcut_in_{token}{suffix}"
    output_path = base / f"reelcut_out_{token}{suffix}"
    try:
        yield input_path, output_path
    finally:
        for path in (input_path, output_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Failed to clean up %s: %s", path, e)


class TrimExecutor:
    """Write source bytes to scratch, run ffmpeg, and hand the output to storage."""

    def __init__(
        self,
        runner: MediaToolRunner,
        storage: Storage,
        config: Optional[dict] = None,
        temp_dir: Optional[Path] = None,
    ):
        self.runner = runner
        self.storage = storage
        self.config = config or {}
        self.temp_dir = temp_dir
        tc = self.config.get("trim", {})
        self.check_duration = tc.get("check_source_duration", False)
        self.verify_output = tc.get("verify_output", False)

    def execute(
        self,
        request: TrimRequest,
        source_bytes: bytes,
        sync_mode: SyncMode = SyncMode.RE_ENCODE,
        source_duration: Optional[float] = None,
    ) -> TrimResult:
        """Plan and run one trim.

        Raises:
            RangeError: bad bounds (before anything touches disk).
            ToolError: ffmpeg exited non-zero.
            TrimIOError: scratch file write/read failed.
            UploadError: storage rejected the output.
        """
        validate_range(request.start_time, request.end_time, source_duration)
        filename = sanitize_output_name(request.output_name)

        with scratch_files(Path(filename).suffix, self.temp_dir) as (input_path, output_path):
            self._write_input(input_path, source_bytes)

            if source_duration is None and self.check_duration:
                source_duration = self._probe_duration(input_path)

            frame_rate = None
            if sync_mode == SyncMode.RE_ENCODE:
                frame_rate = ffprobe.get_frame_rate(input_path)

            plan = plan_trim(
                source_duration, request.start_time, request.end_time,
                sync_mode, frame_rate=frame_rate, config=self.config,
            )
            return self._run(plan, input_path, output_path, filename)

    def execute_plan(self, plan: TrimPlan, source_bytes: bytes, output_name: Optional[str] = None) -> TrimResult:
        """Run an already-computed plan (no probing)."""
        filename = sanitize_output_name(output_name)
        with scratch_files(Path(filename).suffix, self.temp_dir) as (input_path, output_path):
            self._write_input(input_path, source_bytes)
            return self._run(plan, input_path, output_path, filename)

    def _run(self, plan: TrimPlan, input_path: Path, output_path: Path, filename: str) -> TrimResult:
        args = plan.build_args(input_path, output_path)
        logger.info(
            "Trimming %.3fs-%.3fs (%s, %s)",
            plan.start, plan.end, type(plan.strategy).__name__,
            plan.frame_rate or "source rate",
        )
        result = self.runner.run(args)
        if result.exit_code != 0:
            stderr = (result.stderr or "").strip()
            logger.error("ffmpeg trim failed (rc=%d): %s", result.exit_code, stderr[-500:])
            raise ToolError(stderr[-STDERR_LIMIT:], exit_code=result.exit_code)

        if not output_path.exists():
            raise TrimIOError(f"ffmpeg reported success but produced no output at {output_path.name}")

        measured = None
        if self.verify_output:
            measured = self._probe_duration(output_path)

        output_ref = self.storage.put(output_path, filename)

        trim_result = TrimResult(
            output_ref=output_ref,
            actual_duration=plan.duration,
            start_time=plan.start,
            end_time=plan.end,
            filename=filename,
            measured_duration=measured,
        )
        check_trim_accuracy(trim_result, logger)
        logger.info("Trim complete: %s (%.3fs)", filename, plan.duration)
        return trim_result

    def _write_input(self, input_path: Path, source_bytes: bytes):
        try:
            input_path.write_bytes(source_bytes)
        except OSError as e:
            raise TrimIOError(f"Failed to write temp input: {e}") from e

    def _probe_duration(self, path: Path) -> Optional[float]:
        try:
            duration = ffprobe.get_duration(path)
        except (subprocess.CalledProcessError, ValueError, OSError) as e:
            logger.warning("Could not probe duration of %s: %s", path.name, e)
            return None
        return duration or None
