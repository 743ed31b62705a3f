"""Trim agent - cut the session source to a requested range (or the top insight).

Options:
    - start, end: explicit range in seconds
    - mode: "reencode" (default) or "copy"
    - fallback: use the frame-redraw trimmer instead of ffmpeg
    - output_name: stored filename (default trimmed_<ms>_<hex>.mp4)
"""

from agents.base import BaseAgent
from agents.insights import INSIGHTS_FILE
from lib.executor import TrimExecutor, TrimRequest, sanitize_output_name
from lib.fallback import trim_client_side
from lib.segments import load_segments
from lib.trim import SyncMode, validate_range


class TrimAgent(BaseAgent):
    name = "trim"

    def execute(self) -> dict:
        source_path = self.source_path()
        start, end = self._resolve_range()
        output_name = sanitize_output_name(self.options.get("output_name"))

        if self.options.get("fallback"):
            validate_range(start, end)
            self.logger.info(f"Fallback trim {start:.3f}s-{end:.3f}s")
            output_ref = trim_client_side(
                source_path, start, end, self.ctx.storage, output_name,
                work_dir=self.session_dir / "work",
            )
            return {
                "output_ref": output_ref,
                "filename": output_name,
                "duration": end - start,
                "start_time": start,
                "end_time": end,
                "strategy": "fallback",
            }

        mode = SyncMode(self.options.get("mode", SyncMode.RE_ENCODE.value))
        executor = TrimExecutor(self.ctx.make_runner(), self.ctx.storage, self.config)
        request = TrimRequest(
            source_ref=str(source_path),
            start_time=start,
            end_time=end,
            output_name=output_name,
        )
        result = executor.execute(request, source_path.read_bytes(), sync_mode=mode)
        return {
            "output_ref": result.output_ref,
            "filename": result.filename,
            "duration": result.actual_duration,
            "measured_duration": result.measured_duration,
            "start_time": result.start_time,
            "end_time": result.end_time,
            "strategy": mode.value,
        }

    def _resolve_range(self) -> tuple:
        start = self.options.get("start")
        end = self.options.get("end")
        if start is not None and end is not None:
            return float(start), float(end)

        insights = load_segments(self.session_dir, INSIGHTS_FILE)
        if not insights:
            raise ValueError("No trim range given and no insights to trim to")
        top = insights[0]
        self.logger.info(f"Trimming to first insight: {top.start:.1f}s-{top.end:.1f}s")
        return top.start, top.end
