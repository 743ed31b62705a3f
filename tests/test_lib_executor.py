"""Tests for lib.executor - scratch files, ffmpeg invocation, and storage hand-off."""

import pytest
from pathlib import Path
from unittest.mock import patch

from lib.errors import RangeError, ToolError, TrimIOError, UploadError
from lib.executor import (
    TrimExecutor,
    TrimRequest,
    sanitize_output_name,
    scratch_files,
)
from lib.ffprobe import FrameRateHint
from lib.trim import SyncMode, plan_trim
from tests.conftest import FakeRunner, FakeStorage


@pytest.fixture(autouse=True)
def fixed_frame_rate():
    with patch("lib.executor.ffprobe.get_frame_rate", return_value=FrameRateHint(30, 1)) as mock_rate:
        yield mock_rate


def _executor(runner, storage, config, tmp_path):
    return TrimExecutor(runner, storage, config, temp_dir=tmp_path)


def _scratch(tmp_path):
    return [p for p in tmp_path.iterdir() if p.name.startswith("reelcut_")]


class TestExecute:
    def test_basic_trim(self, tmp_path, fake_runner, fake_storage, sample_config):
        executor = _executor(fake_runner, fake_storage, sample_config, tmp_path)
        result = executor.execute(TrimRequest("upload", 5.0, 15.0, "clip.mp4"), b"video")

        assert result.actual_duration == 10.0
        assert result.output_ref == "/media/clip.mp4"
        assert result.filename == "clip.mp4"
        assert fake_storage.stored["clip.mp4"] == b"trimmed"

        args = fake_runner.calls[0]
        assert args[args.index("-r") + 1] == "30/1"
        assert args[args.index("-t") + 1] == "10"

    def test_response_shape(self, tmp_path, fake_runner, fake_storage, sample_config):
        executor = _executor(fake_runner, fake_storage, sample_config, tmp_path)
        result = executor.execute(TrimRequest("upload", 5.5, 15.7, "clip.mp4"), b"video")
        body = result.to_response()
        assert body["success"] is True
        assert body["trimmedVideoUrl"] == "/media/clip.mp4"
        assert body["duration"] == pytest.approx(10.2)
        assert body["startTime"] == 5.5
        assert body["endTime"] == 15.7

    def test_stream_copy_skips_frame_rate_probe(self, tmp_path, fake_runner, fake_storage,
                                                sample_config, fixed_frame_rate):
        executor = _executor(fake_runner, fake_storage, sample_config, tmp_path)
        executor.execute(TrimRequest("upload", 0, 4, "c.mp4"), b"video", sync_mode=SyncMode.STREAM_COPY)
        fixed_frame_rate.assert_not_called()
        assert "copy" in fake_runner.calls[0]

    def test_input_bytes_written_to_scratch(self, tmp_path, fake_storage, sample_config):
        seen = {}

        class CapturingRunner(FakeRunner):
            def run(self, args):
                seen["input"] = Path(args[args.index("-i") + 1]).read_bytes()
                return super().run(args)

        executor = _executor(CapturingRunner(), fake_storage, sample_config, tmp_path)
        executor.execute(TrimRequest("upload", 0, 1, "c.mp4"), b"source-bytes")
        assert seen["input"] == b"source-bytes"

    def test_repeated_requests_are_independent(self, tmp_path, fake_runner, fake_storage, sample_config):
        executor = _executor(fake_runner, fake_storage, sample_config, tmp_path)
        first = executor.execute(TrimRequest("upload", 5, 15, "a.mp4"), b"video")
        second = executor.execute(TrimRequest("upload", 5, 15, "b.mp4"), b"video")
        assert first.actual_duration == second.actual_duration
        assert fake_runner.seen_paths[0] != fake_runner.seen_paths[2]
        assert _scratch(tmp_path) == []


class TestFailures:
    def test_range_error_before_any_side_effect(self, tmp_path, fake_runner, fake_storage, sample_config):
        executor = _executor(fake_runner, fake_storage, sample_config, tmp_path)
        with pytest.raises(RangeError):
            executor.execute(TrimRequest("upload", 15, 5), b"video")
        assert fake_runner.calls == []
        assert _scratch(tmp_path) == []

    def test_end_past_known_duration(self, tmp_path, fake_runner, fake_storage, sample_config):
        executor = _executor(fake_runner, fake_storage, sample_config, tmp_path)
        with pytest.raises(RangeError):
            executor.execute(TrimRequest("upload", 5, 70), b"video", source_duration=60)
        assert fake_runner.calls == []

    def test_tool_failure_reports_stderr_and_cleans_up(self, tmp_path, fake_storage, sample_config):
        runner = FakeRunner(exit_code=1, stderr="moov atom not found\nInvalid data found when processing input")
        executor = _executor(runner, fake_storage, sample_config, tmp_path)
        with pytest.raises(ToolError) as exc_info:
            executor.execute(TrimRequest("upload", 0, 5), b"not a video")
        assert "Invalid data" in exc_info.value.stderr
        assert exc_info.value.exit_code == 1
        assert fake_storage.stored == {}
        assert _scratch(tmp_path) == []

    def test_upload_failure_cleans_up(self, tmp_path, fake_runner, sample_config):
        executor = _executor(fake_runner, FakeStorage(fail=True), sample_config, tmp_path)
        with pytest.raises(UploadError):
            executor.execute(TrimRequest("upload", 0, 5), b"video")
        assert _scratch(tmp_path) == []

    def test_missing_output_is_io_error(self, tmp_path, fake_storage, sample_config):
        executor = _executor(FakeRunner(write_output=False), fake_storage, sample_config, tmp_path)
        with pytest.raises(TrimIOError):
            executor.execute(TrimRequest("upload", 0, 5), b"video")
        assert _scratch(tmp_path) == []

    def test_success_cleans_up(self, tmp_path, fake_runner, fake_storage, sample_config):
        executor = _executor(fake_runner, fake_storage, sample_config, tmp_path)
        executor.execute(TrimRequest("upload", 0, 5), b"video")
        assert _scratch(tmp_path) == []


class TestProbing:
    def test_check_source_duration_rejects_long_end(self, tmp_path, fake_runner, fake_storage, sample_config):
        sample_config["trim"]["check_source_duration"] = True
        executor = _executor(fake_runner, fake_storage, sample_config, tmp_path)
        with patch("lib.executor.ffprobe.get_duration", return_value=8.0):
            with pytest.raises(RangeError):
                executor.execute(TrimRequest("upload", 0, 10), b"video")
        assert fake_runner.calls == []
        assert _scratch(tmp_path) == []

    def test_unprobeable_source_skips_upper_bound(self, tmp_path, fake_runner, fake_storage, sample_config):
        sample_config["trim"]["check_source_duration"] = True
        executor = _executor(fake_runner, fake_storage, sample_config, tmp_path)
        with patch("lib.executor.ffprobe.get_duration", side_effect=ValueError("bad")):
            result = executor.execute(TrimRequest("upload", 0, 10), b"video")
        assert result.actual_duration == 10

    def test_verify_output_records_measured_duration(self, tmp_path, fake_runner, fake_storage, sample_config):
        sample_config["trim"]["verify_output"] = True
        executor = _executor(fake_runner, fake_storage, sample_config, tmp_path)
        with patch("lib.executor.ffprobe.get_duration", return_value=10.02):
            result = executor.execute(TrimRequest("upload", 5, 15), b"video")
        assert result.measured_duration == 10.02
        assert result.actual_duration == 10


class TestExecutePlan:
    def test_runs_given_plan(self, tmp_path, fake_runner, fake_storage, sample_config, fixed_frame_rate):
        plan = plan_trim(None, 1, 3, config=sample_config)
        executor = _executor(fake_runner, fake_storage, sample_config, tmp_path)
        result = executor.execute_plan(plan, b"video", "p.mp4")
        assert result.filename == "p.mp4"
        fixed_frame_rate.assert_not_called()


class TestOutputNames:
    def test_default_name(self):
        name = sanitize_output_name(None)
        assert name.startswith("trimmed_")
        assert name.endswith(".mp4")

    def test_default_names_are_unique(self):
        assert sanitize_output_name("") != sanitize_output_name("")

    def test_strips_directories(self):
        assert sanitize_output_name("../../etc/clip.mp4") == "clip.mp4"
        assert sanitize_output_name("dir\\clip.mov") == "clip.mov"

    def test_adds_extension(self):
        assert sanitize_output_name("clip") == "clip.mp4"

    @pytest.mark.parametrize("name", ["..", "/", "."])
    def test_degenerate_names_use_default(self, name):
        assert sanitize_output_name(name).startswith("trimmed_")


class TestScratchFiles:
    def test_removed_on_exception(self, tmp_path):
        with pytest.raises(RuntimeError):
            with scratch_files(".mp4", tmp_path) as (input_path, output_path):
                input_path.write_bytes(b"a")
                output_path.write_bytes(b"b")
                raise RuntimeError("boom")
        assert not input_path.exists()
        assert not output_path.exists()
