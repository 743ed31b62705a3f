"""Tests for lib.trim - range validation and ffmpeg argument planning."""

import pytest
from pathlib import Path

from lib.errors import RangeError
from lib.ffprobe import FrameRateHint
from lib.trim import ReEncode, StreamCopy, SyncMode, _fmt_seconds, plan_trim, validate_range


class TestValidateRange:
    def test_valid_range(self):
        validate_range(0, 10, 60)

    def test_negative_start(self):
        with pytest.raises(RangeError):
            validate_range(-0.5, 10)

    @pytest.mark.parametrize("start,end", [(10, 10), (15, 5)])
    def test_end_not_after_start(self, start, end):
        with pytest.raises(RangeError):
            validate_range(start, end)

    def test_end_past_source(self):
        with pytest.raises(RangeError, match="exceeds source duration"):
            validate_range(5, 61, 60)

    def test_end_equal_to_source_is_allowed(self):
        validate_range(5, 60, 60)

    def test_unknown_duration_skips_upper_bound(self):
        validate_range(5, 10_000, None)


class TestPlanTrim:
    def test_plan_within_known_duration(self, sample_config):
        plan = plan_trim(80, 5, 15, SyncMode.RE_ENCODE, config=sample_config)
        assert plan.duration == 10
        assert plan.frame_rate == FrameRateHint(30, 1)

    def test_plan_reversed_range(self):
        with pytest.raises(RangeError):
            plan_trim(80, 10, 5)

    def test_reencode_plan(self, sample_config):
        plan = plan_trim(60, 5, 15, config=sample_config)
        assert plan.duration == 10
        assert isinstance(plan.strategy, ReEncode)
        assert plan.frame_rate == FrameRateHint(30, 1)

        args = plan.build_args(Path("/tmp/in.mp4"), Path("/tmp/out.mp4"))
        assert args[:7] == ["-y", "-ss", "5", "-i", "/tmp/in.mp4", "-t", "10"]
        assert args[args.index("-vf") + 1] == "setpts=PTS-STARTPTS"
        assert args[args.index("-af") + 1] == "asetpts=PTS-STARTPTS"
        assert args[args.index("-r") + 1] == "30/1"
        assert args[args.index("-c:v") + 1] == "libx264"
        assert args[args.index("-preset") + 1] == "veryfast"
        assert args[args.index("-crf") + 1] == "23"
        assert args[args.index("-c:a") + 1] == "aac"
        assert args[args.index("-movflags") + 1] == "+faststart"
        assert args[-1] == "/tmp/out.mp4"

    def test_reencode_pins_probed_rate(self, sample_config):
        plan = plan_trim(60, 5, 15, frame_rate=FrameRateHint(30000, 1001), config=sample_config)
        args = plan.build_args(Path("in.mp4"), Path("out.mp4"))
        assert args[args.index("-r") + 1] == "30000/1001"

    def test_fractional_duration(self, sample_config):
        plan = plan_trim(None, 5.5, 15.7, config=sample_config)
        assert plan.duration == pytest.approx(10.2)
        args = plan.build_args(Path("in.mp4"), Path("out.mp4"))
        assert args[args.index("-ss") + 1] == "5.5"
        assert args[args.index("-t") + 1] == "10.2"

    def test_stream_copy_plan(self):
        plan = plan_trim(None, 5, 15, SyncMode.STREAM_COPY)
        assert isinstance(plan.strategy, StreamCopy)
        assert plan.frame_rate is None
        args = plan.build_args(Path("in.mp4"), Path("out.mp4"))
        assert args[args.index("-c") + 1] == "copy"
        assert "-avoid_negative_ts" in args
        assert "-vf" not in args
        assert "-r" not in args

    def test_invalid_range_raises(self):
        with pytest.raises(RangeError):
            plan_trim(10, 5, 15)


class TestFmtSeconds:
    @pytest.mark.parametrize("value,expected", [
        (0, "0"),
        (10.0, "10"),
        (5.5, "5.5"),
        (15.7 - 5.5, "10.2"),
        (35.33 - 30.25, "5.08"),
        (1.23456, "1.235"),
    ])
    def test_format(self, value, expected):
        assert _fmt_seconds(value) == expected
