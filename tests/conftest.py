"""Shared test fixtures for Reelcut tests."""

import json
import pytest
from pathlib import Path

from lib.config import AppContext
from lib.errors import UploadError
from lib.runner import ToolResult
from lib.segments import TimedSegment


class FakeRunner:
    """Records ffmpeg invocations; writes the output file unless told to fail."""

    def __init__(self, exit_code=0, stderr="", write_output=True):
        self.exit_code = exit_code
        self.stderr = stderr
        self.write_output = write_output
        self.calls = []
        self.seen_paths = []

    def run(self, args):
        self.calls.append(list(args))
        input_path = Path(args[args.index("-i") + 1])
        output_path = Path(args[-1])
        self.seen_paths.extend([input_path, output_path])
        if self.exit_code == 0 and self.write_output:
            output_path.write_bytes(b"trimmed")
        return ToolResult(exit_code=self.exit_code, stdout="", stderr=self.stderr)


class FakeStorage:
    """In-memory storage; optionally fails every put."""

    def __init__(self, fail=False):
        self.fail = fail
        self.stored = {}

    def put(self, local_path, name):
        if self.fail:
            raise UploadError("bucket rejected upload")
        self.stored[name] = Path(local_path).read_bytes()
        return f"/media/{name}"


@pytest.fixture
def sample_config():
    """Return a minimal config dict with probing disabled."""
    return {
        "paths": {"sessions_dir": ""},
        "storage": {"backend": "local", "bucket": "video-processing", "base_url": "/media"},
        "transcription": {"model": "nova-3", "language": "en", "smart_format": True},
        "insights": {"llm_model": "claude-sonnet-4-6", "llm_temperature": 0.3, "max_tokens": 2048},
        "trim": {
            "video_crf": 23,
            "video_preset": "veryfast",
            "audio_codec": "aac",
            "use_hardware_accel": False,
            "check_source_duration": False,
            "verify_output": False,
        },
    }


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def sample_segments():
    """Return a short three-segment transcript."""
    return [
        TimedSegment(0.0, 5.0, "Welcome to the show"),
        TimedSegment(5.0, 10.0, "Let's talk about pricing strategy"),
        TimedSegment(10.0, 15.0, "Thanks for watching"),
    ]


@pytest.fixture
def app_context(tmp_path, sample_config, fake_storage):
    """AppContext with fake storage and temp directories."""
    return AppContext(
        config=sample_config,
        anthropic_api_key="sk-ant-test",
        deepgram_api_key="dg-test",
        storage=fake_storage,
        media_dir=tmp_path / "media",
        sessions_dir=tmp_path / "sessions",
    )


@pytest.fixture
def tmp_session_dir(tmp_path):
    """Create a temporary session directory with a source video and session.json."""
    session_dir = tmp_path / "sessions" / "s_2026-01-01_120000"
    (session_dir / "work").mkdir(parents=True)
    (session_dir / "source.mp4").write_bytes(b"\x00\x00\x00\x18ftypmp42")
    with open(session_dir / "session.json", "w") as f:
        json.dump({
            "session_id": "s_2026-01-01_120000",
            "status": "created",
            "source_file": "source.mp4",
            "original_name": "talk.mp4",
            "created_at": "2026-01-01T12:00:00+00:00",
            "pipeline": {"agents_completed": []},
        }, f)
    return session_dir


@pytest.fixture
def mock_ffprobe_result():
    """Return a mock ffprobe JSON result."""
    return {
        "format": {"duration": "42.5", "size": "5000000"},
        "streams": [
            {"codec_type": "video", "width": 1280, "height": 720,
             "codec_name": "h264", "r_frame_rate": "30000/1001", "duration": "42.5"},
            {"codec_type": "audio", "channels": 2, "sample_rate": "48000",
             "codec_name": "aac", "duration": "42.48"},
        ],
    }
