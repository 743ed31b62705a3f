"""Shared encoder infrastructure - VideoToolbox detection and argument selection."""

import functools
import subprocess
import sys


@functools.lru_cache(maxsize=1)
def has_videotoolbox() -> bool:
    """Check if h264_videotoolbox encoder is available. Result is cached."""
    if sys.platform != "darwin":
        return False
    try:
        result = subprocess.run(
            ["ffmpeg", "-encoders"],
            capture_output=True, text=True, timeout=10,
        )
        return "h264_videotoolbox" in result.stdout
    except (subprocess.SubprocessError, FileNotFoundError):
        return False


def get_video_encoder_args(config: dict) -> list:
    """Return ffmpeg video encoder arguments for a re-encode trim.

    VideoToolbox path: ["-c:v", "h264_videotoolbox", "-q:v", "65"]
    Software fallback: ["-c:v", "libx264", "-preset", "veryfast", "-crf", "<value>"]
    """
    tc = config.get("trim", {})

    if tc.get("use_hardware_accel", False) and has_videotoolbox():
        return ["-c:v", "h264_videotoolbox", "-q:v", "65"]

    crf = tc.get("video_crf", 23)
    preset = tc.get("video_preset", "veryfast")
    return ["-c:v", "libx264", "-preset", preset, "-crf", str(crf)]


def get_audio_encoder_args(config: dict) -> list:
    """Return ffmpeg audio encoder arguments for a re-encode trim."""
    tc = config.get("trim", {})
    args = ["-c:a", tc.get("audio_codec", "aac")]
    bitrate = tc.get("audio_bitrate")
    if bitrate:
        args += ["-b:a", str(bitrate)]
    return args
