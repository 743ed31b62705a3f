"""Transcribe agent - Deepgram transcription into timed segments via REST API.

Inputs:
    - the session source video (session.json "source_file")
Outputs:
    - deepgram.json (raw Deepgram response)
    - transcript.json ({"segments": [{start, end, text}, ...]})
    - work/audio.m4a (compact audio for upload)
Dependencies:
    - ffmpeg (audio extraction), httpx (Deepgram REST API)
Config:
    - transcription.model, transcription.language, transcription.smart_format
Environment:
    - DEEPGRAM_API_KEY
"""

import subprocess
from typing import List

import httpx

from agents.base import BaseAgent
from lib.errors import TranscriptionError
from lib.segments import TimedSegment, save_segments

DEEPGRAM_URL = "https://api.deepgram.com/v1/listen"

# Used for the single-segment fallback when the response has no duration
FALLBACK_DURATION_SECONDS = 10.0


def request_transcript(
    media: bytes,
    api_key: str,
    config: dict,
    content_type: str = "audio/mp4",
) -> dict:
    """POST media bytes to Deepgram and return the raw JSON response.

    Raises TranscriptionError on transport failure or an error status.
    """
    tc = config.get("transcription", {})
    params = {
        "model": tc.get("model", "nova-3"),
        "language": tc.get("language", "en"),
        "utterances": "true",
        "smart_format": str(tc.get("smart_format", True)).lower(),
        "punctuate": "true",
    }
    try:
        response = httpx.post(
            DEEPGRAM_URL,
            params=params,
            headers={
                "Authorization": f"Token {api_key}",
                "Content-Type": content_type,
            },
            content=media,
            timeout=float(tc.get("timeout_seconds", 600.0)),
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise TranscriptionError(
            f"Deepgram returned {e.response.status_code}: {e.response.text[:300]}"
        ) from e
    except httpx.HTTPError as e:
        raise TranscriptionError(f"Deepgram request failed: {e}") from e
    return response.json()


def segments_from_deepgram(raw: dict) -> List[TimedSegment]:
    """Convert a Deepgram response to timed segments.

    Uses utterances when present; otherwise returns the whole transcript as one
    segment spanning the reported duration.
    """
    if raw.get("error") or raw.get("err_msg"):
        raise TranscriptionError(str(raw.get("error") or raw.get("err_msg")))

    results = raw.get("results", {})
    segments = []
    for utt in results.get("utterances", []) or []:
        start = float(utt.get("start", 0))
        end = float(utt.get("end", 0))
        text = utt.get("transcript", "").strip()
        if end <= start or not text:
            continue
        segments.append(TimedSegment(start=start, end=end, text=text))

    if segments:
        return segments

    text = ""
    for ch in results.get("channels", []):
        for alt in ch.get("alternatives", []):
            text = alt.get("transcript", "")
            break
        break
    if not text.strip():
        return []

    duration = float(raw.get("metadata", {}).get("duration") or FALLBACK_DURATION_SECONDS)
    return [TimedSegment(start=0.0, end=duration, text=text.strip())]


class TranscribeAgent(BaseAgent):
    name = "transcribe"

    def execute(self) -> dict:
        source_path = self.source_path()
        work_dir = self.session_dir / "work"
        work_dir.mkdir(exist_ok=True)

        # Extract audio to compact m4a for upload
        audio_path = work_dir / "audio.m4a"
        if not audio_path.exists():
            self.logger.info("Extracting audio to m4a...")
            cmd = [
                "ffmpeg", "-y",
                "-i", str(source_path),
                "-vn", "-c:a", "aac", "-b:a", "128k",
                str(audio_path),
            ]
            subprocess.run(cmd, capture_output=True, text=True, check=True)

        audio_size_mb = audio_path.stat().st_size / 1e6
        self.logger.info(f"Audio file: {audio_size_mb:.1f} MB")

        api_key = self.ctx.require("deepgram_api_key")

        with open(audio_path, "rb") as f:
            audio_data = f.read()

        self.logger.info("Sending to Deepgram (this may take a few minutes)...")
        raw_response = request_transcript(audio_data, api_key, self.config)
        self.save_json("deepgram.json", raw_response)

        segments = segments_from_deepgram(raw_response)
        save_segments(self.session_dir, segments)
        self.logger.info(f"Transcript saved with {len(segments)} segments")

        return {
            "transcript_path": str(self.session_dir / "transcript.json"),
            "segment_count": len(segments),
            "audio_size_mb": round(audio_size_mb, 1),
        }
