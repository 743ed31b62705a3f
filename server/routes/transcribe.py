"""Transcription endpoint - upload a video, get timed segments back."""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from agents.transcribe import request_transcript, segments_from_deepgram
from lib.config import AppContext
from lib.segments import segments_to_payload
from server.deps import get_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["transcribe"])


@router.post("/transcribe")
def transcribe_video(file: UploadFile = File(...), ctx: AppContext = Depends(get_context)) -> dict:
    """Send the uploaded media to Deepgram and return {segments}."""
    logger.info("POST /api/transcribe file=%s", file.filename)
    api_key = ctx.require("deepgram_api_key")

    media = file.file.read()
    if not media:
        raise HTTPException(status_code=400, detail="No file provided")

    raw = request_transcript(
        media, api_key, ctx.config, content_type=file.content_type or "video/mp4",
    )
    segments = segments_from_deepgram(raw)
    logger.info("Transcribed %s into %d segments", file.filename, len(segments))
    return {"segments": segments_to_payload(segments)}
