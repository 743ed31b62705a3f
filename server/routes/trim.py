"""Trim endpoint - cut an uploaded (base64) video and return a stored clip URL."""

import base64
import binascii
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from lib.config import AppContext
from lib.executor import TrimExecutor, TrimRequest
from lib.trim import SyncMode
from server.deps import get_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["trim"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class TrimVideoRequest(BaseModel):
    videoFile: str
    startTime: float
    endTime: float
    outputFilename: Optional[str] = None
    mode: SyncMode = SyncMode.RE_ENCODE
    sourceDuration: Optional[float] = Field(default=None, gt=0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _decode_video(data: str) -> bytes:
    """Decode base64 video data, tolerating a data: URL prefix."""
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        decoded = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"videoFile is not valid base64: {e}")
    if not decoded:
        raise HTTPException(status_code=400, detail="videoFile is empty")
    return decoded


# ---------------------------------------------------------------------------
# Trim endpoint
# ---------------------------------------------------------------------------

@router.post("/trim")
def trim_video(req: TrimVideoRequest, ctx: AppContext = Depends(get_context)) -> dict:
    """Trim the uploaded video to [startTime, endTime) and store the result."""
    logger.info("POST /api/trim start=%.3f end=%.3f mode=%s",
                req.startTime, req.endTime, req.mode.value)
    video_bytes = _decode_video(req.videoFile)

    executor = TrimExecutor(ctx.make_runner(), ctx.storage, ctx.config)
    request = TrimRequest(
        source_ref="upload",
        start_time=req.startTime,
        end_time=req.endTime,
        output_name=req.outputFilename,
    )
    result = executor.execute(
        request, video_bytes, sync_mode=req.mode, source_duration=req.sourceDuration,
    )
    return result.to_response()
