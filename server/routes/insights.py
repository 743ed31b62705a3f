"""Insight extraction endpoint."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from agents.insights import make_claude_generator
from lib.config import AppContext
from lib.segments import extract, segments_from_payload, segments_to_payload
from server.deps import get_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["insights"])


class SegmentModel(BaseModel):
    start: float
    end: float
    text: str


class InsightsRequest(BaseModel):
    transcript: List[SegmentModel] = []
    prompt: str = ""


@router.post("/insights")
def extract_insights(req: InsightsRequest, ctx: AppContext = Depends(get_context)) -> dict:
    """Return the transcript segments relevant to the prompt."""
    logger.info("POST /api/insights prompt=%r segments=%d", req.prompt, len(req.transcript))
    if not req.transcript or not req.prompt.strip():
        raise HTTPException(status_code=400, detail="Missing transcript or prompt")

    try:
        segments = segments_from_payload([s.model_dump() for s in req.transcript])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid transcript segment: {e}")

    generate = make_claude_generator(ctx.require("anthropic_api_key"), ctx.config)
    insights = extract(segments, req.prompt, generate)
    return {"insights": segments_to_payload(insights)}
