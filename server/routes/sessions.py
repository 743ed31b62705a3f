"""Session API endpoints - trigger and monitor the transcribe/extract/trim pipeline."""

import json
import logging
import threading
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from lib.config import AppContext
from server.deps import get_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])

# Track running pipelines
_running = {}  # type: dict
_running_lock = threading.Lock()


class RunSessionRequest(BaseModel):
    source_path: str
    prompt: str = ""
    agents: Optional[List[str]] = None
    start: Optional[float] = None
    end: Optional[float] = None
    mode: str = "reencode"
    fallback: bool = False
    output_name: Optional[str] = None


@router.post("/{session_id}/run")
def run_session(session_id: str, req: RunSessionRequest, ctx: AppContext = Depends(get_context)) -> dict:
    """Run the session pipeline as a background thread."""
    logger.info("POST /api/sessions/%s/run", session_id)
    with _running_lock:
        for sid in [s for s, t in _running.items() if not t.is_alive()]:
            del _running[sid]
        if session_id in _running:
            raise HTTPException(status_code=409, detail="Pipeline already running for this session")

        trim_options = {
            "start": req.start,
            "end": req.end,
            "mode": req.mode,
            "fallback": req.fallback,
            "output_name": req.output_name,
        }

        def _run():
            from agents.pipeline import run_pipeline
            run_pipeline(
                source_path=req.source_path,
                prompt=req.prompt,
                session_id=session_id,
                agents=req.agents,
                trim_options=trim_options,
                ctx=ctx,
            )

        thread = threading.Thread(target=_run, daemon=True)
        thread.start()
        _running[session_id] = thread

    logger.info("Pipeline started for %s", session_id)
    return {"status": "started", "session_id": session_id}


@router.get("/{session_id}")
def get_session(session_id: str, ctx: AppContext = Depends(get_context)) -> dict:
    """Return session.json for a session."""
    session_file = ctx.sessions_dir / session_id / "session.json"
    if not session_file.exists():
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    with open(session_file) as f:
        return json.load(f)
