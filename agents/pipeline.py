"""Session pipeline - transcribe, extract insights, trim; updates session.json."""

import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from agents import AGENT_REGISTRY, PIPELINE_ORDER
from lib.config import AppContext, build_context

logger = logging.getLogger("reelcut")


def create_session(sessions_dir: Path, source_path: Path, session_id: Optional[str] = None) -> Path:
    """Create a session directory holding a copy of the source video.

    Re-uses an existing session (and its source copy) when ``session_id`` is given.
    """
    if session_id is None:
        now = datetime.now(timezone.utc)
        session_id = f"s_{now.strftime('%Y-%m-%d')}_{now.strftime('%H%M%S')}"

    session_dir = sessions_dir / session_id
    (session_dir / "work").mkdir(parents=True, exist_ok=True)

    session_file = session_dir / "session.json"
    if session_file.exists():
        return session_dir

    dest = session_dir / f"source{source_path.suffix or '.mp4'}"
    shutil.copy2(source_path, dest)
    session = {
        "session_id": session_id,
        "status": "created",
        "source_file": dest.name,
        "original_name": source_path.name,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "pipeline": {"agents_completed": []},
    }
    _save_session(session_file, session)
    return session_dir


def run_pipeline(
    source_path: str,
    prompt: str = "",
    session_id: Optional[str] = None,
    agents: Optional[List[str]] = None,
    trim_options: Optional[dict] = None,
    ctx: Optional[AppContext] = None,
) -> dict:
    """Run the requested agents in order for one session.

    Args:
        source_path: Path to the source video.
        prompt: Free-text insight prompt.
        session_id: Optional session ID. If None, one is generated.
        agents: Optional list of agent names to run. If None, runs all.
        trim_options: start/end/mode/fallback/output_name for the trim agent.
        ctx: Application context; built from config and environment if omitted.

    Returns:
        The final session.json dict.
    """
    ctx = ctx or build_context()
    sessions_dir = ctx.sessions_dir
    sessions_dir.mkdir(parents=True, exist_ok=True)

    session_dir = create_session(sessions_dir, Path(source_path), session_id)
    session_file = session_dir / "session.json"
    with open(session_file) as f:
        session = json.load(f)

    agent_names = agents if agents else PIPELINE_ORDER
    session["status"] = "processing"
    session["pipeline"]["agents_requested"] = agent_names
    session["pipeline"]["started_at"] = datetime.now(timezone.utc).isoformat()
    _save_session(session_file, session)

    logger.info(f"Pipeline: running {len(agent_names)} agents for {session_dir.name}")

    options = {
        "transcribe": {},
        "insights": {"prompt": prompt},
        "trim": trim_options or {},
    }

    for name in agent_names:
        if name not in AGENT_REGISTRY:
            logger.warning(f"Unknown agent: {name}, skipping")
            continue

        agent = AGENT_REGISTRY[name](session_dir, ctx, options.get(name))
        session["pipeline"]["current_agent"] = name
        _save_session(session_file, session)

        try:
            result = agent.run()
        except Exception as e:
            logger.error(f"Agent {name} failed for {session_dir.name}: {e}")
            session["pipeline"].pop("current_agent", None)
            session["pipeline"].setdefault("errors", {})[name] = str(e)
            session["status"] = "error"
            _save_session(session_file, session)
            return session

        session["pipeline"]["agents_completed"].append(name)
        if name == "trim":
            session["trim"] = {
                k: v for k, v in result.items() if not k.startswith("_")
            }
        if name == "insights":
            session["insight_count"] = result.get("insight_count", 0)
        _save_session(session_file, session)

    session["pipeline"].pop("current_agent", None)
    session["pipeline"]["completed_at"] = datetime.now(timezone.utc).isoformat()
    session["status"] = "complete"
    _save_session(session_file, session)

    logger.info(f"Pipeline complete for {session_dir.name}")
    return session


def _save_session(path: Path, session: dict):
    with open(path, "w") as f:
        json.dump(session, f, indent=2, default=str)
