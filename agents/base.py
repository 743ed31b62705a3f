"""BaseAgent ABC - foundation for all Reelcut session agents."""

import json
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from lib.config import AppContext

logger = logging.getLogger("reelcut")


class BaseAgent(ABC):
    """Abstract base class for session agents.

    Each agent receives a session directory (one uploaded video) and writes a
    JSON output file alongside any media artifacts.
    """

    name: str = "base"

    def __init__(self, session_dir: Path, ctx: AppContext, options: Optional[dict] = None):
        self.session_dir = Path(session_dir)
        self.ctx = ctx
        self.config = ctx.config
        self.options = options or {}
        self.logger = logging.getLogger(f"reelcut.{self.name}")

    @abstractmethod
    def execute(self) -> dict:
        """Run the agent's core logic. Return a result dict."""
        ...

    def run(self) -> dict:
        """Execute with timing, logging, and JSON output."""
        self.logger.info(f"[{self.name}] Starting...")
        start = time.time()

        try:
            result = self.execute()
            elapsed = time.time() - start
            result["_agent"] = self.name
            result["_elapsed_seconds"] = round(elapsed, 2)
            result["_status"] = "completed"
            self.logger.info(f"[{self.name}] Completed in {elapsed:.1f}s")
        except Exception as e:
            elapsed = time.time() - start
            result = {
                "_agent": self.name,
                "_elapsed_seconds": round(elapsed, 2),
                "_status": "failed",
                "_error": str(e),
            }
            self.logger.error(f"[{self.name}] Failed after {elapsed:.1f}s: {e}")
            self.save_json(f"{self.name}.json", result)
            raise

        self.save_json(f"{self.name}.json", result)
        return result

    def source_path(self) -> Path:
        """Path of the uploaded source video recorded in session.json."""
        session = self.load_json("session.json")
        return self.session_dir / session["source_file"]

    def load_json(self, filename: str) -> dict:
        """Load a JSON file from the session directory."""
        path = self.session_dir / filename
        with open(path) as f:
            return json.load(f)

    def save_json(self, filename: str, data: dict):
        """Save a JSON file to the session directory."""
        path = self.session_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(data, f, indent=2, default=str)
