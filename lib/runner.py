"""Media tool runners - the only place a trim spawns a process."""

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Protocol

from lib.errors import ToolError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    exit_code: int
    stdout: str
    stderr: str


class MediaToolRunner(Protocol):
    def run(self, args: List[str]) -> ToolResult:
        ...


class SubprocessRunner:
    """Run ffmpeg (or another binary) to completion and capture its output.

    There is no timeout unless one is given; expiry is reported as a ToolError
    so callers treat it like any other tool failure.
    """

    def __init__(self, binary: str = "ffmpeg", timeout: Optional[float] = None):
        self.binary = binary
        self.timeout = timeout

    def run(self, args: List[str]) -> ToolResult:
        cmd = [self.binary, *args]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise ToolError(f"{self.binary} timed out after {self.timeout}s")
        except FileNotFoundError:
            raise ToolError(f"{self.binary} not found on PATH")
        return ToolResult(exit_code=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
