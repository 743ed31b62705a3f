"""Error types raised by the Reelcut core."""

from typing import Optional


class ReelcutError(Exception):
    """Base class for all Reelcut errors."""


class ConfigError(ReelcutError):
    pass


class ParseError(ReelcutError, ValueError):
    """Malformed MM:SS timestamp text."""


class ExtractionError(ReelcutError):
    """The insight-generation collaborator failed."""


class RangeError(ReelcutError, ValueError):
    """Invalid trim bounds. Raised before any subprocess runs."""


class ToolError(ReelcutError):
    """The external media tool exited non-zero (or was cancelled)."""

    def __init__(self, stderr: str, exit_code: Optional[int] = None):
        super().__init__(stderr)
        self.stderr = stderr
        self.exit_code = exit_code


class TrimIOError(ReelcutError, OSError):
    """Temp file write/read failure during a trim."""


class UploadError(ReelcutError):
    """Durable-storage transfer failure."""


class DecodeError(ReelcutError):
    """Fallback trimmer could not open or read the source."""


class CaptureError(ReelcutError):
    """Fallback trimmer failed (or was cancelled) while capturing frames."""


class TranscriptionError(ReelcutError):
    """The transcription collaborator failed or returned an error payload."""
