"""Reelcut API - FastAPI entry point."""

import logging
from pathlib import Path

# Load .env BEFORE building the app context (it reads credentials from the environment)
from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from lib.errors import (
    ConfigError,
    ExtractionError,
    RangeError,
    ReelcutError,
    ToolError,
    TranscriptionError,
)
from lib.paths import get_media_dir
from server.routes import insights, sessions, transcribe, trim

logger = logging.getLogger(__name__)

MEDIA_DIR = get_media_dir()

app = FastAPI(title="Reelcut API", version="0.1.0")

# CORS - allow all for local dev
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(transcribe.router)
app.include_router(insights.router)
app.include_router(trim.router)
app.include_router(sessions.router)

# Locally stored trims are served from here (directory is created on first store)
app.mount("/media", StaticFiles(directory=str(MEDIA_DIR), check_dir=False), name="media")


def _status_for(exc: ReelcutError) -> int:
    if isinstance(exc, RangeError):
        return 400
    if isinstance(exc, (ExtractionError, TranscriptionError)):
        return 502
    return 500


@app.exception_handler(ReelcutError)
async def reelcut_error_handler(request: Request, exc: ReelcutError):
    """Structured {error, details} body for every core failure."""
    status = _status_for(exc)
    if isinstance(exc, ToolError):
        details = exc.stderr
    elif isinstance(exc, ConfigError):
        details = "Server is missing required configuration"
    else:
        details = f"{type(exc).__name__}: {exc}"
    logger.error("%s %s failed (%d): %s", request.method, request.url.path, status, exc)
    return JSONResponse({"error": str(exc) or type(exc).__name__, "details": details}, status_code=status)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Route-level rejections (bad base64, missing fields) use the same body shape."""
    return JSONResponse(
        {"error": str(exc.detail), "details": f"{request.method} {request.url.path}"},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"error": "Invalid request", "details": str(exc.errors())},
        status_code=400,
    )


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok"}
