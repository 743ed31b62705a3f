"""Centralized path resolution for Reelcut."""

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def get_project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


def resolve_path(configured_path: str, local_fallback: str) -> Path:
    """Resolve a configured path with automatic local fallback.

    Environment overrides win. Otherwise an absolute configured path is used
    when its parent exists; anything else resolves under PROJECT_ROOT.

    Args:
        configured_path: Path from config.toml (may be absolute, relative, or empty).
        local_fallback: Relative path under PROJECT_ROOT to use as fallback.
    """
    env_map = {
        "sessions": "REELCUT_SESSIONS_DIR",
    }
    for key, env_var in env_map.items():
        if key in local_fallback:
            env_val = os.getenv(env_var, "")
            if env_val:
                return Path(env_val)

    if configured_path:
        p = Path(configured_path)
        if p.is_absolute() and p.parent.exists():
            return p

    return PROJECT_ROOT / local_fallback


def get_media_dir() -> Path:
    """Return the directory trimmed outputs are stored in when storage is local."""
    env_dir = os.getenv("REELCUT_MEDIA_DIR", "")
    if env_dir:
        return Path(env_dir)
    return PROJECT_ROOT / "media"
