"""Configuration loading and the per-process application context."""

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from lib.errors import ConfigError
from lib.paths import get_media_dir, get_project_root, resolve_path
from lib.runner import SubprocessRunner
from lib.storage import LocalStorage, Storage, SupabaseStorage

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = get_project_root() / "config" / "config.toml"


def load_config(path: Optional[Path] = None) -> dict:
    """Load config.toml (project config/ directory by default)."""
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        logger.warning("Config file %s not found, using defaults", config_path)
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e


@dataclass
class AppContext:
    """Credentials, endpoints, and backends, built once and passed around."""

    config: dict = field(default_factory=dict)
    anthropic_api_key: str = ""
    deepgram_api_key: str = ""
    storage: Optional[Storage] = None
    media_dir: Path = field(default_factory=get_media_dir)
    sessions_dir: Optional[Path] = None
    tool_timeout: Optional[float] = None

    def require(self, name: str) -> str:
        """Return a credential attribute or raise ConfigError naming its env var."""
        value = getattr(self, name)
        if not value:
            raise ConfigError(f"{name.upper()} not set in environment")
        return value

    def make_runner(self) -> SubprocessRunner:
        return SubprocessRunner("ffmpeg", timeout=self.tool_timeout)


def build_context(config: Optional[dict] = None, env: Optional[dict] = None) -> AppContext:
    """Build the AppContext from config plus environment variables.

    Storage is Supabase when SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are both
    set (or storage.backend = "supabase"), else a local media directory.
    """
    config = config if config is not None else load_config()
    env = env if env is not None else os.environ

    paths = config.get("paths", {})
    media_dir = get_media_dir()
    sessions_dir = resolve_path(paths.get("sessions_dir", ""), "sessions")

    sc = config.get("storage", {})
    backend = sc.get("backend", "auto")
    supabase_url = env.get("SUPABASE_URL", "")
    supabase_key = env.get("SUPABASE_SERVICE_ROLE_KEY", "")

    if backend == "supabase" or (backend == "auto" and supabase_url and supabase_key):
        if not (supabase_url and supabase_key):
            raise ConfigError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required for supabase storage")
        storage: Storage = SupabaseStorage(
            supabase_url, supabase_key, bucket=sc.get("bucket", "video-processing"),
        )
    else:
        storage = LocalStorage(media_dir, base_url=sc.get("base_url", "/media"))

    timeout = config.get("trim", {}).get("tool_timeout_seconds")

    return AppContext(
        config=config,
        anthropic_api_key=env.get("ANTHROPIC_API_KEY", ""),
        deepgram_api_key=env.get("DEEPGRAM_API_KEY", ""),
        storage=storage,
        media_dir=media_dir,
        sessions_dir=sessions_dir,
        tool_timeout=float(timeout) if timeout else None,
    )
