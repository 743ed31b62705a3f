"""Shared FastAPI dependencies."""

import functools

from lib.config import AppContext, build_context


@functools.lru_cache(maxsize=1)
def get_context() -> AppContext:
    """Build the process-wide AppContext once (config.toml + environment)."""
    return build_context()
