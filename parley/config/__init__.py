"""Configuration loading for Parley.

Usage:
    from parley.config import get_settings

    settings = get_settings()
    limit = settings.admission.request_limit
"""

from functools import lru_cache
from pathlib import Path

from parley.config.loader import load_config
from parley.config.settings import Settings


def load_settings(
    config_dir: Path | None = None, environment: str | None = None
) -> Settings:
    """Build a fresh Settings from the TOML files and the environment."""
    return Settings.from_document(load_config(config_dir, environment))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, loaded once.

    Call `reload_settings()` (or `get_settings.cache_clear()`) to pick up
    changed files or environment variables.
    """
    return load_settings()


def reload_settings() -> Settings:
    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "get_settings", "load_settings", "reload_settings"]
