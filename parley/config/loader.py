"""Layered TOML configuration files.

config/default.toml holds the production baseline (agents, thresholds,
backends). An optional config/{PARLEY_ENV}.toml is merged over it; the
shipped development.toml swaps every backend for its in-memory variant.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_VAR = "PARLEY_CONFIG_DIR"
ENVIRONMENT_VAR = "PARLEY_ENV"
DEFAULT_ENVIRONMENT = "development"
BASE_FILE = "default.toml"

# How many parent directories to search for config/default.toml
_SEARCH_DEPTH = 5


def get_config_dir(start: Path | None = None) -> Path:
    """Locate the directory holding default.toml.

    PARLEY_CONFIG_DIR wins when set. Otherwise the working directory and
    its parents are searched for a `config/` directory containing the
    base file, so commands work from any subdirectory of a checkout.

    Raises:
        FileNotFoundError: If PARLEY_CONFIG_DIR points at nothing
    """
    explicit = os.environ.get(CONFIG_DIR_VAR)
    if explicit:
        path = Path(explicit)
        if not path.is_dir():
            raise FileNotFoundError(f"{CONFIG_DIR_VAR} is not a directory: {explicit}")
        return path

    here = (start or Path.cwd()).resolve()
    for candidate in [here, *here.parents][:_SEARCH_DEPTH]:
        if (candidate / "config" / BASE_FILE).is_file():
            return candidate / "config"
    return Path("config")


def get_environment() -> str:
    """Deployment environment name; selects the overlay file."""
    return os.environ.get(ENVIRONMENT_VAR, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    return tomllib.loads(file_path.read_text(encoding="utf-8"))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base.

    Tables merge key by key. Everything else, arrays of tables included,
    is replaced wholesale: an overlay that declares `[[agents]]` states
    the complete agent set.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config(
    config_dir: Path | None = None, environment: str | None = None
) -> dict[str, Any]:
    """Read the base file and the environment overlay, merged.

    Raises:
        FileNotFoundError: If default.toml is missing
    """
    config_dir = config_dir or get_config_dir()
    environment = environment or get_environment()

    base_path = config_dir / BASE_FILE
    if not base_path.is_file():
        raise FileNotFoundError(
            f"Base configuration not found: {base_path}. "
            f"Create config/{BASE_FILE} or set {CONFIG_DIR_VAR}."
        )
    config = load_toml(base_path)

    overlay_path = config_dir / f"{environment}.toml"
    if overlay_path.is_file():
        config = deep_merge(config, load_toml(overlay_path))
    return config
