"""Layered TOML files for emma settings.

config/default.toml is overlaid by config/<EMMA_ENV>.toml; both are
optional so a bare checkout runs on the model defaults alone.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "EMMA_CONFIG_DIR"
ENVIRONMENT_ENV = "EMMA_ENV"
DEFAULT_ENVIRONMENT = "development"

# Parent directories searched for a config/ folder
_SEARCH_DEPTH = 5


def get_config_dir() -> Path:
    """Locate the directory holding the TOML layers.

    EMMA_CONFIG_DIR wins and must exist. Otherwise the nearest config/
    folder from the working directory upwards is used, falling back to
    a relative config/ that may not exist.
    """
    explicit = os.environ.get(CONFIG_DIR_ENV)
    if explicit:
        path = Path(explicit)
        if not path.exists():
            raise FileNotFoundError(f"{CONFIG_DIR_ENV} points to a missing directory: {explicit}")
        return path

    here = Path.cwd()
    for candidate in [here, *here.parents][:_SEARCH_DEPTH]:
        if (candidate / "config").exists():
            return candidate / "config"
    return Path("config")


def get_environment() -> str:
    """Name of the environment overlay (EMMA_ENV, default 'development')."""
    return os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If file_path is absent
        tomllib.TOMLDecodeError: On malformed TOML
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    with file_path.open("rb") as fh:
        return tomllib.load(fh)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Overlay override onto a copy of base.

    Tables merge key by key; scalars and arrays from override win.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config() -> dict[str, Any]:
    """Merge the default and environment layers that exist on disk."""
    config_dir = get_config_dir()
    layers = [config_dir / "default.toml", config_dir / f"{get_environment()}.toml"]

    config: dict[str, Any] = {}
    for layer in layers:
        if layer.exists():
            config = deep_merge(config, load_toml(layer))
    return config
