"""Centralized config loading — read once at import time.

Set CODEPLOT_CONFIG to point at another YAML file. Keys it leaves out keep
their packaged defaults.
"""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Load .env from project root (parent of codeplot/). API keys live there.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"
CONFIG_ENV_VAR = "CODEPLOT_CONFIG"


def resolve_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def load_config(path: Path | None = None) -> dict:
    """Read the packaged defaults, then overlay ``path`` (or the env override) on top."""
    config = yaml.safe_load(DEFAULT_CONFIG_PATH.read_text()) or {}
    path = Path(path) if path is not None else resolve_config_path()
    if path != DEFAULT_CONFIG_PATH:
        overrides = yaml.safe_load(path.read_text()) or {}
        if not isinstance(overrides, dict):
            raise ValueError(f"Config file {path} must contain a mapping, got {type(overrides).__name__}.")
        config.update(overrides)
    return config


_config = load_config()


def get_config() -> dict:
    """Return the loaded config dictionary."""
    return _config
