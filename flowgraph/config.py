"""
Runtime settings for the CLI and the HTTP server.

Values come from the environment, after loading the nearest .env file
(current directory first, then its parents). The conversion functions do
not read settings themselves; callers pass the values in.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_DIRECTION = "TD"
DEFAULT_LABEL_MAX_CHARS = 25
DEFAULT_MAX_INPUT_CHARS = 200_000

_DIRECTIONS = ("TD", "TB", "BT", "LR", "RL")
_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    direction: str = DEFAULT_DIRECTION
    label_max_chars: int = DEFAULT_LABEL_MAX_CHARS
    max_input_chars: int = DEFAULT_MAX_INPUT_CHARS
    validate_with_mmdc: bool = False


def find_env_file(start: Optional[Path] = None) -> Optional[Path]:
    """Return the closest .env walking up from ``start`` (default: cwd)."""
    start = start or Path.cwd()
    env_path = start / ".env"
    if env_path.exists():
        return env_path
    for parent in start.parents:
        candidate = parent / ".env"
        if candidate.exists():
            return candidate
    return None


def _positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return value if value > 0 else default


def settings_from_env(environ: Mapping[str, str]) -> Settings:
    direction = environ.get("FLOWGRAPH_DIRECTION", DEFAULT_DIRECTION).strip().upper()
    if direction not in _DIRECTIONS:
        direction = DEFAULT_DIRECTION
    return Settings(
        direction=direction,
        label_max_chars=_positive_int(environ.get("FLOWGRAPH_LABEL_MAX_CHARS"), DEFAULT_LABEL_MAX_CHARS),
        max_input_chars=_positive_int(environ.get("FLOWGRAPH_MAX_INPUT_CHARS"), DEFAULT_MAX_INPUT_CHARS),
        validate_with_mmdc=environ.get("FLOWGRAPH_VALIDATE_WITH_MMDC", "").strip().lower() in _TRUTHY,
    )


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Load .env (if any) into the process environment and build Settings."""
    env_path = env_file or find_env_file()
    if env_path and env_path.exists():
        load_dotenv(env_path)
    return settings_from_env(os.environ)
