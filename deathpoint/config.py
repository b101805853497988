"""
Environment configuration.

    DEATHPOINT_ENV                 development / production
    DEATHPOINT_STATE_FILE          JSON file holding the running game
    DEATHPOINT_DEFAULT_MAX_SCORE   ceiling offered when none is given
    ALLOWED_ORIGINS                comma separated CORS origins for the HTTP app
"""

from __future__ import annotations
import os
from pathlib import Path

DEATHPOINT_ENV = os.getenv("DEATHPOINT_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def default_state_path() -> Path:
    """Path of the JSON store, from DEATHPOINT_STATE_FILE or ~/.deathpoint/game.json."""
    configured = os.getenv("DEATHPOINT_STATE_FILE")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".deathpoint" / "game.json"


def default_max_score() -> int:
    """Ceiling used when the caller does not pass one."""
    raw = os.getenv("DEATHPOINT_DEFAULT_MAX_SCORE", "100")
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"DEATHPOINT_DEFAULT_MAX_SCORE must be an integer, got {raw!r}")
    if value < 1:
        raise ValueError(f"DEATHPOINT_DEFAULT_MAX_SCORE must be >= 1, got {value}")
    return value
