"""
Player setup helpers.
"""

from __future__ import annotations
from typing import Iterable, Mapping, Any
import uuid

from ..exceptions import ValidationError
from .state import Player, MIN_PLAYERS


def generate_player_id() -> str:
    """Fresh opaque player id."""
    return str(uuid.uuid4())


def clean_names(names: Iterable[Any]) -> list[str]:
    """Trim names and drop the empty ones. Non-strings are dropped too."""
    cleaned = []
    for name in names:
        if not isinstance(name, str):
            continue
        name = name.strip()
        if name:
            cleaned.append(name)
    return cleaned


def create_players(names: Iterable[Any]) -> list[Player]:
    """
    Build the initial players from raw name input.

    Each trimmed, non-empty name gets a fresh id and a zero score.

    Raises:
        ValidationError: fewer than MIN_PLAYERS usable names
    """
    cleaned = clean_names(names)
    if len(cleaned) < MIN_PLAYERS:
        raise ValidationError(f"At least {MIN_PLAYERS} players are required.")
    return [Player(player_id=generate_player_id(), name=name, score=0) for name in cleaned]


def ensure_turn_progress(
    players: list[Player],
    progress: Mapping[str, Any] | None,
) -> dict[str, bool]:
    """Keep only truthy progress entries that name a current player."""
    if not isinstance(progress, Mapping):
        return {}
    return {
        p.player_id: True
        for p in players
        if progress.get(p.player_id)
    }
