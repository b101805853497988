"""
Display helpers for scoreboards.
"""

from __future__ import annotations

from .state import GameState, Player


def player_rank(player: Player, state: GameState) -> int:
    """Dense rank by score, highest first (1, 1, 2, ...)."""
    distinct = sorted({p.score for p in state.players}, reverse=True)
    return distinct.index(player.score) + 1


def is_in_danger(player: Player, state: GameState) -> bool:
    """The player (or players) holding the top score while the game runs."""
    return not state.is_finished and player_rank(player, state) == 1


def safe_players(state: GameState) -> list[Player]:
    """Everyone except the loser, once the game is over."""
    if not state.is_finished or state.loser_id is None:
        return []
    return [p for p in state.players if p.player_id != state.loser_id]


def format_duration(seconds: float) -> str:
    """Elapsed time as '1h 2m', '3m 4s' or '5s'."""
    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
