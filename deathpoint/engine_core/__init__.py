"""
Engine Core - Game state, turn engine and risk heuristics.

The engine is the runtime that:
1. Creates players and validates stored games
2. Owns the GameState
3. Applies actions (score, advance, undo, corrections)
4. Writes every change through a store
5. Exposes advisory risk estimates per player
"""

from .state import GameState, GameStatus, Player, ScoreAction, TurnSnapshot, MIN_PLAYERS
from .action import Action, ActionType, ActionPayload, ActionResult, ErrorCode
from .players import create_players, ensure_turn_progress
from .snapshot import normalize
from .engine import TurnEngine
from .risk import loss_probability, expected_turns_to_finish
from .display import player_rank, is_in_danger, safe_players, format_duration
from .corrections import (
    SetPlayerName,
    SetPlayerScore,
    SetMaxScore,
    SetTurn,
    CorrectionBatch,
    parse_correction,
    parse_corrections,
)

__all__ = [
    "GameState",
    "GameStatus",
    "Player",
    "ScoreAction",
    "TurnSnapshot",
    "MIN_PLAYERS",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "create_players",
    "ensure_turn_progress",
    "normalize",
    "TurnEngine",
    "loss_probability",
    "expected_turns_to_finish",
    "player_rank",
    "is_in_danger",
    "safe_players",
    "format_duration",
    "SetPlayerName",
    "SetPlayerScore",
    "SetMaxScore",
    "SetTurn",
    "CorrectionBatch",
    "parse_correction",
    "parse_corrections",
]
