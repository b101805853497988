"""
Settings Corrections - Typed edits to a running game.

The table sometimes needs to fix what was entered: a misspelled name,
a score typed into the wrong row, the wrong ceiling. Corrections are
explicit, validated types instead of a free-form rewrite of the game.

Correction Types:
- SetPlayerName: Rename a player
- SetPlayerScore: Overwrite a player's score
- SetMaxScore: Change the ceiling
- SetTurn: Change the turn number
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from ..exceptions import ValidationError
from .state import GameState, Player
from .validation import coerce_max_score, coerce_score, coerce_turn


class CorrectionType(Enum):
    """Types of corrections a user can make."""
    SET_PLAYER_NAME = "set_player_name"
    SET_PLAYER_SCORE = "set_player_score"
    SET_MAX_SCORE = "set_max_score"
    SET_TURN = "set_turn"


@dataclass
class SetPlayerName:
    """
    Rename a player.

    Examples:
        SetPlayerName(player_id="3f2c...", name="Lan")
    """
    player_id: str
    name: str

    @property
    def correction_type(self) -> CorrectionType:
        return CorrectionType.SET_PLAYER_NAME

    def apply(self, state: GameState) -> GameState:
        player = _require_player(state, self.player_id)
        name = self.name.strip() if isinstance(self.name, str) else ""
        if not name:
            raise ValidationError("Player name cannot be empty.")
        return state.with_player(
            Player(player_id=player.player_id, name=name, score=player.score)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.correction_type.value,
            "player_id": self.player_id,
            "name": self.name,
        }


@dataclass
class SetPlayerScore:
    """
    Overwrite a player's score.

    Examples:
        SetPlayerScore(player_id="3f2c...", score=42)
    """
    player_id: str
    score: Any

    @property
    def correction_type(self) -> CorrectionType:
        return CorrectionType.SET_PLAYER_SCORE

    def apply(self, state: GameState) -> GameState:
        player = _require_player(state, self.player_id)
        return state.with_player(player.with_score(coerce_score(self.score)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.correction_type.value,
            "player_id": self.player_id,
            "score": self.score,
        }


@dataclass
class SetMaxScore:
    """Change the ceiling."""
    max_score: Any

    @property
    def correction_type(self) -> CorrectionType:
        return CorrectionType.SET_MAX_SCORE

    def apply(self, state: GameState) -> GameState:
        return state._copy_with(max_score=coerce_max_score(self.max_score))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.correction_type.value, "max_score": self.max_score}


@dataclass
class SetTurn:
    """Change the turn number."""
    turn: Any

    @property
    def correction_type(self) -> CorrectionType:
        return CorrectionType.SET_TURN

    def apply(self, state: GameState) -> GameState:
        return state._copy_with(turn=coerce_turn(self.turn))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.correction_type.value, "turn": self.turn}


# Union type for all corrections
Correction = Union[SetPlayerName, SetPlayerScore, SetMaxScore, SetTurn]


def _require_player(state: GameState, player_id: str) -> Player:
    player = state.get_player(player_id)
    if player is None:
        raise ValidationError(f"Unknown player: {player_id}", error_code="UNKNOWN_PLAYER")
    return player


def parse_correction(data: dict[str, Any]) -> Correction:
    """
    Parse a correction from a dictionary.

    Args:
        data: Dictionary with "type" key and correction-specific fields

    Returns:
        Typed Correction object

    Raises:
        ValidationError: If type is unknown or required fields are missing
    """
    if not isinstance(data, dict):
        raise ValidationError("Correction must be an object")

    correction_type = data.get("type")
    if not correction_type:
        raise ValidationError("Correction missing 'type' field")

    try:
        ctype = CorrectionType(correction_type)
    except ValueError:
        raise ValidationError(f"Unknown correction type: {correction_type}")

    try:
        if ctype == CorrectionType.SET_PLAYER_NAME:
            return SetPlayerName(player_id=data["player_id"], name=data["name"])
        elif ctype == CorrectionType.SET_PLAYER_SCORE:
            return SetPlayerScore(player_id=data["player_id"], score=data["score"])
        elif ctype == CorrectionType.SET_MAX_SCORE:
            return SetMaxScore(max_score=data["max_score"])
        else:
            return SetTurn(turn=data["turn"])
    except KeyError as e:
        raise ValidationError(f"Correction '{ctype.value}' missing field {e.args[0]!r}")


def parse_corrections(data: list[dict[str, Any]]) -> list[Correction]:
    """Parse a list of corrections from dictionaries."""
    return [parse_correction(d) for d in data]


@dataclass
class CorrectionBatch:
    """
    A batch of corrections to apply together.

    Corrections are applied in order. If any correction fails,
    the entire batch is rejected.
    """
    corrections: list[Correction]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CorrectionBatch:
        """Create from API request format."""
        return cls(corrections=parse_corrections(data.get("corrections", [])))

    def apply(self, state: GameState) -> GameState:
        """Return a corrected copy of state; raises ValidationError on the first bad edit."""
        for correction in self.corrections:
            state = correction.apply(state)
        return state
