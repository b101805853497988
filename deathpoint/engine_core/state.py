"""
Game State - Players, undo log entries and the game aggregate.

Design principles:
- Explicitly owned: only TurnEngine mutates a GameState
- Serializable: to_dict() is the snapshot written by the stores
- Turn-scoped history: action_log only holds the turn in progress
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
from copy import deepcopy
from enum import Enum

MIN_PLAYERS = 2


class GameStatus(Enum):
    """Lifecycle of a running game."""
    PLAYING = "playing"
    FINISHED = "finished"


@dataclass
class Player:
    """A seat at the table. Players are fixed for the whole game."""
    player_id: str
    name: str
    score: int = 0

    def with_score(self, score: int) -> Player:
        """Return a copy with a different score."""
        return Player(player_id=self.player_id, name=self.name, score=score)

    def to_dict(self) -> dict[str, Any]:
        return {"player_id": self.player_id, "name": self.name, "score": self.score}


@dataclass
class TurnSnapshot:
    """
    The part of GameState that add_score may change besides the score.

    Stored on each ScoreAction so undo can put it back exactly.
    """
    turn_progress: dict[str, bool] = field(default_factory=dict)
    status: GameStatus = GameStatus.PLAYING
    loser_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "turn_progress": dict(self.turn_progress),
            "status": self.status.value,
            "loser_id": self.loser_id,
        }


@dataclass
class ScoreAction:
    """
    One score addition in the current turn (undo log entry).

    Inverting it means subtracting delta from the player and
    restoring snapshot_before_apply.
    """
    player_id: str
    delta: int
    turn: int
    timestamp: float
    snapshot_before_apply: TurnSnapshot = field(default_factory=TurnSnapshot)

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "delta": self.delta,
            "turn": self.turn,
            "timestamp": self.timestamp,
            "snapshot_before_apply": self.snapshot_before_apply.to_dict(),
        }


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    Player order is fixed at creation; it is the scan order for the
    loss check and the tie-break between players over the ceiling.
    """
    players: list[Player]
    max_score: int

    status: GameStatus = GameStatus.PLAYING
    loser_id: str | None = None

    # Turn tracking
    turn: int = 1
    turn_progress: dict[str, bool] = field(default_factory=dict)  # player_id -> scored this turn

    # Undo log, cleared on every turn advance
    action_log: list[ScoreAction] = field(default_factory=list)

    start_time: float = 0.0

    @property
    def is_finished(self) -> bool:
        return self.status == GameStatus.FINISHED

    @property
    def loser(self) -> Player | None:
        """The recorded loser, if any."""
        if self.loser_id is None:
            return None
        return self.get_player(self.loser_id)

    @property
    def last_action(self) -> ScoreAction | None:
        return self.action_log[-1] if self.action_log else None

    @property
    def scored_count(self) -> int:
        """Number of players who scored in the current turn."""
        return len(self.turn_progress)

    @property
    def player_ids(self) -> list[str]:
        return [p.player_id for p in self.players]

    def get_player(self, player_id: str) -> Player | None:
        """Get player by ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def with_player(self, player: Player) -> GameState:
        """Return new state with updated player."""
        new_players = [
            player if p.player_id == player.player_id else p
            for p in self.players
        ]
        return self._copy_with(players=new_players)

    def snapshot(self) -> TurnSnapshot:
        """Capture the fields an undo has to restore."""
        return TurnSnapshot(
            turn_progress=dict(self.turn_progress),
            status=self.status,
            loser_id=self.loser_id,
        )

    def first_over_limit(self) -> Player | None:
        """First player, in creation order, whose score reached the ceiling."""
        for p in self.players:
            if p.score >= self.max_score:
                return p
        return None

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return GameState(
            players=kwargs.get("players", list(self.players)),
            max_score=kwargs.get("max_score", self.max_score),
            status=kwargs.get("status", self.status),
            loser_id=kwargs.get("loser_id", self.loser_id),
            turn=kwargs.get("turn", self.turn),
            turn_progress=kwargs.get("turn_progress", dict(self.turn_progress)),
            action_log=kwargs.get("action_log", list(self.action_log)),
            start_time=kwargs.get("start_time", self.start_time),
        )

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready snapshot, the inverse of snapshot.normalize()."""
        return {
            "players": [p.to_dict() for p in self.players],
            "max_score": self.max_score,
            "status": self.status.value,
            "loser_id": self.loser_id,
            "turn": self.turn,
            "turn_progress": dict(self.turn_progress),
            "action_log": [a.to_dict() for a in self.action_log],
            "start_time": self.start_time,
        }
