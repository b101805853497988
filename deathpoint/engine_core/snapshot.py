"""
Snapshot Schema - Validation of games loaded from storage.

A stored game may be stale or hand-edited. normalize() runs it through
an explicit schema once, at load time:
- Structurally broken snapshots (bad players, bad ceiling, unknown
  status, finished without a loser) are treated as absent
- Soft fields fall back to safe values: turn -> 1, start_time -> now,
  turn_progress -> only current players, action_log -> [] if malformed
  or if an undo entry could restore a finished game without a loser
"""

from __future__ import annotations
import time
from typing import Any, Literal, Mapping, Optional

import structlog
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    TypeAdapter,
    field_validator,
)
from pydantic import ValidationError as SchemaError

from .state import GameState, GameStatus, Player, ScoreAction, TurnSnapshot, MIN_PLAYERS
from .players import ensure_turn_progress
from .validation import is_finite_number, round_half_up

logger = structlog.get_logger()


class StoredPlayer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    player_id: StrictStr = Field(min_length=1)
    name: StrictStr
    score: StrictInt = Field(ge=0)


class StoredTurnSnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore")

    turn_progress: dict[StrictStr, Any] = Field(default_factory=dict)
    status: Literal["playing", "finished"] = "playing"
    loser_id: Optional[StrictStr] = None


class StoredAction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    player_id: StrictStr
    delta: StrictInt = Field(gt=0)
    turn: StrictInt = Field(ge=1)
    timestamp: float = Field(allow_inf_nan=False)
    snapshot_before_apply: StoredTurnSnapshot = Field(default_factory=StoredTurnSnapshot)


class StoredGame(BaseModel):
    """
    Top-level shape of a persisted game.

    Only the fields that make a game unusable when wrong are strict;
    the rest are checked leniently in normalize().
    """
    model_config = ConfigDict(extra="ignore")

    players: list[StoredPlayer] = Field(min_length=MIN_PLAYERS)
    max_score: Any
    status: Literal["playing", "finished"]
    loser_id: Optional[StrictStr] = None

    turn: Any = None
    turn_progress: Any = None
    action_log: Any = None
    start_time: Any = None

    @field_validator("max_score")
    @classmethod
    def _check_max_score(cls, value: Any) -> Any:
        if not is_finite_number(value) or value <= 0:
            raise ValueError("max_score must be a finite number greater than 0")
        return value


_ACTION_LOG = TypeAdapter(list[StoredAction])


def normalize(raw: Any, now: float | None = None) -> GameState | None:
    """
    Turn a loaded snapshot into a GameState that satisfies the invariants.

    Returns None when the snapshot cannot be trusted at all.
    """
    if not isinstance(raw, Mapping):
        return None

    try:
        stored = StoredGame.model_validate(raw)
    except SchemaError as e:
        logger.warning("discarding invalid game snapshot", error_count=e.error_count())
        return None

    players = [
        Player(player_id=p.player_id, name=p.name, score=p.score)
        for p in stored.players
    ]
    player_ids = [p.player_id for p in players]
    if len(set(player_ids)) != len(player_ids):
        logger.warning("discarding game snapshot with duplicate player ids")
        return None

    status = GameStatus(stored.status)
    loser_id = stored.loser_id if status == GameStatus.FINISHED else None
    if status == GameStatus.FINISHED and loser_id not in player_ids:
        logger.warning("discarding finished game snapshot without a valid loser")
        return None

    return GameState(
        players=players,
        max_score=max(1, round_half_up(stored.max_score)),
        status=status,
        loser_id=loser_id,
        turn=_safe_turn(stored.turn),
        turn_progress=ensure_turn_progress(players, stored.turn_progress),
        action_log=_normalize_action_log(players, stored.action_log),
        start_time=(
            float(stored.start_time)
            if is_finite_number(stored.start_time)
            else (now if now is not None else time.time())
        ),
    )


def _safe_turn(value: Any) -> int:
    if is_finite_number(value) and value >= 1 and float(value).is_integer():
        return int(value)
    return 1


def _normalize_action_log(players: list[Player], raw: Any) -> list[ScoreAction]:
    """Parse the undo log; any malformed or foreign entry empties it."""
    if raw is None:
        return []
    try:
        entries = _ACTION_LOG.validate_python(raw)
    except SchemaError:
        logger.warning("dropping malformed action log from snapshot")
        return []

    known = {p.player_id for p in players}
    if any(entry.player_id not in known for entry in entries):
        logger.warning("dropping action log that references unknown players")
        return []

    if any(
        entry.snapshot_before_apply.status == "finished"
        and entry.snapshot_before_apply.loser_id not in known
        for entry in entries
    ):
        logger.warning("dropping action log with a finished snapshot lacking a valid loser")
        return []

    return [
        ScoreAction(
            player_id=entry.player_id,
            delta=entry.delta,
            turn=entry.turn,
            timestamp=entry.timestamp,
            snapshot_before_apply=TurnSnapshot(
                turn_progress=ensure_turn_progress(
                    players, entry.snapshot_before_apply.turn_progress
                ),
                status=GameStatus(entry.snapshot_before_apply.status),
                loser_id=(
                    entry.snapshot_before_apply.loser_id
                    if entry.snapshot_before_apply.status == "finished"
                    else None
                ),
            ),
        )
        for entry in entries
    ]
