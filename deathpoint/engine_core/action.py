"""
Action System - Actions, payloads, and results.

Every change to a game flows through an Action:
1. Setup (start a game)
2. Play (add score, advance turn, undo)
3. Maintenance (settings corrections, restart)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(Enum):
    """Types of actions the engine accepts."""
    START_GAME = "start_game"
    ADD_SCORE = "add_score"
    NEXT_TURN = "next_turn"
    UNDO_LAST = "undo_last"
    RESTART = "restart"
    CORRECT_SETTINGS = "correct_settings"


class ErrorCode(str, Enum):
    """Machine-readable reasons an action was rejected."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NO_ACTIVE_GAME = "NO_ACTIVE_GAME"
    GAME_FINISHED = "GAME_FINISHED"
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
    NO_SCORING_ACTIVITY = "NO_SCORING_ACTIVITY"
    NOTHING_TO_UNDO = "NOTHING_TO_UNDO"
    UNDO_CROSSES_TURN = "UNDO_CROSSES_TURN"


@dataclass
class ActionPayload:
    """
    Parameters of an action.

    Different action types use different fields; validation
    happens in the engine.
    """
    player_id: str | None = None
    delta: Any = None  # number as received; validated by the engine

    # For START_GAME
    names: list[str] | None = None
    max_score: Any = None

    # For CORRECT_SETTINGS
    corrections: list[Any] | None = None


@dataclass
class Action:
    """A complete action to be applied to the game."""
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def start(cls, names: list[str], max_score: Any) -> Action:
        """Factory for starting a new game."""
        return cls(
            action_type=ActionType.START_GAME,
            payload=ActionPayload(names=names, max_score=max_score),
        )

    @classmethod
    def add_score(cls, player_id: str, delta: Any) -> Action:
        """Factory for a score addition."""
        return cls(
            action_type=ActionType.ADD_SCORE,
            payload=ActionPayload(player_id=player_id, delta=delta),
        )

    @classmethod
    def next_turn(cls) -> Action:
        return cls(action_type=ActionType.NEXT_TURN)

    @classmethod
    def undo_last(cls) -> Action:
        return cls(action_type=ActionType.UNDO_LAST)

    @classmethod
    def restart(cls) -> Action:
        return cls(action_type=ActionType.RESTART)

    @classmethod
    def correct_settings(cls, corrections: list[Any]) -> Action:
        """Factory for an advanced-settings edit."""
        return cls(
            action_type=ActionType.CORRECT_SETTINGS,
            payload=ActionPayload(corrections=corrections),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (a snapshot; None after a restart)
    - Error message and code (if rejected)
    - Human-readable changes (for UI)
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: ErrorCode | None = None

    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode | str = ErrorCode.VALIDATION_ERROR) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=ErrorCode(error_code))

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
        )
