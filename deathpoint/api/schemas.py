"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a scoreboard client and the
engine. Risk figures are included per player so a client can render
the whole board from one response.

Error Codes:
- VALIDATION_ERROR: Bad input (names, max score, delta, corrections)
- NO_ACTIVE_GAME: No game has been started
- GAME_FINISHED: Operation not allowed on a finished game
- UNKNOWN_PLAYER: Player id does not exist
- NO_SCORING_ACTIVITY: Nobody scored, the turn cannot advance
- NOTHING_TO_UNDO / UNDO_CROSSES_TURN: Undo not possible
- PERSISTENCE_ERROR: The game could not be saved
"""

from enum import Enum
from typing import Optional, Any, Union
from pydantic import BaseModel, Field, StrictFloat, StrictInt


# =============================================================================
# Enums
# =============================================================================

class GameStatusValue(str, Enum):
    """Game status as seen by clients."""
    NO_GAME = "no_game"
    PLAYING = "playing"
    FINISHED = "finished"


class ErrorCode(str, Enum):
    """Structured error codes."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NO_ACTIVE_GAME = "NO_ACTIVE_GAME"
    GAME_FINISHED = "GAME_FINISHED"
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
    NO_SCORING_ACTIVITY = "NO_SCORING_ACTIVITY"
    NOTHING_TO_UNDO = "NOTHING_TO_UNDO"
    UNDO_CROSSES_TURN = "UNDO_CROSSES_TURN"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class PlayerInfo(BaseModel):
    """Player row of the scoreboard."""
    player_id: str
    name: str
    score: int = 0
    headroom: int = Field(0, description="Points left before the ceiling")
    rank: int = Field(1, description="Dense rank by score, 1 = highest")
    in_danger: bool = False
    has_scored_this_turn: bool = False
    loss_probability: int = Field(0, ge=0, le=100)
    expected_turns_to_finish: Optional[int] = Field(
        None, description="Null when unknown"
    )


class ActionInfo(BaseModel):
    """A score addition that can still be undone."""
    player_id: str
    player_name: str
    delta: int
    turn: int
    timestamp: float


# =============================================================================
# Request Models
# =============================================================================

class StartGameRequest(BaseModel):
    """Request to start a new game (replaces any running one)."""
    names: list[str] = Field(..., description="Player names; blanks are ignored")
    max_score: Optional[Union[StrictInt, StrictFloat]] = Field(
        None, description="Ceiling; server default when omitted"
    )


class AddScoreRequest(BaseModel):
    """Request to add points to a player."""
    player_id: str
    delta: Union[StrictInt, StrictFloat] = Field(..., description="Positive whole number")


class CorrectionsRequest(BaseModel):
    """
    Request to edit a running game.

    Each item has a "type" (set_player_name, set_player_score,
    set_max_score, set_turn) and the fields that type needs.
    """
    corrections: list[dict[str, Any]] = Field(
        ..., description="Corrections applied all-or-nothing"
    )


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    status: GameStatusValue
    turn: int = 0
    max_score: int = 0
    players: list[PlayerInfo] = Field(default_factory=list)
    loser: Optional[PlayerInfo] = None
    safe_player_ids: list[str] = Field(default_factory=list)
    scored_count: int = 0
    can_undo: bool = False
    can_advance: bool = False
    last_action: Optional[ActionInfo] = None
    start_time: Optional[float] = None
    elapsed: Optional[str] = Field(None, description="e.g. '12m 5s'")
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Response after a successful operation."""
    success: bool = True
    changes: list[str] = Field(default_factory=list)
    game: GameStateResponse
    api_version: str = "v1"


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    environment: str
