"""
API Module - HTTP interface for scoreboard clients.

Exposes the engine via a local REST API. A client:
1. Starts a game with player names and a ceiling
2. Adds scores as they are announced
3. Advances turns (the loss check happens here)
4. Undoes mistakes within the current turn
5. Renders the board, risk figures included, from each response
"""

from .schemas import (
    # Requests
    StartGameRequest,
    AddScoreRequest,
    CorrectionsRequest,
    # Responses
    ActionResponse,
    GameStateResponse,
    ErrorResponse,
    HealthResponse,
    # Shared
    PlayerInfo,
    ActionInfo,
    # Enums
    ErrorCode,
    GameStatusValue,
)
from .service import GameService
from .app import create_app

__all__ = [
    # Requests
    "StartGameRequest",
    "AddScoreRequest",
    "CorrectionsRequest",
    # Responses
    "ActionResponse",
    "GameStateResponse",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "PlayerInfo",
    "ActionInfo",
    # Enums
    "ErrorCode",
    "GameStatusValue",
    # Service
    "GameService",
    "create_app",
]
