"""
FastAPI Application - Local REST API for a scoreboard client.

Endpoints:
    GET    /api/v1/game                 Current scoreboard
    POST   /api/v1/game                 Start a new game
    DELETE /api/v1/game                 Discard the game (restart)
    POST   /api/v1/game/score           Add points to a player
    POST   /api/v1/game/next-turn       Advance the turn (loss check)
    POST   /api/v1/game/undo            Undo the last score of this turn
    POST   /api/v1/game/corrections     Edit names, scores, ceiling, turn
    GET    /health                      Health check

All responses are JSON with explicit Pydantic schemas. Run with:
    uvicorn --factory deathpoint.api.app:create_app
"""

from typing import Union

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import ALLOWED_ORIGINS, DEATHPOINT_ENV, default_state_path
from ..engine_core import TurnEngine
from ..exceptions import PersistenceError
from ..logging import setup_logging
from ..storage import JsonFileStore
from .service import GameService
from .schemas import (
    # Request models
    StartGameRequest,
    AddScoreRequest,
    CorrectionsRequest,
    # Response models
    ActionResponse,
    GameStateResponse,
    ErrorResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)

# Rejections that conflict with the game's current state rather than bad input
_CONFLICT_CODES = {
    ErrorCode.GAME_FINISHED,
    ErrorCode.NO_SCORING_ACTIVITY,
    ErrorCode.NOTHING_TO_UNDO,
    ErrorCode.UNDO_CROSSES_TURN,
}

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "No game in progress"},
    409: {"model": ErrorResponse, "description": "Not allowed in the current game state"},
    500: {"model": ErrorResponse, "description": "Game could not be saved"},
}


def create_app(service: GameService | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService (defaults to one backed by the JSON
            file store at DEATHPOINT_STATE_FILE, with logging configured
            from the environment)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Death Point API",
        description="""
Score keeper for elimination card games: the first player to reach
the ceiling loses.

## Error Codes

| Code | HTTP | Description |
|------|------|-------------|
| `VALIDATION_ERROR` | 400 | Bad names, ceiling, delta or correction |
| `UNKNOWN_PLAYER` | 400 | Player id does not exist |
| `NO_ACTIVE_GAME` | 404 | No game has been started |
| `GAME_FINISHED` | 409 | The game is over |
| `NO_SCORING_ACTIVITY` | 409 | Nobody scored this turn |
| `NOTHING_TO_UNDO` | 409 | Undo log is empty |
| `UNDO_CROSSES_TURN` | 409 | Last score belongs to an earlier turn |
| `PERSISTENCE_ERROR` | 500 | The game could not be saved |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if service is None:
        setup_logging()
        store = JsonFileStore(default_state_path())
        service = GameService(engine=TurnEngine.from_store(store))
    api_service = service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Map an ErrorResponse to its HTTP status."""
        if error.error_code == ErrorCode.NO_ACTIVE_GAME:
            status_code = 404
        elif error.error_code in _CONFLICT_CODES:
            status_code = 409
        else:
            status_code = 400
        return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))

    def respond(result: Union[ActionResponse, ErrorResponse]) -> Union[ActionResponse, JSONResponse]:
        if isinstance(result, ErrorResponse):
            return make_error_response(result)
        return result

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error=str(exc),
                error_code=ErrorCode.PERSISTENCE_ERROR,
            ).model_dump(mode="json"),
        )

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/game",
        response_model=GameStateResponse,
        tags=["Game"],
        summary="Get the scoreboard",
    )
    def get_game() -> GameStateResponse:
        """Current game with per-player risk figures (status `no_game` if none)."""
        return api_service.get_game()

    @app.post(
        "/api/v1/game",
        response_model=ActionResponse,
        responses=_ERROR_RESPONSES,
        tags=["Game"],
        summary="Start a new game",
    )
    def start_game(body: StartGameRequest) -> Union[ActionResponse, JSONResponse]:
        """
        Start a new game, replacing any game in progress.

        Blank names are ignored; at least two must remain.
        """
        return respond(api_service.start_game(body))

    @app.delete(
        "/api/v1/game",
        response_model=ActionResponse,
        responses=_ERROR_RESPONSES,
        tags=["Game"],
        summary="Discard the game",
    )
    def restart() -> ActionResponse:
        return api_service.restart()

    @app.post(
        "/api/v1/game/score",
        response_model=ActionResponse,
        responses=_ERROR_RESPONSES,
        tags=["Turns"],
        summary="Add points to a player",
    )
    def add_score(body: AddScoreRequest) -> Union[ActionResponse, JSONResponse]:
        """Add points. The loss check only happens when the turn advances."""
        return respond(api_service.add_score(body))

    @app.post(
        "/api/v1/game/next-turn",
        response_model=ActionResponse,
        responses=_ERROR_RESPONSES,
        tags=["Turns"],
        summary="Advance to the next turn",
    )
    def next_turn() -> Union[ActionResponse, JSONResponse]:
        """
        Advance the turn.

        The first player (in seating order) at or over the ceiling loses.
        Clears the undo log.
        """
        return respond(api_service.next_turn())

    @app.post(
        "/api/v1/game/undo",
        response_model=ActionResponse,
        responses=_ERROR_RESPONSES,
        tags=["Turns"],
        summary="Undo the last score of this turn",
    )
    def undo_last() -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.undo_last())

    @app.post(
        "/api/v1/game/corrections",
        response_model=ActionResponse,
        responses=_ERROR_RESPONSES,
        tags=["Settings"],
        summary="Edit names, scores, ceiling or turn",
    )
    def apply_corrections(body: CorrectionsRequest) -> Union[ActionResponse, JSONResponse]:
        """
        Apply corrections all-or-nothing.

        **Request Body:**
        ```json
        {"corrections": [
            {"type": "set_player_score", "player_id": "...", "score": 40},
            {"type": "set_max_score", "max_score": 120}
        ]}
        ```
        """
        return respond(api_service.apply_corrections(body))

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            service="deathpoint",
            version=__version__,
            environment=DEATHPOINT_ENV,
        )

    return app
