"""
API Service - Business logic layer between the HTTP app and the engine.

The service:
1. Translates requests to engine operations
2. Serializes access to the engine (one writer at a time)
3. Builds scoreboard responses, including the risk figures

This layer is framework-agnostic (the CLI could use it as well as FastAPI).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Union
import threading
import time

from .schemas import (
    # Requests
    StartGameRequest,
    AddScoreRequest,
    CorrectionsRequest,
    # Responses
    ActionResponse,
    GameStateResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    ActionInfo,
    # Enums
    ErrorCode,
    GameStatusValue,
)
from ..config import default_max_score
from ..engine_core import (
    ActionResult,
    GameState,
    Player,
    TurnEngine,
    expected_turns_to_finish,
    format_duration,
    is_in_danger,
    loss_probability,
    player_rank,
    safe_players,
)


@dataclass
class GameService:
    """
    Scoreboard service over a single TurnEngine.

    Usage:
        service = GameService(engine=TurnEngine.from_store(store))
        service.start_game(StartGameRequest(names=["An", "Binh"], max_score=100))
        service.add_score(AddScoreRequest(player_id=pid, delta=10))
        board = service.get_game()
    """
    engine: TurnEngine = field(default_factory=TurnEngine)
    clock: Callable[[], float] = time.time

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get_game(self) -> GameStateResponse:
        """Current scoreboard; status NO_GAME when nothing is running."""
        with self._lock:
            return self._build_game_state()

    def start_game(self, request: StartGameRequest) -> Union[ActionResponse, ErrorResponse]:
        max_score = request.max_score if request.max_score is not None else default_max_score()
        with self._lock:
            return self._to_response(self.engine.start(request.names, max_score))

    def add_score(self, request: AddScoreRequest) -> Union[ActionResponse, ErrorResponse]:
        with self._lock:
            return self._to_response(self.engine.add_score(request.player_id, request.delta))

    def next_turn(self) -> Union[ActionResponse, ErrorResponse]:
        with self._lock:
            return self._to_response(self.engine.next_turn())

    def undo_last(self) -> Union[ActionResponse, ErrorResponse]:
        with self._lock:
            return self._to_response(self.engine.undo_last())

    def apply_corrections(self, request: CorrectionsRequest) -> Union[ActionResponse, ErrorResponse]:
        with self._lock:
            return self._to_response(self.engine.apply_corrections(request.corrections))

    def restart(self) -> ActionResponse:
        with self._lock:
            result = self.engine.restart()
            return ActionResponse(changes=result.state_changes, game=self._build_game_state())

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _to_response(self, result: ActionResult) -> Union[ActionResponse, ErrorResponse]:
        """Convert an engine ActionResult into an API response."""
        if not result.success:
            return ErrorResponse(
                error=result.error or "Operation rejected",
                error_code=ErrorCode(result.error_code.value),
            )
        return ActionResponse(
            changes=result.state_changes,
            game=self._build_game_state(),
        )

    def _build_game_state(self) -> GameStateResponse:
        """Build the scoreboard from the engine's current game."""
        state = self.engine.state
        if state is None:
            return GameStateResponse(status=GameStatusValue.NO_GAME)

        players = [self._player_info(p, state) for p in state.players]
        loser = next((p for p in players if p.player_id == state.loser_id), None)

        last_action = None
        last = state.last_action
        if last is not None:
            owner = state.get_player(last.player_id)
            last_action = ActionInfo(
                player_id=last.player_id,
                player_name=owner.name if owner else last.player_id,
                delta=last.delta,
                turn=last.turn,
                timestamp=last.timestamp,
            )

        return GameStateResponse(
            status=GameStatusValue(state.status.value),
            turn=state.turn,
            max_score=state.max_score,
            players=players,
            loser=loser,
            safe_player_ids=[p.player_id for p in safe_players(state)],
            scored_count=state.scored_count,
            can_undo=self.engine.can_undo,
            can_advance=self.engine.can_advance,
            last_action=last_action,
            start_time=state.start_time,
            elapsed=format_duration(self.clock() - state.start_time),
        )

    def _player_info(self, player: Player, state: GameState) -> PlayerInfo:
        return PlayerInfo(
            player_id=player.player_id,
            name=player.name,
            score=player.score,
            headroom=state.max_score - player.score,
            rank=player_rank(player, state),
            in_danger=is_in_danger(player, state),
            has_scored_this_turn=player.player_id in state.turn_progress,
            loss_probability=loss_probability(player, state),
            expected_turns_to_finish=expected_turns_to_finish(player, state),
        )
