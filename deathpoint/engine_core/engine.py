"""
Turn Engine - The only way to change a game.

The engine is the single point of state mutation:
- Owns the GameState (callers only ever get copies)
- Validates before applying; expected misuse comes back as a failed
  ActionResult, never as an exception
- Writes every successful change through the store before returning

State machine:
    no game --start--> PLAYING --add_score--> PLAYING
    PLAYING --next_turn (someone at the ceiling)--> FINISHED
    FINISHED --undo_last (nobody left at the ceiling)--> PLAYING
    any --restart--> no game
"""

from __future__ import annotations
import time
from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from ..exceptions import ValidationError
from .action import Action, ActionResult, ActionType, ErrorCode
from .corrections import (
    CorrectionBatch,
    SetMaxScore,
    SetPlayerName,
    SetPlayerScore,
    SetTurn,
    parse_correction,
)
from .players import create_players
from .snapshot import normalize
from .state import GameState, GameStatus, ScoreAction
from .validation import coerce_delta, coerce_max_score

if TYPE_CHECKING:
    from ..storage import GameStore

logger = structlog.get_logger()

# (new state or None for "no game", human-readable changes)
_Outcome = tuple[Optional[GameState], list[str]]

_EVENTS = {
    ActionType.START_GAME: "game started",
    ActionType.ADD_SCORE: "score added",
    ActionType.NEXT_TURN: "turn advanced",
    ActionType.UNDO_LAST: "action undone",
    ActionType.RESTART: "game restarted",
    ActionType.CORRECT_SETTINGS: "settings corrected",
}


class TurnEngine:
    """
    Turn/score state machine over one explicitly owned game.

    Usage:
        engine = TurnEngine.from_store(JsonFileStore(path))
        engine.start(["An", "Binh"], max_score=100)
        engine.add_score(player_id, 15)
        engine.next_turn()
    """

    def __init__(
        self,
        store: GameStore | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._clock = clock
        self._state: GameState | None = None

    @classmethod
    def from_store(
        cls,
        store: GameStore,
        clock: Callable[[], float] = time.time,
    ) -> TurnEngine:
        """Create an engine and restore whatever game the store holds."""
        engine = cls(store=store, clock=clock)
        engine.hydrate()
        return engine

    def hydrate(self) -> GameState | None:
        """
        Replace the in-memory game with the stored one.

        The stored snapshot is normalized first; an unusable snapshot
        counts as no game.
        """
        raw = self._store.load() if self._store is not None else None
        self._state = normalize(raw, now=self._clock()) if raw is not None else None
        logger.info(
            "game hydrated" if self._state else "no stored game",
            turn=self._state.turn if self._state else None,
        )
        return self.state

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def state(self) -> GameState | None:
        """A copy of the current game, or None if there is none."""
        return self._state.clone() if self._state is not None else None

    @property
    def has_game(self) -> bool:
        return self._state is not None

    @property
    def can_undo(self) -> bool:
        """True when undo_last would succeed."""
        if self._state is None:
            return False
        last = self._state.last_action
        return last is not None and last.turn == self._state.turn

    @property
    def can_advance(self) -> bool:
        """True when next_turn would succeed."""
        return (
            self._state is not None
            and not self._state.is_finished
            and self._state.scored_count > 0
        )

    # =========================================================================
    # Operations
    # =========================================================================

    def start(self, names: list[str], max_score: Any) -> ActionResult:
        return self.apply(Action.start(names, max_score))

    def add_score(self, player_id: str, delta: Any) -> ActionResult:
        return self.apply(Action.add_score(player_id, delta))

    def next_turn(self) -> ActionResult:
        return self.apply(Action.next_turn())

    def undo_last(self) -> ActionResult:
        return self.apply(Action.undo_last())

    def restart(self) -> ActionResult:
        return self.apply(Action.restart())

    def apply_corrections(self, corrections: list[Any]) -> ActionResult:
        return self.apply(Action.correct_settings(corrections))

    def apply(self, action: Action) -> ActionResult:
        """
        Apply an action to the game.

        Returns ActionResult with a copy of the new state or the reason
        it was rejected. Re-raises whatever the store raised (normally
        PersistenceError) if the change could not be saved; the in-memory
        game is left as it was.
        """
        handler = self._get_handler(action.action_type)
        if handler is None:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        try:
            new_state, changes = handler(action)
        except ValidationError as e:
            logger.debug(
                "action rejected",
                action=action.action_type,
                error_code=e.error_code,
                reason=e.message,
            )
            return ActionResult.failure(e.message, error_code=e.error_code)

        finished = (
            action.action_type == ActionType.NEXT_TURN
            and new_state is not None
            and new_state.is_finished
        )
        self._commit(new_state)
        logger.info(
            "game finished" if finished else _EVENTS[action.action_type],
            turn=new_state.turn if new_state else None,
            changes=changes,
        )
        return ActionResult.success_with_state(self.state, changes=changes)

    def _commit(self, new_state: GameState | None):
        """Swap in the new state, then mirror it to the store."""
        previous = self._state
        self._state = new_state
        if self._store is None:
            return
        try:
            if new_state is None:
                self._store.clear()
            else:
                self._store.save(new_state)
        except Exception:
            self._state = previous
            logger.error("persisting game failed, change rolled back")
            raise

    def _get_handler(self, action_type: ActionType) -> Callable[[Action], _Outcome] | None:
        handlers = {
            ActionType.START_GAME: self._handle_start,
            ActionType.ADD_SCORE: self._handle_add_score,
            ActionType.NEXT_TURN: self._handle_next_turn,
            ActionType.UNDO_LAST: self._handle_undo_last,
            ActionType.RESTART: self._handle_restart,
            ActionType.CORRECT_SETTINGS: self._handle_correct_settings,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Handlers: (action) -> (new state, changes), raise ValidationError to reject
    # =========================================================================

    def _require_game(self) -> GameState:
        if self._state is None:
            raise ValidationError("No game in progress.", ErrorCode.NO_ACTIVE_GAME.value)
        return self._state

    def _require_playing(self) -> GameState:
        state = self._require_game()
        if state.is_finished:
            raise ValidationError("The game is already finished.", ErrorCode.GAME_FINISHED.value)
        return state

    def _handle_start(self, action: Action) -> _Outcome:
        names = action.payload.names
        if not isinstance(names, (list, tuple)):
            raise ValidationError("Player names must be a list.")
        players = create_players(names)
        max_score = coerce_max_score(action.payload.max_score)

        state = GameState(
            players=players,
            max_score=max_score,
            status=GameStatus.PLAYING,
            turn=1,
            start_time=self._clock(),
        )
        names = ", ".join(p.name for p in players)
        return state, [f"New game: {names} (max score {max_score})"]

    def _handle_add_score(self, action: Action) -> _Outcome:
        state = self._require_playing()
        delta = coerce_delta(action.payload.delta)

        player_id = action.payload.player_id
        player = state.get_player(player_id)
        if player is None:
            raise ValidationError(f"Unknown player: {player_id}", ErrorCode.UNKNOWN_PLAYER.value)

        entry = ScoreAction(
            player_id=player_id,
            delta=delta,
            turn=state.turn,
            timestamp=self._clock(),
            snapshot_before_apply=state.snapshot(),
        )
        new_state = state.with_player(player.with_score(player.score + delta))
        new_state = new_state._copy_with(
            turn_progress={**state.turn_progress, player_id: True},
            action_log=state.action_log + [entry],
        )
        return new_state, [f"{player.name} +{delta} ({player.score + delta})"]

    def _handle_next_turn(self, action: Action) -> _Outcome:
        state = self._require_playing()
        if not state.turn_progress:
            raise ValidationError(
                "Nobody has scored this turn yet.", ErrorCode.NO_SCORING_ACTIVITY.value
            )

        # First in creation order wins ties between players over the ceiling
        over_limit = state.first_over_limit()

        new_state = state._copy_with(
            status=GameStatus.FINISHED if over_limit else state.status,
            loser_id=over_limit.player_id if over_limit else state.loser_id,
            turn=state.turn + 1,
            turn_progress={},
            action_log=[],
        )

        changes = [f"Turn {new_state.turn}"]
        if over_limit:
            changes.append(f"{over_limit.name} reached {over_limit.score} and loses")
        return new_state, changes

    def _handle_undo_last(self, action: Action) -> _Outcome:
        state = self._require_game()
        last = state.last_action
        if last is None:
            raise ValidationError("Nothing to undo.", ErrorCode.NOTHING_TO_UNDO.value)
        if last.turn != state.turn:
            raise ValidationError(
                "Cannot undo a score from a previous turn.", ErrorCode.UNDO_CROSSES_TURN.value
            )

        player = state.get_player(last.player_id)
        if player is None:
            raise ValidationError(f"Unknown player: {last.player_id}", ErrorCode.UNKNOWN_PLAYER.value)

        snapshot = last.snapshot_before_apply
        new_state = state.with_player(player.with_score(max(0, player.score - last.delta)))
        new_state = new_state._copy_with(
            status=snapshot.status,
            loser_id=snapshot.loser_id,
            turn=last.turn,
            turn_progress=dict(snapshot.turn_progress),
            action_log=state.action_log[:-1],
        )

        if new_state.is_finished and new_state.first_over_limit() is None:
            new_state = new_state._copy_with(status=GameStatus.PLAYING, loser_id=None)

        return new_state, [f"Undid {player.name} +{last.delta}"]

    def _handle_restart(self, action: Action) -> _Outcome:
        return None, ["Game discarded"]

    def _handle_correct_settings(self, action: Action) -> _Outcome:
        state = self._require_game()
        raw = action.payload.corrections
        if not isinstance(raw, (list, tuple)):
            raise ValidationError("Corrections must be a list.")
        if not raw:
            raise ValidationError("No corrections given.")

        typed = (SetPlayerName, SetPlayerScore, SetMaxScore, SetTurn)
        corrections = [c if isinstance(c, typed) else parse_correction(c) for c in raw]
        corrected = CorrectionBatch(corrections=corrections).apply(state)

        # Re-validated like a stored game
        new_state = normalize(corrected.to_dict(), now=self._clock())
        if new_state is None:
            raise ValidationError("Corrections produce an invalid game.")

        return new_state, [f"Applied {len(corrections)} correction(s)"]
