"""
Risk Estimator - Advisory heuristics for the scoreboard.

Pure functions over a GameState snapshot: no mutation, no stored
state, same answer for the same input. Nothing here feeds back into
the engine's transitions.

Both estimates are cheap enough to run per player on every render:
O(players) for loss_probability, O(actions this turn) for
expected_turns_to_finish.
"""

from __future__ import annotations
import math
from collections import defaultdict
from typing import Iterable

from .state import GameState, Player, ScoreAction
from .validation import round_half_up

# Assumed points per turn when the log has nothing to learn from
DEFAULT_GAIN_PER_TURN = 12

LEADER_FLOOR = 70
TIED_LEADER_FLOOR = 65
CRITICAL_HEADROOM = 5
CRITICAL_FLOOR = 80
WARNING_HEADROOM = 10
WARNING_FLOOR = 60


def headroom(player: Player, state: GameState) -> int:
    """Points left before the player hits the ceiling."""
    return state.max_score - player.score


def loss_probability(player: Player, state: GameState) -> int:
    """
    Heuristic chance (0-100) that this player ends up losing.

    Combines three signals and keeps the highest:
    1. Headroom relative to the field: 0 for the player furthest from
       the ceiling, 100 for the closest (100 when everyone is level)
    2. Leader floor: 70 for the leader, 65 for players tied with them
    3. Headroom floors: 80 within 5 points, 60 within 10
    """
    if state.is_finished:
        return 100 if player.player_id == state.loser_id else 0

    if all(p.score == 0 for p in state.players):
        return 0

    remaining = headroom(player, state)
    if remaining <= 0:
        return 100

    field_headroom = [headroom(p, state) for p in state.players]
    max_remaining = max(field_headroom)
    spread = max_remaining - min(field_headroom)

    probability = 100.0
    if spread > 0:
        probability = (max_remaining - remaining) / spread * 100

    # Stable sort: the first-listed player wins a tie for the lead
    leader = sorted(state.players, key=lambda p: p.score, reverse=True)[0]
    if player.score == leader.score:
        floor = LEADER_FLOOR if player.player_id == leader.player_id else TIED_LEADER_FLOOR
        probability = max(probability, floor)

    if remaining <= CRITICAL_HEADROOM:
        probability = max(probability, CRITICAL_FLOOR)
    elif remaining <= WARNING_HEADROOM:
        probability = max(probability, WARNING_FLOOR)

    return min(100, max(0, round_half_up(probability)))


def expected_turns_to_finish(player: Player, state: GameState) -> int | None:
    """
    Rough number of turns until this player reaches the ceiling.

    Average gain per turn comes from, in order of preference:
    the player's own actions this turn, everyone's actions this turn,
    or DEFAULT_GAIN_PER_TURN.

    Returns None when finished, when the player has not scored yet, or
    when the average gain is not positive. Returns 0 for a player
    already at or past the ceiling.
    """
    if state.is_finished or player.score == 0:
        return None

    remaining = headroom(player, state)
    if remaining <= 0:
        return 0

    own = [a for a in state.action_log if a.player_id == player.player_id]
    if own:
        average = _average_per_turn(own, by_player=False)
        if average > 0:
            return math.ceil(remaining / average)

    if not state.action_log:
        return math.ceil(remaining / DEFAULT_GAIN_PER_TURN)

    average = _average_per_turn(state.action_log, by_player=True)
    if average <= 0:
        return None
    return math.ceil(remaining / average)


def _average_per_turn(actions: Iterable[ScoreAction], by_player: bool) -> float:
    """Mean of summed deltas grouped by turn (and player, if by_player)."""
    totals: dict[tuple, int] = defaultdict(int)
    for action in actions:
        key = (action.turn, action.player_id) if by_player else (action.turn,)
        totals[key] += action.delta
    if not totals:
        return 0.0
    return sum(totals.values()) / len(totals)
