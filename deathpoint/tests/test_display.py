"""
Tests for scoreboard display helpers.
"""

import pytest

from ..engine_core import GameStatus, format_duration, is_in_danger, player_rank, safe_players
from .conftest import make_state


class TestRanking:

    def test_dense_rank(self):
        state = make_state([50, 50, 30, 10])
        assert [player_rank(p, state) for p in state.players] == [1, 1, 2, 3]

    def test_leaders_in_danger_while_playing(self):
        state = make_state([50, 50, 30])
        assert [is_in_danger(p, state) for p in state.players] == [True, True, False]

    def test_nobody_in_danger_when_finished(self):
        state = make_state([50, 30], max_score=40, status=GameStatus.FINISHED, loser_id="p1")
        assert not any(is_in_danger(p, state) for p in state.players)


class TestSafePlayers:

    def test_everyone_but_loser(self):
        state = make_state([10, 45, 20], max_score=40, status=GameStatus.FINISHED, loser_id="p2")
        assert [p.player_id for p in safe_players(state)] == ["p1", "p3"]

    def test_empty_while_playing(self):
        assert safe_players(make_state([10, 20])) == []


@pytest.mark.parametrize(
    "seconds,expected",
    [
        (0, "0s"),
        (5, "5s"),
        (59.9, "59s"),
        (184, "3m 4s"),
        (3720, "1h 2m"),
        (-3, "0s"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected
