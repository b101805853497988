"""
Pytest fixtures for Death Point tests.
"""

import pytest

from ..engine_core import TurnEngine, GameState, GameStatus, Player
from ..storage import MemoryStore


class FakeClock:
    """Controllable time source."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def engine(store: MemoryStore, clock: FakeClock) -> TurnEngine:
    """Engine with no game yet."""
    return TurnEngine(store=store, clock=clock)


@pytest.fixture
def two_player_engine(engine: TurnEngine) -> TurnEngine:
    """A vs B, ceiling 20."""
    result = engine.start(["A", "B"], 20)
    assert result.success
    return engine


@pytest.fixture
def three_player_engine(engine: TurnEngine) -> TurnEngine:
    """A, B, C, ceiling 100."""
    result = engine.start(["A", "B", "C"], 100)
    assert result.success
    return engine


def ids(engine: TurnEngine) -> list[str]:
    """Player ids in seating order."""
    return engine.state.player_ids


def make_state(scores: list[int], max_score: int = 100, **kwargs) -> GameState:
    """Build a state directly, players p1..pn with the given scores."""
    players = [
        Player(player_id=f"p{i + 1}", name=f"P{i + 1}", score=score)
        for i, score in enumerate(scores)
    ]
    kwargs.setdefault("status", GameStatus.PLAYING)
    return GameState(players=players, max_score=max_score, **kwargs)
