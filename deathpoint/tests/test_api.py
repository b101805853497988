"""
Tests for API layer.

Tests:
- GameService methods
- Scoreboard responses (risk figures, flags)
- HTTP endpoints and status codes
- Error handling
"""

import pytest
from fastapi.testclient import TestClient

from ..api import (
    ActionResponse,
    AddScoreRequest,
    CorrectionsRequest,
    ErrorCode,
    ErrorResponse,
    GameService,
    GameStatusValue,
    StartGameRequest,
    create_app,
)
from ..engine_core import TurnEngine
from ..exceptions import PersistenceError
from ..storage import MemoryStore


class BrokenStore(MemoryStore):
    def save(self, state):
        raise PersistenceError("disk full")


@pytest.fixture
def service(engine, clock):
    return GameService(engine=engine, clock=clock)


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


class TestGameService:
    """Tests for GameService."""

    def test_no_game(self, service):
        board = service.get_game()

        assert board.status == GameStatusValue.NO_GAME
        assert board.players == []
        assert not board.can_undo

    def test_start_game(self, service):
        response = service.start_game(StartGameRequest(names=["An", "Binh"], max_score=20))

        assert isinstance(response, ActionResponse)
        game = response.game
        assert game.status == GameStatusValue.PLAYING
        assert game.turn == 1
        assert game.max_score == 20
        assert [p.name for p in game.players] == ["An", "Binh"]
        assert all(p.loss_probability == 0 for p in game.players)
        assert all(p.headroom == 20 for p in game.players)
        assert game.elapsed == "0s"

    def test_start_uses_default_max_score(self, service, monkeypatch):
        monkeypatch.setenv("DEATHPOINT_DEFAULT_MAX_SCORE", "150")

        response = service.start_game(StartGameRequest(names=["An", "Binh"]))

        assert response.game.max_score == 150

    def test_start_rejected(self, service):
        response = service.start_game(StartGameRequest(names=["An"], max_score=20))

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.VALIDATION_ERROR

    def test_scoreboard_after_score(self, service, clock):
        game = service.start_game(StartGameRequest(names=["An", "Binh"], max_score=20)).game
        an, binh = (p.player_id for p in game.players)
        clock.advance(65)

        response = service.add_score(AddScoreRequest(player_id=an, delta=16))

        board = response.game
        row = board.players[0]
        assert row.score == 16
        assert row.headroom == 4
        assert row.rank == 1
        assert row.in_danger
        assert row.has_scored_this_turn
        assert row.loss_probability == 100
        assert row.expected_turns_to_finish == 1
        assert board.players[1].rank == 2
        assert board.players[1].expected_turns_to_finish is None
        assert board.scored_count == 1
        assert board.can_undo
        assert board.can_advance
        assert board.last_action.player_id == an
        assert board.last_action.player_name == "An"
        assert board.last_action.delta == 16
        assert board.elapsed == "1m 5s"

    def test_finish_and_restart(self, service):
        game = service.start_game(StartGameRequest(names=["An", "Binh"], max_score=20)).game
        an = game.players[0].player_id
        service.add_score(AddScoreRequest(player_id=an, delta=20))

        board = service.next_turn().game

        assert board.status == GameStatusValue.FINISHED
        assert board.loser.player_id == an
        assert board.loser.loss_probability == 100
        assert board.players[1].loss_probability == 0
        assert board.safe_player_ids == [game.players[1].player_id]
        assert not board.can_advance

        response = service.restart()
        assert response.game.status == GameStatusValue.NO_GAME

    def test_undo(self, service):
        game = service.start_game(StartGameRequest(names=["An", "Binh"], max_score=20)).game
        service.add_score(AddScoreRequest(player_id=game.players[1].player_id, delta=3))

        response = service.undo_last()

        assert response.game.players[1].score == 0
        assert not response.game.can_undo
        assert service.undo_last().error_code == ErrorCode.NOTHING_TO_UNDO

    def test_corrections(self, service):
        game = service.start_game(StartGameRequest(names=["An", "Binh"], max_score=20)).game

        response = service.apply_corrections(CorrectionsRequest(corrections=[
            {"type": "set_player_name", "player_id": game.players[0].player_id, "name": "Lan"},
            {"type": "set_max_score", "max_score": 40},
        ]))

        assert response.game.players[0].name == "Lan"
        assert response.game.max_score == 40


class TestHTTP:
    """Tests for the FastAPI app."""

    def _start(self, client, names=("An", "Binh"), max_score=20):
        response = client.post("/api/v1/game", json={"names": list(names), "max_score": max_score})
        assert response.status_code == 200
        return [p["player_id"] for p in response.json()["game"]["players"]]

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "deathpoint"

    def test_get_without_game(self, client):
        response = client.get("/api/v1/game")

        assert response.status_code == 200
        assert response.json()["status"] == "no_game"

    def test_full_game(self, client):
        an, binh = self._start(client)

        assert client.post("/api/v1/game/score", json={"player_id": an, "delta": 15}).status_code == 200
        response = client.post("/api/v1/game/next-turn")
        assert response.json()["game"]["turn"] == 2

        client.post("/api/v1/game/score", json={"player_id": an, "delta": 10})
        response = client.post("/api/v1/game/next-turn")
        game = response.json()["game"]
        assert game["status"] == "finished"
        assert game["loser"]["player_id"] == an

        response = client.post("/api/v1/game/undo")
        assert response.status_code == 409
        assert response.json()["error_code"] == "NOTHING_TO_UNDO"

        response = client.post("/api/v1/game/score", json={"player_id": binh, "delta": 1})
        assert response.status_code == 409
        assert response.json()["error_code"] == "GAME_FINISHED"

    def test_bad_start_is_400(self, client):
        response = client.post("/api/v1/game", json={"names": ["Solo"], "max_score": 20})

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_no_game_is_404(self, client):
        response = client.post("/api/v1/game/next-turn")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NO_ACTIVE_GAME"

    def test_unknown_player_is_400(self, client):
        self._start(client)
        response = client.post("/api/v1/game/score", json={"player_id": "ghost", "delta": 5})

        assert response.status_code == 400
        assert response.json()["error_code"] == "UNKNOWN_PLAYER"

    def test_fractional_delta_is_400(self, client):
        an, _ = self._start(client)
        response = client.post("/api/v1/game/score", json={"player_id": an, "delta": 2.5})
        assert response.status_code == 400

    def test_boolean_numbers_rejected(self, client):
        response = client.post("/api/v1/game", json={"names": ["An", "Binh"], "max_score": True})
        assert response.status_code == 422

        an, _ = self._start(client)
        response = client.post("/api/v1/game/score", json={"player_id": an, "delta": True})

        assert response.status_code == 422
        assert client.get("/api/v1/game").json()["players"][0]["score"] == 0

    def test_advance_without_score_is_409(self, client):
        self._start(client)
        response = client.post("/api/v1/game/next-turn")

        assert response.status_code == 409
        assert response.json()["error_code"] == "NO_SCORING_ACTIVITY"

    def test_corrections(self, client):
        an, _ = self._start(client)
        response = client.post(
            "/api/v1/game/corrections",
            json={"corrections": [{"type": "set_player_score", "player_id": an, "score": 9}]},
        )

        assert response.status_code == 200
        assert response.json()["game"]["players"][0]["score"] == 9

    def test_bad_correction_is_400(self, client):
        self._start(client)
        response = client.post(
            "/api/v1/game/corrections",
            json={"corrections": [{"type": "set_turn", "turn": 0}]},
        )
        assert response.status_code == 400

    def test_delete_discards_game(self, client):
        self._start(client)

        response = client.delete("/api/v1/game")

        assert response.status_code == 200
        assert response.json()["game"]["status"] == "no_game"
        assert client.get("/api/v1/game").json()["status"] == "no_game"

    def test_persistence_failure_is_500(self, clock):
        service = GameService(engine=TurnEngine(store=BrokenStore(), clock=clock), clock=clock)
        client = TestClient(create_app(service))

        response = client.post("/api/v1/game", json={"names": ["An", "Binh"], "max_score": 20})

        assert response.status_code == 500
        assert response.json()["error_code"] == "PERSISTENCE_ERROR"
        assert client.get("/api/v1/game").json()["status"] == "no_game"
