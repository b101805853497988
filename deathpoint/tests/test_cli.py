"""
Tests for the command line interface.
"""

import json
import logging

import pytest
import structlog

from ..cli import main


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def state_file(tmp_path):
    return tmp_path / "game.json"


@pytest.fixture
def run(state_file, capsys):
    """Run the CLI against a temporary state file and return its output."""
    def _run(*args):
        capsys.readouterr()
        main(["--state-file", str(state_file), *args])
        return capsys.readouterr().out
    return _run


def _fails(run, *args) -> int:
    with pytest.raises(SystemExit) as exc_info:
        run(*args)
    return exc_info.value.code


class TestCommands:

    def test_start_writes_state(self, run, state_file):
        out = run("start", "An", "Binh", "--max-score", "20")

        assert "New game: An, Binh (max score 20)" in out
        assert "Turn 1" in out
        data = json.loads(state_file.read_text(encoding="utf-8"))
        assert [p["name"] for p in data["players"]] == ["An", "Binh"]

    def test_start_default_max_score(self, run, state_file, monkeypatch):
        monkeypatch.setenv("DEATHPOINT_DEFAULT_MAX_SCORE", "75")
        run("start", "An", "Binh")
        assert json.loads(state_file.read_text(encoding="utf-8"))["max_score"] == 75

    def test_full_game(self, run, capsys):
        run("start", "An", "Binh", "--max-score", "20")

        assert "An +15 (15)" in run("add", "an", "15")
        assert "Turn 2" in run("next")
        run("add", "An", "10")
        out = run("next")
        assert "FINISHED" in out
        assert "An loses with 25 points." in out

        assert _fails(run, "undo") == 1
        assert "Nothing to undo" in capsys.readouterr().out

    def test_undo(self, run):
        run("start", "An", "Binh", "--max-score", "20")
        run("add", "Binh", "4")

        assert "Undid Binh +4" in run("undo")
        assert "Binh" in run("show")

    def test_set_commands(self, run, state_file):
        run("start", "An", "Binh", "--max-score", "20")

        run("set", "name", "An", "Lan")
        run("set", "score", "Binh", "7")
        run("set", "max-score", "30")
        out = run("set", "turn", "3")

        assert "Applied 1 correction(s)" in out
        data = json.loads(state_file.read_text(encoding="utf-8"))
        assert [p["name"] for p in data["players"]] == ["Lan", "Binh"]
        assert data["players"][1]["score"] == 7
        assert data["max_score"] == 30
        assert data["turn"] == 3

    def test_player_by_id_prefix(self, run, state_file):
        run("start", "An", "Binh", "--max-score", "20")
        binh_id = json.loads(state_file.read_text(encoding="utf-8"))["players"][1]["player_id"]

        assert "Binh +2 (2)" in run("add", binh_id[:8], "2")

    def test_ambiguous_name(self, run, capsys):
        run("start", "Sam", "Sam", "--max-score", "20")

        assert _fails(run, "add", "sam", "1") == 1
        assert "several players" in capsys.readouterr().out

    def test_unknown_player(self, run, capsys):
        run("start", "An", "Binh", "--max-score", "20")

        assert _fails(run, "add", "Chi", "1") == 1
        assert "no player matches" in capsys.readouterr().out

    def test_restart_removes_state(self, run, state_file):
        run("start", "An", "Binh", "--max-score", "20")

        assert "Game discarded" in run("restart")
        assert not state_file.exists()

    def test_show_without_game(self, run, capsys):
        assert _fails(run, "show") == 1
        assert "no game in progress" in capsys.readouterr().out

    def test_undecodable_state_file_is_no_game(self, run, state_file, capsys):
        state_file.write_bytes(b'{"players": "\xff\xfe"}')

        assert _fails(run, "show") == 1
        assert "no game in progress" in capsys.readouterr().out

    def test_rejected_operation_exits_1(self, run, capsys):
        run("start", "An", "Binh", "--max-score", "20")

        assert _fails(run, "add", "An", "-3") == 1
        assert "Error:" in capsys.readouterr().out


class TestArguments:

    def test_no_command_prints_help(self, run):
        assert _fails(run) == 1

    def test_bad_number(self, run):
        run("start", "An", "Binh", "--max-score", "20")
        assert _fails(run, "add", "An", "lots") == 2

    def test_unwritable_state_file(self, tmp_path, capsys):
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["--state-file", str(blocker / "game.json"), "start", "An", "Binh"])

        assert exc_info.value.code == 2
        assert "could not save" in capsys.readouterr().out
