"""
Death Point CLI - Keep score from the terminal.

Usage:
    deathpoint start An Binh Chi --max-score 100   Start a new game
    deathpoint add An 15                            Add points to a player
    deathpoint next                                 Advance the turn
    deathpoint undo                                 Undo the last score of this turn
    deathpoint show                                 Print the scoreboard
    deathpoint set score An 40                      Correct a score (also: name, max-score, turn)
    deathpoint restart                              Discard the game
    deathpoint serve --port 8000                    Run the HTTP API

The game lives in DEATHPOINT_STATE_FILE (or --state-file) between calls.
Players can be named by id, id prefix or (case-insensitive) name.
"""

import argparse
import logging
import sys
import time

from .config import default_max_score, default_state_path
from .engine_core import (
    GameState,
    Player,
    TurnEngine,
    expected_turns_to_finish,
    format_duration,
    is_in_danger,
    loss_probability,
    player_rank,
)
from .exceptions import PersistenceError
from .logging import setup_logging
from .storage import JsonFileStore


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Death Point - score keeper where the first to the ceiling loses",
        prog="deathpoint",
    )
    parser.add_argument("--state-file", help="Path of the stored game (JSON)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show engine logs")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    start_parser = subparsers.add_parser("start", help="Start a new game")
    start_parser.add_argument("names", nargs="+", help="Player names, in seating order")
    start_parser.add_argument("--max-score", type=_number, default=None, help="Ceiling")

    add_parser = subparsers.add_parser("add", help="Add points to a player")
    add_parser.add_argument("player", help="Player id, id prefix or name")
    add_parser.add_argument("delta", type=_number, help="Points to add")

    subparsers.add_parser("next", help="Advance to the next turn")
    subparsers.add_parser("undo", help="Undo the last score of this turn")
    subparsers.add_parser("show", help="Print the scoreboard")
    subparsers.add_parser("restart", help="Discard the game")

    set_parser = subparsers.add_parser("set", help="Correct the running game")
    set_sub = set_parser.add_subparsers(dest="field", required=True)
    set_name = set_sub.add_parser("name", help="Rename a player")
    set_name.add_argument("player")
    set_name.add_argument("name")
    set_score = set_sub.add_parser("score", help="Overwrite a player's score")
    set_score.add_argument("player")
    set_score.add_argument("score", type=_number)
    set_max = set_sub.add_parser("max-score", help="Change the ceiling")
    set_max.add_argument("max_score", type=_number)
    set_turn = set_sub.add_parser("turn", help="Change the turn number")
    set_turn.add_argument("turn", type=_number)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.command == "serve":
        cmd_serve(args)
        return

    store = JsonFileStore(args.state_file or default_state_path())
    try:
        engine = TurnEngine.from_store(store)
        commands = {
            "start": cmd_start,
            "add": cmd_add,
            "next": cmd_next,
            "undo": cmd_undo,
            "show": cmd_show,
            "restart": cmd_restart,
            "set": cmd_set,
        }
        commands[args.command](engine, args)
    except PersistenceError as e:
        print(f"Error: could not save the game: {e}")
        sys.exit(2)


def _number(text):
    """argparse type: int when possible, float otherwise."""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}")


def _report(result):
    """Print the outcome of an engine operation; exit 1 if it was rejected."""
    if not result.success:
        print(f"Error: {result.error}")
        sys.exit(1)
    for change in result.state_changes:
        print(change)


def _resolve_player(state, ref):
    """Find a player by exact id, unique name or unique id prefix."""
    exact = state.get_player(ref)
    if exact:
        return exact

    by_name = [p for p in state.players if p.name.lower() == ref.strip().lower()]
    if len(by_name) == 1:
        return by_name[0]

    by_prefix = [p for p in state.players if p.player_id.startswith(ref)]
    if len(by_name) == 0 and len(by_prefix) == 1:
        return by_prefix[0]

    if len(by_name) > 1:
        print(f"Error: several players are called {ref!r}; use the id")
    else:
        print(f"Error: no player matches {ref!r}")
    sys.exit(1)


def _require_state(engine):
    state = engine.state
    if state is None:
        print("Error: no game in progress. Start one with 'deathpoint start'.")
        sys.exit(1)
    return state


def cmd_start(engine, args):
    """Start a new game."""
    max_score = args.max_score if args.max_score is not None else default_max_score()
    _report(engine.start(args.names, max_score))
    print_board(engine.state, engine)


def cmd_add(engine, args):
    """Add points to a player."""
    player = _resolve_player(_require_state(engine), args.player)
    _report(engine.add_score(player.player_id, args.delta))


def cmd_next(engine, args):
    """Advance the turn."""
    _report(engine.next_turn())
    print_board(engine.state, engine)


def cmd_undo(engine, args):
    """Undo the last score of this turn."""
    _report(engine.undo_last())


def cmd_show(engine, args):
    """Print the scoreboard."""
    print_board(_require_state(engine), engine)


def cmd_restart(engine, args):
    """Discard the game."""
    _report(engine.restart())


def cmd_set(engine, args):
    """Correct the running game."""
    state = _require_state(engine)
    if args.field == "name":
        player = _resolve_player(state, args.player)
        correction = {"type": "set_player_name", "player_id": player.player_id, "name": args.name}
    elif args.field == "score":
        player = _resolve_player(state, args.player)
        correction = {"type": "set_player_score", "player_id": player.player_id, "score": args.score}
    elif args.field == "max-score":
        correction = {"type": "set_max_score", "max_score": args.max_score}
    else:
        correction = {"type": "set_turn", "turn": args.turn}
    _report(engine.apply_corrections([correction]))


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import os
    import uvicorn

    if args.state_file:
        os.environ["DEATHPOINT_STATE_FILE"] = args.state_file
    uvicorn.run(
        "deathpoint.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
    )


def print_board(state: GameState, engine: TurnEngine):
    """Print the scoreboard with risk figures."""
    status = "FINISHED" if state.is_finished else "playing"
    print(
        f"Turn {state.turn} | max {state.max_score} | {status} | "
        f"{format_duration(time.time() - state.start_time)}"
    )
    for player in state.players:
        print(_format_row(player, state))

    if state.is_finished and state.loser:
        print(f"{state.loser.name} loses with {state.loser.score} points.")
    elif engine.can_undo:
        print("(undo available)")


def _format_row(player: Player, state: GameState) -> str:
    turns = expected_turns_to_finish(player, state)
    marks = ""
    if player.player_id in state.turn_progress:
        marks += "*"
    if is_in_danger(player, state):
        marks += "!"
    return (
        f"  #{player_rank(player, state)} {player.name:<12} {player.score:>5}"
        f"  left {state.max_score - player.score:>4}"
        f"  risk {loss_probability(player, state):>3}%"
        f"  turns {turns if turns is not None else '-':>3}"
        f"  {marks}  [{player.player_id[:8]}]"
    )


if __name__ == "__main__":
    main()
