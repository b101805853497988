"""
Death Point - Score keeper for elimination card games.

Players add points turn by turn; the first to reach the ceiling loses.
The package provides:
- Turn/score state machine with single-turn undo
- Risk heuristics (loss probability, turns to finish)
- Write-through persistence of the running game
- CLI and HTTP shells over the engine
"""

__version__ = "0.1.0"
