"""
Storage - Persistence of the game in progress.

Only one game is stored at a time. The engine writes through a
store after every successful change and reads from it once at startup.
"""

from .store import GameStore, MemoryStore, JsonFileStore

__all__ = [
    "GameStore",
    "MemoryStore",
    "JsonFileStore",
]
