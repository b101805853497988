"""
Game Store - Durable home of the running game.

The store:
- Holds at most one game (the one in progress)
- Returns the raw snapshot on load; validation is the engine's job
- Raises PersistenceError on any I/O or serialization failure

Design decisions:
- Plain JSON on local disk, no schema version
- Writes are atomic (temp file, then rename)
- A file that is not valid JSON loads as "no game"
"""

from __future__ import annotations
import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

import structlog

from ..exceptions import PersistenceError
from ..engine_core.state import GameState

logger = structlog.get_logger()


class GameStore(Protocol):
    """Protocol for persisting the running game."""

    def load(self) -> dict[str, Any] | None: ...

    def save(self, state: GameState) -> None: ...

    def clear(self) -> None: ...


class MemoryStore:
    """
    In-process store.

    Keeps a serialized copy, so a later load behaves like a real reload.
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: str | None = json.dumps(initial) if initial is not None else None

    def load(self) -> dict[str, Any] | None:
        if self._data is None:
            return None
        return json.loads(self._data)

    def save(self, state: GameState) -> None:
        try:
            self._data = json.dumps(state.to_dict())
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot serialize game: {e}") from e

    def clear(self) -> None:
        self._data = None


class JsonFileStore:
    """
    File-based store for the running game.

    Usage:
        store = JsonFileStore("~/.deathpoint/game.json")
        engine = TurnEngine.from_store(store)
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def load(self) -> dict[str, Any] | None:
        """
        Read the stored snapshot.

        Returns None if there is no file or it does not hold a JSON object.
        """
        if not self.path.exists():
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("stored game is not valid JSON, ignoring", path=str(self.path))
            return None
        except OSError as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e

        if not isinstance(data, dict):
            logger.warning("stored game is not a JSON object, ignoring", path=str(self.path))
            return None
        return data

    def save(self, state: GameState) -> None:
        """Write the snapshot atomically via temp-file-then-rename."""
        try:
            content = json.dumps(state.to_dict(), indent=2)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot serialize game: {e}") from e

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), suffix=".tmp", prefix=".game_"
            )
            fd_owned = True
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    fd_owned = False  # os.fdopen took ownership; it will close fd
                    f.write(content)
                    f.flush()
                    os.fsync(f.fileno())
                Path(tmp_path).replace(self.path)
            except BaseException:
                if fd_owned:
                    with contextlib.suppress(OSError):
                        os.close(fd)
                with contextlib.suppress(OSError):
                    Path(tmp_path).unlink()
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e

        logger.debug("saved game", path=str(self.path), turn=state.turn)

    def clear(self) -> None:
        """Remove the stored game, if any."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot remove {self.path}: {e}") from e
        logger.debug("cleared stored game", path=str(self.path))
