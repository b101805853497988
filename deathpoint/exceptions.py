"""
Exceptions raised by the engine and its collaborators.

ValidationError is raised by the model layer and converted into a failed
ActionResult by the engine; callers of TurnEngine never see it raised.
PersistenceError always propagates: it means the system could not save,
not that the input was wrong.
"""


class DeathPointError(Exception):
    """Base class for all package errors."""


class ValidationError(DeathPointError):
    """Raised when input violates a game invariant."""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR"):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class PersistenceError(DeathPointError):
    """Raised when a store cannot read, write or clear the game."""
