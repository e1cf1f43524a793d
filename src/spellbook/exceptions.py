"""Exception types raised by the spellbook engine.

Policy denials are never raised; they come back as decision values.
"""
from __future__ import annotations


class SpellbookError(Exception):
    pass


class CharacterNotFoundError(SpellbookError):
    def __init__(self, character_id: str) -> None:
        super().__init__(f"Character not found: {character_id}")
        self.character_id = character_id


class PersistenceError(SpellbookError):
    """A batched write to the character store failed."""

    def __init__(self, operation: str, count: int, cause: Exception | None = None) -> None:
        super().__init__(f"{operation} of {count} item(s) failed: {cause}")
        self.operation = operation
        self.count = count
        self.cause = cause


class SaveFailedError(SpellbookError):
    """User-facing save failure. The message never carries internal ids."""

    def __init__(self, message: str = "Saving prepared spells failed. Please try again.") -> None:
        super().__init__(message)
