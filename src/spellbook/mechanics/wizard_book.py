"""Wizard spellbook economy: pure functions, no I/O."""
from __future__ import annotations

from enum import Enum

DEFAULT_STARTING_SPELLS = 6
DEFAULT_SPELLS_PER_LEVEL = 2
DEFAULT_COST_MULTIPLIER = 50
DEFAULT_TIME_MULTIPLIER = 120


class SpellbookSource(str, Enum):
    FREE = "free"
    COPIED = "copied"
    SCROLL = "scroll"


def max_spellbook_spells(
    wizard_level: int,
    starting_spells: int = DEFAULT_STARTING_SPELLS,
    spells_per_level: int = DEFAULT_SPELLS_PER_LEVEL,
) -> int:
    """Spells a wizard gains for free by this level."""
    if wizard_level <= 0:
        return 0
    return starting_spells + (wizard_level - 1) * spells_per_level


def copying_cost(spell_level: int, free_remaining: int, multiplier: int = DEFAULT_COST_MULTIPLIER) -> int:
    """Gold cost to copy a spell; cantrips and free picks cost nothing."""
    if spell_level == 0 or free_remaining > 0:
        return 0
    return spell_level * multiplier


def copying_time(spell_level: int, multiplier: int = DEFAULT_TIME_MULTIPLIER) -> int:
    """Minutes needed to copy a spell into the book."""
    return max(1, spell_level) * multiplier
