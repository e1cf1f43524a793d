"""Spellcasting progression: pure functions, no I/O."""
from __future__ import annotations

import math

from spellbook.models.character import Progression, SpellcastingConfig

# Full caster spell slot table, indexed by caster level
_FULL_CASTER_SLOTS: dict[int, dict[int, int]] = {
    1: {1: 2},
    2: {1: 3},
    3: {1: 4, 2: 2},
    4: {1: 4, 2: 3},
    5: {1: 4, 2: 3, 3: 2},
    6: {1: 4, 2: 3, 3: 3},
    7: {1: 4, 2: 3, 3: 3, 4: 1},
    8: {1: 4, 2: 3, 3: 3, 4: 2},
    9: {1: 4, 2: 3, 3: 3, 4: 3, 5: 1},
    10: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2},
    11: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1},
    12: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1},
    13: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1},
    14: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1},
    15: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1, 8: 1},
    16: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1, 8: 1},
    17: {1: 4, 2: 3, 3: 3, 4: 3, 5: 2, 6: 1, 7: 1, 8: 1, 9: 1},
    18: {1: 4, 2: 3, 3: 3, 4: 3, 5: 3, 6: 1, 7: 1, 8: 1, 9: 1},
    19: {1: 4, 2: 3, 3: 3, 4: 3, 5: 3, 6: 2, 7: 1, 8: 1, 9: 1},
    20: {1: 4, 2: 3, 3: 3, 4: 3, 5: 3, 6: 2, 7: 2, 8: 1, 9: 1},
}

# Pact magic (warlock): all slots are always at the highest castable level.
# Stored as {slot_level: num_slots} for consistency with other casters.
_PACT_MAGIC_SLOTS: dict[int, dict[int, int]] = {
    1: {1: 1},
    2: {1: 2},
    3: {2: 2},
    4: {2: 2},
    5: {3: 2},
    6: {3: 2},
    7: {4: 2},
    8: {4: 2},
    9: {5: 2},
    10: {5: 2},
    11: {5: 3},
    12: {5: 3},
    13: {5: 3},
    14: {5: 3},
    15: {5: 3},
    16: {5: 3},
    17: {5: 4},
    18: {5: 4},
    19: {5: 4},
    20: {5: 4},
}

FULL_CASTERS = {"wizard", "cleric", "bard", "druid", "sorcerer"}
HALF_CASTERS = {"paladin", "ranger"}
PACT_CASTERS = {"warlock"}

WIZARD_CLASS = "wizard"

# Classes whose cantrip list is hidden unless a class rule shows it
CANTRIP_HIDDEN_CLASSES = {"paladin", "ranger"}


def default_progression(class_identifier: str) -> Progression:
    cls = class_identifier.lower()
    if cls in FULL_CASTERS:
        return Progression.FULL
    if cls in HALF_CASTERS:
        return Progression.HALF
    if cls in PACT_CASTERS:
        return Progression.PACT
    if cls == "artificer":
        return Progression.ARTIFICER
    return Progression.NONE


def caster_level(progression: Progression, level: int) -> int:
    """Convert class levels to an equivalent full-caster level."""
    if level <= 0:
        return 0
    if progression == Progression.FULL:
        return level
    if progression == Progression.HALF:
        return math.ceil(level / 2) if level >= 2 else 0
    if progression == Progression.ARTIFICER:
        return math.ceil(level / 2)
    if progression == Progression.THIRD:
        return math.ceil(level / 3) if level >= 3 else 0
    return 0


def get_spell_slots(progression: Progression, level: int) -> dict[int, int]:
    """Return max spell slots for a progression at a given class level."""
    clamped = min(level, 20)
    if progression == Progression.PACT:
        return dict(_PACT_MAGIC_SLOTS.get(clamped, {}))
    return dict(_FULL_CASTER_SLOTS.get(caster_level(progression, clamped), {}))


def calculate_max_spell_level(level: int, spellcasting: SpellcastingConfig) -> int:
    """Highest spell level castable at this class level; 0 means cantrips only."""
    slots = get_spell_slots(spellcasting.progression, level)
    return max(slots) if slots else 0
