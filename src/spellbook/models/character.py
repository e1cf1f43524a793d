from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from spellbook.models.spell import SpellItem, canonical_id

# Persisted character attribute keys
ATTR_CANTRIP_RULE = "cantrip_rule"
ATTR_ENFORCEMENT = "enforcement_behavior"
ATTR_CLASS_RULES = "class_rules"
ATTR_LEVEL_SNAPSHOT = "level_snapshot"
ATTR_LEVEL_UP_PENDING = "level_up_pending"
ATTR_SWAP_TRACKING = "swap_tracking"
ATTR_UNLEARNED_CANTRIPS = "unlearned_cantrips"
ATTR_LONG_REST = "long_rest_completed"


class Progression(str, Enum):
    NONE = "none"
    FULL = "full"
    HALF = "half"
    THIRD = "third"
    PACT = "pact"
    ARTIFICER = "artificer"


class SpellcastingConfig(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    progression: Progression = Progression.NONE
    type: str = "leveled"
    ability: Optional[str] = None
    preparation_max: int = 0


class ClassItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    identifier: str
    name: str
    levels: int = 1
    spellcasting: SpellcastingConfig = Field(default_factory=SpellcastingConfig)
    cantrips_known: int = 0

    @property
    def is_spellcaster(self) -> bool:
        return self.spellcasting.progression != Progression.NONE


class Character(BaseModel):
    """A character with its owned class and spell items.

    ``attributes`` holds the persisted per-character state (rule overrides,
    level snapshot, swap ledgers, counters) as loaded from storage.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    classes: list[ClassItem] = Field(default_factory=list)
    spells: list[SpellItem] = Field(default_factory=list)
    attributes: dict[str, Any] = Field(default_factory=dict)

    @property
    def total_level(self) -> int:
        return sum(c.levels for c in self.classes)

    @property
    def spellcasting_classes(self) -> list[ClassItem]:
        return [c for c in self.classes if c.is_spellcaster]

    def get_class(self, identifier: str | None) -> ClassItem | None:
        if not identifier:
            return None
        key = identifier.lower()
        for cls in self.classes:
            if cls.identifier == key:
                return cls
        return None

    def owned_spell(self, spell_id: str, class_identifier: str | None = None) -> SpellItem | None:
        """Find an owned spell by item id, or by canonical id.

        With a class identifier, a canonical id only matches the item tagged
        to that class; the same spell may be owned once per class.
        """
        key = canonical_id(spell_id)
        for spell in self.spells:
            if spell.id == spell_id:
                return spell
            if spell.canonical_id == key and (
                class_identifier is None or spell.source_class == class_identifier
            ):
                return spell
        return None

    def prepared_spell_count(self, class_identifier: str | None) -> int:
        """Prepared non-cantrip spells tagged to a class, excluding always-prepared ones."""
        return sum(
            1 for s in self.spells
            if s.source_class == class_identifier
            and s.prepared
            and not s.is_cantrip
            and not s.is_always_prepared
        )

    def prepared_cantrips(self, class_identifier: str | None = None) -> list[SpellItem]:
        return [
            s for s in self.spells
            if s.is_cantrip
            and s.prepared
            and not s.is_always_prepared
            and (class_identifier is None or s.source_class == class_identifier)
        ]
