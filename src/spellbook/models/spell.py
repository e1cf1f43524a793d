from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PreparationMode(str, Enum):
    PREPARED = "prepared"
    ALWAYS = "always"
    PACT = "pact"
    INNATE = "innate"
    ATWILL = "atwill"
    RITUAL = "ritual"


# Modes that are usable by definition and never go through swap rules.
ALWAYS_PREPARED_MODES = frozenset({
    PreparationMode.ALWAYS,
    PreparationMode.PACT,
    PreparationMode.INNATE,
    PreparationMode.ATWILL,
    PreparationMode.RITUAL,
})


class SpellDocument(BaseModel):
    """A candidate spell as resolved from a content source."""

    model_config = ConfigDict(from_attributes=True)

    source_id: str
    name: str
    level: int = 0
    school: str = ""
    ritual: bool = False
    description: str = ""
    classes: list[str] = Field(default_factory=list)


class SpellItem(BaseModel):
    """A spell owned by (embedded on) a character."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    level: int = 0
    preparation_mode: PreparationMode = PreparationMode.PREPARED
    prepared: bool = False
    source_class: Optional[str] = None
    source_uuid: Optional[str] = None
    granted_by: Optional[str] = None

    @property
    def is_cantrip(self) -> bool:
        return self.level == 0

    @property
    def is_always_prepared(self) -> bool:
        return self.preparation_mode in ALWAYS_PREPARED_MODES or self.granted_by is not None

    @property
    def canonical_id(self) -> str:
        return canonical_id(self)

    @classmethod
    def from_document(cls, doc: SpellDocument, source_class: str | None = None) -> SpellItem:
        """Build a freshly prepared owned item that remembers where it came from."""
        return cls(
            name=doc.name,
            level=doc.level,
            prepared=True,
            source_class=source_class,
            source_uuid=canonical_id(doc),
        )


def canonical_id(spell: SpellItem | SpellDocument | dict[str, Any] | str) -> str:
    """Return the stable identity used to correlate candidates and owned items.

    Owned items correlate through the source they were created from; content
    documents through their own source id. Compendium style paths such as
    ``Compendium.srd.spells.Item.fire-bolt`` collapse to their ``srd.fire-bolt``
    form so both spellings match.
    """
    if isinstance(spell, str):
        raw = spell
    elif isinstance(spell, SpellItem):
        raw = spell.source_uuid or spell.id
    elif isinstance(spell, SpellDocument):
        raw = spell.source_id
    else:
        raw = (
            spell.get("source_uuid")
            or spell.get("source_id")
            or spell.get("uuid")
            or spell.get("id")
            or ""
        )
    key = str(raw).strip().lower()
    if key.startswith("compendium."):
        parts = key.split(".")
        # compendium.<pack>.<collection>.item.<id>
        if len(parts) >= 5 and parts[-2] == "item":
            key = f"{parts[1]}.{parts[-1]}"
    if not key:
        raise ValueError("Spell has no usable identity")
    return key
