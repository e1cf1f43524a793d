"""Shared fixtures for the spellbook test suite."""
from __future__ import annotations

from typing import Any

import pytest

from spellbook.exceptions import PersistenceError
from spellbook.models.character import Character, ClassItem, Progression, SpellcastingConfig
from spellbook.models.spell import PreparationMode, SpellDocument, SpellItem
from spellbook.systems.base import (
    ClassSpellListSource,
    ContentLookup,
    NotificationSink,
    PersistenceGateway,
)


SPELL_DOCS = [
    SpellDocument(source_id="srd.fire-bolt", name="Fire Bolt", level=0, school="evocation"),
    SpellDocument(source_id="srd.ray-of-frost", name="Ray of Frost", level=0, school="evocation"),
    SpellDocument(source_id="srd.mage-hand", name="Mage Hand", level=0, school="conjuration"),
    SpellDocument(source_id="srd.light", name="Light", level=0, school="evocation"),
    SpellDocument(source_id="srd.sacred-flame", name="Sacred Flame", level=0, school="evocation"),
    SpellDocument(source_id="srd.magic-missile", name="Magic Missile", level=1, school="evocation"),
    SpellDocument(source_id="srd.shield", name="Shield", level=1, school="abjuration"),
    SpellDocument(source_id="srd.sleep", name="Sleep", level=1, school="enchantment"),
    SpellDocument(source_id="srd.bless", name="Bless", level=1, school="enchantment"),
    SpellDocument(source_id="srd.cure-wounds", name="Cure Wounds", level=1, school="evocation"),
    SpellDocument(source_id="srd.misty-step", name="Misty Step", level=2, school="conjuration"),
    SpellDocument(source_id="srd.fireball", name="Fireball", level=3, school="evocation"),
]

CLASS_LISTS = {
    "wizard": {
        "srd.fire-bolt", "srd.ray-of-frost", "srd.mage-hand", "srd.light",
        "srd.magic-missile", "srd.shield", "srd.sleep", "srd.misty-step", "srd.fireball",
    },
    "cleric": {"srd.sacred-flame", "srd.light", "srd.bless", "srd.cure-wounds"},
    "paladin": {"srd.bless", "srd.cure-wounds"},
}


class FakeContent(ContentLookup, ClassSpellListSource):
    """In-memory content source; ids listed in ``broken`` raise on lookup."""

    def __init__(self, docs: list[SpellDocument] | None = None, lists: dict | None = None) -> None:
        self.docs = {d.source_id: d for d in (docs if docs is not None else SPELL_DOCS)}
        self.lists = lists if lists is not None else CLASS_LISTS
        self.broken: set[str] = set()
        self.resolve_calls: list[str] = []
        self.list_calls: list[str] = []

    def resolve_spell_document(self, source_id: str) -> SpellDocument | None:
        self.resolve_calls.append(source_id)
        if source_id in self.broken:
            raise RuntimeError(f"content source unavailable for {source_id}")
        return self.docs.get(source_id)

    def get_class_spell_list(self, class_name: str, class_identifier: str, character=None) -> set[str]:
        self.list_calls.append(class_identifier)
        return set(self.lists.get(class_identifier, set()))


class FakeGateway(PersistenceGateway):
    """Records every write; set ``fail_on`` to an operation name to make it raise."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []
        self.fail_on: str | None = None

    def get_persisted_attribute(self, character: Character, key: str, default: Any = None) -> Any:
        return character.attributes.get(key, default)

    def set_persisted_attribute(self, character: Character, key: str, value: Any) -> None:
        self.calls.append(("set:" + key, 1))
        character.attributes[key] = value

    def create_owned_items(self, character: Character, items: list[SpellItem]) -> None:
        self._record("create", len(items))
        character.spells.extend(items)

    def update_owned_items(self, character: Character, items: list[SpellItem]) -> None:
        self._record("update", len(items))
        by_id = {s.id: s for s in items}
        character.spells = [by_id.get(s.id, s) for s in character.spells]

    def delete_owned_items(self, character: Character, item_ids: list[str]) -> None:
        self._record("delete", len(item_ids))
        character.spells = [s for s in character.spells if s.id not in set(item_ids)]

    def _record(self, op: str, count: int) -> None:
        if self.fail_on == op:
            raise PersistenceError(op, count, RuntimeError("disk full"))
        self.calls.append((op, count))

    @property
    def batch_calls(self) -> list[tuple[str, int]]:
        return [c for c in self.calls if not c[0].startswith("set:")]


class FakeNotifier(NotificationSink):
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, dict]] = []
        self.fail = fail

    def notify(self, audience: str, message: dict) -> None:
        if self.fail:
            raise RuntimeError("chat unavailable")
        self.sent.append((audience, message))


def make_spell(doc_id: str, source_class: str | None = "wizard", prepared: bool = True, **overrides) -> SpellItem:
    doc = next(d for d in SPELL_DOCS if d.source_id == doc_id)
    data = {
        "name": doc.name,
        "level": doc.level,
        "prepared": prepared,
        "source_class": source_class,
        "source_uuid": doc.source_id,
    }
    data.update(overrides)
    return SpellItem(**data)


def make_wizard(levels: int = 1, cantrips_known: int = 2, preparation_max: int = 4) -> ClassItem:
    return ClassItem(
        identifier="wizard",
        name="Wizard",
        levels=levels,
        cantrips_known=cantrips_known,
        spellcasting=SpellcastingConfig(
            progression=Progression.FULL, ability="intelligence", preparation_max=preparation_max,
        ),
    )


def make_cleric(levels: int = 1, cantrips_known: int = 3, preparation_max: int = 3) -> ClassItem:
    return ClassItem(
        identifier="cleric",
        name="Cleric",
        levels=levels,
        cantrips_known=cantrips_known,
        spellcasting=SpellcastingConfig(
            progression=Progression.FULL, ability="wisdom", preparation_max=preparation_max,
        ),
    )


@pytest.fixture
def content() -> FakeContent:
    return FakeContent()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def wizard_character() -> Character:
    """Wizard with cantrip max 2 and Fire Bolt + Ray of Frost prepared."""
    return Character(
        name="Elminster",
        classes=[make_wizard()],
        spells=[
            make_spell("srd.fire-bolt"),
            make_spell("srd.ray-of-frost"),
            make_spell("srd.magic-missile"),
            make_spell("srd.shield", prepared=False),
        ],
        attributes={"enforcement_behavior": "lock_after_max"},
    )


@pytest.fixture
def multiclass_character() -> Character:
    return Character(
        name="Tanis",
        classes=[make_wizard(levels=3, cantrips_known=3, preparation_max=5), make_cleric(levels=2)],
        spells=[
            make_spell("srd.fire-bolt"),
            make_spell("srd.magic-missile"),
            make_spell("srd.shield"),
            make_spell("srd.sacred-flame", source_class="cleric"),
            make_spell("srd.bless", source_class="cleric"),
            make_spell(
                "srd.cure-wounds", source_class="cleric",
                preparation_mode=PreparationMode.ALWAYS, granted_by="life-domain",
            ),
        ],
    )


@pytest.fixture
def in_memory_db(tmp_path):
    from spellbook.storage.database import Database

    db = Database(str(tmp_path / "test.db"))
    db.initialize()
    yield db
    db.close()
