"""Per-class and whole-character spell organization and preparation counts."""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from spellbook.mechanics.rule_sets import RuleSetResolver
from spellbook.mechanics.spellcasting import calculate_max_spell_level
from spellbook.models.character import Character, ClassItem
from spellbook.models.spell import SpellDocument, SpellItem, canonical_id
from spellbook.systems.base import ClassSpellListSource, ContentLookup

if TYPE_CHECKING:
    from spellbook.systems.wizard.system import WizardSpellbook

logger = logging.getLogger(__name__)


@dataclass
class PreparationStats:
    current: int = 0
    maximum: int = 0

    @property
    def remaining(self) -> int:
        return max(0, self.maximum - self.current)


@dataclass
class SpellEntry:
    """A spell as shown for one class: candidate or owned."""
    source_id: str
    name: str
    level: int
    source_class: str
    prepared: bool = False
    always_prepared: bool = False
    owned: bool = False
    in_spellbook: bool = False


@dataclass
class ClassSpellData:
    class_identifier: str
    class_name: str
    max_spell_level: int
    spells_by_level: dict[int, list[SpellEntry]]
    stats: PreparationStats
    cantrips: PreparationStats
    hide_cantrips: bool = False
    is_wizard: bool = False
    prepared_tab: dict[int, list[SpellEntry]] | None = None
    reference_tab: dict[int, list[SpellEntry]] | None = None

    @property
    def entries(self) -> list[SpellEntry]:
        return [e for level in sorted(self.spells_by_level) for e in self.spells_by_level[level]]


def group_by_level(entries: Iterable[SpellEntry]) -> dict[int, list[SpellEntry]]:
    grouped: dict[int, list[SpellEntry]] = defaultdict(list)
    for entry in entries:
        grouped[entry.level].append(entry)
    return {level: sorted(grouped[level], key=lambda e: e.name) for level in sorted(grouped)}


class MultiClassAggregator:
    """Builds the per-class spell views and prepared/maximum counts."""

    def __init__(
        self,
        spell_lists: ClassSpellListSource,
        content: ContentLookup,
        resolver: RuleSetResolver,
        wizard_book: WizardSpellbook | None = None,
    ) -> None:
        self.spell_lists = spell_lists
        self.content = content
        self.resolver = resolver
        self.wizard_book = wizard_book

    def aggregate(self, character: Character) -> dict[str, ClassSpellData]:
        data = {
            cls.identifier: self._load_class(character, cls)
            for cls in character.spellcasting_classes
        }
        totals = self.global_preparation(data)
        if data and totals.maximum == 0:
            logger.warning(
                f"{character.name} has spellcasting classes but a preparation maximum of 0"
            )
        return data

    def preparation_stats(self, character: Character, class_identifier: str) -> PreparationStats:
        """Prepared non-cantrip spells tagged to a class, against its maximum."""
        return PreparationStats(
            character.prepared_spell_count(class_identifier),
            self.resolver.preparation_max(character, class_identifier),
        )

    @staticmethod
    def global_preparation(class_data: dict[str, ClassSpellData]) -> PreparationStats:
        return PreparationStats(
            current=sum(d.stats.current for d in class_data.values()),
            maximum=sum(d.stats.maximum for d in class_data.values()),
        )

    def _load_class(self, character: Character, cls: ClassItem) -> ClassSpellData:
        cid = cls.identifier
        hide_cantrips = not self.resolver.shows_cantrips(character, cid)
        is_wizard = self.resolver.is_wizard_enabled(character, cid)
        max_level = calculate_max_spell_level(cls.levels, cls.spellcasting)
        if hide_cantrips or is_wizard:
            max_level = max(max_level, 1)

        try:
            class_ids = {canonical_id(i) for i in self.spell_lists.get_class_spell_list(cls.name, cid, character)}
        except Exception as e:
            logger.warning(f"Spell list lookup failed for {cid}: {e}")
            class_ids = set()
        personal: set[str] = set()
        if is_wizard and self.wizard_book is not None:
            personal = self.wizard_book.spellbook_ids(character)

        # Items owned under another class do not count for this one.
        owned = {(s.source_class, s.canonical_id): s for s in character.spells}
        entries: dict[str, SpellEntry] = {}
        for doc in self.content.fetch_spell_documents(sorted(class_ids | personal), max_level):
            if hide_cantrips and doc.level == 0:
                continue
            key = canonical_id(doc)
            item = owned.get((cid, key)) or owned.get((None, key))
            entries[key] = self._entry(doc, cid, item, key in personal)
        for item in character.spells:
            key = item.canonical_id
            if item.source_class != cid or key in entries:
                continue
            if hide_cantrips and item.is_cantrip:
                continue
            entries[key] = self._owned_entry(item, key in personal)

        cantrips = PreparationStats(
            current=len(character.prepared_cantrips(cid)),
            maximum=self.resolver.cantrip_max(character, cid),
        )
        data = ClassSpellData(
            class_identifier=cid,
            class_name=cls.name,
            max_spell_level=max_level,
            spells_by_level=group_by_level(entries.values()),
            stats=self.preparation_stats(character, cid),
            cantrips=cantrips,
            hide_cantrips=hide_cantrips,
            is_wizard=is_wizard,
        )
        if is_wizard:
            data.prepared_tab = group_by_level(
                e for e in entries.values()
                if e.level == 0 or e.in_spellbook or e.always_prepared
            )
            data.reference_tab = group_by_level(
                e for key, e in entries.items() if e.level > 0 and key in class_ids
            )
        return data

    @staticmethod
    def _entry(doc: SpellDocument, class_identifier: str, item: SpellItem | None, in_spellbook: bool) -> SpellEntry:
        return SpellEntry(
            source_id=canonical_id(doc),
            name=doc.name,
            level=doc.level,
            source_class=class_identifier,
            prepared=item is not None and (item.prepared or item.is_always_prepared),
            always_prepared=item is not None and item.is_always_prepared,
            owned=item is not None,
            in_spellbook=in_spellbook,
        )

    @staticmethod
    def _owned_entry(item: SpellItem, in_spellbook: bool) -> SpellEntry:
        return SpellEntry(
            source_id=item.canonical_id,
            name=item.name,
            level=item.level,
            source_class=item.source_class or "",
            prepared=item.prepared or item.is_always_prepared,
            always_prepared=item.is_always_prepared,
            owned=True,
            in_spellbook=in_spellbook,
        )
