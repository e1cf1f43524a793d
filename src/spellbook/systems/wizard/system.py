"""Wizard personal spellbook: capacity, free picks, and copying records."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from spellbook.mechanics import wizard_book
from spellbook.mechanics.rule_sets import RuleSetResolver
from spellbook.mechanics.wizard_book import SpellbookSource
from spellbook.models.character import Character
from spellbook.models.spell import canonical_id
from spellbook.storage.repos.spellbook_repo import SpellbookRepo
from spellbook.systems.base import ContentLookup

logger = logging.getLogger(__name__)


@dataclass
class CopyResult:
    success: bool
    spell_id: str
    source: SpellbookSource | None = None
    cost: int = 0
    time_minutes: int = 0
    message: str = ""


class WizardSpellbook:
    """The personal reference list used by wizard-style casters."""

    def __init__(
        self,
        repo: SpellbookRepo,
        content: ContentLookup,
        resolver: RuleSetResolver,
        config: dict | None = None,
    ) -> None:
        cfg = (config or {}).get("wizard", {})
        self.repo = repo
        self.content = content
        self.resolver = resolver
        self.starting_spells = cfg.get("starting_spells", wizard_book.DEFAULT_STARTING_SPELLS)
        self.spells_per_level = cfg.get("spells_per_level", wizard_book.DEFAULT_SPELLS_PER_LEVEL)
        self.cost_multiplier = cfg.get("cost_multiplier", wizard_book.DEFAULT_COST_MULTIPLIER)
        self.time_multiplier = cfg.get("time_multiplier", wizard_book.DEFAULT_TIME_MULTIPLIER)

    def wizard_level(self, character: Character) -> int:
        return sum(
            c.levels for c in character.classes
            if self.resolver.is_wizard_enabled(character, c.identifier)
        )

    def spellbook_ids(self, character: Character) -> set[str]:
        return {e["spell_id"] for e in self.repo.get_entries(character.id)}

    def max_spells(self, character: Character) -> int:
        return wizard_book.max_spellbook_spells(
            self.wizard_level(character), self.starting_spells, self.spells_per_level,
        )

    def free_spells_remaining(self, character: Character) -> int:
        used = sum(
            1 for e in self.repo.get_entries(character.id)
            if e["source"] == SpellbookSource.FREE.value and e["spell_level"] > 0
        )
        return max(0, self.max_spells(character) - used)

    def learn_spell(
        self,
        character: Character,
        spell_id: str,
        source: SpellbookSource | None = None,
    ) -> CopyResult:
        """Write a spell into the book, choosing free or copied when no source is given.

        Only the cost and time are recorded; paying for it is up to the caller.
        """
        key = canonical_id(spell_id)
        if self.wizard_level(character) == 0:
            return CopyResult(False, key, message=f"{character.name} has no spellbook.")
        if self.repo.has_spell(character.id, key):
            return CopyResult(False, key, message="That spell is already in the spellbook.")
        doc = self.content.resolve_spell_document(key)
        if doc is None:
            logger.warning(f"Cannot add unknown spell {key} to spellbook")
            return CopyResult(False, key, message="Unknown spell.")

        free_left = self.free_spells_remaining(character)
        if source is None:
            source = SpellbookSource.FREE if free_left > 0 or doc.level == 0 else SpellbookSource.COPIED
        cost = wizard_book.copying_cost(
            doc.level, free_left if source == SpellbookSource.FREE else 0, self.cost_multiplier,
        )
        if source == SpellbookSource.FREE and cost > 0:
            source = SpellbookSource.COPIED
        minutes = 0 if source == SpellbookSource.FREE else wizard_book.copying_time(
            doc.level, self.time_multiplier,
        )

        self.repo.add_entry(character.id, key, doc.level, source.value, cost, minutes)
        logger.info(f"{character.name} added {doc.name} to spellbook ({source.value}, {cost} gp)")
        return CopyResult(True, key, source, cost, minutes, f"{doc.name} added to the spellbook.")
