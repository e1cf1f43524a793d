"""Tests for src/spellbook/systems/wizard/system.py."""
from __future__ import annotations

import pytest

from conftest import make_cleric, make_wizard
from spellbook.mechanics.rule_sets import RuleSetResolver
from spellbook.mechanics.wizard_book import SpellbookSource
from spellbook.models.character import Character
from spellbook.storage.repos.character_store import CharacterStore
from spellbook.storage.repos.spellbook_repo import SpellbookRepo
from spellbook.systems.wizard.system import WizardSpellbook


@pytest.fixture
def wizard(in_memory_db):
    char = Character(name="Elminster", classes=[make_wizard(levels=1)])
    CharacterStore(in_memory_db).save(char)
    return char


@pytest.fixture
def book(in_memory_db, content):
    config = {"wizard": {"starting_spells": 2, "spells_per_level": 1}}
    return WizardSpellbook(SpellbookRepo(in_memory_db), content, RuleSetResolver(), config)


class TestCapacity:
    def test_max_spells_from_config(self, book, wizard):
        assert book.max_spells(wizard) == 2
        wizard.classes[0].levels = 3
        assert book.max_spells(wizard) == 4

    def test_only_wizard_levels_count(self, book):
        char = Character(name="X", classes=[make_wizard(levels=2), make_cleric(levels=5)])
        assert book.wizard_level(char) == 2

    def test_forced_wizard_mode_counts(self, book):
        char = Character(
            name="X", classes=[make_cleric(levels=3)],
            attributes={"class_rules": {"cleric": {"force_wizard_mode": True}}},
        )
        assert book.wizard_level(char) == 3


class TestLearnSpell:
    def test_free_picks_then_copying(self, book, wizard):
        first = book.learn_spell(wizard, "srd.magic-missile")
        second = book.learn_spell(wizard, "srd.shield")
        third = book.learn_spell(wizard, "srd.sleep")
        assert (first.source, first.cost) == (SpellbookSource.FREE, 0)
        assert second.source == SpellbookSource.FREE
        assert (third.source, third.cost, third.time_minutes) == (SpellbookSource.COPIED, 50, 120)
        assert book.free_spells_remaining(wizard) == 0

    def test_cantrips_do_not_use_free_picks(self, book, wizard):
        result = book.learn_spell(wizard, "srd.fire-bolt")
        assert result.success and result.cost == 0
        assert book.free_spells_remaining(wizard) == 2

    def test_scroll_source(self, book, wizard):
        result = book.learn_spell(wizard, "srd.misty-step", SpellbookSource.SCROLL)
        assert (result.source, result.cost, result.time_minutes) == (SpellbookSource.SCROLL, 100, 240)

    def test_duplicate_rejected(self, book, wizard):
        book.learn_spell(wizard, "srd.shield")
        result = book.learn_spell(wizard, "SRD.Shield")
        assert not result.success
        assert book.spellbook_ids(wizard) == {"srd.shield"}

    def test_unknown_spell(self, book, wizard):
        assert not book.learn_spell(wizard, "homebrew.zap").success

    def test_non_wizard_has_no_book(self, book, in_memory_db):
        cleric = Character(name="X", classes=[make_cleric()])
        CharacterStore(in_memory_db).save(cleric)
        assert not book.learn_spell(cleric, "srd.bless").success
