"""Tests for src/spellbook/systems/aggregator/system.py."""
from __future__ import annotations

import logging

import pytest

from conftest import make_spell, make_wizard
from spellbook.mechanics.rule_sets import RuleSetResolver
from spellbook.models.character import Character, ClassItem, Progression, SpellcastingConfig
from spellbook.systems.aggregator.system import MultiClassAggregator


class FakeBook:
    def __init__(self, ids: set[str]) -> None:
        self.ids = ids

    def spellbook_ids(self, character) -> set[str]:
        return set(self.ids)


@pytest.fixture
def aggregator(content):
    return MultiClassAggregator(content, content, RuleSetResolver())


def _names(tab: dict) -> set[str]:
    return {e.name for entries in tab.values() for e in entries}


class TestAggregate:
    def test_one_entry_per_spellcasting_class(self, aggregator, multiclass_character):
        data = aggregator.aggregate(multiclass_character)
        assert set(data) == {"wizard", "cleric"}

    def test_respects_max_spell_level(self, aggregator, multiclass_character):
        wizard = aggregator.aggregate(multiclass_character)["wizard"]
        assert wizard.max_spell_level == 2
        assert "Misty Step" in {e.name for e in wizard.entries}
        assert "Fireball" not in {e.name for e in wizard.entries}

    def test_grouped_by_level(self, aggregator, multiclass_character):
        cleric = aggregator.aggregate(multiclass_character)["cleric"]
        assert [e.name for e in cleric.spells_by_level[0]] == ["Light", "Sacred Flame"]
        assert sorted(cleric.spells_by_level) == [0, 1]

    def test_owned_spell_outside_list_included(self, aggregator, multiclass_character):
        multiclass_character.spells.append(make_spell("srd.bless", source_class="wizard"))
        wizard = aggregator.aggregate(multiclass_character)["wizard"]
        entry = next(e for e in wizard.entries if e.name == "Bless")
        assert entry.owned and entry.prepared

    def test_spell_owned_by_other_class_not_owned_here(self, aggregator, multiclass_character):
        multiclass_character.spells.append(make_spell("srd.light", source_class="cleric"))
        data = aggregator.aggregate(multiclass_character)
        wizard_light = next(e for e in data["wizard"].entries if e.name == "Light")
        cleric_light = next(e for e in data["cleric"].entries if e.name == "Light")
        assert not wizard_light.owned and not wizard_light.prepared
        assert cleric_light.owned and cleric_light.prepared
        assert data["wizard"].cantrips.current == 1

    def test_classless_item_shown_as_owned(self, aggregator, multiclass_character):
        multiclass_character.spells.append(
            make_spell("srd.light", source_class=None, granted_by="feat-magic-initiate"),
        )
        wizard = aggregator.aggregate(multiclass_character)["wizard"]
        assert next(e for e in wizard.entries if e.name == "Light").owned

    def test_lookup_failure_skips_spell(self, aggregator, content, multiclass_character):
        content.broken.add("srd.sleep")
        wizard = aggregator.aggregate(multiclass_character)["wizard"]
        assert "Sleep" not in {e.name for e in wizard.entries}

    def test_martial_classes_ignored(self, aggregator):
        char = Character(name="X", classes=[ClassItem(identifier="fighter", name="Fighter")])
        assert aggregator.aggregate(char) == {}


class TestCounts:
    def test_per_class_stats(self, aggregator, multiclass_character):
        data = aggregator.aggregate(multiclass_character)
        assert (data["wizard"].stats.current, data["wizard"].stats.maximum) == (2, 5)
        assert (data["cleric"].stats.current, data["cleric"].stats.maximum) == (1, 3)

    def test_always_prepared_excluded(self, aggregator, multiclass_character):
        cleric = aggregator.aggregate(multiclass_character)["cleric"]
        cure = next(e for e in cleric.entries if e.name == "Cure Wounds")
        assert cure.always_prepared and cure.prepared
        assert cleric.stats.current == 1

    def test_global_totals(self, aggregator, multiclass_character):
        totals = aggregator.global_preparation(aggregator.aggregate(multiclass_character))
        assert (totals.current, totals.maximum, totals.remaining) == (3, 8, 5)

    def test_counts_never_exceed_owned(self, aggregator, multiclass_character):
        data = aggregator.aggregate(multiclass_character)
        owned = len(multiclass_character.spells)
        assert all(d.stats.current <= owned for d in data.values())

    def test_cantrip_stats(self, aggregator, multiclass_character):
        wizard = aggregator.aggregate(multiclass_character)["wizard"]
        assert (wizard.cantrips.current, wizard.cantrips.maximum) == (1, 3)

    def test_zero_maximum_warns(self, aggregator, caplog):
        char = Character(name="Nobody", classes=[make_wizard(preparation_max=0)])
        with caplog.at_level(logging.WARNING):
            aggregator.aggregate(char)
        assert "preparation maximum of 0" in caplog.text


class TestHiddenCantrips:
    def test_paladin_hides_cantrips_and_floors_level(self, aggregator):
        paladin = ClassItem(
            identifier="paladin", name="Paladin", levels=1,
            spellcasting=SpellcastingConfig(progression=Progression.HALF, preparation_max=2),
        )
        char = Character(name="X", classes=[paladin], spells=[make_spell("srd.light", "paladin")])
        data = aggregator.aggregate(char)["paladin"]
        assert data.hide_cantrips
        assert data.max_spell_level == 1
        assert 0 not in data.spells_by_level
        assert {e.name for e in data.entries} == {"Bless", "Cure Wounds"}
        assert data.cantrips.maximum == 0


class TestWizardSplit:
    def test_tabs(self, content, multiclass_character):
        aggregator = MultiClassAggregator(content, content, RuleSetResolver(), FakeBook({"srd.magic-missile"}))
        wizard = aggregator.aggregate(multiclass_character)["wizard"]
        assert wizard.is_wizard
        assert _names(wizard.prepared_tab) == {
            "Fire Bolt", "Ray of Frost", "Mage Hand", "Light", "Magic Missile",
        }
        assert _names(wizard.reference_tab) == {"Magic Missile", "Shield", "Sleep", "Misty Step"}
        cleric = aggregator.aggregate(multiclass_character)["cleric"]
        assert cleric.prepared_tab is None

    def test_spellbook_spell_outside_class_list(self, content, multiclass_character):
        aggregator = MultiClassAggregator(content, content, RuleSetResolver(), FakeBook({"srd.bless"}))
        wizard = aggregator.aggregate(multiclass_character)["wizard"]
        assert "Bless" in _names(wizard.prepared_tab)
        assert "Bless" not in _names(wizard.reference_tab)
