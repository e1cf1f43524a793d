"""Tests for src/spellbook/content/loader.py against the bundled TOML content."""
from __future__ import annotations

import logging

import pytest

from spellbook.content.loader import (
    CONTENT_DIR,
    TomlContentLookup,
    load_all_spell_lists,
    load_all_spells,
    load_character,
)
from spellbook.models.character import Progression
from spellbook.models.spell import PreparationMode


@pytest.fixture(scope="module")
def lookup():
    return TomlContentLookup()


class TestBundledSpells:
    def test_spells_loaded(self):
        spells = load_all_spells()
        assert len(spells) >= 30
        assert "srd.fire-bolt" in spells

    def test_every_spell_has_required_fields(self):
        for key, spell in load_all_spells().items():
            assert spell["name"], key
            assert 0 <= spell["level"] <= 9, key

    def test_spell_lists_reference_known_spells(self):
        spells = load_all_spells()
        for cls, ids in load_all_spell_lists().items():
            for spell_id in ids:
                assert spell_id in spells, f"{cls} lists unknown spell {spell_id}"

    def test_expected_classes(self):
        assert {"wizard", "cleric", "warlock", "paladin"} <= set(load_all_spell_lists())


class TestTomlContentLookup:
    def test_resolve(self, lookup):
        doc = lookup.resolve_spell_document("SRD.Fire-Bolt")
        assert doc.source_id == "srd.fire-bolt"
        assert doc.name == "Fire Bolt"
        assert doc.level == 0

    def test_resolve_compendium_path(self, lookup):
        assert lookup.resolve_spell_document("Compendium.srd.spells.Item.shield").name == "Shield"

    def test_resolve_unknown(self, lookup):
        assert lookup.resolve_spell_document("homebrew.zap") is None

    def test_class_list(self, lookup):
        ids = lookup.get_class_spell_list("Wizard", "wizard")
        assert "srd.fireball" in ids
        assert "srd.sacred-flame" not in ids

    def test_class_list_falls_back_to_name(self, lookup):
        assert "srd.bless" in lookup.get_class_spell_list("Cleric", "life-cleric")

    def test_missing_class_list_warns(self, lookup, caplog):
        with caplog.at_level(logging.WARNING):
            assert lookup.get_class_spell_list("Fighter", "fighter") == set()
        assert "No spell list" in caplog.text

    def test_fetch_filters_by_level(self, lookup):
        docs = lookup.fetch_spell_documents(["srd.fire-bolt", "srd.fireball", "homebrew.zap"], 2)
        assert [d.name for d in docs] == ["Fire Bolt"]

    def test_custom_directory(self, tmp_path):
        (tmp_path / "spells").mkdir()
        (tmp_path / "spells" / "mine.toml").write_text(
            '[[spells]]\nid = "home.zap"\nname = "Zap"\nlevel = 0\n'
        )
        custom = TomlContentLookup(tmp_path)
        assert custom.resolve_spell_document("home.zap").name == "Zap"
        assert custom.spell_lists == {}


class TestLoadCharacter:
    def test_elminster(self, lookup):
        char = load_character(CONTENT_DIR / "characters" / "elminster.toml", lookup)
        assert char.name == "Elminster"
        wizard = char.get_class("wizard")
        assert (wizard.levels, wizard.cantrips_known) == (3, 3)
        assert {s.name for s in char.prepared_cantrips("wizard")} == {"Fire Bolt", "Ray of Frost", "Light"}
        ritual = char.owned_spell("srd.detect-magic")
        assert ritual.preparation_mode == PreparationMode.RITUAL
        assert ritual.is_always_prepared
        assert char.attributes["cantrip_rule"] == "modern_level_up"

    def test_tanis_default_progressions(self, lookup):
        char = load_character(CONTENT_DIR / "characters" / "tanis.toml", lookup)
        assert char.get_class("cleric").spellcasting.progression == Progression.FULL
        assert char.get_class("warlock").spellcasting.progression == Progression.PACT
        assert char.owned_spell("srd.cure-wounds").granted_by == "life-domain"
        assert char.attributes["class_rules"]["warlock"]["enforcement_behavior"] == "notify_gm"

    def test_unknown_spell_skipped(self, lookup, tmp_path, caplog):
        sheet = tmp_path / "odd.toml"
        sheet.write_text(
            'name = "Odd"\n\n'
            '[[classes]]\nidentifier = "Wizard"\nname = "Wizard"\n\n'
            '[[spells]]\nsource = "homebrew.zap"\n\n'
            '[[spells]]\nsource = "srd.light"\nsource_class = "wizard"\n'
        )
        with caplog.at_level(logging.WARNING):
            char = load_character(sheet, lookup)
        assert [s.name for s in char.spells] == ["Light"]
        assert char.classes[0].identifier == "wizard"
        assert "homebrew.zap" in caplog.text

    def test_identifier_derived_from_name(self, lookup, tmp_path):
        sheet = tmp_path / "arcane.toml"
        sheet.write_text('name = "A"\n\n[[classes]]\nname = "Arcane Trickster"\nlevels = 3\n')
        char = load_character(sheet, lookup)
        assert char.classes[0].identifier == "arcane-trickster"
        assert char.classes[0].spellcasting.progression == Progression.NONE
