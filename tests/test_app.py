"""Tests for src/spellbook/app.py."""
from __future__ import annotations

import pytest

from spellbook.app import SpellbookApp
from spellbook.content.loader import CONTENT_DIR
from spellbook.exceptions import CharacterNotFoundError
from spellbook.mechanics.preparation import ReasonCode

ELMINSTER = CONTENT_DIR / "characters" / "elminster.toml"
TANIS = CONTENT_DIR / "characters" / "tanis.toml"


@pytest.fixture
def spellbook_app(tmp_path):
    config = {"rules": {"rule_set": "legacy"}, "wizard": {"starting_spells": 6, "spells_per_level": 2}}
    app = SpellbookApp(config=config, db_path=str(tmp_path / "app.db"))
    yield app
    app.db.close()


class TestImport:
    def test_import_persists_and_seeds_snapshot(self, spellbook_app):
        character = spellbook_app.import_character(ELMINSTER)
        loaded = spellbook_app.store.load(character.id)
        assert loaded.name == "Elminster"
        assert loaded.attributes["level_snapshot"]["wizard"]["previous_level"] == 3
        assert spellbook_app.progress.in_level_up(loaded, "wizard") is False

    def test_unknown_character(self, spellbook_app):
        with pytest.raises(CharacterNotFoundError):
            spellbook_app.session("missing")


class TestLevelUp:
    def test_level_up_opens_window(self, spellbook_app):
        character = spellbook_app.import_character(ELMINSTER)
        updated, opened = spellbook_app.level_up(character.id, "wizard", cantrips_known=4)
        assert opened is True
        assert updated.get_class("wizard").levels == 4
        assert spellbook_app.store.load(character.id).get_class("wizard").cantrips_known == 4

    def test_level_up_unknown_class(self, spellbook_app):
        character = spellbook_app.import_character(ELMINSTER)
        with pytest.raises(KeyError):
            spellbook_app.level_up(character.id, "bard")

    def test_swap_after_level_up(self, spellbook_app):
        character = spellbook_app.import_character(ELMINSTER)
        spellbook_app.level_up(character.id, "wizard")
        session = spellbook_app.session(character.id)
        assert session.toggle("srd.fire-bolt", False).allowed
        assert session.toggle("srd.mage-hand", True).allowed
        assert session.toggle("srd.light", False).reason == ReasonCode.ONLY_ONE_SWAP
        session.save()
        reloaded = spellbook_app.store.load(character.id)
        names = {s.name for s in reloaded.prepared_cantrips("wizard")}
        assert names == {"Ray of Frost", "Light", "Mage Hand"}


class TestNotifyGm:
    def test_warlock_changes_reach_gm(self, spellbook_app):
        character = spellbook_app.import_character(TANIS)
        session = spellbook_app.session(character.id)
        assert session.toggle("srd.mage-hand", True, "warlock").allowed
        session.save()
        gm = spellbook_app.notifications.list_notifications(character.id, "gm")
        assert len(gm) == 1
        assert [c["name"] for c in gm[0]["message"]["added"]] == ["Mage Hand"]

    def test_over_limit_warning_stored_for_controllers(self, spellbook_app):
        character = spellbook_app.import_character(TANIS)
        session = spellbook_app.session(character.id)
        session.toggle("srd.mage-hand", True, "warlock")
        session.toggle("srd.minor-illusion", True, "warlock")
        warnings = spellbook_app.notifications.list_notifications(character.id, "controllers")
        assert len(warnings) == 1
        assert warnings[0]["message"]["spell"] == "Minor Illusion"


class TestWizardBook:
    def test_learn_and_aggregate(self, spellbook_app):
        character = spellbook_app.import_character(ELMINSTER)
        result = spellbook_app.wizard_book.learn_spell(character, "srd.fireball")
        assert result.success
        data = spellbook_app.aggregator.aggregate(character)["wizard"]
        assert data.is_wizard
        assert "Fireball" not in {e.name for e in data.entries}
        assert spellbook_app.wizard_book.free_spells_remaining(character) == 9
