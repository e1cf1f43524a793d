"""Application bootstrap. Wires storage, content and engines together."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from spellbook.models.character import Character

logger = logging.getLogger(__name__)


def _load_config() -> dict[str, Any]:
    """Load config.toml from project root."""
    import tomllib

    config_path = Path(__file__).parent.parent.parent / "config.toml"
    if config_path.exists():
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    logger.warning(f"No config found at {config_path}; using built-in defaults")
    return {}


class SpellbookApp:
    """Builds components lazily from config and hands out editing sessions."""

    def __init__(self, config: dict[str, Any] | None = None, db_path: str | None = None):
        self.config = _load_config() if config is None else config
        self.db_path = db_path

        # Lazy-initialized components
        self._db = None
        self._store = None
        self._notifications = None
        self._spellbook_repo = None
        self._content = None
        self._resolver = None
        self._engine = None
        self._progress = None
        self._swaps = None
        self._reconciler = None
        self._aggregator = None
        self._wizard_book = None

    # -- Component initialization (lazy) --

    @property
    def db(self):
        if self._db is None:
            from spellbook.storage.database import Database

            db_path = self.db_path or self.config.get("storage", {}).get("db_path", "saves/spellbook.db")
            self._db = Database(db_path)
            self._db.initialize()
        return self._db

    @property
    def store(self):
        if self._store is None:
            from spellbook.storage.repos import CharacterStore

            self._store = CharacterStore(self.db)
        return self._store

    @property
    def notifications(self):
        if self._notifications is None:
            from spellbook.storage.repos import NotificationRepo

            self._notifications = NotificationRepo(self.db)
        return self._notifications

    @property
    def spellbook_repo(self):
        if self._spellbook_repo is None:
            from spellbook.storage.repos import SpellbookRepo

            self._spellbook_repo = SpellbookRepo(self.db)
        return self._spellbook_repo

    @property
    def content(self):
        if self._content is None:
            from spellbook.content.cache import SpellDocumentCache
            from spellbook.content.loader import TomlContentLookup

            lookup = TomlContentLookup(self.config.get("content", {}).get("dir"))
            self._content = SpellDocumentCache(lookup, lookup)
        return self._content

    @property
    def resolver(self):
        if self._resolver is None:
            from spellbook.mechanics.rule_sets import RuleSetResolver

            self._resolver = RuleSetResolver(self.config)
        return self._resolver

    @property
    def engine(self):
        if self._engine is None:
            from spellbook.mechanics.preparation import PreparationDecisionEngine

            self._engine = PreparationDecisionEngine(self.resolver)
        return self._engine

    @property
    def progress(self):
        if self._progress is None:
            from spellbook.systems.progress.system import LevelProgressTracker

            self._progress = LevelProgressTracker(self.store, self.resolver)
        return self._progress

    @property
    def swaps(self):
        if self._swaps is None:
            from spellbook.systems.swaps.system import SwapTracker

            self._swaps = SwapTracker(self.store, self.progress)
        return self._swaps

    @property
    def reconciler(self):
        if self._reconciler is None:
            from spellbook.systems.reconciler.system import PreparationReconciler

            self._reconciler = PreparationReconciler(
                self.store, self.content, self.resolver, self.progress, self.notifications,
            )
        return self._reconciler

    @property
    def wizard_book(self):
        if self._wizard_book is None:
            from spellbook.systems.wizard.system import WizardSpellbook

            self._wizard_book = WizardSpellbook(
                self.spellbook_repo, self.content, self.resolver, self.config,
            )
        return self._wizard_book

    @property
    def aggregator(self):
        if self._aggregator is None:
            from spellbook.systems.aggregator.system import MultiClassAggregator

            self._aggregator = MultiClassAggregator(
                self.content, self.content, self.resolver, self.wizard_book,
            )
        return self._aggregator

    # -- Operations --

    def session(self, character_id: str):
        from spellbook.engine.session import SpellbookSession

        character = self.store.load(character_id)
        return SpellbookSession(
            character,
            self.resolver,
            self.engine,
            self.progress,
            self.swaps,
            self.reconciler,
            self.aggregator,
            self.notifications,
        )

    def import_character(self, path: Path) -> Character:
        from spellbook.content.loader import load_character

        character = load_character(path, self.content)
        self.store.save(character)
        # Record the starting snapshot so the first real level-up is detected.
        for cls in character.spellcasting_classes:
            self.progress.check_for_level_up(character, cls.identifier)
        self.progress.check_for_level_up(character)
        logger.info(f"Imported {character.name} ({character.id})")
        return character

    def long_rest(self, character_id: str) -> Character:
        character = self.store.load(character_id)
        self.progress.mark_long_rest(character)
        return character

    def level_up(
        self,
        character_id: str,
        class_identifier: str,
        cantrips_known: int | None = None,
        preparation_max: int | None = None,
    ) -> tuple[Character, bool]:
        """Add a class level and report whether a cantrip swap window opened."""
        character = self.store.load(character_id)
        cls = character.get_class(class_identifier)
        if cls is None:
            raise KeyError(f"{character.name} has no {class_identifier} levels")
        updated = cls.model_copy(deep=True)
        updated.levels += 1
        if cantrips_known is not None:
            updated.cantrips_known = cantrips_known
        if preparation_max is not None:
            updated.spellcasting.preparation_max = preparation_max
        self.store.update_class(character, updated)
        return character, self.progress.in_level_up(character, updated.identifier)
