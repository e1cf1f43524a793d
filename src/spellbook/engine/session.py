"""Editing session over one character's prepared spells.

Ties the decision engine, swap ledgers, reconciler and aggregator together
in the order a UI drives them: toggle, toggle, ..., save.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from spellbook.exceptions import PersistenceError, SaveFailedError
from spellbook.mechanics.preparation import ChangeDecision, LockStatus, PreparationDecisionEngine
from spellbook.mechanics.rule_sets import RuleSetResolver
from spellbook.models.character import Character
from spellbook.models.rules import CantripRule
from spellbook.models.spell import SpellItem, canonical_id
from spellbook.models.swap import SwapContext
from spellbook.systems.aggregator.system import ClassSpellData, MultiClassAggregator, PreparationStats
from spellbook.systems.base import AUDIENCE_CONTROLLERS, NotificationSink
from spellbook.systems.progress.system import LevelProgressTracker
from spellbook.systems.reconciler.system import (
    IntentKey,
    PreparationReconciler,
    ReconcileResult,
    SpellIntent,
)
from spellbook.systems.swaps.system import SwapTracker

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    reconcile: ReconcileResult
    classes: dict[str, ClassSpellData]
    global_preparation: PreparationStats


class SpellbookSession:
    """Tracks pending toggles for a character until they are saved."""

    def __init__(
        self,
        character: Character,
        resolver: RuleSetResolver,
        engine: PreparationDecisionEngine,
        progress: LevelProgressTracker,
        swaps: SwapTracker,
        reconciler: PreparationReconciler,
        aggregator: MultiClassAggregator,
        notifier: NotificationSink | None = None,
    ) -> None:
        self.character = character
        self.resolver = resolver
        self.engine = engine
        self.progress = progress
        self.swaps = swaps
        self.reconciler = reconciler
        self.aggregator = aggregator
        self.notifier = notifier
        # (class identifier, canonical id) -> (checked, spell)
        self._pending: dict[tuple[str | None, str], tuple[bool, SpellItem]] = {}

    # -- Spell lookup --

    def spell(self, spell_id: str, class_identifier: str | None = None) -> SpellItem:
        """The class's owned item for spell_id, or an unprepared candidate built from content.

        Without a class, the class of any owned copy is used, then the first
        class whose spell list has the spell.
        """
        key = canonical_id(spell_id)
        cid = class_identifier
        if cid is None:
            owned = self.character.owned_spell(spell_id)
            cid = owned.source_class if owned is not None else self._infer_class(key)
        pending = self._pending.get((cid, key))
        if pending is not None:
            return pending[1]
        owned = self.character.owned_spell(spell_id, cid)
        if owned is not None:
            return owned
        doc = self.aggregator.content.resolve_spell_document(key)
        if doc is None:
            raise KeyError(f"Unknown spell: {spell_id}")
        item = SpellItem.from_document(doc, cid)
        return item.model_copy(update={"prepared": False})

    def _infer_class(self, key: str) -> str | None:
        for cls in self.character.spellcasting_classes:
            ids = self.aggregator.spell_lists.get_class_spell_list(cls.name, cls.identifier, self.character)
            if key in {canonical_id(i) for i in ids}:
                return cls.identifier
        return None

    def is_checked(self, spell: SpellItem) -> bool:
        pending = self._pending.get((spell.source_class, spell.canonical_id))
        if pending is not None:
            return pending[0]
        return spell.prepared or spell.is_always_prepared

    def checked_cantrip_count(self, class_identifier: str | None) -> int:
        """Cantrips of a class checked right now, counting unsaved toggles."""
        checked = {
            s.canonical_id for s in self.character.spells
            if s.is_cantrip and s.prepared and not s.is_always_prepared
            and s.source_class == class_identifier
        }
        for (cid, key), (is_checked, spell) in self._pending.items():
            if not spell.is_cantrip or cid != class_identifier:
                continue
            if is_checked:
                checked.add(key)
            else:
                checked.discard(key)
        return len(checked)

    # -- Contexts --

    def swap_state(self, class_identifier: str | None) -> tuple[bool, bool, SwapContext | None]:
        """Return (is_level_up, is_long_rest, open swap context) for a class."""
        if not class_identifier:
            return False, False, None
        is_level_up = self.progress.in_level_up(self.character, class_identifier)
        is_long_rest = self.progress.is_long_rest(self.character)
        rule = self.resolver.resolve(self.character, class_identifier).cantrip_rule
        context = None
        if rule == CantripRule.MODERN_LEVEL_UP and is_level_up:
            context = SwapContext.LEVEL_UP
        elif (
            rule == CantripRule.MODERN_LONG_REST
            and is_long_rest
            and self.resolver.is_wizard_enabled(self.character, class_identifier)
        ):
            context = SwapContext.LONG_REST
        return is_level_up, is_long_rest, context

    # -- Public surface --

    def toggle(self, spell_id: str, checked: bool, class_identifier: str | None = None) -> ChangeDecision:
        spell = self.spell(spell_id, class_identifier)
        cid = spell.source_class
        is_level_up, is_long_rest, context = self.swap_state(cid)
        ledger = self.swaps.peek(self.character, context, cid) if context else None
        decision = self.engine.can_change(
            self.character, spell, checked, is_level_up, is_long_rest,
            self.checked_cantrip_count(cid), ledger,
        )
        if not decision.allowed:
            logger.debug(f"Denied {spell.name} -> {checked}: {decision.reason}")
            return decision

        if decision.warning is not None:
            self._warn_controllers(spell, decision)
        if context is not None and spell.is_cantrip and not spell.is_always_prepared:
            self.swaps.record(self.character, context, cid, spell.canonical_id, checked)
        self._pending[(cid, spell.canonical_id)] = (checked, spell)
        return decision

    def lock_status(self, spell_id: str, class_identifier: str | None = None) -> LockStatus:
        spell = self.spell(spell_id, class_identifier)
        is_level_up, is_long_rest, context = self.swap_state(spell.source_class)
        ledger = self.swaps.peek(self.character, context, spell.source_class) if context else None
        return self.engine.lock_status(
            self.character, spell, is_level_up, is_long_rest,
            self.checked_cantrip_count(spell.source_class), ledger,
            is_checked=self.is_checked(spell),
        )

    def intent_map(self) -> dict[IntentKey, SpellIntent]:
        intents = {}
        for (cid, key), (checked, spell) in self._pending.items():
            owned = next((s for s in self.character.spells if s.id == spell.id), None)
            intents[(cid, key)] = SpellIntent(
                is_prepared=checked,
                was_prepared=owned is not None and owned.prepared,
                is_always_prepared=spell.is_always_prepared,
                source_class=cid,
            )
        return intents

    def save(self, intent_map: dict[IntentKey, SpellIntent] | None = None, finish_swaps: bool = True) -> SaveResult:
        """Reconcile pending changes, close open swap windows, and recount."""
        intents = self.intent_map() if intent_map is None else intent_map
        try:
            result = self.reconciler.reconcile(self.character, intents)
            if finish_swaps:
                self.finish_swaps()
        except PersistenceError as e:
            logger.warning(f"Save failed for {self.character.name}: {e}")
            raise SaveFailedError() from e
        self._pending.clear()
        classes = self.aggregator.aggregate(self.character)
        return SaveResult(result, classes, self.aggregator.global_preparation(classes))

    def finish_swaps(self) -> None:
        level_up = any(
            self.progress.in_level_up(self.character, c.identifier)
            for c in self.character.spellcasting_classes
        )
        if level_up or self.progress.is_level_up_pending(self.character):
            self.swaps.complete_swap(self.character, SwapContext.LEVEL_UP)
        if self.progress.is_long_rest(self.character):
            self.swaps.complete_swap(self.character, SwapContext.LONG_REST)

    def _warn_controllers(self, spell: SpellItem, decision: ChangeDecision) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(AUDIENCE_CONTROLLERS, {
                "type": "over_limit",
                "character_id": self.character.id,
                "character": self.character.name,
                "spell": spell.name,
                "message": decision.message,
            })
        except Exception as e:
            logger.warning(f"Over-limit warning for {self.character.name} not delivered: {e}")
