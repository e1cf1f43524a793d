"""Persistent cantrip swap ledgers, one per class per swap context."""
from __future__ import annotations

import copy
import logging

from spellbook.mechanics.swap_tracking import new_ledger, track_change
from spellbook.models.character import ATTR_SWAP_TRACKING, Character
from spellbook.models.swap import SwapContext, SwapLedger
from spellbook.systems.base import PersistenceGateway
from spellbook.systems.progress.system import LevelProgressTracker

logger = logging.getLogger(__name__)


class SwapTracker:
    def __init__(self, gateway: PersistenceGateway, progress: LevelProgressTracker) -> None:
        self.gateway = gateway
        self.progress = progress

    def _all(self, character: Character) -> dict:
        return self.gateway.get_persisted_attribute(character, ATTR_SWAP_TRACKING) or {}

    def ledger(self, character: Character, context: SwapContext, class_identifier: str) -> SwapLedger | None:
        """Return the stored ledger, or None if the context was never entered."""
        raw = self._all(character).get(context.value, {}).get(class_identifier)
        if raw is None:
            return None
        return SwapLedger.model_validate(raw)

    def peek(self, character: Character, context: SwapContext, class_identifier: str) -> SwapLedger:
        """Stored ledger, or the one that would be opened right now. Never persists."""
        existing = self.ledger(character, context, class_identifier)
        if existing is not None:
            return existing
        return new_ledger({s.canonical_id for s in character.prepared_cantrips(class_identifier)})

    def record(
        self,
        character: Character,
        context: SwapContext,
        class_identifier: str,
        spell_id: str,
        is_checked: bool,
    ) -> SwapLedger:
        """Apply a toggle to the context's ledger, opening it on first use."""
        updated = track_change(self.peek(character, context, class_identifier), spell_id, is_checked)
        raw = copy.deepcopy(self._all(character))
        raw.setdefault(context.value, {})[class_identifier] = updated.model_dump(mode="json")
        self.gateway.set_persisted_attribute(character, ATTR_SWAP_TRACKING, raw)
        logger.debug(
            f"Swap ledger {context.value}/{class_identifier}: "
            f"unlearned={updated.unlearned} learned={updated.learned}"
        )
        return updated

    def clear(self, character: Character, context: SwapContext) -> None:
        raw = copy.deepcopy(self._all(character))
        if raw.pop(context.value, None) is not None:
            self.gateway.set_persisted_attribute(character, ATTR_SWAP_TRACKING, raw)

    def complete_swap(self, character: Character, context: SwapContext) -> None:
        """Close a swap context for every class.

        Completing a level-up also commits the current level snapshot;
        completing a long rest clears the long-rest flag.
        """
        self.clear(character, context)
        if context == SwapContext.LEVEL_UP:
            for cls in character.spellcasting_classes:
                self.progress.commit_snapshot(character, cls.identifier)
            self.progress.commit_snapshot(character)
        else:
            self.progress.clear_long_rest(character)
        logger.info(f"Completed {context.value} cantrip swap for {character.name}")
