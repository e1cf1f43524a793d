"""Cantrip preparation decisions: pure functions, no I/O.

``can_change`` answers whether a toggle may happen; ``lock_status`` answers
whether the control for a spell should be shown disabled. Both evaluate
the same rule table.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from spellbook.mechanics.rule_sets import RuleSetResolver
from spellbook.models.character import Character
from spellbook.models.rules import CantripRule, EnforcementBehavior
from spellbook.models.spell import SpellItem
from spellbook.models.swap import SwapLedger

logger = logging.getLogger(__name__)


class ReasonCode(str, Enum):
    MAXIMUM_REACHED = "maximum_reached"
    LOCKED_LEGACY = "locked_legacy"
    LOCKED_OUTSIDE_LEVEL_UP = "locked_outside_level_up"
    LOCKED_OUTSIDE_LONG_REST = "locked_outside_long_rest"
    WIZARD_RULE_ONLY = "wizard_rule_only"
    ONLY_ONE_SWAP = "only_one_swap"
    MUST_UNLEARN_FIRST = "must_unlearn_first"
    OVER_LIMIT = "over_limit"


REASON_MESSAGES: dict[ReasonCode, str] = {
    ReasonCode.MAXIMUM_REACHED: "You have already prepared the maximum number of cantrips.",
    ReasonCode.LOCKED_LEGACY: "Cantrips cannot be changed once learned.",
    ReasonCode.LOCKED_OUTSIDE_LEVEL_UP: "Cantrips can only be swapped when you gain a level.",
    ReasonCode.LOCKED_OUTSIDE_LONG_REST: "Cantrips can only be swapped after a long rest.",
    ReasonCode.WIZARD_RULE_ONLY: "Only wizards may swap cantrips after a long rest.",
    ReasonCode.ONLY_ONE_SWAP: "Only one cantrip may be swapped at a time.",
    ReasonCode.MUST_UNLEARN_FIRST: "Unprepare a cantrip before learning a new one.",
    ReasonCode.OVER_LIMIT: "This exceeds your cantrip maximum; the GM will be notified.",
}


@dataclass
class ChangeDecision:
    allowed: bool
    reason: ReasonCode | None = None
    warning: ReasonCode | None = None

    @property
    def message(self) -> str | None:
        code = self.reason or self.warning
        return REASON_MESSAGES.get(code) if code else None


@dataclass
class LockStatus:
    locked: bool
    reason: ReasonCode | None = None

    @property
    def message(self) -> str | None:
        return REASON_MESSAGES.get(self.reason) if self.reason else None


_ALLOWED = ChangeDecision(allowed=True)


def _deny(reason: ReasonCode) -> ChangeDecision:
    return ChangeDecision(allowed=False, reason=reason)


class PreparationDecisionEngine:
    """Decides whether a cantrip may be prepared or unprepared right now."""

    def __init__(self, resolver: RuleSetResolver) -> None:
        self.resolver = resolver

    def can_change(
        self,
        character: Character,
        spell: SpellItem,
        is_checked: bool,
        is_level_up: bool,
        is_long_rest: bool,
        ui_checked_count: int,
        ledger: SwapLedger | None = None,
    ) -> ChangeDecision:
        """Decide a toggle of ``spell`` to ``is_checked``.

        ``ui_checked_count`` is the number of cantrips of the spell's class
        currently checked, before this toggle. ``ledger`` is the swap ledger
        of whichever context is open; None means no swap is in flight.
        """
        return self._evaluate(
            character, spell, is_checked, is_level_up, is_long_rest, ui_checked_count, ledger,
        )

    def lock_status(
        self,
        character: Character,
        spell: SpellItem,
        is_level_up: bool,
        is_long_rest: bool,
        ui_checked_count: int,
        ledger: SwapLedger | None = None,
        is_checked: bool | None = None,
    ) -> LockStatus:
        """Whether the control for ``spell`` should be disabled.

        A control is locked when toggling it away from its current state
        would be denied.
        """
        current = spell.prepared if is_checked is None else is_checked
        decision = self._evaluate(
            character, spell, not current, is_level_up, is_long_rest, ui_checked_count, ledger,
        )
        return LockStatus(locked=not decision.allowed, reason=decision.reason)

    def _evaluate(
        self,
        character: Character,
        spell: SpellItem,
        is_checked: bool,
        is_level_up: bool,
        is_long_rest: bool,
        ui_checked_count: int,
        ledger: SwapLedger | None,
    ) -> ChangeDecision:
        if spell.is_always_prepared or not spell.is_cantrip:
            return _ALLOWED

        class_id = spell.source_class
        if not class_id:
            logger.warning(f"No class for cantrip {spell.name}; allowing change")
            return _ALLOWED

        rules = self.resolver.resolve(character, class_id)
        maximum = self.resolver.cantrip_max(character, class_id)
        at_max = is_checked and ui_checked_count >= maximum

        if rules.enforcement_behavior == EnforcementBehavior.UNENFORCED:
            return _ALLOWED
        if rules.enforcement_behavior == EnforcementBehavior.NOTIFY_GM:
            if at_max:
                return ChangeDecision(allowed=True, warning=ReasonCode.OVER_LIMIT)
            return _ALLOWED

        # Lock after max: the hard cap applies before any rule variant.
        if at_max:
            logger.debug(f"{spell.name}: {ui_checked_count}/{maximum} cantrips for {class_id}")
            return _deny(ReasonCode.MAXIMUM_REACHED)

        rule = rules.cantrip_rule
        if rule == CantripRule.LEGACY:
            return _ALLOWED if is_checked else _deny(ReasonCode.LOCKED_LEGACY)

        if rule == CantripRule.MODERN_LONG_REST:
            if not self.resolver.is_wizard_enabled(character, class_id):
                return _ALLOWED if is_checked else _deny(ReasonCode.WIZARD_RULE_ONLY)
            in_context, outside = is_long_rest, ReasonCode.LOCKED_OUTSIDE_LONG_REST
        else:
            in_context, outside = is_level_up, ReasonCode.LOCKED_OUTSIDE_LEVEL_UP

        if not in_context:
            return _ALLOWED if is_checked else _deny(outside)
        return self._swap_decision(spell.canonical_id, is_checked, ledger or SwapLedger())

    @staticmethod
    def _swap_decision(spell_id: str, is_checked: bool, ledger: SwapLedger) -> ChangeDecision:
        original = spell_id in ledger.original_checked
        if not is_checked:
            if ledger.has_unlearned and ledger.unlearned != spell_id and original:
                return _deny(ReasonCode.ONLY_ONE_SWAP)
            return _ALLOWED
        if original:
            return _ALLOWED
        if ledger.has_learned and ledger.learned != spell_id:
            return _deny(ReasonCode.ONLY_ONE_SWAP)
        if not ledger.has_unlearned:
            return _deny(ReasonCode.MUST_UNLEARN_FIRST)
        return _ALLOWED
