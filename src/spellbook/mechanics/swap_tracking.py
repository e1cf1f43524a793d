"""Cantrip swap ledger transitions: pure functions, no I/O."""
from __future__ import annotations

from spellbook.models.swap import SwapLedger


def new_ledger(currently_prepared: set[str] | list[str]) -> SwapLedger:
    """Open a ledger, freezing the cantrips prepared at this moment."""
    return SwapLedger(original_checked=set(currently_prepared))


def track_change(ledger: SwapLedger, spell_id: str, is_checked: bool) -> SwapLedger:
    """Apply one prepare/unprepare toggle to a ledger and return the new ledger.

    Only the single unlearn and single learn slots move. Toggling back a
    tracked spell reverts its slot. The input ledger is not modified.
    """
    out = ledger.model_copy(deep=True)
    original = spell_id in out.original_checked

    if is_checked:
        if out.has_unlearned and out.unlearned == spell_id:
            out.has_unlearned = False
            out.unlearned = None
        elif not original and out.learned != spell_id:
            out.has_learned = True
            out.learned = spell_id
    else:
        if out.has_learned and out.learned == spell_id:
            out.has_learned = False
            out.learned = None
        elif original and out.unlearned != spell_id:
            out.has_unlearned = True
            out.unlearned = spell_id
    return out
