"""Level progress tracking: level-up detection, long-rest flag, unlearn counter."""
from __future__ import annotations

import copy
import logging

from spellbook.mechanics.rule_sets import RuleSetResolver
from spellbook.models.character import (
    ATTR_LEVEL_SNAPSHOT,
    ATTR_LEVEL_UP_PENDING,
    ATTR_LONG_REST,
    ATTR_UNLEARNED_CANTRIPS,
    Character,
)
from spellbook.models.swap import LevelSnapshot
from spellbook.systems.base import PersistenceGateway

logger = logging.getLogger(__name__)

# Snapshot scope covering the whole character rather than one class
AGGREGATE_SCOPE = "_total"


class LevelProgressTracker:
    """Detects increases in level or cantrip allowance since the last look.

    A snapshot is kept per class plus one for the whole character. A
    detected level-up stays pending until the level-up swap is completed.
    """

    def __init__(self, gateway: PersistenceGateway, resolver: RuleSetResolver) -> None:
        self.gateway = gateway
        self.resolver = resolver

    def current_values(self, character: Character, class_identifier: str | None = None) -> tuple[int, int]:
        """Return (level, cantrip max) for one class or the whole character."""
        if class_identifier is None:
            cantrips = sum(
                self.resolver.cantrip_max(character, c.identifier)
                for c in character.spellcasting_classes
            )
            return character.total_level, cantrips
        cls = character.get_class(class_identifier)
        if cls is None:
            return 0, 0
        return cls.levels, self.resolver.cantrip_max(character, cls.identifier)

    def snapshot(self, character: Character, class_identifier: str | None = None) -> LevelSnapshot:
        raw = self.gateway.get_persisted_attribute(character, ATTR_LEVEL_SNAPSHOT) or {}
        entry = raw.get(class_identifier or AGGREGATE_SCOPE)
        if isinstance(entry, dict):
            return LevelSnapshot.model_validate(entry)
        return LevelSnapshot()

    def check_for_level_up(self, character: Character, class_identifier: str | None = None) -> bool:
        level, cantrip_max = self.current_values(character, class_identifier)
        snap = self.snapshot(character, class_identifier)
        has_history = snap.previous_level > 0
        is_level_up = has_history and (
            level > snap.previous_level or cantrip_max > snap.previous_cantrip_max
        )

        if has_history and cantrip_max > snap.previous_cantrip_max:
            self.gateway.set_persisted_attribute(character, ATTR_UNLEARNED_CANTRIPS, 0)
        if (level, cantrip_max) != (snap.previous_level, snap.previous_cantrip_max):
            self._write_snapshot(character, class_identifier, LevelSnapshot(
                previous_level=level, previous_cantrip_max=cantrip_max,
            ))
        if is_level_up:
            logger.info(
                f"Level-up detected for {character.name} ({class_identifier or 'all classes'}): "
                f"level {snap.previous_level}->{level}, cantrips {snap.previous_cantrip_max}->{cantrip_max}"
            )
            self._set_pending(character, class_identifier, True)
        return is_level_up

    def is_level_up_pending(self, character: Character, class_identifier: str | None = None) -> bool:
        pending = self.gateway.get_persisted_attribute(character, ATTR_LEVEL_UP_PENDING) or {}
        return bool(pending.get(class_identifier or AGGREGATE_SCOPE, False))

    def in_level_up(self, character: Character, class_identifier: str | None = None) -> bool:
        """Detect a fresh level-up, or report one still awaiting its swap."""
        detected = self.check_for_level_up(character, class_identifier)
        return detected or self.is_level_up_pending(character, class_identifier)

    def commit_snapshot(self, character: Character, class_identifier: str | None = None) -> None:
        level, cantrip_max = self.current_values(character, class_identifier)
        self._write_snapshot(character, class_identifier, LevelSnapshot(
            previous_level=level, previous_cantrip_max=cantrip_max,
        ))
        self._set_pending(character, class_identifier, False)

    def is_long_rest(self, character: Character) -> bool:
        return bool(self.gateway.get_persisted_attribute(character, ATTR_LONG_REST, False))

    def mark_long_rest(self, character: Character) -> None:
        self.gateway.set_persisted_attribute(character, ATTR_LONG_REST, True)

    def clear_long_rest(self, character: Character) -> None:
        self.gateway.set_persisted_attribute(character, ATTR_LONG_REST, False)

    def unlearned_count(self, character: Character) -> int:
        return int(self.gateway.get_persisted_attribute(character, ATTR_UNLEARNED_CANTRIPS, 0) or 0)

    def add_unlearned(self, character: Character, count: int) -> None:
        if count <= 0:
            return
        total = self.unlearned_count(character) + count
        self.gateway.set_persisted_attribute(character, ATTR_UNLEARNED_CANTRIPS, total)

    def _write_snapshot(self, character: Character, class_identifier: str | None, snap: LevelSnapshot) -> None:
        raw = copy.deepcopy(self.gateway.get_persisted_attribute(character, ATTR_LEVEL_SNAPSHOT) or {})
        raw[class_identifier or AGGREGATE_SCOPE] = snap.model_dump()
        self.gateway.set_persisted_attribute(character, ATTR_LEVEL_SNAPSHOT, raw)

    def _set_pending(self, character: Character, class_identifier: str | None, value: bool) -> None:
        pending = copy.deepcopy(self.gateway.get_persisted_attribute(character, ATTR_LEVEL_UP_PENDING) or {})
        scope = class_identifier or AGGREGATE_SCOPE
        if bool(pending.get(scope)) == value:
            return
        if value:
            pending[scope] = True
        else:
            pending.pop(scope, None)
        self.gateway.set_persisted_attribute(character, ATTR_LEVEL_UP_PENDING, pending)
