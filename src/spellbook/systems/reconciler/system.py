"""Reconciles prepared-spell intent against a character's owned spell items."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from spellbook.mechanics.rule_sets import RuleSetResolver
from spellbook.models.character import Character
from spellbook.models.rules import CantripRule, EnforcementBehavior
from spellbook.models.spell import PreparationMode, SpellItem, canonical_id
from spellbook.systems.base import AUDIENCE_GM, ContentLookup, NotificationSink, PersistenceGateway
from spellbook.systems.progress.system import LevelProgressTracker

logger = logging.getLogger(__name__)

# Intent map keys: (class identifier, spell id), or a bare spell id whose
# class comes from the intent's source_class.
IntentKey = Union[tuple[Optional[str], str], str]


def split_intent_key(key: IntentKey, intent: SpellIntent) -> tuple[str | None, str]:
    if isinstance(key, tuple):
        class_identifier, spell_id = key
    else:
        class_identifier, spell_id = intent.source_class, key
    return class_identifier, canonical_id(spell_id)


@dataclass
class SpellIntent:
    """Desired preparation state for one spell of one class."""
    is_prepared: bool
    was_prepared: bool = False
    is_always_prepared: bool = False
    source_class: str | None = None


@dataclass
class CantripChange:
    id: str
    name: str
    source_class: str | None = None


@dataclass
class CantripChangeReport:
    added: list[CantripChange] = field(default_factory=list)
    removed: list[CantripChange] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed


@dataclass
class LookupFailure:
    source_id: str
    reason: str


@dataclass
class ReconcileResult:
    created: list[SpellItem] = field(default_factory=list)
    updated: list[SpellItem] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failures: list[LookupFailure] = field(default_factory=list)
    cantrip_changes: CantripChangeReport = field(default_factory=CantripChangeReport)
    notified: bool = False

    @property
    def operation_count(self) -> int:
        return len(self.created) + len(self.updated) + len(self.deleted)


def _limit(current: int, maximum: int) -> dict:
    return {
        "current": current,
        "max": maximum,
        "is_over": current > maximum,
        "over_count": max(0, current - maximum),
    }


class PreparationReconciler:
    """Turns an intent map into three batched item writes: delete, update, create.

    Lookup failures are per spell and never abort the batch. Persistence
    failures propagate to the caller; batches already applied stay applied.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        content: ContentLookup,
        resolver: RuleSetResolver,
        progress: LevelProgressTracker,
        notifier: NotificationSink | None = None,
    ) -> None:
        self.gateway = gateway
        self.content = content
        self.resolver = resolver
        self.progress = progress
        self.notifier = notifier

    def reconcile(self, character: Character, intent_map: dict[IntentKey, SpellIntent]) -> ReconcileResult:
        result = ReconcileResult()
        report = result.cantrip_changes
        prior_cantrips = [s.name for s in character.prepared_cantrips()]
        owned = {(s.source_class, s.canonical_id): s for s in character.spells}

        to_delete: list[SpellItem] = []
        to_update: list[SpellItem] = []
        to_create: list[SpellItem] = []

        for raw_key, intent in intent_map.items():
            if intent.is_always_prepared:
                continue
            class_identifier, key = split_intent_key(raw_key, intent)
            item = owned.get((class_identifier, key))

            if not intent.is_prepared:
                if not intent.was_prepared or item is None:
                    continue
                if item.preparation_mode != PreparationMode.PREPARED or item.is_always_prepared:
                    continue
                to_delete.append(item)
                if item.is_cantrip:
                    report.removed.append(CantripChange(key, item.name, item.source_class))
                continue

            if item is not None:
                if item.is_always_prepared or item.prepared:
                    continue
                to_update.append(item.model_copy(update={"prepared": True}))
                if item.is_cantrip:
                    report.added.append(CantripChange(key, item.name, item.source_class))
                continue

            try:
                doc = self.content.resolve_spell_document(key)
            except Exception as e:
                logger.warning(f"Failed to resolve spell {key}: {e}")
                result.failures.append(LookupFailure(key, str(e)))
                continue
            if doc is None:
                logger.warning(f"Spell {key} not found in content; skipping")
                result.failures.append(LookupFailure(key, "not found"))
                continue
            new_item = SpellItem.from_document(doc, class_identifier)
            to_create.append(new_item)
            if new_item.is_cantrip:
                report.added.append(CantripChange(key, new_item.name, new_item.source_class))

        if to_delete:
            ids = [s.id for s in to_delete]
            self.gateway.delete_owned_items(character, ids)
            result.deleted = ids
        if to_update:
            self.gateway.update_owned_items(character, to_update)
            result.updated = to_update
        if to_create:
            self.gateway.create_owned_items(character, to_create)
            result.created = to_create
        logger.debug(
            f"Reconciled {character.name}: -{len(to_delete)} ~{len(to_update)} +{len(to_create)}"
        )

        self._count_unlearned(character, report)
        result.notified = self._notify_gm(character, prior_cantrips, report)
        return result

    def _count_unlearned(self, character: Character, report: CantripChangeReport) -> None:
        removed = sum(
            1 for change in report.removed
            if self.resolver.resolve(character, change.source_class).cantrip_rule != CantripRule.LEGACY
        )
        self.progress.add_unlearned(character, removed)

    def over_limits(self, character: Character, class_identifier: str) -> dict[str, dict]:
        """Saved cantrip and spell counts of a class against its maximums."""
        return {
            "cantrips": _limit(
                len(character.prepared_cantrips(class_identifier)),
                self.resolver.cantrip_max(character, class_identifier),
            ),
            "spells": _limit(
                character.prepared_spell_count(class_identifier),
                self.resolver.preparation_max(character, class_identifier),
            ),
        }

    def _notify_gm(self, character: Character, prior: list[str], report: CantripChangeReport) -> bool:
        def notifying(class_identifier: str | None) -> bool:
            rules = self.resolver.resolve(character, class_identifier)
            return rules.enforcement_behavior == EnforcementBehavior.NOTIFY_GM

        if self.notifier is None:
            return False
        added = [c for c in report.added if notifying(c.source_class)]
        removed = [c for c in report.removed if notifying(c.source_class)]
        over = {}
        for cls in character.spellcasting_classes:
            if not notifying(cls.identifier):
                continue
            limits = self.over_limits(character, cls.identifier)
            if any(limit["is_over"] for limit in limits.values()):
                over[cls.identifier] = limits
        if not (added or removed or over):
            return False
        message = {
            "type": "cantrip_changes",
            "character_id": character.id,
            "character": character.name,
            "original_cantrips": prior,
            "added": [{"id": c.id, "name": c.name} for c in added],
            "removed": [{"id": c.id, "name": c.name} for c in removed],
            "current_cantrips": [s.name for s in character.prepared_cantrips()],
            "over_limits": over,
        }
        try:
            self.notifier.notify(AUDIENCE_GM, message)
        except Exception as e:
            logger.warning(f"GM notification for {character.name} failed: {e}")
            return False
        return True
