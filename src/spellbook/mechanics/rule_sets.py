"""Rule set resolution over already-loaded character state; no I/O."""
from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from spellbook.mechanics.spellcasting import CANTRIP_HIDDEN_CLASSES, WIZARD_CLASS
from spellbook.models.character import (
    ATTR_CANTRIP_RULE,
    ATTR_CLASS_RULES,
    ATTR_ENFORCEMENT,
    Character,
)
from spellbook.models.rules import (
    CantripRule,
    ClassRules,
    EnforcementBehavior,
    RuleSet,
    RuleSetPreset,
    coerce_enum,
)

logger = logging.getLogger(__name__)

# Per-class cantrip rules supplied by the modern preset
_MODERN_CLASS_DEFAULTS: dict[str, CantripRule] = {
    "wizard": CantripRule.MODERN_LONG_REST,
    "paladin": CantripRule.LEGACY,
    "ranger": CantripRule.LEGACY,
}


def _first(*values: Any) -> Any:
    for v in values:
        if v is not None:
            return v
    return None


class RuleSetResolver:
    """Resolves the effective rule set for a character's class.

    Precedence, highest first: class override, character override, global
    configuration, rule-set preset. Never raises for unknown classes.
    """

    def __init__(self, config: dict | None = None) -> None:
        rules_cfg = (config or {}).get("rules", {})
        self.preset = (
            coerce_enum(RuleSetPreset, rules_cfg.get("rule_set"), "rule_set")
            or RuleSetPreset.LEGACY
        )
        self.default_cantrip_rule = coerce_enum(
            CantripRule, rules_cfg.get("cantrip_rule"), "cantrip_rule",
        )
        self.default_enforcement = coerce_enum(
            EnforcementBehavior, rules_cfg.get("enforcement_behavior"), "enforcement_behavior",
        )

    def class_rules(self, character: Character, class_identifier: str | None) -> ClassRules:
        if not class_identifier:
            return ClassRules()
        raw = character.attributes.get(ATTR_CLASS_RULES) or {}
        entry = raw.get(class_identifier.lower()) if isinstance(raw, dict) else None
        if not isinstance(entry, dict):
            return ClassRules()
        try:
            return ClassRules.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Invalid class rules for {class_identifier} on {character.name}: {e}")
            return ClassRules()

    def resolve(self, character: Character, class_identifier: str | None) -> RuleSet:
        rules = self.class_rules(character, class_identifier)
        attrs = character.attributes
        cantrip_rule = _first(
            rules.cantrip_swapping,
            coerce_enum(CantripRule, attrs.get(ATTR_CANTRIP_RULE), ATTR_CANTRIP_RULE),
            self.default_cantrip_rule,
            self._preset_cantrip_rule(class_identifier),
        )
        enforcement = _first(
            rules.enforcement_behavior,
            coerce_enum(EnforcementBehavior, attrs.get(ATTR_ENFORCEMENT), ATTR_ENFORCEMENT),
            self.default_enforcement,
            EnforcementBehavior.UNENFORCED,
        )
        return RuleSet(cantrip_rule=cantrip_rule, enforcement_behavior=enforcement)

    def _preset_cantrip_rule(self, class_identifier: str | None) -> CantripRule:
        if self.preset == RuleSetPreset.LEGACY or not class_identifier:
            return CantripRule.LEGACY
        return _MODERN_CLASS_DEFAULTS.get(class_identifier.lower(), CantripRule.MODERN_LEVEL_UP)

    def shows_cantrips(self, character: Character, class_identifier: str) -> bool:
        rules = self.class_rules(character, class_identifier)
        if rules.show_cantrips is not None:
            return rules.show_cantrips
        return class_identifier.lower() not in CANTRIP_HIDDEN_CLASSES

    def is_wizard_enabled(self, character: Character, class_identifier: str | None) -> bool:
        if not class_identifier:
            return False
        if class_identifier.lower() == WIZARD_CLASS:
            return True
        return self.class_rules(character, class_identifier).force_wizard_mode

    def cantrip_max(self, character: Character, class_identifier: str | None) -> int:
        """Maximum prepared cantrips for a class, including any configured bonus."""
        cls = character.get_class(class_identifier)
        if cls is None or not self.shows_cantrips(character, cls.identifier):
            return 0
        bonus = self.class_rules(character, cls.identifier).cantrip_preparation_bonus
        return max(0, cls.cantrips_known + bonus)

    def preparation_max(self, character: Character, class_identifier: str) -> int:
        cls = character.get_class(class_identifier)
        if cls is None:
            return 0
        bonus = self.class_rules(character, cls.identifier).spell_preparation_bonus
        return max(0, cls.spellcasting.preparation_max + bonus)
