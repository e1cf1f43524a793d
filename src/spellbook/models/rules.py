from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)


class CantripRule(str, Enum):
    LEGACY = "legacy"
    MODERN_LEVEL_UP = "modern_level_up"
    MODERN_LONG_REST = "modern_long_rest"


class EnforcementBehavior(str, Enum):
    UNENFORCED = "unenforced"
    NOTIFY_GM = "notify_gm"
    LOCK_AFTER_MAX = "lock_after_max"


class RuleSetPreset(str, Enum):
    LEGACY = "legacy"
    MODERN = "modern"


@dataclass(frozen=True)
class RuleSet:
    cantrip_rule: CantripRule = CantripRule.LEGACY
    enforcement_behavior: EnforcementBehavior = EnforcementBehavior.UNENFORCED


def coerce_enum(enum_cls: type[Enum], value: Any, label: str) -> Any:
    """Return the enum member for value, or None (with a warning) if invalid."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        logger.warning(f"Ignoring invalid {label} value: {value!r}")
        return None


class ClassRules(BaseModel):
    """Per-class overrides stored on a character.

    Unset fields fall through to the character-wide and global defaults.
    """

    model_config = ConfigDict(from_attributes=True)

    cantrip_swapping: Optional[CantripRule] = None
    enforcement_behavior: Optional[EnforcementBehavior] = None
    show_cantrips: Optional[bool] = None
    force_wizard_mode: bool = False
    cantrip_preparation_bonus: int = 0
    spell_preparation_bonus: int = 0

    @field_validator("cantrip_swapping", mode="before")
    @classmethod
    def _valid_cantrip_rule(cls, v: Any) -> Any:
        return coerce_enum(CantripRule, v, "cantrip_swapping")

    @field_validator("enforcement_behavior", mode="before")
    @classmethod
    def _valid_enforcement(cls, v: Any) -> Any:
        return coerce_enum(EnforcementBehavior, v, "enforcement_behavior")
