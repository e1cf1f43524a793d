from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SwapContext(str, Enum):
    LEVEL_UP = "level_up"
    LONG_REST = "long_rest"


class SwapLedger(BaseModel):
    """In-flight swap state for one class within one context.

    At most one unlearned and one learned cantrip are tracked. The
    ``original_checked`` set is captured when the ledger is created and
    stays frozen until the context is completed.
    """

    model_config = ConfigDict(from_attributes=True)

    has_unlearned: bool = False
    unlearned: Optional[str] = None
    has_learned: bool = False
    learned: Optional[str] = None
    original_checked: set[str] = Field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        return not self.has_unlearned and not self.has_learned


class LevelSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    previous_level: int = 0
    previous_cantrip_max: int = 0
