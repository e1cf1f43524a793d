from __future__ import annotations

from spellbook.storage.repos.character_store import CharacterStore
from spellbook.storage.repos.notification_repo import NotificationRepo
from spellbook.storage.repos.spellbook_repo import SpellbookRepo

__all__ = [
    "CharacterStore",
    "NotificationRepo",
    "SpellbookRepo",
]
