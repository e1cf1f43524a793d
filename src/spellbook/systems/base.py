"""Collaborator interfaces consumed by the preparation systems."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from spellbook.models.character import Character
    from spellbook.models.spell import SpellDocument, SpellItem

logger = logging.getLogger(__name__)


class ContentLookup(ABC):
    """Resolves spell documents from a content source."""

    @abstractmethod
    def resolve_spell_document(self, source_id: str) -> SpellDocument | None: ...

    def fetch_spell_documents(self, ids: Iterable[str], max_level: int) -> list[SpellDocument]:
        """Resolve many documents, dropping unresolved ones and those above max_level."""
        docs = []
        for source_id in ids:
            try:
                doc = self.resolve_spell_document(source_id)
            except Exception as e:
                logger.warning(f"Failed to resolve spell {source_id}: {e}")
                continue
            if doc is not None and doc.level <= max_level:
                docs.append(doc)
        return docs


class ClassSpellListSource(ABC):
    """Discovers which spells a class may know."""

    @abstractmethod
    def get_class_spell_list(
        self, class_name: str, class_identifier: str, character: Character | None = None,
    ) -> set[str]: ...


class PersistenceGateway(ABC):
    """Reads and writes a character's persisted attributes and owned items.

    Writes also update the in-memory character so later reads see them.
    """

    @abstractmethod
    def get_persisted_attribute(self, character: Character, key: str, default: Any = None) -> Any: ...

    @abstractmethod
    def set_persisted_attribute(self, character: Character, key: str, value: Any) -> None: ...

    @abstractmethod
    def create_owned_items(self, character: Character, items: list[SpellItem]) -> None: ...

    @abstractmethod
    def update_owned_items(self, character: Character, items: list[SpellItem]) -> None: ...

    @abstractmethod
    def delete_owned_items(self, character: Character, item_ids: list[str]) -> None: ...


class NotificationSink(ABC):
    """Fire-and-forget delivery of advisory messages."""

    @abstractmethod
    def notify(self, audience: str, message: dict) -> None: ...


AUDIENCE_CONTROLLERS = "controllers"
AUDIENCE_GM = "gm"
