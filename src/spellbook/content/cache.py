"""Memoizing wrapper around a content source."""
from __future__ import annotations

import logging

from spellbook.models.character import Character
from spellbook.models.spell import SpellDocument, canonical_id
from spellbook.systems.base import ClassSpellListSource, ContentLookup

logger = logging.getLogger(__name__)

_MISSING = object()


class SpellDocumentCache(ContentLookup, ClassSpellListSource):
    """Caches resolved spell documents and class spell lists.

    Owned by whoever builds the aggregator; call ``invalidate`` when the
    underlying content changes.
    """

    def __init__(self, lookup: ContentLookup, spell_lists: ClassSpellListSource) -> None:
        self.lookup = lookup
        self.spell_lists = spell_lists
        self._documents: dict[str, SpellDocument | None] = {}
        self._lists: dict[str, set[str]] = {}

    def resolve_spell_document(self, source_id: str) -> SpellDocument | None:
        key = canonical_id(source_id)
        cached = self._documents.get(key, _MISSING)
        if cached is not _MISSING:
            return cached
        doc = self.lookup.resolve_spell_document(key)
        self._documents[key] = doc
        return doc

    def get_class_spell_list(
        self, class_name: str, class_identifier: str, character: Character | None = None,
    ) -> set[str]:
        key = class_identifier.lower()
        if key not in self._lists:
            self._lists[key] = set(self.spell_lists.get_class_spell_list(class_name, class_identifier, character))
        return set(self._lists[key])

    def invalidate(self, source_id: str | None = None) -> None:
        """Drop one cached document, or everything when no id is given."""
        if source_id is None:
            self._documents.clear()
            self._lists.clear()
            logger.debug("Spell content cache cleared")
            return
        self._documents.pop(canonical_id(source_id), None)
