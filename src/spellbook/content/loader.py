from __future__ import annotations
import logging
import tomllib
from pathlib import Path
from typing import Any

from spellbook.mechanics.spellcasting import default_progression
from spellbook.models.character import Character, ClassItem
from spellbook.models.spell import PreparationMode, SpellDocument, SpellItem, canonical_id
from spellbook.systems.base import ClassSpellListSource, ContentLookup
from spellbook.utils import slugify

logger = logging.getLogger(__name__)

CONTENT_DIR = Path(__file__).parent

def load_toml(filepath: Path) -> dict[str, Any]:
    with open(filepath, "rb") as f:
        return tomllib.load(f)

def load_all_spells(content_dir: Path = CONTENT_DIR) -> dict[str, dict]:
    """Load every [[spells]] table, keyed by canonical source id."""
    spells = {}
    for f in sorted((content_dir / "spells").glob("*.toml")):
        data = load_toml(f)
        for spell in data.get("spells", []):
            spells[canonical_id(spell["id"])] = spell
    return spells

def load_all_spell_lists(content_dir: Path = CONTENT_DIR) -> dict[str, list[str]]:
    """Load class spell lists, keyed by class identifier."""
    lists: dict[str, list[str]] = {}
    list_dir = content_dir / "spell_lists"
    if not list_dir.exists():
        return lists
    for f in sorted(list_dir.glob("*.toml")):
        data = load_toml(f)
        cls = data.get("class", f.stem).lower()
        lists.setdefault(cls, []).extend(canonical_id(s) for s in data.get("spells", []))
    return lists


class TomlContentLookup(ContentLookup, ClassSpellListSource):
    """Spell documents and class spell lists read from bundled TOML files."""

    def __init__(self, content_dir: Path | str | None = None) -> None:
        self.content_dir = Path(content_dir) if content_dir else CONTENT_DIR
        self._spells: dict[str, dict] | None = None
        self._lists: dict[str, list[str]] | None = None

    @property
    def spells(self) -> dict[str, dict]:
        if self._spells is None:
            self._spells = load_all_spells(self.content_dir)
        return self._spells

    @property
    def spell_lists(self) -> dict[str, list[str]]:
        if self._lists is None:
            self._lists = load_all_spell_lists(self.content_dir)
        return self._lists

    def reload(self) -> None:
        self._spells = None
        self._lists = None

    def resolve_spell_document(self, source_id: str) -> SpellDocument | None:
        raw = self.spells.get(canonical_id(source_id))
        if raw is None:
            return None
        data = dict(raw)
        data["source_id"] = canonical_id(data.pop("id"))
        return SpellDocument.model_validate(data)

    def get_class_spell_list(
        self, class_name: str, class_identifier: str, character: Character | None = None,
    ) -> set[str]:
        ids = self.spell_lists.get(class_identifier.lower())
        if ids is None:
            ids = self.spell_lists.get(class_name.lower(), [])
        if not ids:
            logger.warning(f"No spell list found for {class_name} ({class_identifier})")
        return set(ids)


def load_character(filepath: Path, lookup: ContentLookup) -> Character:
    """Build a character from a TOML sheet.

    Each [[spells]] entry names a content ``source`` and may set ``prepared``,
    ``mode``, ``source_class`` and ``granted_by``. Unknown sources are skipped
    with a warning.
    """
    data = load_toml(filepath)
    classes = []
    for raw in data.get("classes", []):
        raw = dict(raw)
        raw["identifier"] = (raw.get("identifier") or slugify(raw["name"])).lower()
        spellcasting = dict(raw.get("spellcasting", {}))
        spellcasting.setdefault("progression", default_progression(raw["identifier"]).value)
        raw["spellcasting"] = spellcasting
        classes.append(ClassItem.model_validate(raw))

    spells = []
    for raw in data.get("spells", []):
        doc = lookup.resolve_spell_document(raw["source"])
        if doc is None:
            logger.warning(f"Unknown spell {raw['source']} in {filepath.name}; skipping")
            continue
        spells.append(SpellItem(
            name=doc.name,
            level=doc.level,
            preparation_mode=PreparationMode(raw.get("mode", "prepared")),
            prepared=raw.get("prepared", False),
            source_class=raw.get("source_class"),
            source_uuid=doc.source_id,
            granted_by=raw.get("granted_by"),
        ))

    return Character(
        name=data["name"],
        classes=classes,
        spells=spells,
        attributes=dict(data.get("attributes", {})),
    )
