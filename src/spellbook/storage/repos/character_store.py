"""Character persistence: class items, owned spells, and attributes."""
from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import Any

from spellbook.exceptions import CharacterNotFoundError, PersistenceError
from spellbook.models.character import Character, ClassItem, SpellcastingConfig
from spellbook.models.spell import SpellItem
from spellbook.storage.database import Database
from spellbook.systems.base import PersistenceGateway
from spellbook.utils import safe_json

logger = logging.getLogger(__name__)

_SPELL_COLUMNS = (
    "id", "character_id", "name", "level", "preparation_mode",
    "prepared", "source_class", "source_uuid", "granted_by",
)


def _spell_row(character_id: str, item: SpellItem) -> tuple:
    return (
        item.id, character_id, item.name, item.level, item.preparation_mode.value,
        int(item.prepared), item.source_class, item.source_uuid, item.granted_by,
    )


def _spell_from_row(row: Any) -> SpellItem:
    data = dict(row)
    data.pop("character_id", None)
    data["prepared"] = bool(data["prepared"])
    return SpellItem.model_validate(data)


def _class_from_row(row: Any) -> ClassItem:
    data = dict(row)
    data.pop("character_id", None)
    data["spellcasting"] = SpellcastingConfig.model_validate(safe_json(data.get("spellcasting"), {}))
    return ClassItem.model_validate(data)


class CharacterStore(PersistenceGateway):
    """SQLite-backed character repository.

    Each batched item write runs in its own transaction, so a failure rolls
    back only that batch.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    # -- Characters --

    def save(self, character: Character) -> None:
        """Insert or replace a character with all its items and attributes."""
        with self.db.get_connection() as conn:
            conn.execute(
                "INSERT INTO characters (id, name, created_at) VALUES (?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name = excluded.name",
                (character.id, character.name, datetime.now().isoformat()),
            )
            conn.execute("DELETE FROM class_items WHERE character_id = ?", (character.id,))
            conn.execute("DELETE FROM spell_items WHERE character_id = ?", (character.id,))
            conn.execute("DELETE FROM character_attributes WHERE character_id = ?", (character.id,))
            conn.executemany(
                """INSERT INTO class_items (id, character_id, identifier, name, levels, spellcasting, cantrips_known)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                [
                    (c.id, character.id, c.identifier, c.name, c.levels,
                     json.dumps(c.spellcasting.model_dump(mode="json")), c.cantrips_known)
                    for c in character.classes
                ],
            )
            conn.executemany(
                f"INSERT INTO spell_items ({', '.join(_SPELL_COLUMNS)}) "
                f"VALUES ({', '.join('?' for _ in _SPELL_COLUMNS)})",
                [_spell_row(character.id, s) for s in character.spells],
            )
            conn.executemany(
                "INSERT INTO character_attributes (character_id, key, value) VALUES (?, ?, ?)",
                [(character.id, k, json.dumps(v)) for k, v in character.attributes.items()],
            )

    def get(self, character_id: str) -> Character | None:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT id, name FROM characters WHERE id = ?", (character_id,),
            ).fetchone()
            if row is None:
                return None
            classes = conn.execute(
                "SELECT * FROM class_items WHERE character_id = ? ORDER BY identifier", (character_id,),
            ).fetchall()
            spells = conn.execute(
                "SELECT * FROM spell_items WHERE character_id = ? ORDER BY level, name", (character_id,),
            ).fetchall()
            attrs = conn.execute(
                "SELECT key, value FROM character_attributes WHERE character_id = ?", (character_id,),
            ).fetchall()
        return Character(
            id=row["id"],
            name=row["name"],
            classes=[_class_from_row(r) for r in classes],
            spells=[_spell_from_row(r) for r in spells],
            attributes={r["key"]: safe_json(r["value"], None) for r in attrs},
        )

    def load(self, character_id: str) -> Character:
        character = self.get(character_id)
        if character is None:
            raise CharacterNotFoundError(character_id)
        return character

    def list_characters(self) -> list[dict]:
        with self.db.get_connection() as conn:
            rows = conn.execute(
                "SELECT id, name, created_at FROM characters ORDER BY created_at DESC",
            ).fetchall()
        return [dict(r) for r in rows]

    def update_class(self, character: Character, class_item: ClassItem) -> None:
        """Persist a changed class item (e.g. after gaining a level)."""
        with self.db.get_connection() as conn:
            conn.execute(
                """UPDATE class_items SET levels = ?, spellcasting = ?, cantrips_known = ?
                   WHERE id = ? AND character_id = ?""",
                (class_item.levels, json.dumps(class_item.spellcasting.model_dump(mode="json")),
                 class_item.cantrips_known, class_item.id, character.id),
            )
        character.classes = [class_item if c.id == class_item.id else c for c in character.classes]

    # -- Attributes --

    def get_persisted_attribute(self, character: Character, key: str, default: Any = None) -> Any:
        return character.attributes.get(key, default)

    def set_persisted_attribute(self, character: Character, key: str, value: Any) -> None:
        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    """INSERT INTO character_attributes (character_id, key, value) VALUES (?, ?, ?)
                       ON CONFLICT(character_id, key) DO UPDATE SET value = excluded.value""",
                    (character.id, key, json.dumps(value)),
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"write of attribute {key}", 1, e) from e
        character.attributes[key] = value

    # -- Owned spell batches --

    def create_owned_items(self, character: Character, items: list[SpellItem]) -> None:
        sql = (
            f"INSERT INTO spell_items ({', '.join(_SPELL_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in _SPELL_COLUMNS)})"
        )
        self._batch("create", sql, [_spell_row(character.id, s) for s in items])
        character.spells.extend(items)

    def update_owned_items(self, character: Character, items: list[SpellItem]) -> None:
        sql = (
            "UPDATE spell_items SET name = ?, level = ?, preparation_mode = ?, prepared = ?, "
            "source_class = ?, source_uuid = ?, granted_by = ? WHERE id = ? AND character_id = ?"
        )
        params = [
            (s.name, s.level, s.preparation_mode.value, int(s.prepared),
             s.source_class, s.source_uuid, s.granted_by, s.id, character.id)
            for s in items
        ]
        self._batch("update", sql, params)
        by_id = {s.id: s for s in items}
        character.spells = [by_id.get(s.id, s) for s in character.spells]

    def delete_owned_items(self, character: Character, item_ids: list[str]) -> None:
        sql = "DELETE FROM spell_items WHERE id = ? AND character_id = ?"
        self._batch("delete", sql, [(i, character.id) for i in item_ids])
        doomed = set(item_ids)
        character.spells = [s for s in character.spells if s.id not in doomed]

    def _batch(self, operation: str, sql: str, params: list[tuple]) -> None:
        if not params:
            return
        try:
            with self.db.get_connection() as conn:
                conn.executemany(sql, params)
        except sqlite3.Error as e:
            logger.warning(f"Spell item {operation} batch failed: {e}")
            raise PersistenceError(operation, len(params), e) from e
