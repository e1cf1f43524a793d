"""Repository for wizard personal spellbook entries."""
from __future__ import annotations

import uuid
from datetime import datetime

from spellbook.storage.database import Database


class SpellbookRepo:
    def __init__(self, db: Database) -> None:
        self.db = db

    def add_entry(
        self,
        character_id: str,
        spell_id: str,
        spell_level: int,
        source: str,
        cost: int = 0,
        time_minutes: int = 0,
    ) -> None:
        with self.db.get_connection() as conn:
            conn.execute(
                """INSERT OR IGNORE INTO spellbook_entries
                   (id, character_id, spell_id, spell_level, source, cost, time_minutes, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (str(uuid.uuid4()), character_id, spell_id, spell_level, source,
                 cost, time_minutes, datetime.now().isoformat()),
            )

    def get_entries(self, character_id: str) -> list[dict]:
        with self.db.get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM spellbook_entries WHERE character_id = ? ORDER BY spell_level, spell_id",
                (character_id,),
            ).fetchall()
        return [dict(r) for r in rows]

    def has_spell(self, character_id: str, spell_id: str) -> bool:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM spellbook_entries WHERE character_id = ? AND spell_id = ?",
                (character_id, spell_id),
            ).fetchone()
        return row is not None
