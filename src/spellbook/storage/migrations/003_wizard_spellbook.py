"""Migration 003: Wizard personal spellbook entries."""
from __future__ import annotations

import sqlite3


def upgrade(conn: sqlite3.Connection) -> None:
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS spellbook_entries (
            id            TEXT PRIMARY KEY,
            character_id  TEXT NOT NULL REFERENCES characters(id) ON DELETE CASCADE,
            spell_id      TEXT NOT NULL,
            spell_level   INTEGER NOT NULL DEFAULT 0,
            source        TEXT NOT NULL DEFAULT 'free',
            cost          INTEGER NOT NULL DEFAULT 0,
            time_minutes  INTEGER NOT NULL DEFAULT 0,
            created_at    TEXT NOT NULL,
            UNIQUE (character_id, spell_id)
        );
    """)
