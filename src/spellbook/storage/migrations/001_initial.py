from __future__ import annotations

import sqlite3

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS characters (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    created_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS class_items (
    id              TEXT PRIMARY KEY,
    character_id    TEXT NOT NULL REFERENCES characters(id) ON DELETE CASCADE,
    identifier      TEXT NOT NULL,
    name            TEXT NOT NULL,
    levels          INTEGER NOT NULL DEFAULT 1,
    spellcasting    TEXT,
    cantrips_known  INTEGER NOT NULL DEFAULT 0,
    UNIQUE (character_id, identifier)
);

CREATE TABLE IF NOT EXISTS spell_items (
    id                TEXT PRIMARY KEY,
    character_id      TEXT NOT NULL REFERENCES characters(id) ON DELETE CASCADE,
    name              TEXT NOT NULL,
    level             INTEGER NOT NULL DEFAULT 0,
    preparation_mode  TEXT NOT NULL DEFAULT 'prepared',
    prepared          BOOLEAN NOT NULL DEFAULT 0,
    source_class      TEXT,
    source_uuid       TEXT,
    granted_by        TEXT
);

CREATE INDEX IF NOT EXISTS idx_spell_items_character
    ON spell_items(character_id, source_uuid);

CREATE TABLE IF NOT EXISTS character_attributes (
    character_id  TEXT NOT NULL REFERENCES characters(id) ON DELETE CASCADE,
    key           TEXT NOT NULL,
    value         TEXT,
    PRIMARY KEY (character_id, key)
);
"""


def upgrade(conn: sqlite3.Connection) -> None:
    conn.executescript(_SCHEMA_SQL)
