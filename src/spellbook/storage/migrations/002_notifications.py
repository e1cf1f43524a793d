"""Migration 002: GM and controller notifications."""
from __future__ import annotations

import sqlite3


def upgrade(conn: sqlite3.Connection) -> None:
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS notifications (
            id            TEXT PRIMARY KEY,
            character_id  TEXT,
            audience      TEXT NOT NULL,
            message       TEXT NOT NULL,
            created_at    TEXT NOT NULL,
            is_read       BOOLEAN NOT NULL DEFAULT 0
        );
        CREATE INDEX IF NOT EXISTS idx_notifications_character
            ON notifications(character_id, created_at);
    """)
