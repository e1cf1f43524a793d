"""Repository for advisory notifications (GM and controller audiences)."""
from __future__ import annotations

import json
import uuid
from datetime import datetime

from spellbook.storage.database import Database
from spellbook.systems.base import NotificationSink
from spellbook.utils import safe_json


class NotificationRepo(NotificationSink):
    """Stores notifications so they can be read back later."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def notify(self, audience: str, message: dict) -> None:
        with self.db.get_connection() as conn:
            conn.execute(
                """INSERT INTO notifications (id, character_id, audience, message, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (str(uuid.uuid4()), message.get("character_id"), audience,
                 json.dumps(message), datetime.now().isoformat()),
            )

    def list_notifications(
        self,
        character_id: str | None = None,
        audience: str | None = None,
        unread_only: bool = False,
    ) -> list[dict]:
        sql = "SELECT * FROM notifications WHERE 1 = 1"
        params: list = []
        if character_id is not None:
            sql += " AND character_id = ?"
            params.append(character_id)
        if audience is not None:
            sql += " AND audience = ?"
            params.append(audience)
        if unread_only:
            sql += " AND is_read = 0"
        sql += " ORDER BY created_at"
        with self.db.get_connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        results = []
        for r in rows:
            d = dict(r)
            d["message"] = safe_json(d["message"], {})
            d["is_read"] = bool(d["is_read"])
            results.append(d)
        return results

    def mark_read(self, notification_ids: list[str]) -> None:
        with self.db.get_connection() as conn:
            conn.executemany(
                "UPDATE notifications SET is_read = 1 WHERE id = ?",
                [(nid,) for nid in notification_ids],
            )
