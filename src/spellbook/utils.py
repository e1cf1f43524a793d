"""Shared utility functions for the spellbook engine."""
from __future__ import annotations

import json
import re


def safe_json(value, default=None):
    """Deserialize a JSON string if needed, or return default.

    Handles the common pattern where SQLite columns may contain JSON strings,
    Python objects, or NULL values.
    """
    if value is None:
        return default if default is not None else {}
    if isinstance(value, str):
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return default if default is not None else {}
    return value


def slugify(text: str) -> str:
    """Lowercase and hyphenate a display name: "Fire Bolt" -> "fire-bolt"."""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
