"""
Repository classes for persisted settings.
"""

import json
import logging
from typing import Any, Optional

from .connection import Database
from .models import Preferences

logger = logging.getLogger(__name__)


class SettingsRepository:
    """Key/value storage of JSON documents."""

    def __init__(self, db: Database):
        self.db = db

    def get(self, key: str) -> Optional[Any]:
        """Get the decoded value stored under key."""
        cursor = self.db.connection.cursor()
        cursor.execute("SELECT value FROM settings WHERE key = ?", (key,))
        row = cursor.fetchone()
        if row is None:
            return None
        return json.loads(row["value"])

    def put(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous value."""
        cursor = self.db.connection.cursor()
        cursor.execute(
            """
            INSERT INTO settings (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = CURRENT_TIMESTAMP
            """,
            (key, json.dumps(value)),
        )
        self.db.connection.commit()

    def delete(self, key: str) -> None:
        """Remove key if present."""
        cursor = self.db.connection.cursor()
        cursor.execute("DELETE FROM settings WHERE key = ?", (key,))
        self.db.connection.commit()


class PreferenceRepository:
    """Loads and saves the user's preferences under a fixed key."""

    STORAGE_KEY = "courtside.preferences"

    def __init__(self, db: Database):
        self.settings = SettingsRepository(db)

    def load(self) -> Optional[Preferences]:
        """
        Load stored preferences.

        Returns:
            Preferences, or None when nothing is stored or the stored
            document can't be decoded.
        """
        try:
            data = self.settings.get(self.STORAGE_KEY)
        except json.JSONDecodeError as e:
            logger.error(f"Stored preferences are not valid JSON: {e}")
            return None

        if data is None:
            return None

        try:
            return Preferences.from_dict(data)
        except (KeyError, TypeError) as e:
            logger.error(f"Stored preferences are incomplete: {e}")
            return None

    def save(self, preferences: Preferences) -> None:
        """Replace stored preferences wholesale."""
        self.settings.put(self.STORAGE_KEY, preferences.to_dict())

    def clear(self) -> None:
        """Forget stored preferences."""
        self.settings.delete(self.STORAGE_KEY)
