"""Persistence of the single streak record."""

from __future__ import annotations

import json
import logging
import sqlite3

from miracle_meter.db import Database
from miracle_meter.streaks import StreakState

logger = logging.getLogger(__name__)

STREAK_STORAGE_KEY = "streak_data"


class PersistenceError(Exception):
    """Raised when the streak record could not be written.

    ``state`` holds the state that was being saved, so callers can keep
    showing it even though the next load may not reflect it.
    """

    def __init__(self, message: str, state: StreakState | None = None) -> None:
        super().__init__(message)
        self.state = state


class StreakStore:
    """Load and save StreakState as JSON under one key of the database."""

    def __init__(self, db: Database, key: str = STREAK_STORAGE_KEY) -> None:
        self.db = db
        self.key = key

    def load(self) -> StreakState:
        """Return the persisted state, or a fresh zero-state.

        Read errors and malformed records fall back to the default state
        instead of raising.
        """
        try:
            raw = self.db.get_value(self.key)
        except sqlite3.Error as exc:
            logger.warning("Could not read streak data, using defaults: %s", exc)
            return StreakState()
        if raw is None:
            return StreakState()
        try:
            return StreakState.from_dict(json.loads(raw))
        except (json.JSONDecodeError, ValueError) as exc:
            logger.warning("Discarding malformed streak data: %s", exc)
            return StreakState()

    def save(self, state: StreakState) -> None:
        """Write state. Raises PersistenceError if the database rejects it."""
        payload = json.dumps(state.to_dict())
        try:
            self.db.set_value(self.key, payload)
        except sqlite3.Error as exc:
            logger.error("Failed to save streak data: %s", exc)
            raise PersistenceError(f"Could not save streak data: {exc}", state) from exc

    def reset(self) -> None:
        """Forget the persisted record; the next load returns the default state."""
        try:
            self.db.delete_value(self.key)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not reset streak data: {exc}") from exc
