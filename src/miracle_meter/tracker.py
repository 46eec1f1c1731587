"""Read-modify-write operations on the persisted streak."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime

from miracle_meter.config import StreakSettings
from miracle_meter.store import PersistenceError, StreakStore
from miracle_meter.streaks import (
    EvaluationResult,
    StreakState,
    check_and_update_streak_status,
    record_log,
    with_weekly_goal,
    without_recovery_challenge,
)

logger = logging.getLogger(__name__)


class StreakTracker:
    """Binds the streak store, the evaluator, and a clock.

    Every public method loads the record, applies one change, and saves it.
    A failed save raises PersistenceError whose ``state`` is the updated,
    unsaved state.
    """

    def __init__(
        self,
        store: StreakStore,
        clock: Callable[[], datetime] = datetime.now,
        settings: StreakSettings | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.settings = settings or StreakSettings()

    def today(self) -> str:
        return self.clock().date().isoformat()

    def get_state(self) -> StreakState:
        """Persisted state as-is, without reconciling."""
        return self.store.load()

    def check_and_update_streak_status(self) -> EvaluationResult:
        """Reconcile the stored streak with today's date (call on every activation)."""
        state = self.store.load()
        result = check_and_update_streak_status(state, self.today(), self.settings)
        if result.weeks_elapsed:
            logger.info("Closed %d week(s), streak is %d", result.weeks_elapsed, result.state.current_streak)
        self._save_if_changed(state, result.state)
        return result

    def log_delivery(
        self,
        delivery_type: str = "vaginal",
        baby_count: int = 1,
        event_type: str = "delivery",
        notes: str | None = None,
    ) -> EvaluationResult:
        """Store a delivery record and count it toward this week's goal.

        The delivery row and the streak record are written in one transaction,
        so a failed write leaves neither behind.
        """
        now = self.clock()
        state = self.store.load()
        result = record_log(state, now.date().isoformat(), self.settings)
        db = self.store.db
        try:
            with db.transaction():
                db.add_delivery(
                    now.isoformat(timespec="seconds"),
                    delivery_type=delivery_type,
                    baby_count=baby_count,
                    event_type=event_type,
                    notes=notes,
                )
                self._save_if_changed(state, result.state)
        except sqlite3.Error as exc:
            logger.error("Failed to store delivery: %s", exc)
            raise PersistenceError(f"Could not save delivery: {exc}", result.state) from exc
        return result

    def set_weekly_goal(self, goal: int) -> StreakState:
        """Change the weekly goal. Goals below 1 leave the state untouched."""
        state = self.store.load()
        try:
            updated = with_weekly_goal(state, goal)
        except ValueError as exc:
            logger.warning("Rejected weekly goal: %s", exc)
            return state
        self._save_if_changed(state, updated)
        return updated

    def cancel_recovery_challenge(self) -> StreakState:
        """Give up on the active recovery challenge without restoring the streak."""
        state = self.store.load()
        updated = without_recovery_challenge(state)
        self._save_if_changed(state, updated)
        return updated

    def reset(self) -> StreakState:
        """Drop all streak progress."""
        self.store.reset()
        return StreakState()

    def _save_if_changed(self, before: StreakState, after: StreakState) -> None:
        if before == after:
            return
        try:
            self.store.save(after)
        except PersistenceError as exc:
            exc.state = after
            raise
