"""Single refreshable view of the streak for the CLI and MCP server."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from miracle_meter.status import (
    NextMilestone,
    StreakStatus,
    WeekProgress,
    get_next_milestone,
    get_streak_status,
    get_week_progress,
)
from miracle_meter.store import PersistenceError
from miracle_meter.streaks import STREAK_MILESTONES, EvaluationResult, StreakState
from miracle_meter.tracker import StreakTracker


class StreakViewModel:
    """Holds raw state plus derived values; actions refresh them in place."""

    def __init__(self, tracker: StreakTracker) -> None:
        self.tracker = tracker
        self.state = StreakState()
        self.loading = False
        self.error: str | None = None
        self.last_result: EvaluationResult | None = None

    @property
    def status(self) -> StreakStatus:
        return get_streak_status(self.state, self.tracker.today(), self.tracker.settings)

    @property
    def week_progress(self) -> WeekProgress:
        return get_week_progress(self.state)

    @property
    def next_milestone(self) -> NextMilestone | None:
        return get_next_milestone(self.state.current_streak)

    def refresh(self) -> StreakViewModel:
        self._run(self.tracker.check_and_update_streak_status)
        return self

    def log_delivery(self, **kwargs: Any) -> StreakViewModel:
        self._run(lambda: self.tracker.log_delivery(**kwargs))
        return self

    def update_weekly_goal(self, goal: int) -> StreakViewModel:
        self._run(lambda: self.tracker.set_weekly_goal(goal))
        return self

    def abandon_recovery(self) -> StreakViewModel:
        self._run(self.tracker.cancel_recovery_challenge)
        return self

    def _run(self, action) -> None:
        self.loading = True
        self.error = None
        try:
            outcome = action()
        except PersistenceError as exc:
            self.error = str(exc)
            if exc.state is not None:
                self.state = exc.state
        else:
            if isinstance(outcome, EvaluationResult):
                self.last_result = outcome
                self.state = outcome.state
            else:
                self.state = outcome
        finally:
            self.loading = False

    def as_dict(self) -> dict[str, Any]:
        """Plain-data snapshot for JSON consumers."""
        next_milestone = self.next_milestone
        data: dict[str, Any] = {
            "streak": self.state.to_dict(),
            "status": asdict(self.status),
            "week_progress": asdict(self.week_progress),
            "next_milestone": asdict(next_milestone) if next_milestone else None,
            "milestones": list(STREAK_MILESTONES),
            "error": self.error,
        }
        if self.last_result is not None:
            data["events"] = {
                "new_milestones": self.last_result.new_milestones,
                "shields_used": self.last_result.shields_used,
                "shields_earned": self.last_result.shields_earned,
                "recovery_started": self.last_result.recovery_started,
                "recovery_completed": self.last_result.recovery_completed,
                "recovery_failed": self.last_result.recovery_failed,
                "log_counted": self.last_result.log_counted,
            }
        return data
