"""Read-only views derived from a StreakState.

Nothing here mutates the state it is given.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date

from miracle_meter.calendar_utils import days_left_in_week, parse_date
from miracle_meter.config import StreakSettings
from miracle_meter.streaks import STREAK_MILESTONES, StreakState


@dataclass
class RecoveryProgress:
    current: int
    target: int


@dataclass
class StreakStatus:
    is_goal_met: bool
    is_at_risk: bool
    logs_remaining: int
    days_left_in_week: int
    has_recovery_challenge: bool
    recovery_progress: RecoveryProgress | None


@dataclass
class WeekProgress:
    goal: int
    current: int
    percentage: int


@dataclass
class NextMilestone:
    milestone: int
    weeks_away: int


def get_streak_status(
    state: StreakState,
    today: str | None = None,
    settings: StreakSettings | None = None,
) -> StreakStatus:
    """Summarise how the current week is going.

    The week is at risk when its goal is not met yet and at most
    ``settings.at_risk_days`` days remain after today.
    """
    settings = settings or StreakSettings()
    today_date = parse_date(today) if today else date.today()
    days_left = days_left_in_week(today_date, settings.week_start_day)

    is_goal_met = state.current_week_logs >= state.weekly_goal
    challenge = state.recovery_challenge
    return StreakStatus(
        is_goal_met=is_goal_met,
        is_at_risk=not is_goal_met and days_left <= settings.at_risk_days,
        logs_remaining=max(0, state.weekly_goal - state.current_week_logs),
        days_left_in_week=days_left,
        has_recovery_challenge=challenge is not None,
        recovery_progress=(
            RecoveryProgress(current=challenge.current_logs, target=challenge.target_logs)
            if challenge is not None
            else None
        ),
    )


def get_week_progress(state: StreakState) -> WeekProgress:
    """Logs this week against the goal, as a percentage capped at 100."""
    goal = state.weekly_goal
    current = state.current_week_logs
    # Half-up rounding, so 12.5% shows as 13%
    percentage = min(100, math.floor(100 * current / goal + 0.5))
    return WeekProgress(goal=goal, current=current, percentage=percentage)


def get_next_milestone(current_streak: int) -> NextMilestone | None:
    """Smallest milestone above current_streak, or None past the last one."""
    for milestone in STREAK_MILESTONES:
        if current_streak < milestone:
            return NextMilestone(milestone=milestone, weeks_away=milestone - current_streak)
    return None


def get_shield_count(state: StreakState) -> int:
    return state.streak_shields


def can_use_shield(state: StreakState) -> bool:
    """A shield only matters while there is a streak to protect."""
    return state.streak_shields > 0 and state.current_streak > 0


def is_streak_at_risk(
    state: StreakState,
    today: str | None = None,
    settings: StreakSettings | None = None,
) -> bool:
    return get_streak_status(state, today, settings).is_at_risk
