"""Weekly streak tracking, shields, and recovery challenges for miracle-meter."""

from __future__ import annotations

import copy
import logging
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta

from miracle_meter.calendar_utils import parse_date, to_iso, week_start, weeks_between
from miracle_meter.config import StreakSettings

logger = logging.getLogger(__name__)

# Streak lengths (in weeks) that trigger a celebration
STREAK_MILESTONES: tuple[int, ...] = (4, 12, 26, 52, 104, 156)

MAX_WEEKLY_GOAL = 7


@dataclass
class RecoveryChallenge:
    target_logs: int
    current_logs: int
    deadline: str  # YYYY-MM-DD, last day the challenge can be completed
    previous_streak: int

    @property
    def is_complete(self) -> bool:
        return self.current_logs >= self.target_logs

    def is_expired(self, as_of: date) -> bool:
        return parse_date(self.deadline) < as_of


@dataclass
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    last_log_date: str | None = None  # YYYY-MM-DD
    weekly_goal: int = 1
    current_week_logs: int = 0
    week_start_date: str | None = None  # YYYY-MM-DD
    streak_shields: int = 0
    recovery_challenge: RecoveryChallenge | None = None
    milestones_celebrated: list[int] = field(default_factory=list)
    streak_save_used_at: str | None = None  # legacy, no longer read
    recovered_week: str | None = None  # week already counted by a completed recovery

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> StreakState:
        """Build a StreakState from a persisted record.

        Raises ValueError when a required counter is missing or any counter is
        not a non-negative integer. Optional fields missing from older records
        fall back to their defaults. Records written with camelCase keys are
        accepted as well.
        """
        if not isinstance(data, dict):
            raise ValueError("streak record must be an object")
        data = {_LEGACY_KEYS.get(k, k): v for k, v in data.items()}

        for key in _REQUIRED_COUNTERS:
            if key not in data:
                raise ValueError(f"streak record is missing {key}")

        weekly_goal = _non_negative_int(data["weekly_goal"], "weekly_goal")
        if weekly_goal < 1:
            raise ValueError("weekly_goal must be at least 1")

        milestones = data.get("milestones_celebrated") or []
        if not isinstance(milestones, list) or not all(
            isinstance(m, int) and not isinstance(m, bool) for m in milestones
        ):
            raise ValueError("milestones_celebrated must be a list of integers")

        return cls(
            current_streak=_non_negative_int(data["current_streak"], "current_streak"),
            longest_streak=_non_negative_int(data["longest_streak"], "longest_streak"),
            last_log_date=_optional_date(data.get("last_log_date"), "last_log_date"),
            weekly_goal=weekly_goal,
            current_week_logs=_non_negative_int(data["current_week_logs"], "current_week_logs"),
            week_start_date=_optional_date(data.get("week_start_date"), "week_start_date"),
            streak_shields=_non_negative_int(data.get("streak_shields", 0), "streak_shields"),
            recovery_challenge=_challenge_from_dict(data.get("recovery_challenge")),
            milestones_celebrated=list(dict.fromkeys(milestones)),
            streak_save_used_at=_optional_date(data.get("streak_save_used_at"), "streak_save_used_at"),
            recovered_week=_optional_date(data.get("recovered_week"), "recovered_week"),
        )


@dataclass
class EvaluationResult:
    """Updated state plus what happened while producing it."""

    state: StreakState
    weeks_elapsed: int = 0
    new_milestones: list[int] = field(default_factory=list)
    shields_used: int = 0
    shields_earned: int = 0
    recovery_started: bool = False
    recovery_completed: bool = False
    recovery_failed: bool = False
    log_counted: bool = False


_REQUIRED_COUNTERS = ("current_streak", "longest_streak", "weekly_goal", "current_week_logs")

_LEGACY_KEYS = {
    "currentStreak": "current_streak",
    "longestStreak": "longest_streak",
    "lastLogDate": "last_log_date",
    "weeklyGoal": "weekly_goal",
    "currentWeekLogs": "current_week_logs",
    "weekStartDate": "week_start_date",
    "streakShields": "streak_shields",
    "recoveryChallenge": "recovery_challenge",
    "milestonesCelebrated": "milestones_celebrated",
    "streakSaveUsedAt": "streak_save_used_at",
}


def _non_negative_int(value: object, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{key} must be a non-negative integer, got {value!r}")
    return value


def _optional_date(value: object, key: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a date string, got {value!r}")
    # Older records stored full timestamps; keep the calendar day only.
    return to_iso(parse_date(value[:10]))


def _challenge_from_dict(raw: object) -> RecoveryChallenge | None:
    if raw is None:
        return None
    try:
        if not isinstance(raw, dict) or raw.get("active") is False:
            return None
        previous = raw.get("previous_streak", raw.get("previousStreak", raw.get("originalStreak")))
        challenge = RecoveryChallenge(
            target_logs=_non_negative_int(
                raw.get("target_logs", raw.get("targetLogs")), "target_logs"
            ),
            current_logs=_non_negative_int(
                raw.get("current_logs", raw.get("currentLogs", 0)), "current_logs"
            ),
            deadline=_optional_date(raw.get("deadline"), "deadline") or "",
            previous_streak=_non_negative_int(previous, "previous_streak"),
        )
    except ValueError as exc:
        logger.warning("Dropping malformed recovery challenge: %s", exc)
        return None
    if challenge.target_logs < 1 or not challenge.deadline:
        logger.warning("Dropping recovery challenge without target or deadline")
        return None
    return challenge


def _resolve_today(today: str | None) -> date:
    return parse_date(today) if today else date.today()


def check_and_update_streak_status(
    state: StreakState,
    today: str | None = None,
    settings: StreakSettings | None = None,
) -> EvaluationResult:
    """Reconcile a streak state against the current date.

    Rules:
    - No tracked week yet, or today is inside it: nothing rolls over
    - Each week boundary crossed closes a week. The tracked week is judged by
      its logs; fully skipped weeks in between are misses, oldest first
    - A completed recovery challenge restores previous_streak + 1, where the
      +1 is the tracked week itself; that week is not counted again when it
      closes
    - An incomplete recovery challenge past its deadline fails
    - Newly reached milestones are celebrated (and earn a shield)

    The input state is not modified. Calling this twice for the same day
    yields the same state.
    """
    settings = settings or StreakSettings()
    today_date = _resolve_today(today)
    result = EvaluationResult(state=copy.deepcopy(state))

    challenge = result.state.recovery_challenge
    if challenge is not None and challenge.is_complete:
        tracked_week = result.state.week_start_date or to_iso(
            week_start(today_date, settings.week_start_day)
        )
        _complete_recovery(result, tracked_week)

    if result.state.week_start_date is not None:
        tracked = parse_date(result.state.week_start_date)
        crossed = weeks_between(tracked, today_date, settings.week_start_day)
        if crossed > 0:
            _close_weeks(result, tracked, crossed, today_date, settings)

    _expire_recovery(result, today_date)
    _update_longest(result.state)
    _celebrate_milestones(result, settings)
    return result


def _close_weeks(
    result: EvaluationResult,
    tracked: date,
    crossed: int,
    today: date,
    settings: StreakSettings,
) -> None:
    state = result.state
    result.weeks_elapsed = crossed
    next_week = week_start(tracked, settings.week_start_day) + timedelta(weeks=1)

    if state.recovered_week == state.week_start_date:
        logger.debug("Week of %s already counted by recovery", state.week_start_date)
    elif state.current_week_logs >= state.weekly_goal:
        state.current_streak += 1
        _update_longest(state)
        logger.debug("Week of %s met goal, streak now %d", state.week_start_date, state.current_streak)
    else:
        _handle_missed_week(result, next_week, today, settings)

    for skipped in range(1, crossed):
        _handle_missed_week(result, next_week + timedelta(weeks=skipped), today, settings)

    state.current_week_logs = 0
    state.week_start_date = to_iso(week_start(today, settings.week_start_day))
    state.recovered_week = None


def _handle_missed_week(
    result: EvaluationResult,
    as_of: date,
    today: date,
    settings: StreakSettings,
) -> None:
    """Apply the consequence of one missed week, judged as of the day after it ended."""
    state = result.state
    challenge = state.recovery_challenge

    # An open challenge governs the miss; shields are never spent on top of it.
    if challenge is not None:
        if challenge.is_expired(as_of) and not challenge.is_complete:
            state.recovery_challenge = None
            state.current_streak = 0
            result.recovery_failed = True
            logger.info("Recovery challenge expired on %s", challenge.deadline)
        return

    if state.streak_shields > 0:
        state.streak_shields -= 1
        result.shields_used += 1
        logger.info("Shield used for missed week, %d left", state.streak_shields)
        return

    # Nothing to recover
    if state.current_streak == 0:
        return

    state.recovery_challenge = RecoveryChallenge(
        target_logs=settings.recovery_target_logs,
        current_logs=0,
        deadline=to_iso(today + timedelta(days=settings.recovery_days)),
        previous_streak=state.current_streak,
    )
    logger.info("Streak of %d broken, recovery challenge opened", state.current_streak)
    state.current_streak = 0
    result.recovery_started = True


def _complete_recovery(result: EvaluationResult, recovered_week: str) -> None:
    """Restore the streak from a completed challenge and credit recovered_week."""
    state = result.state
    state.current_streak = state.recovery_challenge.previous_streak + 1
    state.recovery_challenge = None
    state.recovered_week = recovered_week
    result.recovery_completed = True
    _update_longest(state)
    logger.info("Recovery challenge completed, streak restored to %d", state.current_streak)


def _expire_recovery(result: EvaluationResult, today: date) -> None:
    state = result.state
    challenge = state.recovery_challenge
    if challenge is None:
        return
    if challenge.is_expired(today):
        state.recovery_challenge = None
        state.current_streak = 0
        result.recovery_failed = True
        logger.info("Recovery challenge expired on %s", challenge.deadline)


def _update_longest(state: StreakState) -> None:
    state.longest_streak = max(state.longest_streak, state.current_streak)


def _celebrate_milestones(result: EvaluationResult, settings: StreakSettings) -> None:
    state = result.state
    for milestone in STREAK_MILESTONES:
        if milestone > state.current_streak or milestone in state.milestones_celebrated:
            continue
        state.milestones_celebrated.append(milestone)
        result.new_milestones.append(milestone)
        if state.streak_shields < settings.max_shields:
            state.streak_shields += 1
            result.shields_earned += 1


def record_log(
    state: StreakState,
    today: str | None = None,
    settings: StreakSettings | None = None,
) -> EvaluationResult:
    """Count a delivery logged today toward the weekly goal.

    Rules:
    - The state is reconciled first so the log lands in the current week
    - Only the first log of a day counts
    - The first log past the weekly goal earns a shield (up to max_shields)
    - An open recovery challenge gains progress and completes immediately
      once it reaches its target
    """
    settings = settings or StreakSettings()
    today_date = _resolve_today(today)
    result = check_and_update_streak_status(state, to_iso(today_date), settings)
    new = result.state

    if new.last_log_date == to_iso(today_date):
        return result

    result.log_counted = True
    new.current_week_logs += 1
    new.last_log_date = to_iso(today_date)
    new.week_start_date = to_iso(week_start(today_date, settings.week_start_day))

    if new.current_week_logs == new.weekly_goal + 1 and new.streak_shields < settings.max_shields:
        new.streak_shields += 1
        result.shields_earned += 1

    # Reconciliation already cleared finished or expired challenges.
    challenge = new.recovery_challenge
    if challenge is not None:
        challenge.current_logs += 1
        if challenge.is_complete:
            _complete_recovery(result, new.week_start_date)
            _celebrate_milestones(result, settings)

    return result


def with_weekly_goal(state: StreakState, goal: int) -> StreakState:
    """Return a copy of state with a new weekly goal, clamped to MAX_WEEKLY_GOAL.

    Raises ValueError for goals below 1. Past weeks are not re-evaluated.
    """
    if isinstance(goal, bool) or not isinstance(goal, int) or goal < 1:
        raise ValueError(f"Weekly goal must be at least 1, got {goal!r}")
    updated = copy.deepcopy(state)
    updated.weekly_goal = min(goal, MAX_WEEKLY_GOAL)
    return updated


def without_recovery_challenge(state: StreakState) -> StreakState:
    """Return a copy of state with any recovery challenge abandoned."""
    updated = copy.deepcopy(state)
    updated.recovery_challenge = None
    return updated
