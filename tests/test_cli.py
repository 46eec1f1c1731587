"""Tests for CLI commands."""

from __future__ import annotations

from datetime import datetime
from unittest.mock import patch

import pytest

from miracle_meter.cli import (
    build_parser,
    do_abandon,
    do_goal,
    do_history,
    do_log,
    do_milestones,
    do_reset,
    do_status,
)
from miracle_meter.db import Database
from miracle_meter.store import StreakStore
from miracle_meter.streaks import RecoveryChallenge, StreakState
from miracle_meter.tracker import StreakTracker


@pytest.fixture
def db(tmp_path):
    """Create a temporary database for testing."""
    db_path = tmp_path / "test.db"
    database = Database(db_path=db_path)
    yield database
    database.close()


@pytest.fixture
def tracker(db):
    return StreakTracker(StreakStore(db), clock=lambda: datetime(2026, 1, 7, 14, 0))


# ── Argument Parsing ──────────────────────────────────────────────────────────


class TestArgumentParsing:
    def test_no_args_defaults_to_none_command(self):
        args = build_parser().parse_args([])
        assert args.command is None

    def test_status_command(self):
        assert build_parser().parse_args(["status"]).command == "status"

    def test_log_defaults(self):
        args = build_parser().parse_args(["log"])
        assert args.delivery_type == "vaginal"
        assert args.babies == 1
        assert args.transition is False

    def test_log_options(self):
        args = build_parser().parse_args(["log", "-t", "c-section", "-b", "2", "--notes", "twins"])
        assert args.delivery_type == "c-section"
        assert args.babies == 2
        assert args.notes == "twins"

    def test_log_rejects_unknown_type(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["log", "-t", "breech"])

    def test_goal_parsed(self):
        assert build_parser().parse_args(["goal", "3"]).goal == 3

    def test_goal_below_one_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["goal", "0"])

    def test_verbose_flag(self):
        assert build_parser().parse_args(["-v", "status"]).verbose is True

    def test_invalid_command_raises(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["nonexistent"])


# ── Commands ──────────────────────────────────────────────────────────────────


class TestDoStatus:
    @patch("miracle_meter.cli.print_dashboard")
    def test_prints_dashboard(self, mock_print, tracker):
        data = do_status(tracker)
        mock_print.assert_called_once_with(data)
        assert data["streak"]["current_streak"] == 0


class TestDoLog:
    @patch("miracle_meter.cli.print_message")
    @patch("miracle_meter.cli.print_dashboard")
    def test_logs_delivery(self, mock_dashboard, mock_message, tracker, db):
        data = do_log(tracker, delivery_type="c-section", baby_count=2)
        assert data["streak"]["current_week_logs"] == 1
        assert data["status"]["is_goal_met"] is True
        assert db.count_deliveries() == 1
        mock_message.assert_not_called()

    @patch("miracle_meter.cli.print_message")
    @patch("miracle_meter.cli.print_dashboard")
    def test_transition_event(self, mock_dashboard, mock_message, tracker, db):
        do_log(tracker, transition=True)
        assert db.get_deliveries()[0]["event_type"] == "transition"

    @patch("miracle_meter.cli.print_message")
    @patch("miracle_meter.cli.print_dashboard")
    def test_second_log_same_day_noted(self, mock_dashboard, mock_message, tracker):
        do_log(tracker)
        data = do_log(tracker)
        assert data["streak"]["current_week_logs"] == 1
        mock_message.assert_called_once()


class TestDoGoal:
    @patch("miracle_meter.cli.print_message")
    def test_sets_goal(self, mock_message, tracker):
        result = do_goal(tracker, 3)
        assert result == {"ok": True, "weekly_goal": 3, "error": None}
        assert tracker.get_state().weekly_goal == 3

    @patch("miracle_meter.cli.print_message")
    def test_capped_goal(self, mock_message, tracker):
        result = do_goal(tracker, 9)
        assert result["weekly_goal"] == 7
        assert "capped" in mock_message.call_args[0][0]


class TestDoAbandon:
    @patch("miracle_meter.cli.print_message")
    def test_no_challenge(self, mock_message, tracker):
        assert do_abandon(tracker) == {"ok": True, "had_challenge": False}

    @patch("miracle_meter.cli.print_message")
    def test_abandons_challenge(self, mock_message, tracker):
        tracker.store.save(StreakState(
            longest_streak=4, week_start_date="2026-01-05", milestones_celebrated=[4],
            recovery_challenge=RecoveryChallenge(
                target_logs=3, current_logs=0, deadline="2026-01-12", previous_streak=4,
            ),
        ))
        assert do_abandon(tracker) == {"ok": True, "had_challenge": True}
        assert tracker.get_state().recovery_challenge is None


class TestDoMilestones:
    @patch("miracle_meter.cli.print_milestones")
    def test_lists_milestones(self, mock_print, tracker):
        tracker.store.save(StreakState(
            current_streak=13, longest_streak=13, week_start_date="2026-01-05",
        ))
        result = do_milestones(tracker)
        assert result == {"current_streak": 13, "celebrated": [4, 12]}
        mock_print.assert_called_once_with(13, [4, 12, 26, 52, 104, 156], [4, 12])


class TestDoHistory:
    @patch("miracle_meter.cli.print_history")
    def test_lists_newest_first(self, mock_print, db):
        db.add_delivery("2026-01-05T10:00:00")
        db.add_delivery("2026-01-06T10:00:00")
        result = do_history(db, limit=1)
        assert [d["timestamp"] for d in result] == ["2026-01-06T10:00:00"]
        mock_print.assert_called_once_with(result)


class TestDoReset:
    @patch("miracle_meter.cli.print_message")
    def test_requires_confirmation(self, mock_message, tracker):
        tracker.store.save(StreakState(current_streak=2, longest_streak=2))
        assert do_reset(tracker) == {"ok": False, "reason": "not_confirmed"}
        assert tracker.get_state().current_streak == 2

    @patch("miracle_meter.cli.print_message")
    def test_resets(self, mock_message, tracker):
        tracker.store.save(StreakState(current_streak=2, longest_streak=2))
        assert do_reset(tracker, confirmed=True) == {"ok": True}
        assert tracker.get_state() == StreakState()
