"""CLI commands for miracle-meter."""

from __future__ import annotations

import argparse
import logging

from miracle_meter.config import get_db_path, get_streak_settings
from miracle_meter.db import DELIVERY_TYPES, Database
from miracle_meter.display import (
    print_dashboard,
    print_history,
    print_message,
    print_milestones,
)
from miracle_meter.store import PersistenceError, StreakStore
from miracle_meter.streaks import MAX_WEEKLY_GOAL, STREAK_MILESTONES
from miracle_meter.tracker import StreakTracker
from miracle_meter.view_model import StreakViewModel


def _weekly_goal(value: str) -> int:
    try:
        goal = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if goal < 1:
        raise argparse.ArgumentTypeError("weekly goal must be at least 1")
    return goal


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if n < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return n


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="miracle-meter",
        description="Log deliveries and keep your weekly streak going",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("status", help="Show streak dashboard")
    log_parser = subparsers.add_parser("log", help="Log a delivery")
    log_parser.add_argument("--type", "-t", dest="delivery_type", choices=DELIVERY_TYPES, default="vaginal")
    log_parser.add_argument("--babies", "-b", type=_positive_int, default=1, help="Number of babies")
    log_parser.add_argument("--transition", action="store_true", help="Log as a transition, not a delivery")
    log_parser.add_argument("--notes", "-n", default=None)
    goal_parser = subparsers.add_parser("goal", help="Set the weekly goal")
    goal_parser.add_argument("goal", type=_weekly_goal, help=f"Logs per week (1-{MAX_WEEKLY_GOAL})")
    subparsers.add_parser("abandon", help="Give up the active recovery challenge")
    subparsers.add_parser("milestones", help="List streak milestones")
    history_parser = subparsers.add_parser("history", help="List logged deliveries")
    history_parser.add_argument("--limit", "-l", type=_positive_int, default=20)
    reset_parser = subparsers.add_parser("reset", help="Delete all streak progress")
    reset_parser.add_argument("--yes", action="store_true", help="Skip the confirmation check")
    return parser


def build_tracker(db: Database) -> StreakTracker:
    return StreakTracker(StreakStore(db), settings=get_streak_settings())


def main() -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args()
    command = args.command or "status"

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    db = Database(get_db_path())
    tracker = build_tracker(db)

    try:
        if command == "status":
            do_status(tracker)
        elif command == "log":
            do_log(
                tracker,
                delivery_type=args.delivery_type,
                baby_count=args.babies,
                transition=args.transition,
                notes=args.notes,
            )
        elif command == "goal":
            do_goal(tracker, args.goal)
        elif command == "abandon":
            do_abandon(tracker)
        elif command == "milestones":
            do_milestones(tracker)
        elif command == "history":
            do_history(db, limit=args.limit)
        elif command == "reset":
            do_reset(tracker, confirmed=args.yes)
    finally:
        db.close()


def do_status(tracker: StreakTracker) -> dict:
    """Reconcile the streak with today and print the dashboard."""
    vm = StreakViewModel(tracker).refresh()
    data = vm.as_dict()
    print_dashboard(data)
    return data


def do_log(
    tracker: StreakTracker,
    delivery_type: str = "vaginal",
    baby_count: int = 1,
    transition: bool = False,
    notes: str | None = None,
) -> dict:
    """Store a delivery and show the updated streak."""
    vm = StreakViewModel(tracker).log_delivery(
        delivery_type=delivery_type,
        baby_count=baby_count,
        event_type="transition" if transition else "delivery",
        notes=notes,
    )
    data = vm.as_dict()
    print_dashboard(data)
    events = data.get("events") or {}
    if vm.error is None and not events.get("log_counted", True):
        print_message("Delivery saved. Only the first log of a day counts toward the weekly goal.")
    return data


def do_goal(tracker: StreakTracker, goal: int) -> dict:
    """Change the weekly goal."""
    vm = StreakViewModel(tracker).update_weekly_goal(goal)
    result = {"ok": vm.error is None, "weekly_goal": vm.state.weekly_goal, "error": vm.error}
    if vm.error:
        print_message(f"Could not save goal: {vm.error}", border_style="yellow")
    else:
        capped = " (capped)" if vm.state.weekly_goal != goal else ""
        print_message(
            f"Weekly goal set to [bold]{vm.state.weekly_goal}[/]{capped}",
            border_style="green",
        )
    return result


def do_abandon(tracker: StreakTracker) -> dict:
    """Abandon the active recovery challenge."""
    had_challenge = tracker.get_state().recovery_challenge is not None
    vm = StreakViewModel(tracker).abandon_recovery()
    if not had_challenge:
        print_message("No recovery challenge is active.")
    elif vm.error:
        print_message(f"Could not save: {vm.error}", border_style="yellow")
    else:
        print_message("Recovery challenge abandoned.")
    return {"ok": vm.error is None, "had_challenge": had_challenge}


def do_milestones(tracker: StreakTracker) -> dict:
    vm = StreakViewModel(tracker).refresh()
    print_milestones(
        vm.state.current_streak, list(STREAK_MILESTONES), vm.state.milestones_celebrated
    )
    return {
        "current_streak": vm.state.current_streak,
        "celebrated": list(vm.state.milestones_celebrated),
    }


def do_history(db: Database, limit: int = 20) -> list[dict]:
    deliveries = db.get_deliveries(limit=limit)
    print_history(deliveries)
    return deliveries


def do_reset(tracker: StreakTracker, confirmed: bool = False) -> dict:
    """Delete streak progress. Requires --yes."""
    if not confirmed:
        print_message("This deletes your streak. Re-run with [bold]--yes[/] to confirm.")
        return {"ok": False, "reason": "not_confirmed"}
    try:
        tracker.reset()
    except PersistenceError as exc:
        print_message(str(exc), border_style="yellow")
        return {"ok": False, "reason": "persistence"}
    print_message("Streak data reset.", border_style="green")
    return {"ok": True}
