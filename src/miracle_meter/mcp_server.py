"""MCP server for miracle-meter.

Exposes the weekly streak as MCP tools so an assistant can check or update it
mid-conversation.
Run via: python3 -m miracle_meter.mcp_server
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from miracle_meter.db import DELIVERY_TYPES
from miracle_meter.streaks import MAX_WEEKLY_GOAL, STREAK_MILESTONES

mcp = FastMCP(name="miracle-meter")


def _get_db():
    from miracle_meter.config import get_db_path
    from miracle_meter.db import Database
    return Database(get_db_path())


def _view_model(db):
    from miracle_meter.cli import build_tracker
    from miracle_meter.view_model import StreakViewModel
    return StreakViewModel(build_tracker(db))


@mcp.tool()
def get_streak() -> dict[str, Any]:
    """Get the weekly streak: current/longest streak, week progress, shields, recovery, next milestone."""
    db = _get_db()
    try:
        return _view_model(db).refresh().as_dict()
    finally:
        db.close()


@mcp.tool()
def log_delivery(delivery_type: str = "vaginal", baby_count: int = 1, notes: str = "") -> dict[str, Any]:
    """Log a delivery and return the updated streak."""
    if delivery_type not in DELIVERY_TYPES:
        return {"error": f"Invalid delivery_type. Must be one of: {', '.join(DELIVERY_TYPES)}"}
    if baby_count < 1:
        return {"error": "baby_count must be at least 1"}
    db = _get_db()
    try:
        vm = _view_model(db).log_delivery(
            delivery_type=delivery_type, baby_count=baby_count, notes=notes or None,
        )
        return vm.as_dict()
    finally:
        db.close()


@mcp.tool()
def set_weekly_goal(goal: int) -> dict[str, Any]:
    """Set how many logs per week keep the streak alive (1-7)."""
    if goal < 1:
        return {"error": "Weekly goal must be at least 1"}
    db = _get_db()
    try:
        vm = _view_model(db).update_weekly_goal(goal)
        return {"weekly_goal": vm.state.weekly_goal, "capped": goal > MAX_WEEKLY_GOAL, "error": vm.error}
    finally:
        db.close()


@mcp.tool()
def cancel_recovery_challenge() -> dict[str, Any]:
    """Abandon the active recovery challenge. The broken streak is not restored."""
    db = _get_db()
    try:
        vm = _view_model(db)
        had_challenge = vm.tracker.get_state().recovery_challenge is not None
        vm.abandon_recovery()
        return {"cancelled": had_challenge, "error": vm.error}
    finally:
        db.close()


@mcp.tool()
def get_milestones() -> dict[str, Any]:
    """List streak milestones (in weeks) and which have been celebrated."""
    db = _get_db()
    try:
        vm = _view_model(db).refresh()
        celebrated = set(vm.state.milestones_celebrated)
        return {
            "current_streak": vm.state.current_streak,
            "milestones": [
                {"weeks": m, "celebrated": m in celebrated} for m in STREAK_MILESTONES
            ],
            "next_milestone": vm.as_dict()["next_milestone"],
        }
    finally:
        db.close()


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
