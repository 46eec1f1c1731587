"""Rich terminal display for miracle-meter."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


def _progress_bar(current: int, total: int, width: int = 20) -> str:
    """Render a progress bar as text: [████████░░░░░░░░░░░░]."""
    if total <= 0:
        return "[" + "█" * width + "]"
    ratio = min(current / total, 1.0)
    filled = int(ratio * width)
    empty = width - filled
    return "[" + "█" * filled + "░" * empty + "]"


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def print_dashboard(data: dict) -> None:
    """Print the streak dashboard.

    data is StreakViewModel.as_dict(): streak, status, week_progress,
    next_milestone, and optionally events and error.
    """
    streak = data.get("streak", {})
    status = data.get("status", {})
    week = data.get("week_progress", {})
    next_milestone = data.get("next_milestone")
    events = data.get("events") or {}

    current_streak = streak.get("current_streak", 0)
    border = "red1" if status.get("is_at_risk") else "green" if status.get("is_goal_met") else "gold1"

    lines: list[str] = []
    lines.append("")
    lines.append(f"  [bold]\U0001f525 {_plural(current_streak, 'week')} streak[/]")
    lines.append(f"  Longest: {_plural(streak.get('longest_streak', 0), 'week')}")

    # This week
    lines.append("")
    bar = _progress_bar(week.get("current", 0), week.get("goal", 1))
    lines.append(f"  {bar} {week.get('current', 0)}/{week.get('goal', 1)} ({week.get('percentage', 0)}%)")
    if status.get("is_goal_met"):
        lines.append("  ✅ Weekly goal met")
    else:
        lines.append(
            f"  {_plural(status.get('logs_remaining', 0), 'log')} to go, "
            f"{_plural(status.get('days_left_in_week', 0), 'day')} left"
        )
    if status.get("is_at_risk"):
        lines.append("  [bold red1]⚠️  Streak at risk![/]")

    lines.append("")
    lines.append(f"  \U0001f6e1️  Shields: {streak.get('streak_shields', 0)}")

    # Recovery
    progress = status.get("recovery_progress")
    challenge = streak.get("recovery_challenge")
    if progress and challenge:
        lines.append("")
        lines.append("  [bold]Recovery Challenge:[/]")
        lines.append(
            f"  {_progress_bar(progress['current'], progress['target'], width=10)} "
            f"{progress['current']}/{progress['target']} logs by {challenge['deadline']}"
        )
        lines.append(f"  Restores a {_plural(challenge['previous_streak'], 'week')} streak")

    if next_milestone:
        lines.append("")
        lines.append(
            f"  Next milestone: {next_milestone['milestone']} weeks "
            f"({_plural(next_milestone['weeks_away'], 'week')} away)"
        )

    for milestone in events.get("new_milestones", []):
        lines.append(f"  \U0001f389 Milestone reached: {milestone} weeks!")
    if events.get("shields_used"):
        lines.append(f"  \U0001f6e1️  {_plural(events['shields_used'], 'shield')} protected your streak")
    if events.get("recovery_completed"):
        lines.append("  \U0001f4aa Recovery complete, streak restored")
    if events.get("recovery_failed"):
        lines.append("  Recovery challenge expired")
    if events.get("recovery_started"):
        lines.append("  Streak broken. A recovery challenge has started.")

    if data.get("error"):
        lines.append("")
        lines.append(f"  [yellow]Not saved: {data['error']}[/]")

    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]MIRACLE METER[/]",
        box=box.ROUNDED,
        border_style=border,
        width=50,
    )
    console.print(panel)


def print_milestones(current_streak: int, milestones: list[int], celebrated: list[int]) -> None:
    """Print every milestone with its status."""
    table = Table(
        title="Streak Milestones",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("", width=2)
    table.add_column("Milestone", min_width=12)
    table.add_column("Progress", min_width=18)

    for milestone in milestones:
        icon = "✅" if milestone in celebrated else "⏳"
        bar = _progress_bar(current_streak, milestone, width=10)
        table.add_row(icon, f"{milestone} weeks", f"{bar} {min(current_streak, milestone)}/{milestone}")

    console.print(table)


def print_history(deliveries: list[dict]) -> None:
    """Print logged deliveries, newest first."""
    if not deliveries:
        print_message("No deliveries logged yet. Run [bold]miracle-meter log[/] to add one.")
        return

    table = Table(
        title="Deliveries",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("When", min_width=19)
    table.add_column("Type")
    table.add_column("Babies", justify="right")
    table.add_column("Notes")

    for d in deliveries:
        kind = d.get("delivery_type", "")
        if d.get("event_type") == "transition":
            kind += " (transition)"
        table.add_row(
            (d.get("timestamp") or "").replace("T", " "),
            kind,
            str(d.get("baby_count", 1)),
            d.get("notes") or "",
        )

    console.print(table)


def print_message(message: str, title: str = "MIRACLE METER", border_style: str = "grey50") -> None:
    """Print a short message in a panel."""
    panel = Panel(
        f"\n  {message}\n",
        title=f"[bold]{title}[/]",
        box=box.ROUNDED,
        border_style=border_style,
        width=50,
    )
    console.print(panel)
