"""Configuration file management for miracle-meter.

Reads and writes ~/.miracle-meter/config.json for settings that don't belong in the DB
(e.g., the database location and streak rule tuning).
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR: Path = Path.home() / ".miracle-meter"
DEFAULT_CONFIG_PATH: Path = DEFAULT_CONFIG_DIR / "config.json"

MAX_SHIELDS = 3
RECOVERY_DAYS = 7
RECOVERY_TARGET_LOGS = 3
AT_RISK_DAYS = 2


@dataclass(frozen=True)
class StreakSettings:
    week_start_day: int = 0  # 0 = Monday, matches date.weekday()
    at_risk_days: int = AT_RISK_DAYS
    recovery_days: int = RECOVERY_DAYS
    recovery_target_logs: int = RECOVERY_TARGET_LOGS
    max_shields: int = MAX_SHIELDS


# Lower bound for each setting; values outside are ignored.
_SETTING_MINIMUMS: dict[str, int] = {
    "week_start_day": 0,
    "at_risk_days": 0,
    "recovery_days": 1,
    "recovery_target_logs": 1,
    "max_shields": 0,
}


def load_config(config_path: Path | None = None) -> dict:
    """Load config from JSON file. Returns {} if file missing or invalid."""
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        logger.warning("Ignoring unreadable config file %s", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level is not an object", path)
        return {}
    return data


def save_config(data: dict, config_path: Path | None = None) -> None:
    """Write config dict to JSON file. Creates parent dirs if needed."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def get_db_path(config_path: Path | None = None) -> Path | None:
    """Return the configured database path, or None if not set."""
    config = load_config(config_path)
    raw = config.get("db_path")
    if raw:
        return Path(raw).expanduser()
    return None


def set_db_path(path: Path, config_path: Path | None = None) -> None:
    """Persist the database path to config."""
    config = load_config(config_path)
    config["db_path"] = str(path)
    save_config(config, config_path)


def get_streak_settings(config_path: Path | None = None) -> StreakSettings:
    """Build StreakSettings from the "streaks" section of the config.

    Unknown keys and invalid values are skipped so a hand-edited config never
    prevents the tracker from starting.
    """
    section = load_config(config_path).get("streaks")
    if not isinstance(section, dict):
        return StreakSettings()

    overrides: dict[str, int] = {}
    for f in fields(StreakSettings):
        if f.name not in section:
            continue
        value = section[f.name]
        if isinstance(value, bool) or not isinstance(value, int):
            logger.warning("Ignoring non-integer streak setting %s=%r", f.name, value)
            continue
        if value < _SETTING_MINIMUMS[f.name] or (f.name == "week_start_day" and value > 6):
            logger.warning("Ignoring out-of-range streak setting %s=%r", f.name, value)
            continue
        overrides[f.name] = value
    return StreakSettings(**overrides)
