"""User settings storage and daily reminder preferences."""
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from flash_tutor.db import get_connection
from flash_tutor.errors import ValidationError

REMINDERS_ENABLED_KEY = "daily_reminders_enabled"
REMINDER_HOUR_KEY = "reminder_time_hour"
REMINDER_MINUTE_KEY = "reminder_time_minute"


@dataclass
class ReminderSettings:
    enabled: bool = True
    hour: int = 9
    minute: int = 0

    @property
    def time_text(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def parse_reminder_time(text: str) -> tuple[int, int]:
    """Parse "HH:MM" (24-hour) into (hour, minute)."""
    parts = text.strip().split(":")
    if len(parts) != 2 or not all(p.isdecimal() for p in parts):
        raise ValidationError(f"Invalid reminder time {text!r}, expected HH:MM")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValidationError(f"Invalid reminder time {text!r}, expected HH:MM")
    return hour, minute


def format_reminder_time(hour: int, minute: int) -> str:
    return time(hour, minute).strftime("%I:%M %p")


def load_reminder_settings(db_path: str) -> ReminderSettings:
    defaults = ReminderSettings()
    return ReminderSettings(
        enabled=get_setting(db_path, REMINDERS_ENABLED_KEY, "1") == "1",
        hour=int(get_setting(db_path, REMINDER_HOUR_KEY, str(defaults.hour))),
        minute=int(get_setting(db_path, REMINDER_MINUTE_KEY, str(defaults.minute))),
    )


def save_reminder_settings(db_path: str, settings: ReminderSettings) -> None:
    parse_reminder_time(settings.time_text)
    set_setting(db_path, REMINDERS_ENABLED_KEY, "1" if settings.enabled else "0")
    set_setting(db_path, REMINDER_HOUR_KEY, str(settings.hour))
    set_setting(db_path, REMINDER_MINUTE_KEY, str(settings.minute))


def next_reminder_at(now: datetime, hour: int, minute: int) -> datetime:
    """Next time the daily reminder fires: today at HH:MM unless that has passed."""
    fire = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if fire < now:
        fire += timedelta(days=1)
    return fire
