"""Listing start times with per-card stagger."""

from datetime import datetime, timedelta
from typing import Optional

from card_lots.errors import InvalidConfiguration
from card_lots.utils import is_blank

# eBay File Exchange ScheduleTime, in GMT
SCHEDULE_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_schedule_base(schedule_date: Optional[str], schedule_time: Optional[str]) -> datetime:
    """
    Combine the profile's local date (YYYY-MM-DD) and time (HH:MM[:SS]).

    Raises:
        InvalidConfiguration: either part is missing or malformed
    """
    missing = [
        name for name, value in (("schedule_date", schedule_date), ("schedule_time", schedule_time))
        if is_blank(value)
    ]
    if missing:
        raise InvalidConfiguration(
            "Scheduled listings need a schedule date and time", fields=missing
        )

    time_part = schedule_time.strip()
    if time_part.count(":") == 1:
        time_part += ":00"
    try:
        return datetime.strptime(f"{schedule_date.strip()}T{time_part}", "%Y-%m-%dT%H:%M:%S")
    except ValueError as e:
        raise InvalidConfiguration(
            f"Invalid schedule date/time {schedule_date!r} {schedule_time!r}: {e}",
            fields=["schedule_date", "schedule_time"],
        ) from e


def compute_schedule_time(profile, index: int, tz_offset_minutes: int = 0) -> str:
    """
    Start time for the card at position index of the export batch.

    Immediate mode returns "" (listing goes live on upload). Scheduled mode
    returns base + index * stagger interval (or base for every card when
    stagger is off), shifted from operator-local time to UTC.

    Args:
        profile: ExportProfile
        index: zero-based position of the card in the batch
        tz_offset_minutes: UTC minus local time in minutes (positive west of
            UTC, as browsers report it)
    """
    if profile.schedule_mode == "Immediate":
        return ""
    if profile.schedule_mode != "Scheduled":
        raise InvalidConfiguration(
            f"Unknown schedule mode: {profile.schedule_mode!r}", fields=["schedule_mode"]
        )

    base = parse_schedule_base(profile.schedule_date, profile.schedule_time)
    offset_seconds = index * profile.stagger_interval_seconds if profile.stagger_enabled else 0
    scheduled = base + timedelta(minutes=tz_offset_minutes) + timedelta(seconds=offset_seconds)
    return scheduled.strftime(SCHEDULE_FORMAT)
