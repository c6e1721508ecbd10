"""Date helpers for day-window filtering of pull requests."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

DEFAULT_DAYS = 14
DAY_WINDOW_CHOICES = (7, 14, 30, None)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    """
    Return the instant exactly `days` days before `now`, same time of day.

    Args:
        days: Number of days to go back (0 means now)
        now: Reference instant (default: current UTC time)
    """
    if now is None:
        now = utcnow()
    return now - timedelta(days=days)


def get_two_weeks_ago(now: Optional[datetime] = None) -> datetime:
    return get_days_ago(DEFAULT_DAYS, now)


def format_date_for_github(date: datetime) -> str:
    """
    Format a datetime as the YYYY-MM-DD form GitHub search expects.

    Aware datetimes are converted to UTC first, so the calendar date matches
    what GitHub compares against.
    """
    if date.tzinfo is not None:
        date = date.astimezone(timezone.utc)
    return date.strftime("%Y-%m-%d")


def parse_github_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp as returned by the API ("2024-11-01T10:00:00Z")."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class DateWindow:
    """
    Lower bound on PR creation time.

    Either a concrete cutoff ("created on or after") or unbounded
    (cutoff is None, meaning no lower bound).
    """

    cutoff: Optional[datetime] = None

    @classmethod
    def unbounded(cls) -> "DateWindow":
        return cls(cutoff=None)

    @classmethod
    def from_days(cls, days: Optional[int], now: Optional[datetime] = None) -> "DateWindow":
        if days is None:
            return cls.unbounded()
        if days < 0:
            raise ValueError(f"Day window must be non-negative, got {days}")
        return cls(cutoff=get_days_ago(days, now))

    @property
    def is_unbounded(self) -> bool:
        return self.cutoff is None

    def search_qualifier(self) -> Optional[str]:
        """The `created:>=` search clause, or None when unbounded."""
        if self.cutoff is None:
            return None
        return f"created:>={format_date_for_github(self.cutoff)}"

    def contains(self, timestamp: datetime) -> bool:
        if self.cutoff is None:
            return True
        return timestamp >= self.cutoff


def is_within_window(timestamp: str, days: Optional[int], now: Optional[datetime] = None) -> bool:
    """
    Check whether an ISO timestamp falls inside the last `days` days.

    The boundary is inclusive: a timestamp exactly at the cutoff is inside.
    `days=None` means no limit, so every timestamp is inside.
    """
    return DateWindow.from_days(days, now).contains(parse_github_timestamp(timestamp))


def is_within_two_weeks(timestamp: str, now: Optional[datetime] = None) -> bool:
    return is_within_window(timestamp, DEFAULT_DAYS, now)


def get_relative_time(timestamp: str, now: Optional[datetime] = None) -> str:
    """
    Human-readable age of a timestamp, e.g. "3 days ago", "2 hours ago".

    Used by the CLI when printing pull request cards.
    """
    if now is None:
        now = utcnow()
    seconds = int((now - parse_github_timestamp(timestamp)).total_seconds())

    if seconds < 45:
        return "less than a minute ago"
    minutes = round(seconds / 60)
    if minutes < 45:
        return "1 minute ago" if minutes == 1 else f"{minutes} minutes ago"
    hours = round(seconds / 3600)
    if hours < 24:
        return "about 1 hour ago" if hours == 1 else f"about {hours} hours ago"
    days = round(seconds / 86400)
    if days < 30:
        return "1 day ago" if days == 1 else f"{days} days ago"
    months = round(days / 30)
    if months < 12:
        return "about 1 month ago" if months == 1 else f"{months} months ago"
    years = round(days / 365)
    return "about 1 year ago" if years == 1 else f"about {years} years ago"


def parse_days(value: Optional[str]) -> Optional[int]:
    """
    Parse a day-window choice ("7", "14", "30", "all").

    Returns None for "all" (no limit).

    Raises:
        ValueError: If the value is not one of the allowed choices
    """
    if value is None:
        raise ValueError("Day window value is required")
    text = str(value).strip().lower()
    if text in ("all", "none", "no-limit"):
        return None
    try:
        days = int(text)
    except ValueError:
        raise ValueError(f"Invalid day window: '{value}'. Expected one of 7, 14, 30, all")
    if days not in DAY_WINDOW_CHOICES:
        raise ValueError(f"Invalid day window: '{value}'. Expected one of 7, 14, 30, all")
    return days


def format_days(days: Optional[int]) -> str:
    return "all" if days is None else str(days)
