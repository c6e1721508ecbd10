"""Tests for day-window date helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from utils.date_utils import (
    DateWindow,
    format_date_for_github,
    format_days,
    get_days_ago,
    get_relative_time,
    get_two_weeks_ago,
    is_within_two_weeks,
    is_within_window,
    parse_days,
    parse_github_timestamp,
)

NOW = datetime(2024, 11, 13, 15, 30, 0, tzinfo=timezone.utc)


class TestGetDaysAgo:
    """Tests for get_days_ago / get_two_weeks_ago."""

    @pytest.mark.parametrize("days", [1, 7, 14, 30, 365])
    def test_exactly_n_days_before_same_time_of_day(self, days):
        result = get_days_ago(days, now=NOW)
        assert NOW - result == timedelta(days=days)
        assert result.time() == NOW.time()

    def test_zero_days_is_now(self):
        assert get_days_ago(0, now=NOW) == NOW

    def test_two_weeks_ago(self):
        assert get_two_weeks_ago(now=NOW) == get_days_ago(14, now=NOW)
        assert get_two_weeks_ago(now=NOW) == datetime(2024, 10, 30, 15, 30, tzinfo=timezone.utc)


class TestFormatDateForGitHub:
    """Tests for format_date_for_github."""

    def test_format(self):
        assert format_date_for_github(NOW) == "2024-11-13"

    def test_pads_single_digit_month_and_day(self):
        assert format_date_for_github(datetime(2024, 3, 5, tzinfo=timezone.utc)) == "2024-03-05"

    def test_start_and_end_of_year(self):
        assert format_date_for_github(datetime(2024, 1, 1, tzinfo=timezone.utc)) == "2024-01-01"
        assert format_date_for_github(datetime(2024, 12, 31, 23, 59, tzinfo=timezone.utc)) == "2024-12-31"

    def test_converts_aware_datetimes_to_utc(self):
        tz = timezone(timedelta(hours=-5))
        # 22:00 on Dec 31 at UTC-5 is already Jan 1 in UTC
        assert format_date_for_github(datetime(2024, 12, 31, 22, 0, tzinfo=tz)) == "2025-01-01"


class TestDateWindow:
    """Tests for DateWindow."""

    def test_unbounded_has_no_qualifier(self):
        window = DateWindow.from_days(None)
        assert window.is_unbounded
        assert window.search_qualifier() is None

    def test_bounded_qualifier(self):
        window = DateWindow.from_days(14, now=NOW)
        assert window.search_qualifier() == "created:>=2024-10-30"

    def test_negative_days_rejected(self):
        with pytest.raises(ValueError):
            DateWindow.from_days(-1)

    def test_is_immutable(self):
        window = DateWindow.from_days(7, now=NOW)
        with pytest.raises(AttributeError):
            window.cutoff = NOW

    def test_unbounded_contains_everything(self):
        assert DateWindow.unbounded().contains(datetime(1970, 1, 1, tzinfo=timezone.utc))


class TestIsWithinWindow:
    """Tests for is_within_window."""

    def test_inclusive_at_boundary(self):
        assert is_within_window("2024-10-30T15:30:00Z", 14, now=NOW) is True

    def test_false_one_second_before_boundary(self):
        assert is_within_window("2024-10-30T15:29:59Z", 14, now=NOW) is False

    def test_recent_and_old(self):
        assert is_within_window("2024-11-10T12:00:00Z", 14, now=NOW) is True
        assert is_within_window("2024-10-15T12:00:00Z", 14, now=NOW) is False

    def test_no_limit(self):
        assert is_within_window("2001-01-01T00:00:00Z", None, now=NOW) is True

    def test_two_weeks_shortcut(self):
        assert is_within_two_weeks("2024-11-13T10:00:00Z", now=NOW) is True
        assert is_within_two_weeks("2024-10-01T10:00:00Z", now=NOW) is False


class TestParseGitHubTimestamp:
    def test_parses_z_suffix_as_utc(self):
        assert parse_github_timestamp("2024-11-01T10:00:00Z") == datetime(2024, 11, 1, 10, tzinfo=timezone.utc)

    def test_naive_assumed_utc(self):
        assert parse_github_timestamp("2024-11-01T10:00:00").tzinfo == timezone.utc


class TestGetRelativeTime:
    """Tests for get_relative_time."""

    def test_minutes(self):
        assert get_relative_time("2024-11-13T15:28:00Z", now=NOW) == "2 minutes ago"

    def test_hours(self):
        assert get_relative_time("2024-11-13T13:30:00Z", now=NOW) == "about 2 hours ago"

    def test_days(self):
        assert get_relative_time("2024-11-10T15:30:00Z", now=NOW) == "3 days ago"

    def test_just_now(self):
        assert get_relative_time("2024-11-13T15:29:50Z", now=NOW) == "less than a minute ago"


class TestParseDays:
    """Tests for parse_days / format_days."""

    @pytest.mark.parametrize("value,expected", [("7", 7), ("14", 14), ("30", 30), ("all", None), (" ALL ", None)])
    def test_valid_choices(self, value, expected):
        assert parse_days(value) == expected

    @pytest.mark.parametrize("value", ["0", "10", "-7", "week", ""])
    def test_invalid_choices(self, value):
        with pytest.raises(ValueError):
            parse_days(value)

    def test_format_days(self):
        assert format_days(None) == "all"
        assert format_days(30) == "30"
