"""Tests for session and zone classification."""

from datetime import datetime, time

import pytest

from tradelog.journal.sessions import (
    NOT_AVAILABLE,
    active_sessions,
    classify_session,
    classify_zone,
    parse_hhmm,
    time_in_range,
    to_minutes,
)


class TestParsing:

    def test_parse_hhmm(self):
        assert parse_hhmm("09:30") == 570
        assert parse_hhmm("00:00") == 0
        assert parse_hhmm("24:00") == 1440

    @pytest.mark.parametrize("bad", ["25:00", "ab:cd", ""])
    def test_parse_hhmm_rejects_bad_input(self, bad):
        with pytest.raises(ValueError):
            parse_hhmm(bad)

    def test_to_minutes_accepts_time_like_values(self):
        assert to_minutes(datetime(2024, 1, 1, 13, 5)) == 785
        assert to_minutes(time(13, 5)) == 785
        assert to_minutes("13:05") == 785

    def test_to_minutes_unusable(self):
        assert to_minutes(None) is None
        assert to_minutes("noon") is None


class TestTimeInRange:

    def test_plain_window_is_half_open(self):
        assert time_in_range(parse_hhmm("08:00"), "08:00", "12:00")
        assert not time_in_range(parse_hhmm("12:00"), "08:00", "12:00")

    def test_window_wrapping_midnight(self):
        assert time_in_range(parse_hhmm("23:00"), "20:00", "05:00")
        assert time_in_range(parse_hhmm("02:00"), "20:00", "05:00")
        assert not time_in_range(parse_hhmm("12:00"), "20:00", "05:00")


class TestClassifySession:
    """Overlapping sessions are joined in table order."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("09:30", "London / New York"),
            ("04:00", "Asian / London"),
            ("00:30", "Sydney / Asian"),
            ("02:00", "Asian"),
            ("14:00", "New York"),
            ("16:30", "Sydney / New York"),
            ("18:00", "Sydney"),
            ("21:00", "Sydney / Asian"),
        ],
    )
    def test_sessions(self, value, expected):
        assert classify_session(value) == expected

    def test_join_order_matches_active_sessions(self):
        assert active_sessions("09:30") == ["London", "New York"]

    def test_datetime_input(self):
        assert classify_session(datetime(2024, 3, 4, 9, 30)) == "London / New York"

    def test_unparseable_is_not_available(self):
        assert classify_session("later") == NOT_AVAILABLE
        assert classify_session(None) == NOT_AVAILABLE


class TestClassifyZone:

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("01:00", "Judas Swing"),
            ("03:00", "London Open Killzone"),
            ("06:00", "Pre New York"),
            ("08:15", "New York Open"),
            ("09:30", "New York Killzone"),
            ("11:30", "London Close Killzone"),
            ("12:00", "Rest of Day"),
            ("23:00", "Asian Range"),
        ],
    )
    def test_zones(self, value, expected):
        assert classify_zone(value) == expected

    def test_unparseable_is_not_available(self):
        assert classify_zone("??") == NOT_AVAILABLE
