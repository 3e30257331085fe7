from datetime import date, datetime, timezone

import pytest

from app.club.clock import (
    belgrade_date,
    belgrade_local_input_to_utc,
    belgrade_local_input_to_utc_iso,
    belgrade_minute_key,
    format_in_belgrade,
    offset_minutes_at,
    parse_instant,
    to_utc_iso,
    utc_to_belgrade_local_input,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestLocalInputToUtc:

    def test_summer_time(self):
        assert belgrade_local_input_to_utc("2024-06-15T18:30") == utc(2024, 6, 15, 16, 30)

    def test_winter_time(self):
        assert belgrade_local_input_to_utc("2024-01-10T20:00") == utc(2024, 1, 10, 19, 0)

    def test_iso_output(self):
        assert belgrade_local_input_to_utc_iso("2024-06-15T18:30") == "2024-06-15T16:30:00.000Z"

    def test_surrounding_whitespace_is_ignored(self):
        assert belgrade_local_input_to_utc(" 2024-06-15T18:30 \n") == utc(2024, 6, 15, 16, 30)

    def test_round_trip_through_display(self):
        resolved = belgrade_local_input_to_utc("2024-06-15T18:30")

        assert format_in_belgrade(resolved, "en", "HH:mm") == "18:30"
        assert utc_to_belgrade_local_input(resolved) == "2024-06-15T18:30"

    def test_just_before_spring_forward(self):
        # 01:30 CET still exists on the transition night
        assert belgrade_local_input_to_utc("2024-03-31T01:30") == utc(2024, 3, 31, 0, 30)

    def test_just_after_spring_forward(self):
        assert belgrade_local_input_to_utc("2024-03-31T03:30") == utc(2024, 3, 31, 1, 30)

    def test_spring_forward_gap_is_pushed_forward(self):
        resolved = belgrade_local_input_to_utc("2024-03-31T02:30")

        assert resolved == utc(2024, 3, 31, 1, 30)
        assert utc_to_belgrade_local_input(resolved) == "2024-03-31T03:30"

    def test_spring_forward_gap_is_stable(self):
        resolved = belgrade_local_input_to_utc("2024-03-31T02:30")
        again = belgrade_local_input_to_utc(utc_to_belgrade_local_input(resolved))

        assert again == resolved
        assert offset_minutes_at(again) == offset_minutes_at(resolved) == 120

    def test_fall_back_overlap_picks_standard_time(self):
        resolved = belgrade_local_input_to_utc("2024-10-27T02:30")

        assert resolved == utc(2024, 10, 27, 1, 30)
        assert offset_minutes_at(resolved) == 60

    def test_seconds_are_zeroed(self):
        resolved = belgrade_local_input_to_utc("2024-06-15T18:30")
        assert resolved.second == 0
        assert resolved.microsecond == 0

    @pytest.mark.parametrize("value", [
        "2024-02-30T10:00",
        "2023-02-29T10:00",
        "2024-06-15T24:00",
        "2024-06-15T18:60",
        "2024-13-01T10:00",
        "2024-06-15 18:30",
        "2024-06-15T18:30:00",
        "2024-6-15T18:30",
        "",
        "tomorrow",
        None,
    ])
    def test_invalid_values(self, value):
        assert belgrade_local_input_to_utc(value) is None
        assert belgrade_local_input_to_utc_iso(value) is None

    def test_leap_day(self):
        assert belgrade_local_input_to_utc("2024-02-29T12:00") == utc(2024, 2, 29, 11, 0)


class TestParseInstant:

    def test_z_suffix(self):
        assert parse_instant("2024-06-15T16:30:00Z") == utc(2024, 6, 15, 16, 30)

    def test_offset_is_normalized_to_utc(self):
        assert parse_instant("2024-06-15T18:30:00+02:00") == utc(2024, 6, 15, 16, 30)

    def test_naive_values_are_utc(self):
        assert parse_instant(datetime(2024, 6, 15, 16, 30)) == utc(2024, 6, 15, 16, 30)
        assert parse_instant("2024-06-15 16:30:00") == utc(2024, 6, 15, 16, 30)

    @pytest.mark.parametrize("value, expected", [
        ("2024-06-15T16:30:00.5Z", utc(2024, 6, 15, 16, 30, 0, 500000)),
        ("2024-06-15 16:30:00+00", utc(2024, 6, 15, 16, 30)),
        ("2024-06-15 18:30:00.123+02", utc(2024, 6, 15, 16, 30, 0, 123000)),
        ("2024-06-15T16:30:00.1234567Z", utc(2024, 6, 15, 16, 30, 0, 123456)),
    ])
    def test_database_shapes(self, value, expected):
        assert parse_instant(value) == expected

    def test_date_only_keeps_its_day(self):
        assert parse_instant("2024-06-15") == utc(2024, 6, 15)

    @pytest.mark.parametrize("value", [None, "", "not a date", 12345])
    def test_unparseable(self, value):
        assert parse_instant(value) is None


class TestDisplay:

    def test_hour_minute_in_belgrade(self):
        assert format_in_belgrade("2024-01-10T19:00:00Z", "sr", "HH:mm") == "20:00"

    def test_english_weekday(self):
        assert format_in_belgrade("2024-06-15T16:30:00Z", "en", "EEEE") == "Saturday"

    def test_russian_weekday(self):
        assert format_in_belgrade("2024-06-15T16:30:00Z", "ru", "EEEE") == "суббота"

    def test_weekday_follows_belgrade_date(self):
        # 23:30 UTC on Saturday is already Sunday in Belgrade
        assert format_in_belgrade("2024-06-15T23:30:00Z", "en", "EEEE") == "Sunday"

    def test_hyphenated_locale(self):
        assert format_in_belgrade("2024-06-15T16:30:00Z", "en-US", "EEEE") == "Saturday"

    def test_unknown_locale_falls_back(self):
        value = "2024-06-15T16:30:00Z"
        assert format_in_belgrade(value, "xx", "medium") == format_in_belgrade(value, "sr", "medium")

    @pytest.mark.parametrize("value", [None, "", "garbage"])
    def test_empty_for_bad_input(self, value):
        assert format_in_belgrade(value, "en") == ""
        assert utc_to_belgrade_local_input(value) == ""

    def test_local_input_from_naive_utc(self):
        assert utc_to_belgrade_local_input(datetime(2024, 1, 10, 19, 0)) == "2024-01-10T20:00"


class TestHelpers:

    def test_minute_key(self):
        assert belgrade_minute_key("2024-06-15T16:30:45.123Z") == "2024-06-15T18:30"

    def test_minute_key_of_datetime(self):
        assert belgrade_minute_key(utc(2024, 1, 10, 19, 0, 42)) == "2024-01-10T20:00"

    def test_minute_key_falls_back_to_prefix(self):
        assert belgrade_minute_key("garbage-value-1234567") == "garbage-value-12"

    def test_belgrade_date_crosses_midnight(self):
        assert belgrade_date("2024-06-15T22:30:00Z") == date(2024, 6, 16)

    def test_belgrade_date_of_bad_input(self):
        assert belgrade_date("nope") is None

    def test_to_utc_iso_treats_naive_as_utc(self):
        assert to_utc_iso(datetime(2024, 6, 15, 16, 30, 5, 250000)) == "2024-06-15T16:30:05.250Z"
