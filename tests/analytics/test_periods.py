from datetime import date, datetime, timedelta, timezone as dt_timezone

import pytest

from analytics.exceptions import InvalidRange
from analytics.periods import Preset, Window, month_bounds, quarter_start, resolve_period, shift_years


class TestWindow:
    def test_days_are_inclusive(self):
        window = Window(date(2026, 3, 1), date(2026, 3, 31))
        assert window.days == 31
        days = list(window.iter_days())
        assert days[0] == date(2026, 3, 1)
        assert days[-1] == date(2026, 3, 31)
        assert len(days) == 31

    def test_single_day_window(self):
        window = Window(date(2026, 3, 5), date(2026, 3, 5))
        assert window.days == 1
        assert list(window.iter_days()) == [date(2026, 3, 5)]

    def test_start_after_end_is_invalid(self):
        with pytest.raises(InvalidRange):
            Window(date(2026, 3, 2), date(2026, 3, 1))

    def test_contains(self):
        window = Window(date(2026, 3, 1), date(2026, 3, 10))
        assert date(2026, 3, 10) in window
        assert date(2026, 3, 11) not in window


def test_calendar_helpers():
    assert month_bounds(date(2024, 2, 14)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert quarter_start(date(2026, 8, 20)) == date(2026, 7, 1)
    assert quarter_start(date(2026, 1, 1)) == date(2026, 1, 1)
    assert shift_years(date(2024, 2, 29), -1) == date(2023, 2, 28)


class TestResolvePeriod:
    now = date(2026, 3, 15)

    def test_this_month(self):
        period = resolve_period("this_month", now=self.now)
        assert period.preset is Preset.THIS_MONTH
        assert (period.current.start, period.current.end) == (date(2026, 3, 1), date(2026, 3, 15))
        assert (period.previous.start, period.previous.end) == (date(2026, 2, 1), date(2026, 2, 28))

    def test_last_month(self):
        period = resolve_period(Preset.LAST_MONTH, now=self.now)
        assert (period.current.start, period.current.end) == (date(2026, 2, 1), date(2026, 2, 28))
        assert (period.previous.start, period.previous.end) == (date(2026, 1, 1), date(2026, 1, 31))

    def test_last_month_across_year_boundary(self):
        period = resolve_period("last_month", now=date(2026, 1, 10))
        assert (period.current.start, period.current.end) == (date(2025, 12, 1), date(2025, 12, 31))
        assert (period.previous.start, period.previous.end) == (date(2025, 11, 1), date(2025, 11, 30))

    def test_this_quarter(self):
        period = resolve_period("this_quarter", now=date(2026, 5, 20))
        assert (period.current.start, period.current.end) == (date(2026, 4, 1), date(2026, 5, 20))
        assert (period.previous.start, period.previous.end) == (date(2026, 1, 1), date(2026, 3, 31))

    def test_ytd_compares_same_offset_into_prior_year(self):
        period = resolve_period("ytd", now=self.now)
        assert (period.current.start, period.current.end) == (date(2026, 1, 1), date(2026, 3, 15))
        assert (period.previous.start, period.previous.end) == (date(2025, 1, 1), date(2025, 3, 15))

    def test_custom_previous_window_has_identical_duration(self):
        period = resolve_period(
            "custom",
            date_from=date(2026, 3, 10),
            date_to=date(2026, 3, 19),
        )
        assert period.current.days == 10
        assert period.previous.days == 10
        assert period.previous.end == date(2026, 3, 9)
        assert period.previous.start == date(2026, 2, 28)

    def test_custom_single_day(self):
        period = resolve_period("custom", date_from=date(2026, 3, 10), date_to=date(2026, 3, 10))
        assert (period.previous.start, period.previous.end) == (date(2026, 3, 9), date(2026, 3, 9))

    def test_custom_reversed_bounds_are_invalid(self):
        with pytest.raises(InvalidRange):
            resolve_period("custom", date_from=date(2026, 3, 20), date_to=date(2026, 3, 10))

    def test_custom_without_bounds_is_invalid(self):
        with pytest.raises(InvalidRange):
            resolve_period("custom", date_from=date(2026, 3, 20))

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            resolve_period("last_decade", now=self.now)

    def test_aware_datetime_now_uses_local_calendar_day(self, settings):
        settings.TIME_ZONE = "Europe/Warsaw"
        # 23:30 UTC on 31 March is already 1 April in Warsaw.
        now = datetime(2026, 3, 31, 23, 30, tzinfo=dt_timezone.utc)
        period = resolve_period("this_month", now=now)
        assert period.current.start == date(2026, 4, 1)
        assert period.current.end == date(2026, 4, 1)

    def test_resolution_is_idempotent(self):
        assert resolve_period("ytd", now=self.now) == resolve_period("ytd", now=self.now)

    def test_as_dict(self):
        payload = resolve_period("this_month", now=self.now).as_dict()
        assert payload == {
            "preset": "this_month",
            "start": "2026-03-01",
            "end": "2026-03-15",
            "prev_start": "2026-02-01",
            "prev_end": "2026-02-28",
        }


def test_previous_window_is_immediately_before_for_custom_ranges():
    start = date(2026, 1, 1)
    for length in (1, 7, 30, 45):
        end = start + timedelta(days=length - 1)
        period = resolve_period("custom", date_from=start, date_to=end)
        assert period.previous.end + timedelta(days=1) == period.current.start
        assert period.previous.days == period.current.days
