import pytest
from datetime import date

from daterange_picker.core.calendar_window import CalendarWindow
from daterange_picker.models import ActiveField, CalendarId, DateRange
from daterange_picker.utils.date_utils import MIN_YEAR_PAGE_END

TODAY = date(2024, 6, 15)


@pytest.fixture
def window():
    return CalendarWindow(TODAY)


def months(w):
    return w.top_month, w.bottom_month


def test_fresh_window_shows_previous_and_current_month(window):
    assert months(window) == (date(2024, 5, 1), date(2024, 6, 1))
    assert window.invariant_holds()
    assert window.label(CalendarId.TOP) == "May 2024"
    assert window.month_index(CalendarId.BOTTOM) == 5


def test_position_at_start(window):
    window.position_at_start(date(2024, 1, 10))
    assert months(window) == (date(2024, 1, 1), date(2024, 2, 1))


def test_position_at_start_clamps_to_current_month(window):
    window.position_at_start(date(2024, 6, 10))
    assert months(window) == (date(2024, 5, 1), date(2024, 6, 1))
    assert window.invariant_holds()


def test_position_at_end(window):
    window.position_at_end(date(2024, 3, 5))
    assert months(window) == (date(2024, 2, 1), date(2024, 3, 1))
    window.position_at_end(date(2024, 9, 1))
    assert months(window) == (date(2024, 5, 1), date(2024, 6, 1))


def test_position_at_without_anchor_opens_fresh(window):
    window.position_at_start(date(2022, 1, 1))
    window.position_at(None)
    assert months(window) == (date(2024, 5, 1), date(2024, 6, 1))


def test_recenter_ignores_missing_endpoint(window):
    window.position_at_start(date(2023, 1, 1))
    window.recenter_for_active_field(ActiveField.END, DateRange(date(2023, 1, 5), None))
    assert months(window) == (date(2023, 1, 1), date(2023, 2, 1))


def test_recenter_current_month_opens_fresh(window):
    window.position_at_start(date(2023, 1, 1))
    window.recenter_for_active_field(ActiveField.END, DateRange(date(2024, 4, 1), date(2024, 6, 10)))
    assert months(window) == (date(2024, 5, 1), date(2024, 6, 1))


def test_recenter_short_range_keeps_start_on_top(window):
    window.recenter_for_active_field(ActiveField.END, DateRange(date(2024, 3, 10), date(2024, 4, 2)))
    assert months(window) == (date(2024, 3, 1), date(2024, 4, 1))


def test_recenter_same_month_range_shows_two_distinct_months(window):
    window.recenter_for_active_field(ActiveField.START, DateRange(date(2024, 3, 10), date(2024, 3, 20)))
    assert months(window) == (date(2024, 3, 1), date(2024, 4, 1))


def test_recenter_long_range_follows_focused_endpoint(window):
    r = DateRange(date(2024, 1, 10), date(2024, 4, 20))
    window.recenter_for_active_field(ActiveField.END, r)
    assert months(window) == (date(2024, 3, 1), date(2024, 4, 1))
    window.recenter_for_active_field(ActiveField.START, r)
    assert months(window) == (date(2024, 1, 1), date(2024, 2, 1))


def test_next_month_is_noop_at_current_month(window):
    assert not window.can_go_next()
    assert window.next_month(CalendarId.BOTTOM) is False
    assert months(window) == (date(2024, 5, 1), date(2024, 6, 1))


def test_prev_and_next_move_both_calendars(window):
    assert window.prev_month(CalendarId.TOP)
    assert months(window) == (date(2024, 4, 1), date(2024, 5, 1))
    assert window.can_go_next()
    assert window.next_month(CalendarId.TOP)
    assert months(window) == (date(2024, 5, 1), date(2024, 6, 1))


def test_set_month_rejects_future_months(window):
    assert window.set_month(CalendarId.BOTTOM, 6) is False
    assert window.set_month(CalendarId.TOP, 5) is False
    assert window.set_month(CalendarId.TOP, 12) is False
    assert months(window) == (date(2024, 5, 1), date(2024, 6, 1))


def test_set_month_moves_the_other_calendar(window):
    assert window.set_month(CalendarId.BOTTOM, 0)
    assert months(window) == (date(2023, 12, 1), date(2024, 1, 1))
    assert window.set_month(CalendarId.TOP, 7)
    assert months(window) == (date(2023, 8, 1), date(2023, 9, 1))


def test_set_year(window):
    assert window.set_year(CalendarId.TOP, 2023)
    assert months(window) == (date(2023, 5, 1), date(2023, 6, 1))
    assert window.set_year(CalendarId.BOTTOM, 2025) is False
    assert window.set_year(CalendarId.BOTTOM, 1899) is False
    assert window.invariant_holds()


def test_set_year_rejects_future_month_in_current_year(window):
    window.set_month(CalendarId.BOTTOM, 0)
    window.set_year(CalendarId.BOTTOM, 2023)
    window.set_month(CalendarId.BOTTOM, 10)
    assert months(window) == (date(2023, 10, 1), date(2023, 11, 1))
    assert window.set_year(CalendarId.BOTTOM, 2024) is False
    assert months(window) == (date(2023, 10, 1), date(2023, 11, 1))


def test_is_future_month(window):
    assert not window.is_future_month(CalendarId.BOTTOM, 5, 2024)
    assert window.is_future_month(CalendarId.BOTTOM, 6, 2024)
    assert window.is_future_month(CalendarId.TOP, 5, 2024)
    assert not window.is_future_month(CalendarId.TOP, 4, 2024)
    assert window.is_year_option_disabled(CalendarId.BOTTOM, 2025)


def test_year_option_disabled_when_window_would_pass_current_month(window):
    assert not window.is_year_option_disabled(CalendarId.BOTTOM, 2024)
    assert not window.is_year_option_disabled(CalendarId.TOP, 2024)
    window.set_year(CalendarId.TOP, 2023)
    window.set_month(CalendarId.TOP, 10)
    assert months(window) == (date(2023, 11, 1), date(2023, 12, 1))
    assert window.is_year_option_disabled(CalendarId.TOP, 2024)
    assert window.is_year_option_disabled(CalendarId.BOTTOM, 2024)
    assert not window.is_year_option_disabled(CalendarId.TOP, 2023)
    assert window.is_year_option_disabled(CalendarId.TOP, 1899)


def test_year_option_disabled_before_earliest_month(window):
    window.set_month(CalendarId.BOTTOM, 0)
    assert months(window) == (date(2023, 12, 1), date(2024, 1, 1))
    assert window.is_year_option_disabled(CalendarId.BOTTOM, 1900)
    assert not window.is_year_option_disabled(CalendarId.BOTTOM, 1901)
    assert window.set_year(CalendarId.BOTTOM, 1900) is False
    assert months(window) == (date(2023, 12, 1), date(2024, 1, 1))


def test_prev_month_stops_at_earliest_month(window):
    assert window.can_go_prev()
    assert window.set_year(CalendarId.TOP, 1900)
    assert window.set_month(CalendarId.TOP, 0)
    assert months(window) == (date(1900, 1, 1), date(1900, 2, 1))
    assert not window.can_go_prev()
    assert window.prev_month(CalendarId.TOP) is False
    assert window.prev_month(CalendarId.BOTTOM) is False
    assert months(window) == (date(1900, 1, 1), date(1900, 2, 1))
    assert window.invariant_holds()
    assert window.next_month()
    assert window.can_go_prev()


@pytest.mark.parametrize("year, expected_end", [
    (2024, 2024),
    (2013, 2024),
    (2012, 2012),
    (2005, 2005),
    (1905, 1911),
])
def test_reset_year_page_contains_displayed_year(window, year, expected_end):
    window.set_year(CalendarId.TOP, year)
    assert window.reset_year_page(CalendarId.TOP) == expected_end
    assert year in window.year_page(CalendarId.TOP)


def test_year_paging(window):
    assert window.year_page(CalendarId.TOP) == list(range(2013, 2025))
    assert window.scroll_year_page(CalendarId.TOP, 1) == 2024
    assert window.scroll_year_page(CalendarId.TOP, -1) == 2012
    for _ in range(20):
        window.scroll_year_page(CalendarId.TOP, -1)
    assert window.year_page_end(CalendarId.TOP) == MIN_YEAR_PAGE_END
    assert window.year_page_end(CalendarId.BOTTOM) == 2024
    window.reset_year_page(CalendarId.TOP)
    assert window.year_page_end(CalendarId.TOP) == 2024


def test_invariant_holds_after_any_navigation(window):
    steps = [
        lambda w: w.prev_month(),
        lambda w: w.set_month(CalendarId.TOP, 11),
        lambda w: w.set_year(CalendarId.BOTTOM, 2010),
        lambda w: w.next_month(),
        lambda w: w.position_at_end(date(2030, 1, 1)),
        lambda w: w.set_month(CalendarId.BOTTOM, 11),
        lambda w: w.recenter_for_active_field(ActiveField.START, DateRange(date(2020, 2, 29), date(2020, 3, 1))),
    ]
    for step in steps:
        step(window)
        assert window.invariant_holds()
