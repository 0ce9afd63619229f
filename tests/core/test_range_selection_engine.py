import pytest
from datetime import date, datetime

from daterange_picker.config.picker_config_manager import PickerConfig
from daterange_picker.models import (
    ActiveField, CalendarId, ClearPolicy, DateRange, DisplayMode, OpenMode, PickerState,
    PickPolicy, PresetKey,
)

LAST7 = DateRange(date(2024, 6, 9), date(2024, 6, 15))
LAST30 = DateRange(date(2024, 5, 17), date(2024, 6, 15))
LAST90 = DateRange(date(2024, 3, 18), date(2024, 6, 15))


def window_months(engine):
    return engine.window.top_month, engine.window.bottom_month


# ---- 初始化与宿主接口 ----

def test_initial_preset_applied_once_for_empty_premium_value(make_engine, qtbot):
    engine = make_engine()
    with qtbot.waitSignal(engine.value_changed, timeout=1000) as blocker:
        assert engine.initialize()
    assert blocker.args == [LAST90]
    assert engine.applied == LAST90
    assert engine.applied_display_mode == DisplayMode.PRESET
    assert engine.applied_preset_key == PresetKey.LAST90
    assert engine.state == PickerState.CLOSED
    assert engine.initialize() is False


def test_initial_preset_skipped_for_standard_or_existing_value(make_engine, custom_range, qtbot):
    standard = make_engine(config=PickerConfig.standard())
    with qtbot.assertNotEmitted(standard.value_changed):
        assert standard.initialize() is False
    assert standard.applied.is_empty

    premium = make_engine(value=custom_range)
    assert premium.initialize() is False
    assert premium.applied == custom_range


def test_existing_value_matching_preset_displays_as_preset(make_engine):
    engine = make_engine(value=LAST7)
    assert engine.applied_display_mode == DisplayMode.PRESET
    assert engine.applied_preset_key == PresetKey.LAST7


def test_inverted_initial_value_is_ignored(make_engine):
    engine = make_engine(value=DateRange(date(2024, 6, 10), date(2024, 6, 1)))
    assert engine.applied.is_empty


def test_set_value_resyncs_without_touching_draft(make_engine, custom_range, qtbot):
    engine = make_engine(value=custom_range)
    engine.open_for_edit()
    engine.pick_date(date(2024, 6, 3))
    draft = engine.draft
    with qtbot.waitSignal(engine.applied_changed, timeout=1000):
        assert engine.set_value(LAST30)
    assert engine.applied == LAST30
    assert engine.applied_preset_key == PresetKey.LAST30
    assert engine.draft == draft
    assert engine.is_open


def test_set_value_rejects_inverted_range(make_engine, custom_range):
    engine = make_engine(value=custom_range)
    assert engine.set_value(DateRange(date(2024, 6, 10), date(2024, 6, 1))) is False
    assert engine.applied == custom_range


def test_set_value_accepts_datetimes(make_engine):
    engine = make_engine(initial_preset=None)
    engine.set_value(DateRange(datetime(2024, 1, 5, 13, 30), datetime(2024, 1, 20, 8)))
    assert engine.applied == DateRange(date(2024, 1, 5), date(2024, 1, 20))
    assert window_months(engine) == (date(2024, 1, 1), date(2024, 2, 1))


# ---- 打开 / 点选 ----

def test_open_for_edit_copies_applied(make_engine, qtbot):
    engine = make_engine(value=DateRange(date(2024, 1, 5), date(2024, 1, 20)))
    with qtbot.waitSignal(engine.state_changed, timeout=1000) as blocker:
        assert engine.open_for_edit()
    assert blocker.args == ["panel_open"]
    assert engine.draft == engine.applied
    assert engine.active_field == ActiveField.START
    assert not engine.show_validation
    assert window_months(engine) == (date(2024, 1, 1), date(2024, 2, 1))


def test_open_with_empty_value_opens_fresh(make_engine):
    engine = make_engine(config=PickerConfig.standard())
    engine.open_for_edit()
    assert engine.draft.is_empty
    assert window_months(engine) == (date(2024, 5, 1), date(2024, 6, 1))


def test_pick_from_empty_then_before_start(make_engine):
    engine = make_engine(config=PickerConfig.standard())
    engine.open_for_edit()

    assert engine.pick_date(date(2024, 6, 10))
    assert engine.draft == DateRange(date(2024, 6, 10), None)
    assert engine.active_field == ActiveField.END

    engine.pick_date(date(2024, 6, 5))
    assert engine.draft == DateRange(date(2024, 6, 5), date(2024, 6, 6))
    assert engine.active_field == ActiveField.END


def test_pick_end_then_pivots_back_to_start(make_engine):
    engine = make_engine(config=PickerConfig.standard())
    engine.open_for_edit()
    engine.pick_date(date(2024, 6, 2))
    engine.pick_date(date(2024, 6, 8))
    assert engine.draft == DateRange(date(2024, 6, 2), date(2024, 6, 8))
    assert engine.active_field == ActiveField.START


def test_pick_before_start_while_editing_end_restarts(make_engine, custom_range):
    engine = make_engine(value=custom_range)
    engine.open_for_edit()
    engine.set_active_field(ActiveField.END)
    engine.pick_date(date(2024, 5, 20))
    assert engine.draft == DateRange(date(2024, 5, 20), date(2024, 5, 21))
    assert engine.active_field == ActiveField.END


def test_pick_inside_range_alternates_fields(make_engine, custom_range):
    engine = make_engine(value=custom_range)
    engine.open_for_edit()
    engine.pick_date(date(2024, 6, 3))
    assert engine.draft == DateRange(date(2024, 6, 3), date(2024, 6, 10))
    assert engine.active_field == ActiveField.END
    engine.pick_date(date(2024, 6, 12))
    assert engine.draft == DateRange(date(2024, 6, 3), date(2024, 6, 12))
    assert engine.active_field == ActiveField.START


def test_restart_end_is_clamped_to_today(make_engine, custom_range):
    engine = make_engine(value=custom_range)
    engine.open_for_edit()
    engine.pick_date(date(2024, 6, 15))
    assert engine.draft == DateRange(date(2024, 6, 15), date(2024, 6, 15))
    assert engine.active_field == ActiveField.END


def test_future_dates_and_closed_panel_are_ignored(make_engine, custom_range, qtbot):
    engine = make_engine(value=custom_range)
    assert engine.pick_date(date(2024, 6, 3)) is False
    engine.open_for_edit()
    with qtbot.assertNotEmitted(engine.draft_changed):
        assert engine.pick_date(date(2024, 6, 16)) is False
    assert engine.draft == custom_range
    assert engine.is_cell_disabled(date(2024, 6, 16))
    assert not engine.is_cell_disabled(date(2024, 6, 15))


def test_host_value_with_only_end(make_engine):
    engine = make_engine(config=PickerConfig.standard(), value=DateRange(None, date(2024, 6, 10)))
    engine.open_for_edit()
    engine.pick_date(date(2024, 6, 4))
    assert engine.draft == DateRange(date(2024, 6, 4), date(2024, 6, 10))
    assert engine.active_field == ActiveField.START


def test_picks_never_produce_inverted_range(make_engine):
    engine = make_engine(config=PickerConfig.standard())
    engine.open_for_edit()
    days = [date(2024, 6, 10), date(2024, 3, 1), date(2024, 6, 14), date(2024, 1, 31),
            date(2024, 5, 5), date(2024, 5, 4), date(2024, 6, 15), date(2023, 12, 25)]
    for i, d in enumerate(days * 3):
        if i % 4 == 3:
            engine.set_active_field(ActiveField.END if i % 8 == 3 else ActiveField.START)
        engine.pick_date(d)
        assert engine.draft.is_ordered
        assert engine.window.invariant_holds()


def test_extend_policy_moves_nearest_endpoint(make_engine, custom_range):
    engine = make_engine(value=custom_range, pick_policy=PickPolicy.EXTEND)
    engine.open_for_edit()
    engine.set_active_field(ActiveField.END)
    engine.pick_date(date(2024, 5, 20))
    assert engine.draft == DateRange(date(2024, 5, 20), date(2024, 6, 10))
    assert engine.active_field == ActiveField.START


def test_cell_queries(make_engine, custom_range):
    engine = make_engine(value=custom_range)
    assert engine.in_range(date(2024, 6, 5))
    assert not engine.in_range(date(2024, 6, 11))
    assert engine.is_start(date(2024, 6, 1))
    assert engine.is_end(date(2024, 6, 10))
    assert engine.is_today(date(2024, 6, 15))


# ---- 预设 ----

def test_select_preset_is_provisional(make_engine, custom_range, qtbot):
    engine = make_engine(value=custom_range)
    engine.open_for_edit()
    with qtbot.assertNotEmitted(engine.value_changed):
        assert engine.select_preset(PresetKey.THIS_YEAR)
    assert engine.draft == DateRange(date(2024, 1, 1), date(2024, 6, 15))
    assert engine.draft_mode == DisplayMode.PRESET
    assert engine.active_preset_key == PresetKey.THIS_YEAR
    assert engine.applied == custom_range
    assert window_months(engine) == (date(2024, 1, 1), date(2024, 2, 1))


def test_observers_see_consistent_draft_and_window(make_engine, custom_range):
    engine = make_engine(value=custom_range)
    engine.open_for_edit()
    seen = []
    engine.draft_changed.connect(lambda r: seen.append((r, window_months(engine))))
    engine.select_preset(PresetKey.THIS_YEAR)
    assert seen == [(DateRange(date(2024, 1, 1), date(2024, 6, 15)), (date(2024, 1, 1), date(2024, 2, 1)))]


def test_select_custom_preset_uses_month_to_date(make_engine):
    engine = make_engine(value=LAST7)
    engine.open_for_edit()
    engine.select_preset(PresetKey.CUSTOM)
    assert engine.draft == DateRange(date(2024, 6, 1), date(2024, 6, 15))
    assert engine.draft_mode == DisplayMode.CUSTOM
    assert engine.active_preset_key == PresetKey.CUSTOM


def test_manual_pick_disowns_preset(make_engine):
    engine = make_engine(value=LAST7)
    engine.open_for_edit()
    assert engine.draft_mode == DisplayMode.PRESET
    engine.pick_date(date(2024, 6, 9))
    assert engine.draft_mode == DisplayMode.CUSTOM
    assert engine.draft_preset_key is None


def test_standard_users_have_no_presets(make_engine):
    engine = make_engine(config=PickerConfig.standard())
    engine.open_for_edit()
    assert engine.select_preset(PresetKey.LAST7) is False
    assert engine.apply_preset_from_menu(PresetKey.LAST7) is False
    assert engine.active_preset_key is None
    engine.cancel()
    assert engine.open_menu() is False


# ---- Apply / Cancel / Clear ----

def test_apply_preset_commits_with_preset_display(make_engine, custom_range, qtbot):
    engine = make_engine(value=custom_range)
    engine.open_for_edit()
    engine.select_preset(PresetKey.LAST30)
    with qtbot.waitSignal(engine.value_changed, timeout=1000) as blocker:
        assert engine.apply()
    assert blocker.args == [LAST30]
    assert engine.applied == LAST30
    assert engine.applied_display_mode == DisplayMode.PRESET
    assert engine.applied_preset_key == PresetKey.LAST30
    assert engine.state == PickerState.CLOSED
    assert engine.session is None


def test_hand_picked_range_matching_preset_stays_custom(make_engine):
    engine = make_engine(initial_preset=None)
    engine.open_for_edit()
    engine.pick_date(date(2024, 6, 9))
    engine.pick_date(date(2024, 6, 15))
    assert engine.apply()
    assert engine.applied == LAST7
    assert engine.applied_display_mode == DisplayMode.CUSTOM
    assert engine.applied_preset_key is None


def test_without_provenance_tracking_display_follows_detection(make_engine):
    engine = make_engine(initial_preset=None, track_provenance=False)
    engine.open_for_edit()
    engine.pick_date(date(2024, 6, 9))
    engine.pick_date(date(2024, 6, 15))
    engine.apply()
    assert engine.applied_display_mode == DisplayMode.PRESET
    assert engine.applied_preset_key == PresetKey.LAST7


def test_apply_incomplete_raises_validation(make_engine, qtbot):
    engine = make_engine(config=PickerConfig.standard())
    engine.open_for_edit()
    with qtbot.assertNotEmitted(engine.value_changed):
        with qtbot.waitSignal(engine.validation_changed, timeout=1000) as blocker:
            assert engine.apply() is False
    assert blocker.args == [True]
    assert engine.show_validation
    assert engine.is_open

    engine.pick_date(date(2024, 6, 1))
    assert engine.show_validation
    engine.pick_date(date(2024, 6, 2))
    assert not engine.show_validation


def test_apply_rejects_range_over_day_limit(make_engine):
    engine = make_engine(config=PickerConfig.standard(max_range_days=30))
    engine.open_for_edit()
    engine.pick_date(date(2024, 1, 1))
    engine.pick_date(date(2024, 2, 15))
    assert engine.range_too_large()
    assert not engine.can_apply()
    assert engine.range_too_large_message() == "Please select a date range that does not exceed 30 days."
    assert engine.apply() is False
    assert engine.show_validation


def test_apply_unchanged_draft_reemits_same_value(make_engine, qtbot):
    engine = make_engine(value=DateRange(date(2024, 2, 3), date(2024, 2, 20)))
    engine.open_for_edit()
    engine.prev_month()
    with qtbot.waitSignal(engine.value_changed, timeout=1000) as blocker:
        engine.apply()
    assert blocker.args == [DateRange(date(2024, 2, 3), date(2024, 2, 20))]
    assert window_months(engine) == (date(2024, 2, 1), date(2024, 3, 1))


def test_cancel_restores_applied(make_engine, custom_range, qtbot):
    engine = make_engine(value=custom_range)
    engine.open_for_edit()
    engine.pick_date(date(2024, 5, 1))
    engine.pick_date(date(2024, 5, 3))
    engine.clear()
    with qtbot.assertNotEmitted(engine.value_changed):
        assert engine.cancel()
    assert engine.draft == custom_range
    assert engine.applied == custom_range
    assert not engine.show_validation
    assert engine.state == PickerState.CLOSED
    assert engine.cancel() is False


def test_clear_discards_to_applied_and_restores_provenance(make_engine):
    engine = make_engine(value=LAST7)
    engine.open_for_edit()
    engine.pick_date(date(2024, 6, 1))
    assert engine.draft_mode == DisplayMode.CUSTOM
    assert engine.clear()
    assert engine.draft == LAST7
    assert engine.draft_mode == DisplayMode.PRESET
    assert engine.draft_preset_key == PresetKey.LAST7
    assert engine.active_field == ActiveField.START
    assert engine.is_open


def test_hard_clear_keeps_panel_open_when_configured(make_engine, custom_range):
    engine = make_engine(value=custom_range, clear_policy=ClearPolicy.HARD_CLEAR)
    engine.open_for_edit()
    engine.clear()
    assert engine.draft.is_empty
    assert engine.show_validation
    assert engine.is_open
    assert engine.applied == custom_range


def test_hard_clear_closes_for_standard_users(make_engine, custom_range, qtbot):
    engine = make_engine(value=custom_range, config=PickerConfig.standard())
    engine.open_for_edit()
    with qtbot.assertNotEmitted(engine.value_changed):
        engine.clear()
    assert engine.state == PickerState.CLOSED
    assert engine.applied == custom_range


# ---- 导航 / 活动端点 ----

def test_set_active_field_recenters_window(make_engine, qtbot):
    engine = make_engine(value=DateRange(date(2024, 1, 10), date(2024, 4, 20)))
    engine.open_for_edit()
    assert window_months(engine) == (date(2024, 1, 1), date(2024, 2, 1))
    with qtbot.waitSignal(engine.window_changed, timeout=1000) as blocker:
        engine.set_active_field(ActiveField.END)
    assert blocker.args == [date(2024, 3, 1), date(2024, 4, 1)]
    assert engine.active_field == ActiveField.END


def test_navigation_through_engine(make_engine, custom_range):
    engine = make_engine(value=custom_range)
    engine.open_for_edit()
    assert engine.next_month() is False
    assert engine.prev_month(CalendarId.TOP)
    assert engine.can_go_next()
    assert engine.set_month(CalendarId.BOTTOM, 6) is False
    assert engine.set_year(CalendarId.TOP, 2020)
    assert window_months(engine) == (date(2020, 4, 1), date(2020, 5, 1))
    assert engine.is_future_month(CalendarId.BOTTOM, 6, 2024)


def test_year_page_follows_displayed_months(make_engine):
    engine = make_engine(value=DateRange(date(2005, 3, 1), date(2005, 3, 20)))
    engine.open_for_edit()
    assert window_months(engine) == (date(2005, 3, 1), date(2005, 4, 1))
    assert engine.window.year_page(CalendarId.TOP) == list(range(1994, 2006))

    engine.window.scroll_year_page(CalendarId.TOP, -1)
    assert engine.window.year_page_end(CalendarId.TOP) == 1993
    assert engine.set_year(CalendarId.TOP, 2020)
    assert engine.window.year_page_end(CalendarId.TOP) == 2024

    engine.cancel()
    engine.open_for_edit()
    assert engine.window.year_page_end(CalendarId.TOP) == 2005


def test_navigation_stops_at_earliest_month(make_engine, custom_range):
    engine = make_engine(value=custom_range)
    engine.open_for_edit()
    assert engine.set_year(CalendarId.TOP, 1900)
    assert engine.set_month(CalendarId.TOP, 0)
    assert not engine.can_go_prev()
    assert engine.prev_month() is False
    assert engine.set_month(CalendarId.BOTTOM, 0) is False
    assert window_months(engine) == (date(1900, 1, 1), date(1900, 2, 1))


# ---- 菜单 ----

@pytest.fixture
def menu_engine(make_engine):
    engine = make_engine(open_mode=OpenMode.MENU_FIRST)
    engine.initialize()
    return engine


def test_menu_first_toggle_opens_menu_for_preset_value(menu_engine):
    assert menu_engine.toggle() == PickerState.MENU_OPEN
    assert menu_engine.toggle() == PickerState.CLOSED


def test_menu_preset_applies_immediately(menu_engine, qtbot):
    menu_engine.toggle()
    with qtbot.waitSignal(menu_engine.value_changed, timeout=1000) as blocker:
        assert menu_engine.apply_preset_from_menu(PresetKey.LAST7)
    assert blocker.args == [LAST7]
    assert menu_engine.state == PickerState.CLOSED
    assert menu_engine.applied_preset_key == PresetKey.LAST7


def test_menu_custom_opens_empty_panel_for_preset_value(menu_engine):
    menu_engine.toggle()
    assert menu_engine.apply_preset_from_menu(PresetKey.CUSTOM)
    assert menu_engine.is_open
    assert menu_engine.draft.is_empty
    assert not menu_engine.show_validation


def test_menu_first_opens_panel_directly_for_custom_value(menu_engine, custom_range):
    menu_engine.set_value(custom_range)
    assert menu_engine.is_applied_custom()
    assert menu_engine.toggle() == PickerState.PANEL_OPEN
    assert menu_engine.draft == custom_range
    menu_engine.cancel()
    menu_engine.open_menu()
    menu_engine.open_custom_from_menu()
    assert menu_engine.draft == custom_range


def test_dismiss(menu_engine):
    assert menu_engine.dismiss() is False
    menu_engine.open_menu()
    assert menu_engine.dismiss()
    assert menu_engine.state == PickerState.CLOSED
    menu_engine.open_for_edit()
    menu_engine.pick_date(date(2024, 6, 1))
    assert menu_engine.dismiss()
    assert menu_engine.draft == LAST90


def test_active_preset_key_follows_applied_when_closed(make_engine, custom_range):
    assert make_engine(value=custom_range).active_preset_key == PresetKey.CUSTOM
    assert make_engine(value=LAST30).active_preset_key == PresetKey.LAST30
    assert make_engine(initial_preset=None).active_preset_key is None
