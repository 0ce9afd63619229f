#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
日期范围选择状态机 - 协调已应用的值、草稿、当前编辑端点以及 "弹性" 点选规则。

状态: closed / menu_open / panel_open。
所有操作都是同步完成的; 违反不变量的请求被定义为无操作 (返回 False)
或校验标志, 从不抛出异常。信号只在一次转换完全结束后才发出,
观察者不会看到草稿与日历窗口不一致的中间状态。
"""

import logging
from collections import namedtuple
from contextlib import contextmanager
from datetime import date
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from daterange_picker.config.picker_config_manager import PickerConfig
from daterange_picker.core.calendar_window import CalendarWindow
from daterange_picker.core.editing_session import EditingSession
from daterange_picker.core.preset_catalog import PresetCatalog
from daterange_picker.core import validation
from daterange_picker.models import (
    ActiveField, CalendarId, ClearPolicy, DateRange, DisplayMode, OpenMode,
    PickerState, PickPolicy, PresetKey,
)
from daterange_picker.utils.date_utils import add_days, is_same_day, normalize

_Snapshot = namedtuple(
    "_Snapshot",
    "state applied draft active_field top bottom show_validation display_mode preset_key",
)


def _normalize_range(r: Optional[DateRange]) -> DateRange:
    if r is None:
        return DateRange.empty()
    return DateRange(
        normalize(r.start) if r.start is not None else None,
        normalize(r.end) if r.end is not None else None,
    )


class RangeSelectionEngine(QObject):
    """
    日期范围选择器的核心状态机。

    宿主通过 value / set_value() 提供已应用的值, 并监听 value_changed;
    value_changed 只在成功 Apply 或直接应用菜单预设时发出, 且总是完整的范围。
    """

    value_changed = Signal(object)       # DateRange, 仅在提交时发出
    applied_changed = Signal(object)     # DateRange, 包括宿主的 set_value
    draft_changed = Signal(object)       # DateRange
    active_field_changed = Signal(str)
    window_changed = Signal(object, object)  # top_month, bottom_month
    state_changed = Signal(str)
    validation_changed = Signal(bool)
    display_mode_changed = Signal(str)

    def __init__(self, value: Optional[DateRange] = None, config: Optional[PickerConfig] = None,
                 preset_catalog: Optional[PresetCatalog] = None,
                 today_provider: Callable[[], date] = date.today,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self.logger = logging.getLogger(__name__)
        self._config = config if config is not None else PickerConfig()
        self._catalog = preset_catalog if preset_catalog is not None else PresetCatalog()
        self._today_provider = today_provider
        self._today = normalize(today_provider())

        self._state = PickerState.CLOSED
        self._session: Optional[EditingSession] = None
        self._initialized = False
        self._pending_value: Optional[DateRange] = None

        applied = _normalize_range(value)
        if not applied.is_ordered:
            self.logger.warning(f"Ignoring inverted initial value: {applied}")
            applied = DateRange.empty()
        self._applied = applied
        self._applied_display_mode = DisplayMode.CUSTOM
        self._applied_preset_key: Optional[PresetKey] = None
        self._derive_applied_provenance()

        self._idle_window = CalendarWindow(self._today)
        self._idle_window.position_at(self._applied.start)
        self.logger.debug(f"RangeSelectionEngine initialized. applied={self._applied}, premium={self._config.is_premium}")

    # ------------------------------------------------------------------
    # 只读状态
    # ------------------------------------------------------------------

    @property
    def config(self) -> PickerConfig:
        return self._config

    @property
    def catalog(self) -> PresetCatalog:
        return self._catalog

    @property
    def today(self) -> date:
        return self._today

    @property
    def state(self) -> PickerState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == PickerState.PANEL_OPEN

    @property
    def is_menu_open(self) -> bool:
        return self._state == PickerState.MENU_OPEN

    @property
    def session(self) -> Optional[EditingSession]:
        return self._session

    @property
    def applied(self) -> DateRange:
        return self._applied

    @property
    def value(self) -> DateRange:
        return self._applied

    @property
    def applied_display_mode(self) -> DisplayMode:
        return self._applied_display_mode

    @property
    def applied_preset_key(self) -> Optional[PresetKey]:
        return self._applied_preset_key

    @property
    def draft(self) -> DateRange:
        """面板关闭时草稿就是已应用的值。"""
        return self._session.draft if self._session else self._applied

    @property
    def active_field(self) -> ActiveField:
        return self._session.active_field if self._session else ActiveField.START

    @property
    def show_validation(self) -> bool:
        return self._session.show_validation if self._session else False

    @property
    def draft_mode(self) -> DisplayMode:
        return self._session.draft_mode if self._session else self._applied_display_mode

    @property
    def draft_preset_key(self) -> Optional[PresetKey]:
        return self._session.draft_preset_key if self._session else self._applied_preset_key

    @property
    def window(self) -> CalendarWindow:
        return self._session.window if self._session else self._idle_window

    @property
    def active_preset_key(self) -> Optional[PresetKey]:
        """
        预设列表中应高亮的项: 面板打开时按草稿的来源, 否则按已应用值的来源。
        普通用户没有预设列表, 总是 None。
        """
        if not self._config.is_premium:
            return None
        if self.draft_mode == DisplayMode.PRESET and self.draft_preset_key:
            return self.draft_preset_key
        return PresetKey.CUSTOM if self.draft.is_complete else None

    def is_applied_custom(self) -> bool:
        return self._applied.is_complete and self._applied_preset_key is None

    # --- 校验派生值 ---

    def validation_result(self) -> validation.ValidationResult:
        return validation.validate(self.draft, self._config.range_limit)

    def can_apply(self) -> bool:
        return validation.can_apply(self.draft, self._config.range_limit)

    def range_too_large(self) -> bool:
        return validation.is_range_too_large(self.draft, self._config.range_limit)

    def range_too_large_message(self) -> str:
        return validation.range_too_large_message(self.draft, self._config.range_limit)

    # --- 日期格子查询 ---

    def is_cell_disabled(self, d: date) -> bool:
        """不能选择未来的日期。"""
        return normalize(d) > self._today

    def in_range(self, d: date) -> bool:
        r = self.draft
        if not r.is_complete:
            return False
        n = normalize(d)
        return r.start <= n <= r.end

    def is_start(self, d: date) -> bool:
        s = self.draft.start
        return s is not None and is_same_day(s, d)

    def is_end(self, d: date) -> bool:
        e = self.draft.end
        return e is not None and is_same_day(e, d)

    def is_today(self, d: date) -> bool:
        return is_same_day(d, self._today)

    # ------------------------------------------------------------------
    # 转换辅助
    # ------------------------------------------------------------------

    def _snapshot(self) -> _Snapshot:
        w = self.window
        return _Snapshot(
            self._state, self._applied, self.draft, self.active_field,
            w.top_month, w.bottom_month, self.show_validation,
            self._applied_display_mode, self._applied_preset_key,
        )

    @contextmanager
    def _transition(self, name: str):
        """执行一次状态转换, 结束后统一发出变化的信号。"""
        before = self._snapshot()
        yield
        after = self._snapshot()
        if (before.top, before.bottom) != (after.top, after.bottom):
            # 年份选择器跟随显示的月份翻页
            self.window.reset_year_pages()
        self.logger.debug(f"{name}: state={after.state.value}, draft={after.draft}, active={after.active_field.value}")
        self._publish(before, after)

    def _publish(self, before: _Snapshot, after: _Snapshot):
        if before.state != after.state:
            self.state_changed.emit(after.state.value)
        if before.applied != after.applied:
            self.applied_changed.emit(after.applied)
        if (before.display_mode, before.preset_key) != (after.display_mode, after.preset_key):
            self.display_mode_changed.emit(after.display_mode.value)
        if before.draft != after.draft:
            self.draft_changed.emit(after.draft)
        if before.active_field != after.active_field:
            self.active_field_changed.emit(after.active_field.value)
        if (before.top, before.bottom) != (after.top, after.bottom):
            self.window_changed.emit(after.top, after.bottom)
        if before.show_validation != after.show_validation:
            self.validation_changed.emit(after.show_validation)
        if self._pending_value is not None:
            emitted, self._pending_value = self._pending_value, None
            self.logger.info(f"Emitting applied value: {emitted}")
            self.value_changed.emit(emitted)

    def _derive_applied_provenance(self):
        """根据预设匹配推断已应用值的显示方式 (仅高级用户)。"""
        detected = self._catalog.detect_applied_key(self._applied, self._today) if self._config.is_premium else None
        if detected is not None:
            self._applied_display_mode = DisplayMode.PRESET
            self._applied_preset_key = detected
        else:
            self._applied_display_mode = DisplayMode.CUSTOM
            self._applied_preset_key = None

    def _refresh_today(self):
        self._today = normalize(self._today_provider())

    def _close(self):
        """销毁会话并把空闲日历定位到已应用的开始日。"""
        self._session = None
        self._state = PickerState.CLOSED
        self._idle_window = CalendarWindow(self._today)
        self._idle_window.position_at(self._applied.start)

    def _start_session(self, draft: DateRange, draft_mode: DisplayMode = DisplayMode.CUSTOM,
                       draft_preset_key: Optional[PresetKey] = None):
        # 同一时间最多只有一个会话
        self._session = None
        self._refresh_today()
        self._session = EditingSession.open(self._today, draft, draft_mode, draft_preset_key)
        self._session.window.reset_year_pages()
        self._state = PickerState.PANEL_OPEN

    def _commit(self, r: DateRange, preset_key: Optional[PresetKey]):
        self._applied = r
        if not self._config.track_provenance:
            self._derive_applied_provenance()
        elif self._config.is_premium and preset_key is not None:
            self._applied_display_mode = DisplayMode.PRESET
            self._applied_preset_key = preset_key
        else:
            self._applied_display_mode = DisplayMode.CUSTOM
            self._applied_preset_key = None
        self._pending_value = r
        self._close()

    def _clamp_end_for_start(self, start: date) -> date:
        nxt = add_days(start, 1)
        return self._today if nxt > self._today else nxt

    # ------------------------------------------------------------------
    # 宿主接口
    # ------------------------------------------------------------------

    def initialize(self) -> bool:
        """
        应用初始预设 (只执行一次)。

        仅当是高级用户、配置了 initial_preset 并且已应用的值为空时才会提交预设并发出 value_changed。
        """
        if self._initialized:
            return False
        self._initialized = True
        preset = self._config.initial_preset
        if not (self._config.is_premium and preset and preset != PresetKey.CUSTOM and self._applied.is_empty):
            return False
        with self._transition("initialize"):
            self._commit(self._catalog.resolve(preset, self._today), PresetKey(preset))
        return True

    def set_value(self, r: Optional[DateRange]) -> bool:
        """
        宿主驱动的重新同步: 直接替换已应用的值, 不与正在编辑的草稿合并。
        起止颠倒的值会被拒绝。
        """
        r = _normalize_range(r)
        if not r.is_ordered:
            self.logger.warning(f"Rejected host value with start after end: {r}")
            return False
        with self._transition("set_value"):
            self._applied = r
            self._derive_applied_provenance()
            if self._session is None:
                self._idle_window.position_at(r.start)
        return True

    def dismiss(self) -> bool:
        """指针在控件外部活动: 关闭菜单, 取消面板中的编辑。"""
        if self._state == PickerState.CLOSED:
            return False
        return self.cancel()

    # ------------------------------------------------------------------
    # 触发按钮 / 菜单
    # ------------------------------------------------------------------

    def toggle(self) -> PickerState:
        """点击触发按钮。"""
        if self._state == PickerState.PANEL_OPEN:
            self.cancel()
        elif self._state == PickerState.MENU_OPEN:
            self.close_menu()
        elif not self._config.menu_first:
            self.open_for_edit()
        elif self._config.open_custom_directly_when_applied_custom and self.is_applied_custom():
            self.open_for_edit()
        else:
            self.open_menu()
        return self._state

    def open_menu(self) -> bool:
        if not self._config.is_premium or self._state != PickerState.CLOSED:
            return False
        with self._transition("open_menu"):
            self._state = PickerState.MENU_OPEN
        return True

    def close_menu(self) -> bool:
        if self._state != PickerState.MENU_OPEN:
            return False
        with self._transition("close_menu"):
            self._state = PickerState.CLOSED
        return True

    def apply_preset_from_menu(self, key: PresetKey) -> bool:
        """从菜单直接应用预设 (不经过日历)。CUSTOM 打开自定义面板。"""
        if not self._config.is_premium:
            return False
        key = PresetKey(key)
        if key == PresetKey.CUSTOM:
            return self.open_custom_from_menu()
        with self._transition("apply_preset_from_menu"):
            self._refresh_today()
            self._commit(self._catalog.resolve(key, self._today), key)
        return True

    def open_custom_from_menu(self) -> bool:
        """
        菜单中的 "Custom": 已应用的值来自预设或不完整时, 以空草稿打开 (不显示校验);
        否则载入已应用的自定义范围。
        """
        if not self._config.is_premium:
            return False
        with self._transition("open_custom_from_menu"):
            if self._applied_preset_key is not None or not self._applied.is_complete:
                self._start_session(DateRange.empty())
            else:
                self._start_session(self._applied)
        return True

    # ------------------------------------------------------------------
    # 面板
    # ------------------------------------------------------------------

    def open_for_edit(self) -> bool:
        """打开面板: 复制已应用的值到草稿, 编辑开始日, 清除校验提示。"""
        with self._transition("open_for_edit"):
            self._start_session(self._applied, self._applied_display_mode, self._applied_preset_key)
        return True

    def cancel(self) -> bool:
        """丢弃草稿, 关闭面板/菜单。不会发出 value_changed。"""
        if self._state == PickerState.CLOSED:
            return False
        with self._transition("cancel"):
            self._close()
        return True

    def close_panel(self) -> bool:
        return self.cancel()

    def select_preset(self, key: PresetKey) -> bool:
        """
        在面板中选择预设: 只修改草稿, 需要 Apply 才会提交。
        CUSTOM 会把草稿设为本月初到今天。
        """
        if self._session is None or not self._config.is_premium:
            return False
        key = PresetKey(key)
        with self._transition("select_preset"):
            s = self._session
            r = self._catalog.resolve(key, self._today)
            s.draft = r
            s.active_field = ActiveField.START
            s.show_validation = False
            if key == PresetKey.CUSTOM:
                s.mark_custom()
            else:
                s.mark_preset(key)
            s.window.position_at_start(r.start)
        return True

    def set_active_field(self, field: ActiveField) -> bool:
        """用户直接聚焦开始/结束输入框。"""
        if self._session is None:
            return False
        field = ActiveField(field)
        with self._transition("set_active_field"):
            self._session.active_field = field
            self._session.window.recenter_for_active_field(field, self._session.draft)
        return True

    def pick_date(self, d: date) -> bool:
        """
        点选某一天 ("弹性" 规则)。

        - 草稿为空: 设为开始日, 接着编辑结束日
        - 只有开始日: 不早于开始日则设为结束日并切回开始日; 否则以该日重新开始
        - 完整范围: 按当前编辑的端点修改, 超出范围时重新开始
        重新开始时结束日自动设为次日 (不超过今天)。未来的日期直接忽略。
        """
        if self._session is None:
            return False
        n = normalize(d)
        if self.is_cell_disabled(n):
            self.logger.debug(f"{validation.ValidationIssue.FUTURE_DATE_REJECTED.value}: {n.isoformat()}")
            return False

        with self._transition("pick_date"):
            s = self._session
            if s.draft_mode == DisplayMode.PRESET:
                s.mark_custom()

            if self._config.pick_policy == PickPolicy.EXTEND:
                draft, field = self._pick_extend(s.draft, s.active_field, n)
            else:
                draft, field = self._pick_pivot(s.draft, s.active_field, n)
            s.draft = draft
            s.active_field = field
            if draft.is_complete:
                s.show_validation = False
        return True

    def _restart(self, n: date):
        return DateRange(n, self._clamp_end_for_start(n)), ActiveField.END

    def _pick_pivot(self, r: DateRange, field: ActiveField, n: date):
        if r.is_empty:
            return DateRange(n, None), ActiveField.END

        if r.end is None:
            if n >= r.start:
                return DateRange(r.start, n), ActiveField.START
            return self._restart(n)

        if r.start is None:
            # 只有结束日 (来自宿主的不完整值)
            if n <= r.end:
                return DateRange(n, r.end), ActiveField.START
            return self._restart(n)

        if field == ActiveField.START:
            if n > r.end:
                return self._restart(n)
            return DateRange(n, r.end), ActiveField.END

        if n >= r.start:
            return DateRange(r.start, n), ActiveField.START
        return self._restart(n)

    def _pick_extend(self, r: DateRange, field: ActiveField, n: date):
        if r.is_empty:
            return DateRange(n, None), ActiveField.END

        if r.end is None:
            if n < r.start:
                return DateRange(n, r.start), ActiveField.START
            return DateRange(r.start, n), ActiveField.START

        if r.start is None:
            if n <= r.end:
                return DateRange(n, r.end), ActiveField.START
            return DateRange(r.end, n), ActiveField.START

        if field == ActiveField.START:
            if n > r.end:
                return DateRange(r.start, n), ActiveField.END
            return DateRange(n, r.end), ActiveField.START

        if n < r.start:
            return DateRange(n, r.end), ActiveField.START
        return DateRange(r.start, n), ActiveField.END

    def clear(self) -> bool:
        """
        "Clear dates"。

        DISCARD_TO_APPLIED: 草稿恢复为已应用的值并恢复其来源, 面板保持打开。
        HARD_CLEAR: 草稿清空并显示校验提示; 配置了 close_on_hard_clear 时关闭面板。
        """
        if self._session is None:
            return False
        with self._transition("clear"):
            s = self._session
            s.active_field = ActiveField.START
            if self._config.clear_policy == ClearPolicy.DISCARD_TO_APPLIED:
                s.draft = self._applied
                if self._applied_display_mode == DisplayMode.PRESET and self._applied_preset_key:
                    s.mark_preset(self._applied_preset_key)
                else:
                    s.mark_custom()
                s.show_validation = False
                s.window.position_at(self._applied.start)
            else:
                s.draft = DateRange.empty()
                s.mark_custom()
                s.show_validation = True
                s.window.open_fresh()
                if self._config.close_on_hard_clear:
                    self._close()
        return True

    def apply(self) -> bool:
        """
        提交草稿。草稿不完整或超过最大范围时只显示校验提示。
        只有明确选择了预设且之后没有手动修改时, 才以预设名称显示。
        """
        if self._session is None:
            return False
        if not self.can_apply():
            with self._transition("apply_rejected"):
                self._session.show_validation = True
            self.logger.debug(f"Apply rejected: {[i.value for i in self.validation_result().issues]}")
            return False

        s = self._session
        preset_key = s.draft_preset_key if s.draft_mode == DisplayMode.PRESET else None
        with self._transition("apply"):
            self._commit(s.draft, preset_key)
        return True

    # ------------------------------------------------------------------
    # 日历导航
    # ------------------------------------------------------------------

    def _navigate(self, name: str, op: Callable[[CalendarWindow], bool]) -> bool:
        with self._transition(name):
            changed = op(self.window)
        return changed

    def prev_month(self, which: CalendarId = CalendarId.BOTTOM) -> bool:
        return self._navigate("prev_month", lambda w: w.prev_month(which))

    def next_month(self, which: CalendarId = CalendarId.BOTTOM) -> bool:
        return self._navigate("next_month", lambda w: w.next_month(which))

    def set_month(self, which: CalendarId, month_idx: int) -> bool:
        return self._navigate("set_month", lambda w: w.set_month(which, month_idx))

    def set_year(self, which: CalendarId, year: int) -> bool:
        return self._navigate("set_year", lambda w: w.set_year(which, year))

    def can_go_next(self, which: CalendarId = CalendarId.BOTTOM) -> bool:
        return self.window.can_go_next(which)

    def can_go_prev(self, which: CalendarId = CalendarId.TOP) -> bool:
        return self.window.can_go_prev(which)

    def is_future_month(self, which: CalendarId, month_idx: int, year: int) -> bool:
        return self.window.is_future_month(which, month_idx, year)
