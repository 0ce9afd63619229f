# daterange_picker/ui/viewmodels/date_range_picker_viewmodel.py
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from PySide6.QtCore import QObject, Signal as pyqtSignal, Slot as pyqtSlot

from daterange_picker.core import validation
from daterange_picker.core.preset_catalog import PresetItem
from daterange_picker.core.range_selection_engine import RangeSelectionEngine
from daterange_picker.models import ActiveField, CalendarId, DateRange, DisplayMode, PresetKey
from daterange_picker.utils.date_utils import (
    MONTH_NAMES, WEEKDAY_ABBREVIATIONS, format_mmddyyyy, format_range,
)

PLACEHOLDER_TEXT = "Select start and end dates"
CUSTOM_TRIGGER_LABEL = "Custom"


@dataclass(frozen=True)
class DayCell:
    """月历中的一个格子; 占位格子的 day 为 None。"""
    day: Optional[date]
    text: str = ""
    disabled: bool = True
    in_range: bool = False
    is_start: bool = False
    is_end: bool = False
    is_today: bool = False

    @property
    def is_placeholder(self) -> bool:
        return self.day is None


@dataclass(frozen=True)
class MonthOption:
    index: int
    name: str
    disabled: bool


@dataclass(frozen=True)
class YearOption:
    year: int
    disabled: bool


class DateRangePickerViewModel(QObject):
    """
    日期范围选择器的 ViewModel。

    把视图的操作转发给 RangeSelectionEngine, 并提供视图需要显示的派生值
    (每次读取时根据当前状态重新计算)。
    """

    # 任何需要重绘的变化
    state_changed = pyqtSignal()
    # 提交了新的值 (DateRange)
    value_committed = pyqtSignal(object)

    def __init__(self, engine: RangeSelectionEngine, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.logger = logging.getLogger(__name__)
        self._engine = engine
        self._connect_signals()
        self.logger.debug("DateRangePickerViewModel initialized.")

    def _connect_signals(self):
        e = self._engine
        for signal in (e.state_changed, e.applied_changed, e.draft_changed, e.active_field_changed,
                       e.window_changed, e.validation_changed, e.display_mode_changed):
            signal.connect(self._on_engine_changed)
        e.value_changed.connect(self.value_committed.emit)

    def _on_engine_changed(self, *args):
        self.state_changed.emit()

    @property
    def engine(self) -> RangeSelectionEngine:
        return self._engine

    @pyqtSlot()
    def load_initial_data(self):
        """应用初始预设 (如果需要)。应在视图连接好信号之后调用。"""
        self._engine.initialize()
        self.state_changed.emit()

    # --- 操作 ---

    @pyqtSlot()
    def toggle(self):
        self._engine.toggle()

    @pyqtSlot()
    def open_custom_from_menu(self):
        self._engine.open_custom_from_menu()

    @pyqtSlot(str)
    def apply_preset_from_menu(self, key: str):
        self._engine.apply_preset_from_menu(PresetKey(key))

    @pyqtSlot(str)
    def select_preset(self, key: str):
        self._engine.select_preset(PresetKey(key))

    @pyqtSlot(object)
    def pick_date(self, d: date):
        self._engine.pick_date(d)

    @pyqtSlot(str)
    def set_active_field(self, field: str):
        self._engine.set_active_field(ActiveField(field))

    @pyqtSlot()
    def clear(self):
        self._engine.clear()

    @pyqtSlot()
    def apply(self):
        self._engine.apply()

    @pyqtSlot()
    def cancel(self):
        self._engine.cancel()

    @pyqtSlot()
    def dismiss(self):
        self._engine.dismiss()

    @pyqtSlot(str)
    def prev_month(self, which: str):
        self._engine.prev_month(CalendarId(which))

    @pyqtSlot(str)
    def next_month(self, which: str):
        self._engine.next_month(CalendarId(which))

    @pyqtSlot(str, int)
    def set_month(self, which: str, month_idx: int):
        self._engine.set_month(CalendarId(which), month_idx)

    @pyqtSlot(str, int)
    def set_year(self, which: str, year: int):
        self._engine.set_year(CalendarId(which), year)

    @pyqtSlot(str, int)
    def scroll_year_page(self, which: str, direction: int):
        self._engine.window.scroll_year_page(CalendarId(which), direction)
        self.state_changed.emit()

    # --- 派生值: 触发按钮 ---

    @property
    def trigger_label(self) -> str:
        e = self._engine
        if e.config.menu_first and e.is_open:
            return CUSTOM_TRIGGER_LABEL
        applied = e.applied
        if not applied.is_complete:
            return ""
        if e.config.is_premium and e.applied_display_mode == DisplayMode.PRESET and e.applied_preset_key:
            return e.catalog.label(e.applied_preset_key)
        return format_range(applied)

    @property
    def placeholder_text(self) -> str:
        return "" if self._engine.applied.is_complete else PLACEHOLDER_TEXT

    @property
    def date_range_message(self) -> str:
        applied = self._engine.applied
        if not applied.is_complete:
            return ""
        return f"Current selection: {format_range(applied)}"

    @property
    def applied_error_message(self) -> str:
        return validation.applied_value_message(self._engine.applied)

    # --- 派生值: 面板 ---

    @property
    def is_open(self) -> bool:
        return self._engine.is_open

    @property
    def is_menu_open(self) -> bool:
        return self._engine.is_menu_open

    @property
    def active_field(self) -> str:
        return self._engine.active_field.value

    @property
    def start_field_text(self) -> str:
        return format_mmddyyyy(self._engine.draft.start)

    @property
    def end_field_text(self) -> str:
        return format_mmddyyyy(self._engine.draft.end)

    def _field_errors(self) -> dict:
        return validation.field_errors(self._engine.draft, self._engine.show_validation)

    @property
    def start_error(self) -> str:
        return self._field_errors()["start"]

    @property
    def end_error(self) -> str:
        return self._field_errors()["end"]

    @property
    def general_error(self) -> str:
        return self._field_errors()["general"]

    @property
    def range_too_large_message(self) -> str:
        return self._engine.range_too_large_message()

    @property
    def can_apply(self) -> bool:
        return self._engine.can_apply()

    @property
    def apply_tooltip_text(self) -> Optional[str]:
        """只对普通用户显示。"""
        if self._engine.config.is_premium:
            return None
        return validation.apply_tooltip(self._engine.draft)

    # --- 派生值: 预设 ---

    def menu_presets(self) -> List[PresetItem]:
        if not self._engine.config.is_premium:
            return []
        return self._engine.catalog.items()

    def visible_presets(self) -> List[PresetItem]:
        if not self._engine.config.is_premium:
            return []
        return self._engine.catalog.panel_items(is_premium=True)

    def is_preset_selected(self, key: str) -> bool:
        active = self._engine.active_preset_key
        return active is not None and active == PresetKey(key)

    # --- 派生值: 日历 ---

    @property
    def weekday_headers(self) -> List[str]:
        return list(WEEKDAY_ABBREVIATIONS)

    def month_label(self, which: str) -> str:
        return self._engine.window.label(CalendarId(which))

    def month_options(self, which: str) -> List[MonthOption]:
        w = self._engine.window
        year = w.year(CalendarId(which))
        return [MonthOption(i, name, w.is_future_month(CalendarId(which), i, year))
                for i, name in enumerate(MONTH_NAMES)]

    def year_options(self, which: str) -> List[YearOption]:
        """年份选择器当前一页 (12 年); 会被拒绝的年份标记为 disabled。"""
        w = self._engine.window
        return [YearOption(y, w.is_year_option_disabled(CalendarId(which), y))
                for y in w.year_page(CalendarId(which))]

    def year_page(self, which: str) -> List[int]:
        return self._engine.window.year_page(CalendarId(which))

    def current_month_index(self, which: str) -> int:
        return self._engine.window.month_index(CalendarId(which))

    def current_year(self, which: str) -> int:
        return self._engine.window.year(CalendarId(which))

    def can_go_prev(self, which: str) -> bool:
        return self._engine.can_go_prev(CalendarId(which))

    def can_go_next(self, which: str) -> bool:
        return self._engine.can_go_next(CalendarId(which))

    def grid(self, which: str) -> List[DayCell]:
        e = self._engine
        cells: List[DayCell] = []
        for d in e.window.grid(CalendarId(which)):
            if d is None:
                cells.append(DayCell(None))
                continue
            cells.append(DayCell(
                day=d,
                text=str(d.day),
                disabled=e.is_cell_disabled(d),
                in_range=e.in_range(d),
                is_start=e.is_start(d),
                is_end=e.is_end(d),
                is_today=e.is_today(d),
            ))
        return cells

    def value(self) -> DateRange:
        return self._engine.applied
