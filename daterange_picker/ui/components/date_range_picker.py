#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
日期范围选择器控件 - 触发按钮、预设菜单、起止输入框、双月日历和底部按钮。

控件本身不包含选择逻辑, 所有操作都转发给 DateRangePickerViewModel,
并在 state_changed 时根据派生值重绘。
"""

import logging
from datetime import date
from typing import List, Optional

from PySide6.QtCore import QEvent, QObject, Qt, Signal
from PySide6.QtGui import QStandardItemModel
from PySide6.QtWidgets import (
    QApplication, QComboBox, QFrame, QGridLayout, QHBoxLayout, QLabel, QPushButton,
    QToolButton, QVBoxLayout, QWidget,
)

from daterange_picker.models import CalendarId
from daterange_picker.ui.viewmodels.date_range_picker_viewmodel import DateRangePickerViewModel

INPUT_STYLE = "text-align: left; padding: 3px; border: 1px solid #E0E0E0; border-radius: 3px;"
ACTIVE_INPUT_STYLE = "text-align: left; padding: 3px; border: 1px solid #2563EB; border-radius: 3px;"
INVALID_INPUT_STYLE = "text-align: left; padding: 3px; border: 1px solid #EF4444; border-radius: 3px;"
ERROR_STYLE = "color: #B91C1C; font-size: 11px;"

CELL_STYLE = "border: 1px solid transparent; border-radius: 6px; background: #F9FAFB;"
CELL_IN_RANGE_STYLE = "border: 1px solid transparent; border-radius: 6px; background: #E5E7EB;"
CELL_ENDPOINT_STYLE = "border: 1px solid transparent; border-radius: 6px; background: #111827; color: #FFFFFF;"
CELL_TODAY_STYLE = "border: 1px solid #FFA500; border-radius: 6px; background: #F9FAFB;"


class MonthPane(QWidget):
    """单个月份的日历: 头部导航、星期标题和 42 个日期格子。"""

    def __init__(self, which: CalendarId, view_model: DateRangePickerViewModel, parent=None):
        super().__init__(parent)
        self.which = which
        self._vm = view_model
        self.day_dates: List[Optional[date]] = [None] * 42

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(4)

        header = QHBoxLayout()
        self.prev_button = QPushButton("←")
        self.prev_button.setFixedWidth(30)
        self.month_combo = QComboBox()
        self.year_combo = QComboBox()
        self.next_button = QPushButton("→")
        self.next_button.setFixedWidth(30)
        header.addWidget(self.prev_button)
        header.addStretch(1)
        header.addWidget(self.month_combo)
        header.addWidget(self.year_combo)
        header.addStretch(1)
        header.addWidget(self.next_button)
        layout.addLayout(header)

        self.month_label = QLabel()
        self.month_label.setStyleSheet("color: #6B7280; font-size: 11px;")
        layout.addWidget(self.month_label)

        grid = QGridLayout()
        grid.setSpacing(3)
        for col, name in enumerate(self._vm.weekday_headers):
            dow = QLabel(name)
            dow.setAlignment(Qt.AlignCenter)
            grid.addWidget(dow, 0, col)
        self.day_buttons: List[QToolButton] = []
        for i in range(42):
            btn = QToolButton()
            btn.setFixedSize(38, 26)
            btn.clicked.connect(lambda checked=False, idx=i: self._on_day_clicked(idx))
            grid.addWidget(btn, 1 + i // 7, i % 7)
            self.day_buttons.append(btn)
        layout.addLayout(grid)

        which_value = self.which.value
        self.prev_button.clicked.connect(lambda: self._vm.prev_month(which_value))
        self.next_button.clicked.connect(lambda: self._vm.next_month(which_value))
        self.month_combo.activated.connect(lambda idx: self._vm.set_month(which_value, idx))
        self.year_combo.activated.connect(self._on_year_activated)
        self.year_combo.installEventFilter(self)

    def _on_day_clicked(self, idx: int):
        d = self.day_dates[idx]
        if d is not None:
            self._vm.pick_date(d)

    def _on_year_activated(self, idx: int):
        year = self.year_combo.itemData(idx)
        if year is not None:
            self._vm.set_year(self.which.value, int(year))

    def eventFilter(self, obj, event):
        """滚轮在年份下拉框上按 12 年翻页"""
        if obj is self.year_combo and event.type() == QEvent.Wheel:
            direction = 1 if event.angleDelta().y() < 0 else -1
            self._vm.scroll_year_page(self.which.value, direction)
            return True
        return super().eventFilter(obj, event)

    def button_for(self, d: date) -> Optional[QToolButton]:
        for btn, cell_date in zip(self.day_buttons, self.day_dates):
            if cell_date == d:
                return btn
        return None

    def refresh(self):
        which = self.which.value
        self.month_label.setText(self._vm.month_label(which))
        self.prev_button.setEnabled(self._vm.can_go_prev(which))
        self.next_button.setEnabled(self._vm.can_go_next(which))

        self.month_combo.blockSignals(True)
        self.month_combo.clear()
        model = self.month_combo.model()
        for option in self._vm.month_options(which):
            self.month_combo.addItem(option.name, option.index)
            # 未来月份显示但不可选
            if isinstance(model, QStandardItemModel):
                model.item(option.index).setEnabled(not option.disabled)
        self.month_combo.setCurrentIndex(self._vm.current_month_index(which))
        self.month_combo.blockSignals(False)

        self.year_combo.blockSignals(True)
        self.year_combo.clear()
        year_model = self.year_combo.model()
        for i, option in enumerate(self._vm.year_options(which)):
            self.year_combo.addItem(str(option.year), option.year)
            if isinstance(year_model, QStandardItemModel):
                year_model.item(i).setEnabled(not option.disabled)
        self.year_combo.setCurrentIndex(self.year_combo.findData(self._vm.current_year(which)))
        self.year_combo.blockSignals(False)

        for i, cell in enumerate(self._vm.grid(which)):
            btn = self.day_buttons[i]
            self.day_dates[i] = cell.day
            if cell.is_placeholder:
                btn.setText("")
                btn.setEnabled(False)
                btn.setStyleSheet("border: none; background: transparent;")
                continue
            btn.setText(cell.text)
            btn.setEnabled(not cell.disabled)
            if cell.is_start or cell.is_end:
                btn.setStyleSheet(CELL_ENDPOINT_STYLE)
            elif cell.in_range:
                btn.setStyleSheet(CELL_IN_RANGE_STYLE)
            elif cell.is_today:
                btn.setStyleSheet(CELL_TODAY_STYLE)
            else:
                btn.setStyleSheet(CELL_STYLE)


class DateRangePickerWidget(QWidget):
    """日期范围选择器"""
    # 提交新值时发射 (start, end)
    dateRangeChanged = Signal(date, date)

    def __init__(self, view_model: DateRangePickerViewModel, parent=None):
        super().__init__(parent)
        self.logger = logging.getLogger(__name__)
        self._vm = view_model

        self._build_ui()

        self._vm.state_changed.connect(self.refresh)
        self._vm.value_committed.connect(self._emit_date_range)

        app = QApplication.instance()
        if app is not None:
            app.installEventFilter(self)

        self.refresh()

    def initialize(self):
        """
        应用初始预设 (如果需要)。

        宿主应在连接 dateRangeChanged 之后调用, 否则会错过初始值。
        """
        self._vm.load_initial_data()

    # --- 构建 ---

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(5)

        layout.addWidget(QLabel("Date range"))
        self.trigger_button = QPushButton()
        self.trigger_button.setObjectName("DateRangeTrigger")
        self.trigger_button.setStyleSheet(INPUT_STYLE)
        self.trigger_button.setMinimumWidth(220)
        self.trigger_button.clicked.connect(self._vm.toggle)
        layout.addWidget(self.trigger_button)

        self.message_label = QLabel()
        self.message_label.setStyleSheet("color: #6B7280; font-size: 11px;")
        layout.addWidget(self.message_label)

        self.applied_error_label = QLabel()
        self.applied_error_label.setStyleSheet(ERROR_STYLE)
        layout.addWidget(self.applied_error_label)

        self.menu_frame = self._build_menu()
        layout.addWidget(self.menu_frame)

        self.panel_frame = self._build_panel()
        layout.addWidget(self.panel_frame)
        layout.addStretch(1)

    def _build_menu(self) -> QFrame:
        frame = QFrame()
        frame.setObjectName("DateRangeMenu")
        frame.setFrameShape(QFrame.StyledPanel)
        menu_layout = QVBoxLayout(frame)
        menu_layout.setContentsMargins(6, 6, 6, 6)

        self.menu_custom_button = QPushButton("Custom")
        self.menu_custom_button.setFlat(True)
        self.menu_custom_button.clicked.connect(self._vm.open_custom_from_menu)
        menu_layout.addWidget(self.menu_custom_button)

        self.menu_buttons = {}
        for item in self._vm.menu_presets():
            btn = QPushButton(item.label)
            btn.setFlat(True)
            btn.setCheckable(True)
            btn.clicked.connect(lambda checked=False, key=item.key.value: self._vm.apply_preset_from_menu(key))
            menu_layout.addWidget(btn)
            self.menu_buttons[item.key] = btn
        return frame

    def _build_panel(self) -> QFrame:
        frame = QFrame()
        frame.setObjectName("DateRangePanel")
        frame.setFrameShape(QFrame.StyledPanel)
        panel_layout = QHBoxLayout(frame)

        # 左侧预设列表 (仅高级用户)
        self.preset_buttons = {}
        presets = self._vm.visible_presets()
        if presets:
            preset_column = QVBoxLayout()
            for item in presets:
                btn = QPushButton(item.label)
                btn.setFlat(True)
                btn.setCheckable(True)
                btn.clicked.connect(lambda checked=False, key=item.key.value: self._vm.select_preset(key))
                preset_column.addWidget(btn)
                self.preset_buttons[item.key] = btn
            preset_column.addStretch(1)
            panel_layout.addLayout(preset_column)

        main = QVBoxLayout()

        inputs = QHBoxLayout()
        start_col = QVBoxLayout()
        start_col.addWidget(QLabel("Start date"))
        self.start_input = QPushButton()
        self.start_input.setObjectName("StartDateInput")
        self.start_input.setFlat(True)
        self.start_input.clicked.connect(lambda: self._vm.set_active_field("start"))
        start_col.addWidget(self.start_input)
        self.start_error_label = QLabel()
        self.start_error_label.setStyleSheet(ERROR_STYLE)
        start_col.addWidget(self.start_error_label)

        end_col = QVBoxLayout()
        end_col.addWidget(QLabel("End date"))
        self.end_input = QPushButton()
        self.end_input.setObjectName("EndDateInput")
        self.end_input.setFlat(True)
        self.end_input.clicked.connect(lambda: self._vm.set_active_field("end"))
        end_col.addWidget(self.end_input)
        self.end_error_label = QLabel()
        self.end_error_label.setStyleSheet(ERROR_STYLE)
        end_col.addWidget(self.end_error_label)

        inputs.addLayout(start_col)
        inputs.addLayout(end_col)
        main.addLayout(inputs)

        self.general_error_label = QLabel()
        self.general_error_label.setStyleSheet(ERROR_STYLE)
        main.addWidget(self.general_error_label)
        self.range_error_label = QLabel()
        self.range_error_label.setStyleSheet(ERROR_STYLE)
        main.addWidget(self.range_error_label)

        calendars = QHBoxLayout()
        self.top_pane = MonthPane(CalendarId.TOP, self._vm)
        self.bottom_pane = MonthPane(CalendarId.BOTTOM, self._vm)
        calendars.addWidget(self.top_pane)
        calendars.addWidget(self.bottom_pane)
        main.addLayout(calendars)

        footer = QHBoxLayout()
        footer.addStretch(1)
        self.clear_button = QPushButton("Clear dates")
        self.clear_button.clicked.connect(self._vm.clear)
        self.apply_button = QPushButton("Apply dates")
        self.apply_button.clicked.connect(self._vm.apply)
        footer.addWidget(self.clear_button)
        footer.addWidget(self.apply_button)
        main.addLayout(footer)

        panel_layout.addLayout(main)
        return frame

    # --- 状态同步 ---

    def refresh(self):
        """根据 ViewModel 的派生值更新显示"""
        vm = self._vm
        self.trigger_button.setText(vm.trigger_label or vm.placeholder_text)
        self.message_label.setText(vm.date_range_message)
        self.applied_error_label.setText(vm.applied_error_message)
        self.applied_error_label.setHidden(not vm.applied_error_message)

        self.menu_frame.setHidden(not vm.is_menu_open)
        for key, btn in self.menu_buttons.items():
            btn.setChecked(vm.is_preset_selected(key.value))

        self.panel_frame.setHidden(not vm.is_open)
        if not vm.is_open:
            return

        for key, btn in self.preset_buttons.items():
            btn.setChecked(vm.is_preset_selected(key.value))

        self.start_input.setText(vm.start_field_text or "MM/DD/YYYY")
        self.end_input.setText(vm.end_field_text or "MM/DD/YYYY")
        self.start_input.setStyleSheet(self._input_style("start", vm.start_error))
        self.end_input.setStyleSheet(self._input_style("end", vm.end_error))
        self.start_error_label.setText(vm.start_error)
        self.end_error_label.setText(vm.end_error)
        self.general_error_label.setText(vm.general_error)
        self.range_error_label.setText(vm.range_too_large_message)

        self.apply_button.setEnabled(vm.can_apply)
        self.apply_button.setToolTip(vm.apply_tooltip_text or "")

        self.top_pane.refresh()
        self.bottom_pane.refresh()

    def _input_style(self, field: str, error: str) -> str:
        if error:
            return INVALID_INPUT_STYLE
        if self._vm.active_field == field:
            return ACTIVE_INPUT_STYLE
        return INPUT_STYLE

    def _emit_date_range(self, r):
        self.logger.debug(f"Emitting date range: {r.start} to {r.end}")
        self.dateRangeChanged.emit(r.start, r.end)

    def get_date_range(self):
        """返回当前已应用的日期范围"""
        r = self._vm.value()
        return r.start, r.end

    # --- 外部点击 ---

    def _contains(self, obj: QObject) -> bool:
        # 不能用 isAncestorOf: 下拉框弹出层属于另一个窗口
        while obj is not None:
            if obj is self:
                return True
            obj = obj.parent()
        return False

    def eventFilter(self, obj, event):
        """在控件外部按下鼠标时关闭菜单并取消编辑"""
        if (event.type() == QEvent.MouseButtonPress
                and isinstance(obj, QWidget)
                and (self._vm.is_open or self._vm.is_menu_open)
                and not self._contains(obj)):
            self._vm.dismiss()
        return super().eventFilter(obj, event)
