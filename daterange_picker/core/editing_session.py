"""
编辑会话 - 面板打开期间的草稿状态。每次打开面板都会创建新的会话。
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from daterange_picker.core.calendar_window import CalendarWindow
from daterange_picker.models import ActiveField, DateRange, DisplayMode, PresetKey


@dataclass
class EditingSession:
    """草稿值、当前编辑的端点、校验显示标志、草稿来源以及日历窗口。"""
    window: CalendarWindow
    draft: DateRange = field(default_factory=DateRange.empty)
    active_field: ActiveField = ActiveField.START
    show_validation: bool = False
    draft_mode: DisplayMode = DisplayMode.CUSTOM
    draft_preset_key: Optional[PresetKey] = None

    @classmethod
    def open(cls, today: date, draft: Optional[DateRange] = None,
             draft_mode: DisplayMode = DisplayMode.CUSTOM,
             draft_preset_key: Optional[PresetKey] = None) -> "EditingSession":
        """创建会话, 并把日历定位到草稿的开始日 (没有开始日时使用默认窗口)。"""
        session = cls(
            window=CalendarWindow(today),
            draft=draft if draft is not None else DateRange.empty(),
            draft_mode=draft_mode,
            draft_preset_key=draft_preset_key,
        )
        session.window.position_at(session.draft.start)
        return session

    def mark_custom(self):
        """手动编辑后草稿不再属于任何预设。"""
        self.draft_mode = DisplayMode.CUSTOM
        self.draft_preset_key = None

    def mark_preset(self, key: PresetKey):
        self.draft_mode = DisplayMode.PRESET
        self.draft_preset_key = key
