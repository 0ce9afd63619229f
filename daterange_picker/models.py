#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
数据模型模块 - 定义日期范围选择器中使用的数据结构
"""

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Optional


class PresetKey(str, Enum):
    """快捷预设的标识。CUSTOM 表示"没有预设匹配"。"""
    TODAY = "today"
    LAST7 = "last7"
    LAST30 = "last30"
    LAST90 = "last90"
    THIS_YEAR = "thisYear"
    LAST_YEAR = "lastYear"
    CUSTOM = "custom"


class ActiveField(str, Enum):
    """下一次点击日期时要编辑的端点"""
    START = "start"
    END = "end"


class DisplayMode(str, Enum):
    """当前值应显示为预设名称还是显式日期范围 (来源, 而非相等性)"""
    PRESET = "preset"
    CUSTOM = "custom"


class CalendarId(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"


class PickerState(str, Enum):
    CLOSED = "closed"
    MENU_OPEN = "menu_open"
    PANEL_OPEN = "panel_open"


class ClearPolicy(str, Enum):
    """"Clear dates" 的两种行为"""
    DISCARD_TO_APPLIED = "discard_to_applied"  # 草稿恢复为已应用的值, 面板保持打开
    HARD_CLEAR = "hard_clear"                  # 草稿清空并显示校验提示


class PickPolicy(str, Enum):
    """在已有范围之外点击时的处理规则"""
    PIVOT = "pivot"    # 重新开始范围, 结束日自动设为次日 (不超过今天)
    EXTEND = "extend"  # 把对应端点移动到点击的日期, 保留另一端


class OpenMode(str, Enum):
    PANEL = "panel"
    MENU_FIRST = "menu_first"


@dataclass(frozen=True)
class DateRange:
    """
    日期范围数据模型。

    start/end 都是按天截断的 date。两者都存在时必须满足 start <= end。
    只有 start 的状态是选择过程中的临时状态, 不会作为已应用的值发出。
    """
    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None

    @property
    def is_ordered(self) -> bool:
        """起止日期都存在时是否满足 start <= end (不完整的范围视为有序)"""
        if not self.is_complete:
            return True
        return self.start <= self.end

    def with_start(self, start: Optional[date]) -> "DateRange":
        return replace(self, start=start)

    def with_end(self, end: Optional[date]) -> "DateRange":
        return replace(self, end=end)

    @classmethod
    def empty(cls) -> "DateRange":
        return cls(None, None)

    def to_dict(self) -> dict:
        """转换为字典, 日期使用 ISO 格式。"""
        return {
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
        }
