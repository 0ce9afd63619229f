#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
快捷预设模块 - 计算相对于 "今天" 的命名日期范围, 并把任意范围匹配回预设
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from daterange_picker.models import DateRange, PresetKey
from daterange_picker.utils.date_utils import add_days, is_same_day, normalize, start_of_month

# 没有传入值时默认应用的预设
DEFAULT_PRESET = PresetKey.LAST90


@dataclass(frozen=True)
class PresetItem:
    key: PresetKey
    label: str


# 顺序即匹配顺序
PRESETS: List[PresetItem] = [
    PresetItem(PresetKey.TODAY, "Today"),
    PresetItem(PresetKey.LAST7, "Last 7 days"),
    PresetItem(PresetKey.LAST30, "Last 30 days"),
    PresetItem(PresetKey.LAST90, "Last 90 days"),
    PresetItem(PresetKey.THIS_YEAR, "This year"),
    PresetItem(PresetKey.LAST_YEAR, "Last year"),
]

CUSTOM_ITEM = PresetItem(PresetKey.CUSTOM, "Custom")

_TRAILING_DAYS = {
    PresetKey.LAST7: 7,
    PresetKey.LAST30: 30,
    PresetKey.LAST90: 90,
}


class PresetCatalog:
    """
    命名日期范围目录。

    resolve() 根据参考日期计算预设对应的范围; detect() 按目录顺序
    逐个比较 (按天相等), 返回第一个完全匹配的预设。
    """

    def __init__(self, presets: Optional[List[PresetItem]] = None):
        self.logger = logging.getLogger(__name__)
        self._presets: List[PresetItem] = list(presets) if presets is not None else list(PRESETS)

    def items(self) -> List[PresetItem]:
        """菜单中显示的全部预设 (目录顺序)。"""
        return list(self._presets)

    def panel_items(self, is_premium: bool) -> List[PresetItem]:
        """
        面板左侧的预设列表: 不包含 "Last year", 末尾附加 "Custom";
        高级用户不显示 "Today"。
        """
        items = [p for p in self._presets if p.key != PresetKey.LAST_YEAR]
        if is_premium:
            items = [p for p in items if p.key != PresetKey.TODAY]
        return items + [CUSTOM_ITEM]

    def label(self, key: PresetKey) -> str:
        if key == PresetKey.CUSTOM:
            return CUSTOM_ITEM.label
        for item in self._presets:
            if item.key == key:
                return item.label
        raise ValueError(f"Unknown preset key: {key!r}")

    def resolve(self, key: PresetKey, today: date) -> DateRange:
        """计算预设在给定 "今天" 下的日期范围。CUSTOM 解析为本月初到今天。"""
        t = normalize(today)
        key = PresetKey(key)

        if key == PresetKey.TODAY:
            return DateRange(t, t)
        if key == PresetKey.THIS_YEAR:
            return DateRange(date(t.year, 1, 1), t)
        if key == PresetKey.LAST_YEAR:
            y = t.year - 1
            return DateRange(date(y, 1, 1), date(y, 12, 31))
        if key == PresetKey.CUSTOM:
            return DateRange(start_of_month(t), t)

        days = _TRAILING_DAYS[key]
        return DateRange(add_days(t, -(days - 1)), t)

    def detect(self, r: DateRange, today: date) -> Optional[PresetKey]:
        """
        返回与范围完全相等的预设。

        Returns:
            不完整的范围返回 None; 匹配到预设返回其 key; 否则返回 PresetKey.CUSTOM。
        """
        if not r.is_complete:
            return None

        for item in self._presets:
            pr = self.resolve(item.key, today)
            if is_same_day(pr.start, r.start) and is_same_day(pr.end, r.end):
                return item.key
        return PresetKey.CUSTOM

    def detect_applied_key(self, r: DateRange, today: date) -> Optional[PresetKey]:
        """与 detect 相同, 但没有匹配时返回 None 而不是 CUSTOM。"""
        key = self.detect(r, today)
        return key if key not in (None, PresetKey.CUSTOM) else None
