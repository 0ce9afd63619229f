#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
双月日历窗口 - 维护上下两个连续、且不超过当前月的可见月份。

不变量 (每次修改后都成立):
    bottom_month == top_month + 1 个月
    bottom_month <= 今天所在月份的第一天

导航和年月选择不会让 top_month 早于 MIN_YEAR 年 1 月。
"""

import logging
from datetime import date
from typing import List, Optional

from daterange_picker.models import ActiveField, CalendarId, DateRange
from daterange_picker.utils.date_utils import (
    MIN_YEAR, MIN_YEAR_PAGE_END, MonthGrid, add_months, clamp_to_today, is_same_month,
    month_grid, month_index, month_label, normalize, start_of_month,
    years_for_page_end,
)

YEAR_PAGE_SIZE = 12


class CalendarWindow:
    """两个连续月份的日历窗口及其重新定位算法。"""

    def __init__(self, today: date):
        self.logger = logging.getLogger(__name__)
        self._today = normalize(today)
        self._current = start_of_month(self._today)
        self._earliest = date(MIN_YEAR, 1, 1)
        self._top = add_months(self._current, -1)
        self._bottom = self._current
        self._year_page_end = {
            CalendarId.TOP: self._today.year,
            CalendarId.BOTTOM: self._today.year,
        }

    # --- 只读属性 ---

    @property
    def today(self) -> date:
        return self._today

    @property
    def top_month(self) -> date:
        return self._top

    @property
    def bottom_month(self) -> date:
        return self._bottom

    def month_of(self, which: CalendarId) -> date:
        return self._top if CalendarId(which) == CalendarId.TOP else self._bottom

    def month_index(self, which: CalendarId) -> int:
        """0..11"""
        return self.month_of(which).month - 1

    def year(self, which: CalendarId) -> int:
        return self.month_of(which).year

    def label(self, which: CalendarId) -> str:
        return month_label(self.month_of(which))

    def grid(self, which: CalendarId) -> MonthGrid:
        return month_grid(self.month_of(which))

    def invariant_holds(self) -> bool:
        return self._bottom == add_months(self._top, 1) and self._bottom <= self._current

    # --- 内部 ---

    def _set(self, top: date, bottom: date):
        self._top = top
        self._bottom = bottom
        self.logger.debug(f"Calendar window -> top={top.isoformat()}, bottom={bottom.isoformat()}")

    def _window_for(self, which: CalendarId, month: date):
        if CalendarId(which) == CalendarId.TOP:
            return month, add_months(month, 1)
        return add_months(month, -1), month

    def _anchor(self, which: CalendarId, month: date) -> bool:
        """把某个日历设为 month, 另一个跟随; 底部超过当前月或顶部早于最早月份则拒绝。"""
        top, bottom = self._window_for(which, month)
        if bottom > self._current or top < self._earliest:
            return False
        self._set(top, bottom)
        return True

    # --- 定位 ---

    def open_fresh(self):
        """上 = 上个月, 下 = 本月。没有锚点日期时使用。"""
        self._set(add_months(self._current, -1), self._current)

    def position_at_start(self, d: date):
        top = start_of_month(d)
        bottom = add_months(top, 1)
        if bottom > self._current:
            bottom = self._current
            top = add_months(bottom, -1)
        self._set(top, bottom)

    def position_at_end(self, d: date):
        bottom = start_of_month(clamp_to_today(d, self._today))
        self._set(add_months(bottom, -1), bottom)

    def position_at(self, anchor: Optional[date]):
        """有锚点时定位到锚点所在月份, 否则回到默认窗口。"""
        if anchor is not None:
            self.position_at_start(anchor)
        else:
            self.open_fresh()

    def recenter_for_active_field(self, field: ActiveField, draft: DateRange):
        """
        根据正在编辑的端点重新定位窗口。

        - 端点所在月份就是本月: 回到默认窗口 (上个月 + 本月)
        - 范围完整且起止月份相差不超过 1 个月: 开始月份在上, 下一个月在下
          (起止同月时也显示两个不同的月份)
        - 其他情况: 编辑开始日按开始日定位, 编辑结束日按结束日定位
        """
        field = ActiveField(field)
        focused = draft.start if field == ActiveField.START else draft.end
        if focused is None:
            return

        if is_same_month(focused, self._today):
            self.open_fresh()
            return

        if draft.is_complete:
            gap = month_index(clamp_to_today(draft.end, self._today)) - month_index(draft.start)
            if gap <= 1:
                self.position_at_start(draft.start)
                return

        if field == ActiveField.START:
            self.position_at_start(focused)
        else:
            self.position_at_end(focused)

    # --- 导航 ---

    def can_go_next(self, which: CalendarId = CalendarId.BOTTOM) -> bool:
        # 两个日历总是一起移动, 所以只看底部
        return add_months(self._bottom, 1) <= self._current

    def can_go_prev(self, which: CalendarId = CalendarId.TOP) -> bool:
        return add_months(self._top, -1) >= self._earliest

    def prev_month(self, which: CalendarId = CalendarId.BOTTOM) -> bool:
        if not self.can_go_prev(which):
            return False
        self._set(add_months(self._top, -1), add_months(self._bottom, -1))
        return True

    def next_month(self, which: CalendarId = CalendarId.BOTTOM) -> bool:
        if not self.can_go_next(which):
            return False
        self._set(add_months(self._top, 1), add_months(self._bottom, 1))
        return True

    def set_month(self, which: CalendarId, month_idx: int) -> bool:
        """直接选择月份 (0..11)。结果若使底部超过当前月则不做任何修改。"""
        month_idx = int(month_idx)
        if not 0 <= month_idx <= 11:
            return False
        candidate = date(self.year(which), month_idx + 1, 1)
        if not self._anchor(which, candidate):
            self.logger.debug(f"Rejected future month for {which}: {candidate.isoformat()}")
            return False
        return True

    def set_year(self, which: CalendarId, year: int) -> bool:
        year = int(year)
        if not MIN_YEAR <= year <= self._today.year:
            return False
        candidate = date(year, self.month_of(which).month, 1)
        if not self._anchor(which, candidate):
            self.logger.debug(f"Rejected future year for {which}: {candidate.isoformat()}")
            return False
        return True

    # --- 选项禁用判断 ---

    def is_future_month(self, which: CalendarId, month_idx: int, year: int) -> bool:
        """
        (year, month_idx) 对该日历来说是否属于未来月份。
        底部日历最多到本月; 顶部日历最多到上个月。
        """
        candidate = date(int(year), int(month_idx) + 1, 1)
        limit = self._current if CalendarId(which) == CalendarId.BOTTOM else add_months(self._current, -1)
        return candidate > limit

    def is_year_option_disabled(self, which: CalendarId, year: int) -> bool:
        """选择该年份 (保持当前月份) 会被 set_year 拒绝时为 True。"""
        year = int(year)
        if not MIN_YEAR <= year <= self._today.year:
            return True
        top, bottom = self._window_for(which, date(year, self.month_of(which).month, 1))
        return bottom > self._current or top < self._earliest

    # --- 年份分页 (12 年一页) ---

    def year_page_end(self, which: CalendarId) -> int:
        return self._year_page_end[CalendarId(which)]

    def year_page(self, which: CalendarId) -> List[int]:
        return years_for_page_end(self.year_page_end(which))

    def scroll_year_page(self, which: CalendarId, direction: int) -> int:
        """按方向 (>0 向后, <0 向前) 翻一页, 返回新的页尾年份。"""
        step = YEAR_PAGE_SIZE if direction > 0 else -YEAR_PAGE_SIZE
        end = self.year_page_end(which) + step
        end = max(MIN_YEAR_PAGE_END, min(end, self._today.year))
        self._year_page_end[CalendarId(which)] = end
        return end

    def reset_year_page(self, which: CalendarId) -> int:
        """
        回到包含当前显示年份的那一页: 显示年份在最近 12 年内时使用最新一页
        (以今年结尾), 否则使用以显示年份结尾的一页。
        """
        year = self.year(which)
        newest_start = self._today.year - (YEAR_PAGE_SIZE - 1)
        end = self._today.year if year >= newest_start else max(year, MIN_YEAR_PAGE_END)
        self._year_page_end[CalendarId(which)] = end
        return end

    def reset_year_pages(self):
        for which in CalendarId:
            self.reset_year_page(which)

    def __repr__(self) -> str:
        return f"CalendarWindow(top={self._top.isoformat()}, bottom={self._bottom.isoformat()}, today={self._today.isoformat()})"
