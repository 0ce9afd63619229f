# daterange_picker/utils/date_utils.py
"""
日期计算工具 - 按天/按月的归一化、月份运算、月历网格以及格式化。

所有比较都只基于 (年, 月, 日), 不使用时间戳, 避免时区/夏令时带来的偏差。
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator, List, Optional, Union

from dateutil.relativedelta import relativedelta

from daterange_picker.models import DateRange

DateLike = Union[date, datetime]

GRID_CELLS = 42  # 6 周 x 7 天
MIN_YEAR = 1900
MIN_YEAR_PAGE_END = MIN_YEAR + 11

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
WEEKDAY_ABBREVIATIONS = ["Su", "Mo", "Tu", "We", "Th", "Fr", "Sa"]


def normalize(d: DateLike) -> date:
    """将 date/datetime 截断为按天的 date。"""
    if isinstance(d, datetime):
        return d.date()
    return date(d.year, d.month, d.day)


def start_of_month(d: DateLike) -> date:
    n = normalize(d)
    return date(n.year, n.month, 1)


def add_days(d: DateLike, delta: int) -> date:
    return normalize(d) + timedelta(days=delta)


def add_months(d: DateLike, delta: int) -> date:
    """按月偏移, 返回结果月份的第一天。"""
    return start_of_month(d) + relativedelta(months=delta)


def add_years(d: DateLike, years: int) -> date:
    # relativedelta 会把 2 月 29 日落到目标年的 2 月 28 日
    return normalize(d) + relativedelta(years=years)


def days_in_month(d: DateLike) -> int:
    n = normalize(d)
    return calendar.monthrange(n.year, n.month)[1]


def month_index(d: DateLike) -> int:
    """绝对月份序号 (year * 12 + month0), 用于计算两个月份间隔。"""
    n = normalize(d)
    return n.year * 12 + (n.month - 1)


def is_same_day(a: DateLike, b: DateLike) -> bool:
    return normalize(a) == normalize(b)


def is_same_month(a: DateLike, b: DateLike) -> bool:
    return a.year == b.year and a.month == b.month


def is_before(a: DateLike, b: DateLike) -> bool:
    return normalize(a) < normalize(b)


def is_after(a: DateLike, b: DateLike) -> bool:
    return normalize(a) > normalize(b)


def clamp_to_today(d: DateLike, today: DateLike) -> date:
    n = normalize(d)
    t = normalize(today)
    return t if n > t else n


def days_between_inclusive(a: DateLike, b: DateLike) -> int:
    """从 a 到 b 的天数 (包含首尾两天)。"""
    return (normalize(b) - normalize(a)).days + 1


class MonthGrid:
    """
    某个月的 42 格月历。

    每次迭代都会重新生成格子 (惰性、有限、可重复迭代)。第 0 列是星期日,
    月初之前和月末之后的格子用 None 填充。
    """

    def __init__(self, month: DateLike):
        self.month = start_of_month(month)

    def __iter__(self) -> Iterator[Optional[date]]:
        # date.weekday(): 周一 = 0, 转换为周日 = 0
        leading = (self.month.weekday() + 1) % 7
        for _ in range(leading):
            yield None
        total = days_in_month(self.month)
        for day in range(1, total + 1):
            yield date(self.month.year, self.month.month, day)
        for _ in range(GRID_CELLS - leading - total):
            yield None

    def __len__(self) -> int:
        return GRID_CELLS

    def weeks(self) -> List[List[Optional[date]]]:
        cells = list(self)
        return [cells[i:i + 7] for i in range(0, GRID_CELLS, 7)]

    def __repr__(self) -> str:
        return f"MonthGrid({self.month.isoformat()})"


def month_grid(month: DateLike) -> MonthGrid:
    return MonthGrid(month)


def month_name(month_idx: int) -> str:
    """月份名称, month_idx 为 0..11。"""
    if not 0 <= month_idx <= 11:
        raise ValueError(f"Invalid month index: {month_idx}")
    return MONTH_NAMES[month_idx]


def month_label(d: DateLike) -> str:
    """例如 'June 2024'"""
    return f"{MONTH_NAMES[d.month - 1]} {d.year}"


def years_for_page_end(end_year: int) -> List[int]:
    """年份选择器的一页 (12 年, 以 end_year 结尾)。"""
    return list(range(end_year - 11, end_year + 1))


def format_mmddyyyy(d: Optional[DateLike]) -> str:
    if d is None:
        return ""
    n = normalize(d)
    return f"{n.month:02d}/{n.day:02d}/{n.year}"


def format_range(r: DateRange) -> str:
    """'MM/DD/YYYY - MM/DD/YYYY'; 不完整的范围返回空字符串。"""
    if not r.is_complete:
        return ""
    return f"{format_mmddyyyy(r.start)} - {format_mmddyyyy(r.end)}"
