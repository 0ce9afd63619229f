#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
范围校验 - 草稿是否可以应用, 以及需要显示给用户的提示信息。

所有问题都在本地解决, 只以布尔值/文本的形式暴露给视图, 不会抛给宿主。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from daterange_picker.models import DateRange
from daterange_picker.utils.date_utils import add_years, days_between_inclusive

DEFAULT_MAX_RANGE_YEARS = 2
DEFAULT_MAX_RANGE_MESSAGE_TEMPLATE = "Please select a date range that does not exceed {limit} {unit}."

START_REQUIRED_MESSAGE = "Please select a start date."
END_REQUIRED_MESSAGE = "Please select an end date."
BOTH_REQUIRED_MESSAGE = "Please select a start and end date."


class ValidationIssue(str, Enum):
    MISSING_START = "missing_start"
    MISSING_END = "missing_end"
    MISSING_BOTH = "missing_both"
    RANGE_TOO_LARGE = "range_too_large"
    FUTURE_DATE_REJECTED = "future_date_rejected"


@dataclass(frozen=True)
class RangeLimit:
    """最大范围限制。设置了 max_days 时优先使用天数, 否则按年数。"""
    max_days: Optional[int] = None
    max_years: int = DEFAULT_MAX_RANGE_YEARS
    message_template: str = DEFAULT_MAX_RANGE_MESSAGE_TEMPLATE

    @property
    def uses_days(self) -> bool:
        return self.max_days is not None

    @property
    def limit(self) -> int:
        return self.max_days if self.uses_days else self.max_years

    @property
    def unit(self) -> str:
        if self.uses_days:
            return "day" if self.limit == 1 else "days"
        return "year" if self.limit == 1 else "years"


@dataclass
class ValidationResult:
    issues: List[ValidationIssue] = field(default_factory=list)
    range_too_large_message: str = ""

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def has(self, issue: ValidationIssue) -> bool:
        return issue in self.issues


def incomplete_issue(r: DateRange) -> Optional[ValidationIssue]:
    """区分缺少开始日、缺少结束日和两者都缺少。"""
    if r.start is None and r.end is None:
        return ValidationIssue.MISSING_BOTH
    if r.start is None:
        return ValidationIssue.MISSING_START
    if r.end is None:
        return ValidationIssue.MISSING_END
    return None


def is_range_too_large(r: DateRange, limit: RangeLimit) -> bool:
    if not r.is_complete:
        return False
    if limit.uses_days:
        return days_between_inclusive(r.start, r.end) > limit.max_days
    return r.end > add_years(r.start, limit.max_years)


def format_limit_message(limit: RangeLimit) -> str:
    return (limit.message_template
            .replace("{limit}", str(limit.limit))
            .replace("{unit}", limit.unit))


def range_too_large_message(r: DateRange, limit: RangeLimit) -> str:
    if not is_range_too_large(r, limit):
        return ""
    return format_limit_message(limit)


def validate(r: DateRange, limit: RangeLimit) -> ValidationResult:
    result = ValidationResult()
    missing = incomplete_issue(r)
    if missing is not None:
        result.issues.append(missing)
    elif is_range_too_large(r, limit):
        result.issues.append(ValidationIssue.RANGE_TOO_LARGE)
        result.range_too_large_message = format_limit_message(limit)
    return result


def can_apply(r: DateRange, limit: RangeLimit) -> bool:
    return validate(r, limit).is_valid


def field_errors(r: DateRange, show_validation: bool) -> dict:
    """
    各输入框下方的提示。

    Returns:
        dict: 'start' / 'end' / 'general' 三个键, 不需要提示时为空字符串。
              只有两者都缺少时才显示 general 提示。
    """
    errors = {"start": "", "end": "", "general": ""}
    if not show_validation:
        return errors
    if r.start is None:
        errors["start"] = START_REQUIRED_MESSAGE
    if r.end is None:
        errors["end"] = END_REQUIRED_MESSAGE
    if r.start is None and r.end is None:
        errors["general"] = BOTH_REQUIRED_MESSAGE
    return errors


def applied_value_message(r: DateRange) -> str:
    """已应用的值不完整时, 触发按钮下方的提示。"""
    issue = incomplete_issue(r)
    if issue == ValidationIssue.MISSING_BOTH:
        return BOTH_REQUIRED_MESSAGE
    if issue == ValidationIssue.MISSING_START:
        return START_REQUIRED_MESSAGE
    if issue == ValidationIssue.MISSING_END:
        return END_REQUIRED_MESSAGE
    return ""


def apply_tooltip(r: DateRange) -> Optional[str]:
    """Apply 按钮因缺少日期而不可用时的提示文字。"""
    issue = incomplete_issue(r)
    if issue == ValidationIssue.MISSING_BOTH:
        return "Select a start and end date to apply"
    if issue == ValidationIssue.MISSING_END:
        return "Select an end date to apply"
    if issue == ValidationIssue.MISSING_START:
        return "Select a start date to apply"
    return None
