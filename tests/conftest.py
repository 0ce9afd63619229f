# tests/conftest.py
import sys
import os
import logging
from datetime import date

import pytest

# 无显示环境下使用 offscreen 平台运行 Qt
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')

# 将项目根目录添加到 Python 路径
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# 测试期间捕获 DEBUG 级别的日志 (状态转换日志是 DEBUG)
logging.getLogger('daterange_picker').setLevel(logging.DEBUG)

from daterange_picker.config.picker_config_manager import PickerConfig
from daterange_picker.core.range_selection_engine import RangeSelectionEngine
from daterange_picker.models import DateRange

# 所有场景都以 2024-06-15 (星期六) 作为 "今天"
TODAY = date(2024, 6, 15)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_engine(qtbot):
    """创建固定 "今天" 的状态机; 关键字参数传给 PickerConfig。"""
    def _make(value=None, config=None, **config_overrides):
        if config is None:
            config = PickerConfig(**config_overrides)
        return RangeSelectionEngine(value=value, config=config, today_provider=lambda: TODAY)
    return _make


@pytest.fixture
def custom_range():
    return DateRange(date(2024, 6, 1), date(2024, 6, 10))
