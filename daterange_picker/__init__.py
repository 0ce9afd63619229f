"""
日期范围选择器包

包含选择状态机、预设目录、日历窗口以及基于 PySide6 的控件。
"""

from .models import DateRange, PresetKey, DisplayMode, ClearPolicy, PickPolicy, OpenMode
from .config.picker_config_manager import PickerConfig, PickerConfigManager
from .core.preset_catalog import PresetCatalog
from .core.range_selection_engine import RangeSelectionEngine

__all__ = [
    'DateRange', 'PresetKey', 'DisplayMode', 'ClearPolicy', 'PickPolicy', 'OpenMode',
    'PickerConfig', 'PickerConfigManager', 'PresetCatalog', 'RangeSelectionEngine',
]
