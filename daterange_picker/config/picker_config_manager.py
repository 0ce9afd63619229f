import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Optional

from PySide6.QtCore import QObject, QSettings, Signal

from daterange_picker.core.preset_catalog import DEFAULT_PRESET
from daterange_picker.core.validation import (
    DEFAULT_MAX_RANGE_MESSAGE_TEMPLATE, DEFAULT_MAX_RANGE_YEARS, RangeLimit,
)
from daterange_picker.models import ClearPolicy, OpenMode, PickPolicy, PresetKey

logger = logging.getLogger('daterange_picker.config.manager')

# 配置存储在 QSettings 中的分组路径
CONFIG_GROUP_PREFIX = "picker_configs"
SETTINGS_ORGANIZATION = "DateRangePicker"
SETTINGS_APPLICATION = "DateRangePicker"


@dataclass
class PickerConfig:
    """
    日期范围选择器的配置。

    is_premium 决定是否启用预设面板/菜单以及 "预设/自定义" 显示区分;
    initial_preset 只在高级用户且传入值为空时应用一次;
    max_range_days 设置后优先于 max_range_years。
    """
    is_premium: bool = True
    initial_preset: Optional[PresetKey] = DEFAULT_PRESET
    max_range_days: Optional[int] = None
    max_range_years: int = DEFAULT_MAX_RANGE_YEARS
    max_range_message_template: str = DEFAULT_MAX_RANGE_MESSAGE_TEMPLATE
    clear_policy: ClearPolicy = ClearPolicy.DISCARD_TO_APPLIED
    close_on_hard_clear: bool = False
    pick_policy: PickPolicy = PickPolicy.PIVOT
    open_mode: OpenMode = OpenMode.PANEL
    open_custom_directly_when_applied_custom: bool = True
    track_provenance: bool = True

    @property
    def range_limit(self) -> RangeLimit:
        return RangeLimit(
            max_days=self.max_range_days,
            max_years=self.max_range_years,
            message_template=self.max_range_message_template,
        )

    @property
    def menu_first(self) -> bool:
        return self.is_premium and self.open_mode == OpenMode.MENU_FIRST

    @classmethod
    def premium(cls, **overrides) -> "PickerConfig":
        return cls(**overrides)

    @classmethod
    def standard(cls, **overrides) -> "PickerConfig":
        """普通用户: 没有预设, "Clear" 清空草稿并关闭面板。"""
        values = dict(
            is_premium=False,
            initial_preset=None,
            clear_policy=ClearPolicy.HARD_CLEAR,
            close_on_hard_clear=True,
        )
        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if hasattr(value, "value"):
                data[key] = value.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PickerConfig":
        """
        从字典构造配置。无效的值会被忽略并使用默认值。
        """
        defaults = cls()
        values: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            try:
                values[f.name] = _coerce(f.name, data[f.name], getattr(defaults, f.name))
            except (TypeError, ValueError) as e:
                logger.warning(f"Invalid value for '{f.name}': {data[f.name]!r} ({e}). Using default: {getattr(defaults, f.name)!r}")
        return cls(**values)


_ENUM_FIELDS = {
    "initial_preset": PresetKey,
    "clear_policy": ClearPolicy,
    "pick_policy": PickPolicy,
    "open_mode": OpenMode,
}
_OPTIONAL_INT_FIELDS = {"max_range_days"}


def _to_bool(value: Any) -> bool:
    # QSettings 的 ini 后端会把布尔值读成字符串
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
        raise ValueError(f"not a boolean: {value!r}")
    return bool(value)


def _coerce(name: str, value: Any, default: Any) -> Any:
    if name in _ENUM_FIELDS:
        if value in (None, "", "none"):
            if name == "initial_preset":
                return None
            raise ValueError("empty enum value")
        return _ENUM_FIELDS[name](value)
    if name in _OPTIONAL_INT_FIELDS:
        if value in (None, "", "none"):
            return None
        number = int(value)
        if number < 1:
            raise ValueError("must be >= 1")
        return number
    if isinstance(default, bool):
        return _to_bool(value)
    if isinstance(default, int):
        number = int(value)
        if number < 1:
            raise ValueError("must be >= 1")
        return number
    if isinstance(default, str):
        if not isinstance(value, str):
            raise TypeError("expected a string")
        return value
    return value


class PickerConfigManager(QObject):
    """
    管理选择器配置, 使用 QSettings 进行存储。

    每个命名配置保存在 picker_configs/<name> 分组下。
    """
    config_changed = Signal(str)

    def __init__(self, settings: Optional[QSettings] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.settings = settings if settings is not None else QSettings(SETTINGS_ORGANIZATION, SETTINGS_APPLICATION)
        self.logger = logging.getLogger(__name__)
        logger.debug("PickerConfigManager initialized (QSettings Mode).")

    def get_config_names(self) -> List[str]:
        """获取所有已保存配置的名称列表 (按字母顺序)。"""
        self.settings.beginGroup(CONFIG_GROUP_PREFIX)
        names = self.settings.childGroups()
        self.settings.endGroup()
        logger.debug(f"Found picker config names in QSettings: {names}")
        return sorted(names)

    def get_config(self, name: str) -> Optional[PickerConfig]:
        """
        获取指定名称的配置。

        Args:
            name (str): 配置名称。

        Returns:
            Optional[PickerConfig]: 找不到或分组为空时返回 None。
        """
        if name not in self.get_config_names():
            logger.warning(f"Config group '{CONFIG_GROUP_PREFIX}/{name}' not found in QSettings.")
            return None

        self.settings.beginGroup(f"{CONFIG_GROUP_PREFIX}/{name}")
        try:
            keys = self.settings.allKeys()
            if not keys:
                logger.warning(f"Config group '{CONFIG_GROUP_PREFIX}/{name}' exists but is empty.")
                return None
            data = {key: self.settings.value(key) for key in keys}
        finally:
            self.settings.endGroup()

        return PickerConfig.from_dict(data)

    def get_config_or_default(self, name: str, default: Optional[PickerConfig] = None) -> PickerConfig:
        config = self.get_config(name)
        if config is None:
            return default if default is not None else PickerConfig()
        return config

    def save_config(self, name: str, config: PickerConfig) -> bool:
        if not name:
            logger.warning("Cannot save picker config: name is empty.")
            return False
        try:
            group = f"{CONFIG_GROUP_PREFIX}/{name}"
            self.settings.remove(group)
            self.settings.beginGroup(group)
            for key, value in config.to_dict().items():
                # None 无法可靠地保存到所有 QSettings 后端
                self.settings.setValue(key, "" if value is None else value)
            self.settings.endGroup()
            self.settings.sync()
            logger.info(f"Saved picker config '{name}'.")
            self.config_changed.emit(name)
            return True
        except Exception as e:
            logger.error(f"Error saving picker config '{name}': {e}", exc_info=True)
            return False

    def delete_config(self, name: str) -> bool:
        if name not in self.get_config_names():
            logger.warning(f"Cannot delete picker config '{name}': not found.")
            return False
        self.settings.remove(f"{CONFIG_GROUP_PREFIX}/{name}")
        self.settings.sync()
        logger.info(f"Deleted picker config '{name}'.")
        self.config_changed.emit(name)
        return True
