"""依赖注入容器定义"""

from datetime import date

from dependency_injector import containers, providers

from daterange_picker.config.picker_config_manager import PickerConfigManager
from daterange_picker.core.preset_catalog import PresetCatalog
from daterange_picker.core.range_selection_engine import RangeSelectionEngine
from daterange_picker.ui.viewmodels.date_range_picker_viewmodel import DateRangePickerViewModel
from daterange_picker.utils.logger import get_logger


class Container(containers.DeclarativeContainer):
    """日期范围选择器依赖注入容器"""

    config = providers.Configuration()

    # setup_logging 在 main.py 中调用一次, 这里只提供配置好的 logger
    logger = providers.Singleton(get_logger)

    # 配置管理: Singleton (QSettings)
    config_manager = providers.Singleton(PickerConfigManager)

    # 预设目录: Singleton, 所有选择器共享
    preset_catalog = providers.Singleton(PresetCatalog)

    # "今天" 的来源, 测试时可以 override
    today_provider = providers.Object(date.today)

    # 当前使用的选择器配置: 从 QSettings 读取, 找不到时使用高级用户默认配置
    picker_config = providers.Factory(
        lambda manager, name: manager.get_config_or_default(name or "default"),
        manager=config_manager,
        name=config.picker.profile,
    )

    # 每个控件都有自己的状态机和 ViewModel: Factory
    range_selection_engine = providers.Factory(
        RangeSelectionEngine,
        config=picker_config,
        preset_catalog=preset_catalog,
        today_provider=today_provider,
    )

    date_range_picker_viewmodel = providers.Factory(
        DateRangePickerViewModel,
        engine=range_selection_engine,
    )
