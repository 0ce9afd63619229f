#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
日期范围选择器演示程序 - 主程序入口

并排显示一个高级用户选择器 (预设面板) 和一个普通用户选择器。
"""

import sys
import logging
from typing import NoReturn

from PySide6.QtWidgets import QApplication, QHBoxLayout, QLabel, QVBoxLayout, QWidget

from daterange_picker.config.picker_config_manager import PickerConfig
from daterange_picker.containers import Container
from daterange_picker.ui.components.date_range_picker import DateRangePickerWidget
from daterange_picker.utils.logger import setup_logging, get_logger


def _build_demo_window(container: Container) -> QWidget:
    window = QWidget()
    window.setWindowTitle("Date Range Picker")
    root = QVBoxLayout(window)
    row = QHBoxLayout()
    status = QLabel("No range applied yet.")

    for title, config in (("Premium", PickerConfig.premium()), ("Standard", PickerConfig.standard())):
        column = QVBoxLayout()
        column.addWidget(QLabel(title))
        engine = container.range_selection_engine(config=config)
        view_model = container.date_range_picker_viewmodel(engine=engine)
        picker = DateRangePickerWidget(view_model)
        picker.dateRangeChanged.connect(
            lambda start, end, t=title: status.setText(f"{t}: {start.isoformat()} - {end.isoformat()}")
        )
        picker.initialize()
        column.addWidget(picker)
        row.addLayout(column)

    root.addLayout(row)
    root.addWidget(status)
    return window


def main() -> NoReturn:
    """
    初始化日志和依赖注入容器, 创建演示窗口并启动 Qt 事件循环。
    """
    setup_logging(log_level=logging.INFO)
    logger = get_logger("main_entry")
    logger.info("应用程序启动")

    container = Container()
    container.config.from_dict({"picker": {"profile": "default"}})

    try:
        app = QApplication(sys.argv)
        app.setApplicationName("DateRangePicker")
        app.setOrganizationName("DateRangePicker")

        window = _build_demo_window(container)
        window.show()
        logger.info("演示窗口已显示，启动 Qt 事件循环...")
        exit_code = app.exec()
        logger.info(f"Qt 事件循环结束，退出代码: {exit_code}")
        sys.exit(exit_code)
    except Exception as e:
        logger.error(f"应用程序运行时发生未处理的异常: {str(e)}", exc_info=True)
        print(f"严重错误: 应用程序意外终止 - {str(e)}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
