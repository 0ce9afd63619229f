# daterange_picker/utils/logger.py
"""
日志配置 - 包级 logger 同时输出到按时间轮转的文件和标准输出。

各模块使用 logging.getLogger(__name__), 名称都以 "daterange_picker" 开头,
因此只需配置一次包级 logger。
"""

import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler

LOGGER_NAME = "daterange_picker"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
log_dir = os.path.join(_project_root, 'logs')
log_file = os.path.join(log_dir, 'daterange_picker.log')


def setup_logging(log_level: int = logging.INFO, backup_count: int = 7, when: str = 'D',
                  interval: int = 1, to_file: bool = True) -> logging.Logger:
    """
    配置包级 logger。重复调用会替换之前的 handlers。

    Args:
        log_level: 日志级别.
        backup_count: 保留的轮转文件数量.
        when / interval: 传给 TimedRotatingFileHandler 的轮转周期.
        to_file: False 时只输出到标准输出 (测试或嵌入宿主应用时).
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]
    if to_file:
        os.makedirs(log_dir, exist_ok=True)
        handlers.insert(0, TimedRotatingFileHandler(
            log_file, when=when, interval=interval, backupCount=backup_count, encoding='utf-8'
        ))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.info(f"日志系统已初始化。级别: {logging.getLevelName(log_level)}, "
                f"文件: {log_file if to_file else '(disabled)'}")
    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    return logging.getLogger(name)
