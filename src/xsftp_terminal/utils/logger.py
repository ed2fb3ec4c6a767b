"""
日志记录模块
============

提供统一的日志记录功能，支持彩色输出和函数调用追踪。

终端显示占用标准输出，控制台日志一律写到标准错误。
"""

import datetime
import inspect
import logging
import sys
from typing import Optional
from pathlib import Path


class ColoredFormatter(logging.Formatter):
    """彩色日志格式化器"""

    # ANSI颜色代码
    COLORS = {
        'DEBUG': '\033[36m',    # 青色
        'INFO': '\033[0m',      # 默认色
        'WARNING': '\033[33m',  # 黄色
        'ERROR': '\033[31m',    # 红色
        'CRITICAL': '\033[35m', # 紫色
        'RESET': '\033[0m'      # 重置
    }

    def format(self, record):
        """格式化日志记录"""
        # 获取调用信息
        frame = inspect.currentframe()
        try:
            # 跳过logging内部和本模块的栈帧
            while frame:
                filename = frame.f_code.co_filename
                if filename != __file__ and filename != logging.__file__:
                    caller_filename = Path(filename).name
                    caller_function = frame.f_code.co_name
                    caller_line = frame.f_lineno
                    break
                frame = frame.f_back
            else:
                caller_filename = "unknown"
                caller_function = "unknown"
                caller_line = 0
        finally:
            del frame

        # 添加毫秒精度的时间戳
        now = datetime.datetime.now()
        milliseconds = now.microsecond // 1000
        timestamp = now.strftime(f"%Y-%m-%d %H:%M:%S.{milliseconds:03d}")

        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']

        return (
            f"{color}[{timestamp}] {record.getMessage()} "
            f"[{caller_filename}.{caller_function}():{caller_line}]{reset}"
        )


# 全局日志器字典
_loggers = {}

# 当前生效的日志设置，新建的日志器沿用
_settings = {"level": logging.WARNING, "log_file": None, "console_output": True}


def setup_logger(
    name: str = "xsftp_terminal",
    level: int = logging.WARNING,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    设置日志器

    Args:
        name: 日志器名称
        level: 日志级别
        log_file: 日志文件路径，None表示不写入文件
        console_output: 是否输出到控制台(标准错误)

    Returns:
        配置好的日志器
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # 清除已有的处理器
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ColoredFormatter())
        logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    # 防止重复输出
    logger.propagate = False

    return logger


def get_logger(name: str = "xsftp_terminal") -> logging.Logger:
    """
    获取日志器实例

    Args:
        name: 日志器名称

    Returns:
        日志器实例
    """
    if name not in _loggers:
        _loggers[name] = setup_logger(name, **_settings)
    return _loggers[name]


def configure_logging(
    level: int = logging.WARNING,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> None:
    """
    统一调整所有日志器的级别和输出位置

    Args:
        level: 日志级别
        log_file: 日志文件路径
        console_output: 是否输出到控制台
    """
    _settings.update(level=level, log_file=log_file, console_output=console_output)
    for name in list(_loggers):
        _loggers[name] = setup_logger(name, **_settings)
