"""
配置管理
========

提供串口和终端相关的配置类。
"""

import codecs
import logging
from dataclasses import dataclass
from typing import Optional

import serial

from .constants import (
    DEFAULT_ENCODING,
    DEFAULT_TIMEOUT,
    LINE_TERMINATOR,
    SUPPORTED_BYTESIZES,
    SUPPORTED_STOPBITS,
)


@dataclass
class SerialConfig:
    """串口配置类，校验位固定为无校验"""

    port: str  # 串口号
    baudrate: int  # 波特率
    bytesize: int = serial.EIGHTBITS  # 数据位
    stopbits: float = serial.STOPBITS_ONE  # 停止位
    timeout: Optional[float] = DEFAULT_TIMEOUT  # 读超时时间

    def __post_init__(self):
        """参数验证"""
        if not self.port:
            raise ValueError("port不能为空")
        if self.baudrate <= 0:
            raise ValueError("baudrate必须大于0")
        if self.bytesize not in SUPPORTED_BYTESIZES:
            raise ValueError(f"不支持的数据位: {self.bytesize}")
        if self.stopbits not in SUPPORTED_STOPBITS:
            raise ValueError(f"不支持的停止位: {self.stopbits}")
        if self.timeout is not None and self.timeout < 0:
            raise ValueError("timeout不能为负数")

    @property
    def parity(self) -> str:
        """校验位，不可配置"""
        return serial.PARITY_NONE

    def to_serial_kwargs(self) -> dict:
        """转换为serial.Serial的参数字典"""
        return {
            "port": self.port,
            "baudrate": self.baudrate,
            "bytesize": self.bytesize,
            "parity": self.parity,
            "stopbits": self.stopbits,
            "timeout": self.timeout,
        }


@dataclass
class TerminalConfig:
    """终端配置类"""

    encoding: str = DEFAULT_ENCODING  # 终端提示文本的编码
    line_terminator: bytes = LINE_TERMINATOR  # 发往设备的行结束符
    log_level: int = logging.WARNING  # 日志级别
    log_file: Optional[str] = None  # 日志文件，None表示不写文件

    def __post_init__(self):
        """参数验证"""
        if not self.line_terminator:
            raise ValueError("line_terminator不能为空")
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(f"未知编码: {self.encoding}")
