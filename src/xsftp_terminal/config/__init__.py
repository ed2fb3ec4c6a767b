"""
配置模块
=======

包含系统常量定义和配置管理功能。
"""

from .constants import *
from .settings import *

__all__ = [
    # 常量
    "ProtocolState",
    "ABORT_FLAG",
    "SIZE_HEADER_LENGTH",
    "LINE_TERMINATOR",
    "DEFAULT_ENCODING",
    "DEFAULT_TIMEOUT",
    # 配置
    "SerialConfig",
    "TerminalConfig",
]
