"""
核心模块
========

包含串口管理、接收线程和终端显示等核心功能。

ReceiverThread依赖transfer包，请从core.receiver_thread直接导入。
"""

from .display import TerminalDisplay
from .serial_manager import SerialManager

__all__ = [
    "TerminalDisplay",
    "SerialManager"
]
