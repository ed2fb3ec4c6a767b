"""
命令行接口模块
==============

提供命令分发器和串口终端会话。
"""

from .dispatcher import Command, CommandDispatcher
from .terminal import TerminalSession

__all__ = [
    "Command",
    "CommandDispatcher",
    "TerminalSession"
]
