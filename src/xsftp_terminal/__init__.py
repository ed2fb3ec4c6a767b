"""
xsftp 串口终端
==============

基于串口的交互式终端，内嵌简单的文件下载协议。

主要功能：
- 终端文本透传
- get 命令从设备下载文件
- 接收线程与键盘输入互不阻塞

作者: lanford
版本: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "lanford"
__email__ = ""
__description__ = "带文件下载功能的串口终端"

# 导出主要类
from .cli.terminal import TerminalSession
from .transfer.state_machine import ReceiveStateMachine, TransferSession
from .transfer.request_channel import DownloadRequestChannel

__all__ = [
    "TerminalSession",
    "ReceiveStateMachine",
    "TransferSession",
    "DownloadRequestChannel"
]
