"""
下载协议模块
============

包含下载请求通道和接收状态机。
"""

from .request_channel import DownloadRequestChannel, PendingRequest
from .state_machine import ReceiveStateMachine, TransferSession

__all__ = [
    "DownloadRequestChannel",
    "PendingRequest",
    "ReceiveStateMachine",
    "TransferSession"
]
