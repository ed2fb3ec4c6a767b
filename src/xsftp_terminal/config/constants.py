"""
系统常量定义
============

定义串口终端和下载协议中使用的各种常量。
"""

from enum import Enum
from typing import Final, Tuple

import serial


class ProtocolState(Enum):
    """接收状态机的状态"""

    PASSTHROUGH = "passthrough"  # 透传，字节直接显示到终端
    AWAIT_TRANSFER_START = "await_transfer_start"  # 已发出get，等待起始字节
    RECEIVING_HEADER = "receiving_header"  # 接收4字节文件大小
    RECEIVING_PAYLOAD = "receiving_payload"  # 接收文件内容


# 下载协议帧格式：[起始字节][4字节大小(大端)][文件内容]
ABORT_FLAG: Final[int] = 0x00  # 起始字节为0表示对端文件不存在
SIZE_HEADER_LENGTH: Final[int] = 4  # 文件大小字段长度
SIZE_BYTE_BASE: Final[int] = 256  # 大小字段逐字节累加的基数

# 操作员命令
CMD_GET: Final[str] = "get"
CMD_EXIT: Final[str] = "exit"
EXIT_STATUS_USER: Final[int] = 1  # exit命令退出码（保持非零）

# 终端输出文本
NOTICE_TRANSFERRING: Final[str] = "\nTransferring %i bytes..."
NOTICE_DONE: Final[str] = "done\n"
NOTICE_FILE_ERROR: Final[str] = "\nCan't write %s: %s\n"

# 终端行处理
LINE_TERMINATOR: Final[bytes] = b"\r"  # 远端设备只认回车
DEFAULT_ENCODING: Final[str] = "latin-1"  # 终端提示文本编码

# 串口配置默认值
DEFAULT_TIMEOUT: Final[float] = 0.1  # 读超时(秒)，接收线程借此检查停止事件
SUPPORTED_BYTESIZES: Final[Tuple[int, ...]] = (
    serial.FIVEBITS,
    serial.SIXBITS,
    serial.SEVENBITS,
    serial.EIGHTBITS,
)
SUPPORTED_STOPBITS: Final[Tuple[float, ...]] = (
    serial.STOPBITS_ONE,
    serial.STOPBITS_ONE_POINT_FIVE,
    serial.STOPBITS_TWO,
)

# 接收线程
READ_CHUNK_MAX: Final[int] = 4096  # 单次最多读取的字节数
RECEIVER_JOIN_TIMEOUT: Final[float] = 2.0  # 等待接收线程结束的时间(秒)
MAX_CONSECUTIVE_READ_ERRORS: Final[int] = 50  # 连续读取失败次数上限，超过后视为串口断开
READ_ERROR_DELAY: Final[float] = 0.01  # 读取失败后的等待时间(秒)
