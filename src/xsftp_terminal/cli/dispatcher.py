"""
命令分发模块
============

逐行读取操作员输入，原样转发给设备（换行替换为回车），
并识别两个保留命令：

- ``get <文件名>``: 登记下载请求，由接收状态机处理设备的应答
- ``exit``: 退出程序，退出码为1

输入按字节处理，键入什么就发送什么，不经过编码转换。
文件名不做路径安全检查，按操作员输入的字面路径保存。
"""

import os
import sys
from enum import Enum
from typing import BinaryIO, Optional, Tuple

from ..config.constants import CMD_EXIT, CMD_GET, EXIT_STATUS_USER
from ..config.settings import TerminalConfig
from ..core.serial_manager import SerialManager
from ..transfer.request_channel import DownloadRequestChannel
from ..utils.logger import get_logger

logger = get_logger(__name__)


class Command(Enum):
    """操作员输入行的类型"""

    FORWARD = "forward"  # 普通行，仅转发
    GET = "get"
    EXIT = "exit"


class CommandDispatcher:
    """命令分发器"""

    def __init__(
        self,
        serial_manager: SerialManager,
        channel: DownloadRequestChannel,
        config: Optional[TerminalConfig] = None,
    ):
        """
        初始化命令分发器

        Args:
            serial_manager: 串口管理器
            channel: 下载请求通道
            config: 终端配置（可选）
        """
        self.serial_manager = serial_manager
        self.channel = channel
        self.config = config or TerminalConfig()

    def encode_line(self, line: bytes) -> bytes:
        """
        把输入行转换为发往设备的字节，行尾换行替换为回车

        Args:
            line: 含行尾换行的输入行

        Returns:
            要写入串口的数据
        """
        if line.endswith(b"\r\n"):
            return line[:-2] + self.config.line_terminator
        if line.endswith(b"\n"):
            return line[:-1] + self.config.line_terminator
        return line

    @staticmethod
    def parse(line: bytes) -> Tuple[Command, Optional[str]]:
        """
        解析输入行的第一个词

        Args:
            line: 输入行

        Returns:
            (命令类型, get命令的文件名)
        """
        tokens = line.split()
        if not tokens:
            return Command.FORWARD, None

        if tokens[0] == CMD_GET.encode("ascii"):
            # 按文件系统编码还原文件名，无法解码的字节原样保留
            return Command.GET, os.fsdecode(tokens[1]) if len(tokens) > 1 else None
        if tokens[0] == CMD_EXIT.encode("ascii"):
            return Command.EXIT, None
        return Command.FORWARD, None

    def dispatch(self, line: bytes) -> Command:
        """
        处理一行输入

        下载请求先于命令本身登记，设备的应答不会早于请求到达接收线程。

        Args:
            line: 输入行

        Returns:
            识别出的命令类型
        """
        command, filename = self.parse(line)

        if command is Command.GET:
            if filename:
                self.channel.post(filename)
            else:
                logger.warning("get命令缺少文件名，不登记下载请求")

        if not self.serial_manager.write(self.encode_line(line)):
            logger.warning(f"发送失败: {line.rstrip()!r}")

        return command

    def run(self, input_stream: Optional[BinaryIO] = None) -> int:
        """
        读取输入直到exit命令或输入结束

        Args:
            input_stream: 二进制行输入源，默认为标准输入

        Returns:
            进程退出码，exit命令返回1，输入结束返回0
        """
        stream = input_stream if input_stream is not None else sys.stdin.buffer

        for line in iter(stream.readline, b""):
            if self.dispatch(line) is Command.EXIT:
                logger.info("收到exit命令，退出")
                return EXIT_STATUS_USER

        logger.info("输入结束")
        return 0
