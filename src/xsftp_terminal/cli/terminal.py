"""
串口终端会话
============

组装串口、接收线程、接收状态机和命令分发器，运行一次终端会话。
"""

import sys
from typing import BinaryIO, Optional

from ..config.constants import EXIT_STATUS_USER
from ..config.settings import SerialConfig, TerminalConfig
from ..core.display import TerminalDisplay
from ..core.receiver_thread import ReceiverThread
from ..core.serial_manager import SerialManager
from ..transfer.request_channel import DownloadRequestChannel
from ..transfer.state_machine import ReceiveStateMachine
from ..utils.logger import get_logger
from .dispatcher import CommandDispatcher

logger = get_logger(__name__)


class TerminalSession:
    """串口终端会话"""

    def __init__(
        self,
        serial_config: SerialConfig,
        terminal_config: Optional[TerminalConfig] = None,
        display: Optional[TerminalDisplay] = None,
        input_stream: Optional[BinaryIO] = None,
    ):
        """
        初始化终端会话

        Args:
            serial_config: 串口配置
            terminal_config: 终端配置（可选）
            display: 终端显示（可选，默认标准输出）
            input_stream: 二进制行输入源（可选，默认标准输入）
        """
        self.config = terminal_config or TerminalConfig()
        self.input_stream = input_stream

        self.serial_manager = SerialManager(serial_config)
        self.channel = DownloadRequestChannel()
        self.display = display or TerminalDisplay(encoding=self.config.encoding)
        self.state_machine = ReceiveStateMachine(self.channel, self.display)
        self.receiver = ReceiverThread(self.serial_manager, self.state_machine)
        self.dispatcher = CommandDispatcher(self.serial_manager, self.channel, self.config)

    def run(self) -> int:
        """
        运行终端会话直到exit命令或输入结束

        Returns:
            进程退出码
        """
        try:
            with self.serial_manager.connection():
                return self._run_connected()
        except RuntimeError as e:
            print(e, file=sys.stderr)
            return 1

    def _run_connected(self) -> int:
        """串口已打开后启动接收线程并处理键盘输入"""
        if not self.receiver.start():
            return 1

        try:
            return self.dispatcher.run(self.input_stream)

        except KeyboardInterrupt:
            logger.info("用户中断")
            return EXIT_STATUS_USER

        finally:
            self.receiver.stop()
            self.state_machine.close()
            logger.debug(f"接收统计: {self.receiver.get_statistics()}")
