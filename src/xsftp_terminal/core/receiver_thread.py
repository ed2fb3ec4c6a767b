"""
接收线程模块
============

在独立线程中阻塞读取串口，把收到的字节交给接收状态机处理，
与读取键盘输入的主线程互不阻塞。
"""

import threading
from typing import Optional

import serial

from ..config.constants import (
    MAX_CONSECUTIVE_READ_ERRORS,
    READ_ERROR_DELAY,
    RECEIVER_JOIN_TIMEOUT,
)
from ..core.serial_manager import SerialManager
from ..transfer.state_machine import ReceiveStateMachine
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ReceiverThread:
    """
    接收线程类

    串口读超时很短，线程借此定期检查停止事件；没有数据时不做忙等。
    """

    def __init__(self, serial_manager: SerialManager, state_machine: ReceiveStateMachine):
        """
        初始化接收线程

        Args:
            serial_manager: 串口管理器
            state_machine: 接收状态机，只在本线程中调用
        """
        self.serial_manager = serial_manager
        self.state_machine = state_machine

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False

        # 统计信息
        self.bytes_received = 0
        self.read_errors = 0

    def start(self) -> bool:
        """
        启动接收线程

        Returns:
            启动成功返回True，失败返回False
        """
        if self._running:
            logger.warning("接收线程已经在运行")
            return True

        if not self.serial_manager.is_open:
            logger.error("串口未打开，无法启动接收线程")
            return False

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._receive_loop, name="xsftp-receiver", daemon=True
        )
        self._thread.start()
        self._running = True

        logger.info("接收线程已启动")
        return True

    def stop(self, timeout: float = RECEIVER_JOIN_TIMEOUT) -> bool:
        """
        停止接收线程

        Args:
            timeout: 等待线程结束的超时时间(秒)

        Returns:
            停止成功返回True，超时返回False
        """
        if not self._running:
            return True

        logger.info("正在停止接收线程...")
        self._stop_event.set()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout)

            if self._thread.is_alive():
                logger.warning(f"接收线程未在{timeout}秒内结束")
                return False

        self._running = False
        logger.info("接收线程已停止")
        return True

    @property
    def is_running(self) -> bool:
        """检查接收线程是否在运行"""
        return self._running and self._thread is not None and self._thread.is_alive()

    def get_statistics(self) -> dict:
        """
        获取接收线程统计信息

        Returns:
            包含统计信息的字典
        """
        return {
            "running": self.is_running,
            "bytes_received": self.bytes_received,
            "read_errors": self.read_errors,
            "completed_transfers": len(self.state_machine.completed_transfers),
        }

    def _receive_loop(self) -> None:
        """
        接收线程主循环

        只记录连续读取失败中的第一次；连续失败达到上限时认为串口已断开，线程退出。
        """
        logger.debug("接收线程开始运行")
        consecutive_errors = 0

        while not self._stop_event.is_set():
            try:
                data = self.serial_manager.read_available()
            except (serial.SerialException, OSError) as e:
                self.read_errors += 1
                consecutive_errors += 1
                if consecutive_errors == 1:
                    logger.error(f"串口读取异常: {e}")
                else:
                    logger.debug(f"串口读取异常({consecutive_errors}): {e}")

                if consecutive_errors >= MAX_CONSECUTIVE_READ_ERRORS:
                    logger.error(f"串口连续{consecutive_errors}次读取失败，接收线程退出")
                    break

                self._stop_event.wait(READ_ERROR_DELAY)
                continue

            consecutive_errors = 0
            if data:
                self.bytes_received += len(data)
                self.state_machine.feed_bytes(data)

        logger.debug("接收线程已结束")
