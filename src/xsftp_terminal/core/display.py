"""
终端显示模块
============

把串口收到的字节原样输出到终端，并输出传输提示。
"""

import sys
import threading
from typing import BinaryIO, Optional

from ..config.constants import DEFAULT_ENCODING


class TerminalDisplay:
    """无缓冲的终端输出"""

    def __init__(self, stream: Optional[BinaryIO] = None, encoding: str = DEFAULT_ENCODING):
        """
        Args:
            stream: 二进制输出流，默认为标准输出
            encoding: 提示文本的编码
        """
        self.stream = stream if stream is not None else sys.stdout.buffer
        self.encoding = encoding
        self._lock = threading.Lock()

    def write_bytes(self, data: bytes) -> None:
        """原样输出字节"""
        with self._lock:
            self.stream.write(data)
            self.stream.flush()

    def notice(self, text: str) -> None:
        """输出一条提示文本"""
        self.write_bytes(text.encode(self.encoding, errors="replace"))
