"""
下载请求通道
============

命令分发器(生产者)和接收状态机(消费者)之间唯一的共享数据。
通道最多保存一个待处理请求，新的get请求覆盖尚未被消费的旧请求。
"""

import queue
from dataclasses import dataclass
from typing import Optional

from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PendingRequest:
    """操作员发出的下载请求"""

    target_filename: str


class DownloadRequestChannel:
    """单生产者/单消费者的下载请求通道"""

    def __init__(self):
        self._queue: queue.Queue[PendingRequest] = queue.Queue(maxsize=1)

    @property
    def armed(self) -> bool:
        """是否有待处理的请求"""
        return not self._queue.empty()

    def post(self, target_filename: str) -> PendingRequest:
        """
        投递下载请求

        Args:
            target_filename: 本地保存的文件名

        Returns:
            投递的请求
        """
        request = PendingRequest(target_filename)
        try:
            self._queue.put_nowait(request)
        except queue.Full:
            # 只有一个消费者，取走旧请求后一定放得进去
            try:
                replaced = self._queue.get_nowait()
                logger.warning(f"下载请求 {replaced.target_filename} 未被处理，已被替换")
            except queue.Empty:
                pass
            self._queue.put_nowait(request)

        logger.debug(f"已登记下载请求: {target_filename}")
        return request

    def take(self) -> Optional[PendingRequest]:
        """
        取出待处理的请求(不阻塞)

        Returns:
            有请求返回PendingRequest，否则返回None
        """
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None
