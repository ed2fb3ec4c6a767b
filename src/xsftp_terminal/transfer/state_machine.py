"""
接收状态机模块
==============

逐字节解析串口收到的数据，区分终端文本和下载协议数据。

下载协议帧格式::

    [起始字节][4字节文件大小, 大端][文件内容]

起始字节为0表示对端文件不存在，非0表示开始传输。起始字节只是标志，
不计入文件大小。
"""

from pathlib import Path
from typing import BinaryIO, List, Optional

from ..config.constants import (
    ABORT_FLAG,
    NOTICE_DONE,
    NOTICE_FILE_ERROR,
    NOTICE_TRANSFERRING,
    SIZE_BYTE_BASE,
    SIZE_HEADER_LENGTH,
    ProtocolState,
)
from ..core.display import TerminalDisplay
from ..utils.logger import get_logger
from .request_channel import DownloadRequestChannel, PendingRequest

logger = get_logger(__name__)


class TransferSession:
    """一次文件下载的状态"""

    def __init__(self, target_path: Path, output_handle: Optional[BinaryIO]):
        """
        Args:
            target_path: 本地文件路径
            output_handle: 已打开的输出文件，None表示打开失败，只丢弃数据
        """
        self.target_path = target_path
        self.output_handle = output_handle
        self.declared_size = 0
        self.bytes_consumed = 0  # 从第一个大小字节开始计数
        self.active = True

    @property
    def header_complete(self) -> bool:
        return self.bytes_consumed >= SIZE_HEADER_LENGTH

    @property
    def payload_received(self) -> int:
        return max(0, self.bytes_consumed - SIZE_HEADER_LENGTH)

    @property
    def complete(self) -> bool:
        """大小字段和全部文件内容都已收到"""
        return (
            self.header_complete
            and self.bytes_consumed == SIZE_HEADER_LENGTH + self.declared_size
        )

    def consume_header_byte(self, value: int) -> None:
        self.declared_size = self.declared_size * SIZE_BYTE_BASE + value
        self.bytes_consumed += 1

    def consume_payload_byte(self, value: int) -> None:
        # 先计数，写文件失败也不影响帧同步
        self.bytes_consumed += 1
        if self.output_handle is not None:
            self.output_handle.write(bytes((value,)))

    def drop_output(self) -> None:
        """关闭并放弃输出文件，之后的数据只计数不写入"""
        handle, self.output_handle = self.output_handle, None
        if handle is not None:
            handle.close()

    def close(self) -> None:
        """关闭输出文件，会话结束"""
        self.active = False
        self.drop_output()


class ReceiveStateMachine:
    """
    串口接收状态机

    只由接收线程驱动。与命令分发器之间只通过DownloadRequestChannel通信；
    传输进行中不读取通道，新的get请求要等当前传输结束后才生效。
    """

    def __init__(self, channel: DownloadRequestChannel, display: TerminalDisplay):
        """
        Args:
            channel: 下载请求通道
            display: 终端显示
        """
        self.channel = channel
        self.display = display
        self.completed_transfers: List[Path] = []
        self._session: Optional[TransferSession] = None
        self._text = bytearray()  # 待输出到终端的透传字节

    @property
    def session(self) -> Optional[TransferSession]:
        """当前传输会话，没有传输时为None"""
        return self._session

    @property
    def state(self) -> ProtocolState:
        """当前状态"""
        if self._session is not None:
            if self._session.header_complete:
                return ProtocolState.RECEIVING_PAYLOAD
            return ProtocolState.RECEIVING_HEADER
        if self.channel.armed:
            return ProtocolState.AWAIT_TRANSFER_START
        return ProtocolState.PASSTHROUGH

    def feed(self, value: int) -> None:
        """处理一个字节"""
        self._step(value)
        self._flush_text()

    def feed_bytes(self, data: bytes) -> None:
        """按顺序逐字节处理一段数据，终端文本合并输出"""
        for value in data:
            self._step(value)
        self._flush_text()

    def close(self) -> None:
        """终端退出时关闭未完成的传输"""
        self._flush_text()
        if self._session is not None:
            session = self._session
            logger.warning(
                f"传输未完成: {session.target_path} "
                f"({session.payload_received}/{session.declared_size} 字节)"
            )
            self._session = None
            try:
                session.close()
            except OSError as e:
                logger.warning(f"关闭文件失败 {session.target_path}: {e}")

    def _step(self, value: int) -> None:
        if self._session is None:
            request = self.channel.take()
            if request is not None:
                self._start_transfer(request, value)
            else:
                self._text.append(value)
            return

        session = self._session
        if not session.header_complete:
            session.consume_header_byte(value)
            if session.header_complete:
                self._notice(NOTICE_TRANSFERRING % session.declared_size)
                logger.info(f"开始接收 {session.target_path}, 大小 {session.declared_size} 字节")
                if session.declared_size == 0:
                    self._finish_transfer()
            return

        try:
            session.consume_payload_byte(value)
        except OSError as e:
            # 与打开失败相同处理：放弃文件，继续读完剩余数据
            logger.error(f"写入文件失败 {session.target_path}: {e}")
            self._notice(NOTICE_FILE_ERROR % (session.target_path, e.strerror or e))
            self._drop_output(session)

        if session.complete:
            self._finish_transfer()

    def _start_transfer(self, request: PendingRequest, flag: int) -> None:
        """处理get请求之后收到的第一个字节"""
        if flag == ABORT_FLAG:
            logger.info(f"对端文件不存在，取消下载: {request.target_filename}")
            return

        target_path = Path(request.target_filename)
        try:
            output_handle = open(target_path, "wb")
        except OSError as e:
            # 继续按协议读完数据，保持帧同步，只是不写文件
            logger.error(f"无法创建文件 {target_path}: {e}")
            self._notice(NOTICE_FILE_ERROR % (target_path, e.strerror or e))
            output_handle = None

        self._session = TransferSession(target_path, output_handle)
        logger.debug(f"下载会话开始: {target_path}")

    def _finish_transfer(self) -> None:
        session = self._session
        saved = session.output_handle is not None
        self._session = None
        try:
            session.close()
        except OSError as e:
            # 缓冲区的数据在关闭时才写入磁盘
            logger.error(f"写入文件失败 {session.target_path}: {e}")
            self._notice(NOTICE_FILE_ERROR % (session.target_path, e.strerror or e))
            saved = False
        self._notice(NOTICE_DONE)

        if saved:
            self.completed_transfers.append(session.target_path)
            logger.info(f"文件接收完成: {session.target_path} ({session.declared_size} 字节)")
        else:
            logger.warning(f"已丢弃 {session.declared_size} 字节: {session.target_path}")

    @staticmethod
    def _drop_output(session: TransferSession) -> None:
        """放弃输出文件，关闭失败只记录日志"""
        try:
            session.drop_output()
        except OSError as e:
            logger.warning(f"关闭文件失败 {session.target_path}: {e}")

    def _notice(self, text: str) -> None:
        self._flush_text()
        self.display.notice(text)

    def _flush_text(self) -> None:
        if self._text:
            self.display.write_bytes(bytes(self._text))
            self._text.clear()
