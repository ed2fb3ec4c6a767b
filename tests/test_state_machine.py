#!/usr/bin/env python3
"""
接收状态机测试
==============

测试 xsftp_terminal.transfer.state_machine 模块。

这是系统的核心模块，负责区分终端文本和下载数据。
测试重点关注：
- 透传字节原样显示
- 起始字节为0时取消下载
- 文件大小和内容的字节边界
- 大小为0的文件
- 传输中不响应新的get请求
- 文件无法创建或写入时保持帧同步
"""

import errno
import io
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

# 添加项目根目录到Python路径
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from xsftp_terminal.config.constants import ProtocolState
from xsftp_terminal.core.display import TerminalDisplay
from xsftp_terminal.transfer.request_channel import DownloadRequestChannel
from xsftp_terminal.transfer.state_machine import ReceiveStateMachine, TransferSession


def size_header(size: int) -> bytes:
    """构造起始字节加4字节大端大小"""
    return b"\x01" + size.to_bytes(4, "big")


@pytest.fixture
def output():
    return io.BytesIO()


@pytest.fixture
def channel():
    return DownloadRequestChannel()


@pytest.fixture
def machine(channel, output):
    return ReceiveStateMachine(channel, TerminalDisplay(stream=output))


class TestTransferSession:
    """测试TransferSession的计数"""

    def test_header_accumulates_big_endian(self):
        session = TransferSession(Path("x.bin"), None)

        for value in (0x00, 0x01, 0x02, 0x03):
            session.consume_header_byte(value)

        assert session.header_complete
        assert session.declared_size == 0x010203
        assert session.bytes_consumed == 4
        assert session.payload_received == 0

    def test_complete_after_declared_payload(self):
        session = TransferSession(Path("x.bin"), None)
        for value in (0, 0, 0, 2):
            session.consume_header_byte(value)

        session.consume_payload_byte(0x41)
        assert not session.complete
        session.consume_payload_byte(0x42)
        assert session.complete
        assert session.payload_received == 2

    def test_close_closes_handle(self):
        handle = io.BytesIO()
        session = TransferSession(Path("x.bin"), handle)

        session.close()

        assert handle.closed
        assert session.output_handle is None
        assert session.active is False


class TestPassthrough:
    """测试透传模式"""

    def test_initial_state(self, machine):
        assert machine.state is ProtocolState.PASSTHROUGH
        assert machine.session is None

    def test_bytes_displayed_unmodified(self, machine, output):
        data = bytes(range(256))

        machine.feed_bytes(data)

        assert output.getvalue() == data
        assert machine.state is ProtocolState.PASSTHROUGH

    def test_single_byte_feed_keeps_order(self, machine, output):
        for value in b"login: ":
            machine.feed(value)

        assert output.getvalue() == b"login: "


class TestAbort:
    """测试对端文件不存在的情况"""

    def test_zero_start_byte_aborts(self, machine, channel, output, tmp_path):
        target = tmp_path / "foo.bin"
        channel.post(str(target))
        assert machine.state is ProtocolState.AWAIT_TRANSFER_START

        machine.feed(0x00)

        assert not target.exists()
        assert channel.armed is False
        assert machine.state is ProtocolState.PASSTHROUGH
        assert output.getvalue() == b""

    def test_text_after_abort_is_displayed(self, machine, channel, output, tmp_path):
        channel.post(str(tmp_path / "foo.bin"))

        machine.feed_bytes(b"\x00\nCan't open file :foo.bin\r\n")

        assert output.getvalue() == b"\nCan't open file :foo.bin\r\n"


class TestDownload:
    """测试完整下载过程"""

    def test_exact_size_round_trip(self, machine, channel, output, tmp_path):
        target = tmp_path / "x.bin"
        payload = bytes(range(10))
        channel.post(str(target))

        machine.feed(0x01)
        assert machine.state is ProtocolState.RECEIVING_HEADER
        for value in (0x00, 0x00, 0x00, 0x0A):
            machine.feed(value)
        assert machine.state is ProtocolState.RECEIVING_PAYLOAD
        assert machine.session.declared_size == 10

        for value in payload[:-1]:
            machine.feed(value)
        # 最后一个字节之前仍在接收
        assert machine.state is ProtocolState.RECEIVING_PAYLOAD
        assert machine.session.payload_received == 9

        machine.feed(payload[-1])

        assert machine.state is ProtocolState.PASSTHROUGH
        assert machine.session is None
        assert target.read_bytes() == payload
        assert machine.completed_transfers == [target]
        assert output.getvalue() == b"\nTransferring 10 bytes...done\n"

    def test_bytes_after_payload_are_terminal_text(self, machine, channel, output, tmp_path):
        target = tmp_path / "x.bin"
        channel.post(str(target))

        machine.feed_bytes(size_header(3) + b"abc" + b"\r\n> ")

        assert target.read_bytes() == b"abc"
        assert output.getvalue().endswith(b"done\n\r\n> ")

    def test_text_before_transfer_flushed_in_order(self, machine, channel, output, tmp_path):
        machine.feed_bytes(b"get x\r\n")
        channel.post(str(tmp_path / "x.bin"))

        machine.feed_bytes(size_header(1) + b"Z" + b"ok")

        assert output.getvalue() == (
            b"get x\r\n" b"\nTransferring 1 bytes..." b"done\n" b"ok"
        )

    def test_payload_may_contain_zero_and_text_bytes(self, machine, channel, tmp_path):
        target = tmp_path / "bin.dat"
        payload = b"\x00\x01get\r\n\x00\xff"
        channel.post(str(target))

        machine.feed_bytes(size_header(len(payload)) + payload)

        assert target.read_bytes() == payload

    def test_existing_file_truncated(self, machine, channel, tmp_path):
        target = tmp_path / "old.txt"
        target.write_bytes(b"previous contents")
        channel.post(str(target))

        machine.feed_bytes(size_header(2) + b"hi")

        assert target.read_bytes() == b"hi"

    def test_large_size_header(self, machine, channel, tmp_path):
        channel.post(str(tmp_path / "big.bin"))

        machine.feed_bytes(b"\x01\x01\x02\x03\x04")

        assert machine.session.declared_size == 0x01020304
        assert machine.state is ProtocolState.RECEIVING_PAYLOAD
        machine.close()


class TestZeroSize:
    """测试大小为0的文件"""

    def test_empty_file_closed_after_header(self, machine, channel, output, tmp_path):
        target = tmp_path / "empty.txt"
        channel.post(str(target))

        machine.feed_bytes(size_header(0))

        assert machine.state is ProtocolState.PASSTHROUGH
        assert target.exists()
        assert target.read_bytes() == b""
        assert output.getvalue() == b"\nTransferring 0 bytes...done\n"

    def test_next_byte_is_not_consumed(self, machine, channel, output, tmp_path):
        channel.post(str(tmp_path / "empty.txt"))

        machine.feed_bytes(size_header(0) + b"$")

        assert output.getvalue().endswith(b"done\n$")


class TestMutualExclusion:
    """测试传输中的get请求"""

    def test_get_during_transfer_not_honored(self, machine, channel, tmp_path):
        first = tmp_path / "a.bin"
        second = tmp_path / "b.bin"
        channel.post(str(first))
        machine.feed_bytes(size_header(4) + b"\x00\x01")
        session = machine.session

        channel.post(str(second))
        machine.feed_bytes(b"\x02\x03")

        # 第一个文件完整接收，第二个请求仍在等待
        assert first.read_bytes() == b"\x00\x01\x02\x03"
        assert not second.exists()
        assert session.active is False
        assert machine.state is ProtocolState.AWAIT_TRANSFER_START

        machine.feed_bytes(size_header(1) + b"B")

        assert second.read_bytes() == b"B"
        assert machine.completed_transfers == [first, second]

    def test_pending_request_not_consumed_during_transfer(self, machine, channel, tmp_path):
        channel.post(str(tmp_path / "a.bin"))
        machine.feed_bytes(size_header(8))

        channel.post(str(tmp_path / "b.bin"))
        machine.feed_bytes(b"\x00" * 4)

        assert channel.armed is True
        assert machine.state is ProtocolState.RECEIVING_PAYLOAD
        machine.close()


class TestOpenFailure:
    """测试文件无法创建的情况"""

    def test_payload_drained_and_passthrough_restored(self, machine, channel, output, tmp_path):
        target = tmp_path / "missing_dir" / "x.bin"
        channel.post(str(target))

        machine.feed_bytes(size_header(2) + b"\xfe\xfd" + b"$ ")

        assert not target.exists()
        assert machine.state is ProtocolState.PASSTHROUGH
        assert machine.completed_transfers == []
        shown = output.getvalue()
        assert b"Can't write" in shown
        assert b"\xfe\xfd" not in shown
        assert shown.endswith(b"Transferring 2 bytes...done\n$ ")



class TestWriteFailure:
    """
    测试写文件失败（如磁盘已满）

    与打开失败相同：放弃文件，读完剩余数据，回到透传状态
    """

    @pytest.fixture
    def failing_handle(self):
        handle = MagicMock()
        handle.write.side_effect = OSError(errno.ENOSPC, "No space left on device")
        with patch("xsftp_terminal.transfer.state_machine.open", create=True, return_value=handle):
            yield handle

    def test_write_error_drains_payload(self, machine, channel, output, tmp_path, failing_handle):
        channel.post(str(tmp_path / "full.bin"))

        machine.feed_bytes(size_header(3) + b"abc" + b"$ ")

        assert machine.state is ProtocolState.PASSTHROUGH
        assert machine.completed_transfers == []
        failing_handle.write.assert_called_once()
        failing_handle.close.assert_called_once()
        text = output.getvalue()
        assert b"Can't write" in text
        assert b"No space left on device" in text
        assert text.endswith(b"done\n$ ")
        assert b"abc" not in text

    def test_next_get_still_works(self, machine, channel, tmp_path, failing_handle):
        channel.post(str(tmp_path / "full.bin"))
        machine.feed_bytes(size_header(2) + b"xy")

        failing_handle.write.side_effect = None
        channel.post(str(tmp_path / "ok.bin"))
        machine.feed_bytes(size_header(1) + b"z")

        assert machine.completed_transfers == [tmp_path / "ok.bin"]
        failing_handle.write.assert_called_with(b"z")

    def test_error_on_close_reported(self, machine, channel, output, tmp_path):
        """缓冲数据在关闭时写盘失败"""
        handle = MagicMock()
        handle.close.side_effect = OSError(errno.EIO, "Input/output error")
        channel.post(str(tmp_path / "late.bin"))

        with patch("xsftp_terminal.transfer.state_machine.open", create=True, return_value=handle):
            machine.feed_bytes(size_header(2) + b"ok" + b"> ")

        assert machine.state is ProtocolState.PASSTHROUGH
        assert machine.completed_transfers == []
        assert b"Can't write" in output.getvalue()
        assert output.getvalue().endswith(b"done\n> ")


class TestClose:
    """测试终端退出时的清理"""

    def test_close_without_session(self, machine):
        machine.close()
        assert machine.session is None

    def test_close_mid_transfer_keeps_partial_file(self, machine, channel, tmp_path):
        target = tmp_path / "partial.bin"
        channel.post(str(target))
        machine.feed_bytes(size_header(5) + b"ab")

        machine.close()

        assert machine.session is None
        assert machine.state is ProtocolState.PASSTHROUGH
        assert target.read_bytes() == b"ab"
        assert machine.completed_transfers == []
