#!/usr/bin/env python3
"""
下载请求通道测试
================

测试 xsftp_terminal.transfer.request_channel 模块。
"""

import sys
from pathlib import Path

# 添加项目根目录到Python路径
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from xsftp_terminal.transfer.request_channel import DownloadRequestChannel, PendingRequest


class TestDownloadRequestChannel:
    """测试DownloadRequestChannel"""

    def test_initially_unarmed(self):
        channel = DownloadRequestChannel()

        assert channel.armed is False
        assert channel.take() is None

    def test_post_then_take(self):
        channel = DownloadRequestChannel()

        posted = channel.post("report.txt")

        assert posted == PendingRequest("report.txt")
        assert channel.armed is True
        assert channel.take() == PendingRequest("report.txt")
        assert channel.armed is False

    def test_newer_request_replaces_older(self):
        """
        测试只保留一个待处理请求

        连续两次get，接收端只会看到最后一个文件名
        """
        channel = DownloadRequestChannel()

        channel.post("first.bin")
        channel.post("second.bin")

        assert channel.take().target_filename == "second.bin"
        assert channel.take() is None

