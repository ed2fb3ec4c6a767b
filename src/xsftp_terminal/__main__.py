#!/usr/bin/env python3
"""
xsftp 串口终端 - 模块CLI入口
============================

支持通过 python -m xsftp_terminal 调用::

    python -m xsftp_terminal /dev/ttyUSB0 115200 8 1
"""

import argparse
import logging
import sys
from typing import List, Optional, Union

from . import __version__
from .cli.terminal import TerminalSession
from .config.settings import SerialConfig, TerminalConfig
from .core.serial_manager import SerialManager
from .utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

PROGRAM_NAME = "xsftp-terminal"
USAGE = f"Usage: {PROGRAM_NAME} portpath bps nbits stopb"


def create_parser():
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog=PROGRAM_NAME,
        description=f"xsftp 串口终端 v{__version__}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
终端内命令：
  get <文件名>   从设备下载文件，保存到本地同名路径
  exit           退出程序

使用示例：
  python -m xsftp_terminal /dev/ttyUSB0 115200 8 1
  python -m xsftp_terminal --list-ports
        """,
    )

    parser.add_argument(
        "--version", action="version", version=f"{PROGRAM_NAME} v{__version__}"
    )

    # 位置参数都设为可选，缺少时由main统一报用法错误
    parser.add_argument("port", nargs="?", help="串口号（如 COM1, /dev/ttyUSB0）")
    parser.add_argument("baudrate", nargs="?", help="波特率")
    parser.add_argument("bytesize", nargs="?", help="数据位（5-8）")
    parser.add_argument("stopbits", nargs="?", help="停止位（1, 1.5, 2）")

    parser.add_argument("--list-ports", action="store_true", help="列出可用串口后退出")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="日志级别（默认WARNING，输出到标准错误）",
    )
    parser.add_argument("--log-file", help="日志文件路径")
    parser.add_argument("--encoding", default=TerminalConfig.encoding, help="终端提示文本编码")

    return parser


def parse_stopbits(value: str) -> Union[int, float]:
    """解析停止位，整数保持int"""
    number = float(value)
    return int(number) if number.is_integer() else number


def build_configs(args: argparse.Namespace):
    """
    根据命令行参数创建配置

    Returns:
        (SerialConfig, TerminalConfig)

    Raises:
        ValueError: 参数无效
    """
    serial_config = SerialConfig(
        port=args.port,
        baudrate=int(args.baudrate),
        bytesize=int(args.bytesize),
        stopbits=parse_stopbits(args.stopbits),
    )
    terminal_config = TerminalConfig(
        encoding=args.encoding,
        log_level=getattr(logging, args.log_level),
        log_file=args.log_file,
    )
    return serial_config, terminal_config


def main(argv: Optional[List[str]] = None) -> int:
    """
    主函数

    Returns:
        进程退出码
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.list_ports:
        SerialManager.print_available_ports()
        return 0

    if None in (args.port, args.baudrate, args.bytesize, args.stopbits):
        print(USAGE, file=sys.stderr)
        return 1

    try:
        serial_config, terminal_config = build_configs(args)
    except ValueError as e:
        print(f"参数错误: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1

    configure_logging(terminal_config.log_level, terminal_config.log_file)

    try:
        return TerminalSession(serial_config, terminal_config).run()
    except OSError as e:
        logger.error(f"程序异常: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
