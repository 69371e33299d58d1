#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
命令行入口

Usage:
    bdatkit extract data/ -o out/ -f json --hashes names.txt
    bdatkit pack out/ -o packed/ -f json
    python -m bdatkit --help

退出码: 0 成功, 1 转换失败, 2 配置错误
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .convert import FILE_TYPES
from .converter import ConvertOptions, run_conversions
from .core.batch import ErrorPolicy, ProgressInfo
from .core.hash_table import HashNameTable
from .core.types import ByteOrder
from .exceptions import BdatError, ConfigError


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def setup_logging(verbose: bool = False) -> None:
    """配置日志输出"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def print_progress(info: ProgressInfo) -> None:
    """在 stderr 上输出文本进度"""
    finished = info.current >= info.total
    remaining = "" if finished else f" 剩余 {info.eta:.0f}s"
    sys.stderr.write(
        f"\r[{info.label}] {info.current}/{info.total} "
        f"({info.progress:.0%}){remaining} {info.current_item}\033[K"
    )
    if finished:
        sys.stderr.write("\n")
    sys.stderr.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bdatkit",
        description="BDAT 二进制表与 JSON / CSV 互转工具",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("inputs", nargs="+", help="输入文件或目录")
    common.add_argument("-o", "--out", required=True, help="输出目录")
    common.add_argument(
        "-f", "--file-type", default="json", choices=FILE_TYPES, help="文本格式 (默认 json)"
    )
    common.add_argument("-j", "--jobs", type=int, default=None, help="并行数 (默认 CPU 核心数)")
    common.add_argument("--csv-delimiter", default=",", help="CSV 分隔符 (默认 ,)")
    common.add_argument(
        "--keep-going", action="store_true", help="某个文件失败后继续处理其余文件"
    )
    common.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    extract_parser = subparsers.add_parser(
        "extract", parents=[common], help="将 BDAT 文件导出为 JSON / CSV"
    )
    extract_parser.add_argument(
        "-u", "--untyped", action="store_true", help="JSON 表文件中不内嵌列 Schema"
    )
    extract_parser.add_argument(
        "-s", "--no-schema", action="store_true", help="不写出 .bschema 文件"
    )
    extract_parser.add_argument(
        "-t", "--tables", nargs="+", default=[], metavar="NAME", help="只导出匹配的表 (支持通配符)"
    )
    extract_parser.add_argument(
        "-c", "--columns", nargs="+", default=[], metavar="NAME", help="只导出匹配的列 (支持通配符)"
    )
    extract_parser.add_argument("--pretty", action="store_true", help="JSON 缩进输出")
    extract_parser.add_argument("--hashes", metavar="FILE", help="名称列表文件，用于还原 Hash 标签")
    extract_parser.set_defaults(is_extracting=True)

    pack_parser = subparsers.add_parser(
        "pack", parents=[common], help="根据 .bschema 将 JSON / CSV 打包为 BDAT 文件"
    )
    pack_parser.add_argument(
        "--byte-order", default="little", choices=[b.value for b in ByteOrder],
        help="输出文件的字节序 (默认 little)"
    )
    pack_parser.set_defaults(is_extracting=False)

    return parser


def options_from_args(args: argparse.Namespace) -> ConvertOptions:
    """把命令行参数映射为 ConvertOptions"""
    return ConvertOptions(
        out_dir=args.out,
        file_type=args.file_type,
        untyped=getattr(args, "untyped", False),
        no_schema=getattr(args, "no_schema", False),
        tables=getattr(args, "tables", []),
        columns=getattr(args, "columns", []),
        jobs=args.jobs,
        pretty=getattr(args, "pretty", False),
        csv_delimiter=args.csv_delimiter,
        byte_order=ByteOrder(getattr(args, "byte_order", ByteOrder.LITTLE.value)),
        on_error=ErrorPolicy.SKIP if args.keep_going else ErrorPolicy.RAISE,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_CONFIG

    setup_logging(args.verbose)
    options = options_from_args(args)

    try:
        hash_table = None
        if getattr(args, "hashes", None):
            hash_table = HashNameTable.from_file(args.hashes)
            logger.info("已加载 %d 个名称", len(hash_table))

        result = run_conversions(
            args.inputs,
            options,
            args.is_extracting,
            hash_table=hash_table,
            progress_callback=print_progress,
        )
    except (ConfigError, FileNotFoundError) as e:
        logger.error("%s", e)
        return EXIT_CONFIG
    except (BdatError, OSError) as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    return EXIT_OK if result.failed_count == 0 else EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
