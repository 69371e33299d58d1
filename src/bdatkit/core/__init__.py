#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
bdatkit 核心模块

提供表数据结构、二进制 I/O 封装、名称 Hash 字典和批量调度工具。
"""

from .types import (
    BdatVersion, ByteOrder, Label, ValueType,
    ColumnDef, Row, RawTable,
)
from .binary_io import BinaryReader, BinaryWriter
from .hash_table import HashNameTable
from .batch import (
    ErrorPolicy, ProgressInfo, BatchResult, ProgressTracker,
    WorkerPool, scan_files,
)

__all__ = [
    "BdatVersion",
    "ByteOrder",
    "Label",
    "ValueType",
    "ColumnDef",
    "Row",
    "RawTable",
    "BinaryReader",
    "BinaryWriter",
    "HashNameTable",
    # 批量操作
    "ErrorPolicy",
    "ProgressInfo",
    "BatchResult",
    "ProgressTracker",
    "WorkerPool",
    "scan_files",
]
