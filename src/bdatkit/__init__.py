#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
bdatkit - BDAT 二进制表与 JSON / CSV 互转工具

导出时为每个 BDAT 文件生成 .bschema Schema 文件，导入时据此还原原始二进制结构。
"""

__version__ = "0.1.0"

# 异常类
from .exceptions import (
    BdatError,
    ConfigError,
    CodecError,
    SchemaMissingError,
    InvalidSchemaError,
    MalformedTableError,
    MalformedRowError,
    MissingTableFileError,
    DuplicateColumnError,
    UnitOfWorkError,
)

# 数据模型
from .core import (
    BdatVersion,
    ByteOrder,
    Label,
    ValueType,
    ColumnDef,
    Row,
    RawTable,
    HashNameTable,
    ErrorPolicy,
    ProgressInfo,
    BatchResult,
)

# 二进制编解码
from .codec import BdatReader, BdatWriter

# 过滤器
from .filter import Filter

# 格式转换
from .convert import (
    FileSchema,
    ColumnSchema,
    JsonConverter,
    CsvConverter,
    get_converter,
)

# 批量转换
from .converter import ConvertOptions, extract_files, pack_files, run_conversions

__all__ = [
    # 版本
    "__version__",
    # 异常
    "BdatError",
    "ConfigError",
    "CodecError",
    "SchemaMissingError",
    "InvalidSchemaError",
    "MalformedTableError",
    "MalformedRowError",
    "MissingTableFileError",
    "DuplicateColumnError",
    "UnitOfWorkError",
    # 数据模型
    "BdatVersion",
    "ByteOrder",
    "Label",
    "ValueType",
    "ColumnDef",
    "Row",
    "RawTable",
    "HashNameTable",
    # 编解码
    "BdatReader",
    "BdatWriter",
    # 过滤
    "Filter",
    # 格式转换
    "FileSchema",
    "ColumnSchema",
    "JsonConverter",
    "CsvConverter",
    "get_converter",
    # 批量转换
    "ErrorPolicy",
    "ProgressInfo",
    "BatchResult",
    "ConvertOptions",
    "extract_files",
    "pack_files",
    "run_conversions",
]
