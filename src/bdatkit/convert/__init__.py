#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
表格式转换

提供 RawTable 与 JSON / CSV 文档之间的互转，以及文件 Schema。
"""

from typing import Optional, Union

from ..core.hash_table import HashNameTable
from ..exceptions import ConfigError
from .base import ID_KEY, BdatSerialize, BdatDeserialize
from .schema import SCHEMA_EXTENSION, ColumnSchema, FileSchema
from .json_converter import JsonConverter
from .csv_converter import CsvConverter


# 支持的文本格式
FILE_TYPES = ("json", "csv")


def get_converter(
    file_type: str,
    untyped: bool = False,
    pretty: bool = False,
    csv_delimiter: str = ',',
    hash_table: Optional[HashNameTable] = None
) -> Union[JsonConverter, CsvConverter]:
    """
    根据格式名称创建转换器

    Args:
        file_type: "json" 或 "csv"
        untyped: JSON 不内嵌列 Schema
        pretty: JSON 缩进输出
        csv_delimiter: CSV 分隔符
        hash_table: 用于显示 Hash 引用单元格

    Returns:
        同时实现 BdatSerialize 和 BdatDeserialize 的转换器

    Raises:
        ConfigError: 未知格式或选项无效
    """
    file_type = file_type.lower()
    if file_type == "json":
        return JsonConverter(untyped=untyped, pretty=pretty, hash_table=hash_table)
    if file_type == "csv":
        try:
            return CsvConverter(delimiter=csv_delimiter, hash_table=hash_table)
        except ValueError as e:
            raise ConfigError(str(e)) from e
    raise ConfigError(f"未知的文件格式: {file_type} (可选: {', '.join(FILE_TYPES)})")


__all__ = [
    "ID_KEY",
    "FILE_TYPES",
    "SCHEMA_EXTENSION",
    "BdatSerialize",
    "BdatDeserialize",
    "ColumnSchema",
    "FileSchema",
    "JsonConverter",
    "CsvConverter",
    "get_converter",
]
