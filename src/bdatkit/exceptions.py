#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
bdatkit 异常定义

所有异常均继承自 BdatError，便于统一捕获。
"""

from typing import Optional


class BdatError(Exception):
    """bdatkit 基础异常"""
    pass


class ConfigError(BdatError):
    """
    配置错误

    必填选项缺失或取值无效 (如未知的文本格式、未指定输出目录)。
    在处理任何文件之前抛出。
    """
    pass


class CodecError(BdatError):
    """
    二进制编解码异常

    当 BDAT 文件无法解析或表无法编码时抛出。
    """
    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        if source:
            message = f"{message} ({source})"
        super().__init__(message)


class SchemaMissingError(BdatError):
    """
    缺少列 Schema 异常

    文本中的值本身不足以还原类型，反序列化时必须提供 Schema。
    """
    def __init__(self, table: str):
        self.table = table
        super().__init__(f"表 '{table}' 没有可用的列 Schema，无法反序列化")


class InvalidSchemaError(BdatError):
    """
    Schema 文件无效异常

    当 Schema 文件结构不符合预期时抛出。
    """
    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{message}: {path}"
        super().__init__(message)


class MalformedTableError(BdatError):
    """
    文本表格式错误

    整个文档无法解析，或表头与 Schema 不一致。
    """
    def __init__(self, table: str, reason: str):
        self.table = table
        self.reason = reason
        super().__init__(f"表 '{table}' 格式错误: {reason}")


class MalformedRowError(MalformedTableError):
    """
    行数据格式错误

    行缺少某列、包含未知列，或值无法按列类型解码时抛出。
    """
    def __init__(self, table: str, row_id: Optional[int], column: Optional[str], reason: str):
        self.row_id = row_id
        self.column = column
        location = f"行 $id={row_id}"
        if column is not None:
            location += f", 列 '{column}'"
        super().__init__(table, f"{location}: {reason}")


class MissingTableFileError(BdatError):
    """
    表文件缺失异常

    Schema 中记录的表在磁盘上没有对应的文本文件。
    """
    def __init__(self, table: str, path: str):
        self.table = table
        self.path = path
        super().__init__(f"找不到表 '{table}' 的文件: {path}")


class DuplicateColumnError(BdatError):
    """
    列名重复异常

    同一张表中两列的文本名称相同，序列化后无法区分。
    """
    def __init__(self, table: str, column: str):
        self.table = table
        self.column = column
        super().__init__(f"表 '{table}' 中存在重复的列名 '{column}'")


class UnitOfWorkError(BdatError):
    """
    单个工作单元失败

    包装批量处理中某个文件 (导出) 或 Schema (导入) 的失败原因。
    item 为单元内部出错的条目 (如导入时的表文件)，没有则为 None。
    """
    def __init__(self, path: str, cause: BaseException, item: Optional[str] = None):
        self.path = path
        self.cause = cause
        self.item = item
        where = f"'{path}'" if item is None else f"'{path}' ('{item}')"
        super().__init__(f"处理 {where} 失败: {cause}")
