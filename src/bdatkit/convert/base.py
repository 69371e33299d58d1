#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
格式转换器基类定义

定义表序列化 / 反序列化的抽象接口，批量调度器只依赖这些接口。
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, TextIO

from ..core.types import Label, RawTable
from ..exceptions import DuplicateColumnError, SchemaMissingError
from .schema import ColumnSchema, FileSchema


# 行 ID 使用的保留列名
ID_KEY = "$id"


class BdatSerialize(ABC):
    """
    表序列化接口

    将一张 RawTable 写为文本文档。
    """

    @abstractmethod
    def write_table(self, table: RawTable, writer: TextIO) -> None:
        """
        写出转换后的表

        调用方负责在处理下一张表之前刷新并关闭 writer。

        Args:
            table: 要写出的表
            writer: 文本输出流
        """
        pass

    @abstractmethod
    def get_file_name(self, table_name: str) -> str:
        """
        表文件名

        Args:
            table_name: 表名的文本形式

        Returns:
            带扩展名的文件名
        """
        pass


class BdatDeserialize(ABC):
    """
    表反序列化接口

    依据 Schema 把文本文档还原为 RawTable。
    """

    @abstractmethod
    def read_table(
        self,
        name: Optional[Label],
        schema: Optional[FileSchema],
        reader: TextIO
    ) -> RawTable:
        """
        读取一张表

        Args:
            name: 表名标签
            schema: 所属文件的 Schema
            reader: 文本输入流

        Returns:
            还原后的 RawTable

        Raises:
            SchemaMissingError: 没有可用的列 Schema
            MalformedTableError: 文档无法解析
            MalformedRowError: 行与列 Schema 不一致
        """
        pass

    @property
    @abstractmethod
    def table_extension(self) -> str:
        """表文件扩展名 (不含点号)"""
        pass


def check_unique_columns(table: RawTable) -> None:
    """
    确保列名唯一

    Raises:
        DuplicateColumnError: 两列的文本名称相同，或列名与保留的行 ID 键 $id 相同
    """
    seen = {ID_KEY}
    for column in table.columns:
        key = column.label.text
        if key in seen:
            raise DuplicateColumnError(table.display_name, key)
        seen.add(key)


def require_columns(
    name: Optional[Label],
    schema: Optional[FileSchema],
    inline: Optional[List[ColumnSchema]] = None
) -> List[ColumnSchema]:
    """
    获取表的列 Schema

    优先使用文档内嵌的 Schema，其次使用文件 Schema。

    Raises:
        SchemaMissingError: 两者都不存在
    """
    if inline is not None:
        return inline
    table_name = name.text if name is not None else "<unnamed>"
    columns = None
    if schema is not None and name is not None:
        columns = schema.get_columns(table_name)
    if columns is None:
        raise SchemaMissingError(table_name)
    return columns


def column_map(columns: List[ColumnSchema]) -> Dict[str, int]:
    """列名 -> 列索引"""
    return {c.name: i for i, c in enumerate(columns)}
