#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
BDAT 文件读取器

将二进制 BDAT 文件解码为 RawTable 序列。
"""

import os
import struct
from typing import Any, BinaryIO, Iterator, List, Optional, Union

from ..core.binary_io import BinaryReader
from ..core.types import BdatVersion, ByteOrder, ColumnDef, Label, RawTable, Row, ValueType
from ..exceptions import CodecError
from .layout import (
    MAGIC, FileHeader, TableHeader,
    LABEL_NONE, LABEL_STRING, LABEL_HASH,
)


# 解码过程中可能出现的底层异常
_DECODE_ERRORS = (EOFError, struct.error, UnicodeDecodeError, ValueError)


class BdatReader:
    """
    BDAT 文件读取器

    构造时读取并校验文件头，表数据在 read_tables()/iter_tables() 时解码。
    """

    def __init__(
        self,
        source: Union[str, os.PathLike, BinaryIO],
        byte_order: Optional[ByteOrder] = None
    ):
        """
        初始化读取器

        Args:
            source: 文件路径或可读的二进制流
            byte_order: 期望的字节序，None 表示按文件头自动识别
        """
        if isinstance(source, (str, os.PathLike)):
            self._file = open(source, 'rb')
            self._owns_file = True
            self._source_name = os.fspath(source)
        else:
            self._file = source
            self._owns_file = False
            self._source_name = getattr(source, 'name', '<stream>')

        self._reader = BinaryReader(self._file)
        self._header: Optional[FileHeader] = None
        self._tables_read = False

        try:
            self._load_header(byte_order)
        except BaseException:
            self.close()
            raise

    def _load_header(self, byte_order: Optional[ByteOrder]) -> None:
        """读取并校验文件头"""
        try:
            header = FileHeader.unpack(self._reader.read_bytes(FileHeader.SIZE))
        except _DECODE_ERRORS as e:
            raise CodecError(f"无法读取 BDAT 文件头: {e}", self._source_name) from e

        if header.magic != MAGIC:
            raise CodecError(
                f"非 BDAT 文件: 期望魔数 {MAGIC!r}, 实际 {header.magic!r}",
                self._source_name
            )
        if byte_order is not None and header.byte_order is not byte_order:
            raise CodecError(
                f"字节序不匹配: 期望 {byte_order.value}, 实际 {header.byte_order.value}",
                self._source_name
            )

        self._reader.set_byte_order(header.byte_order)
        self._header = header

    # ==================== 属性 ====================

    @property
    def version(self) -> BdatVersion:
        return self._header.version

    @property
    def byte_order(self) -> ByteOrder:
        return self._header.byte_order

    @property
    def table_count(self) -> int:
        return self._header.table_count

    @property
    def source_name(self) -> str:
        return self._source_name

    # ==================== 表解码 ====================

    def iter_tables(self) -> Iterator[RawTable]:
        """
        依次解码所有表 (生成器模式)

        只能遍历一次。

        Raises:
            CodecError: 数据损坏或截断
        """
        if self._tables_read:
            raise CodecError("表数据已被读取", self._source_name)
        self._tables_read = True

        for index in range(self.table_count):
            try:
                yield self._read_table()
            except _DECODE_ERRORS as e:
                raise CodecError(f"无法解析第 {index} 张表: {e}", self._source_name) from e

    def read_tables(self) -> List[RawTable]:
        """解码所有表"""
        return list(self.iter_tables())

    def _read_label(self) -> Optional[Label]:
        kind = self._reader.read_u8()
        if kind == LABEL_NONE:
            return None
        if kind == LABEL_STRING:
            return Label.unhashed(self._reader.read_string())
        if kind == LABEL_HASH:
            if not self.version.are_labels_hashed:
                raise ValueError(f"{self.version.value} 版本不支持 Hash 标签")
            return Label.hashed(self._reader.read_u32())
        raise ValueError(f"未知的标签类型: {kind:#04x}")

    def _read_table(self) -> RawTable:
        name = self._read_label()
        header = TableHeader.unpack(self._reader.read_bytes(TableHeader.SIZE), self.byte_order)

        columns = []
        for _ in range(header.column_count):
            label = self._read_label()
            if label is None:
                raise ValueError("列缺少标签")
            ty = ValueType.from_type_code(self._reader.read_u8())
            offset = self._reader.read_u16()
            columns.append(ColumnDef(label=label, ty=ty, offset=offset))

        rows = []
        for _ in range(header.row_count):
            row_id = self._reader.read_u32()
            cells = [self._read_cell(column.ty) for column in columns]
            rows.append(Row(id=row_id, cells=cells))

        return RawTable(name=name, columns=columns, rows=rows)

    def _read_cell(self, ty: ValueType) -> Any:
        if ty.is_array:
            count = self._reader.read_u16()
            return [self._read_cell(ty.element) for _ in range(count)]
        if ty is ValueType.STRING:
            return self._reader.read_string()
        return self._reader.read_struct(ty.struct_format)[0]

    # ==================== 资源管理 ====================

    def close(self) -> None:
        """关闭文件 (仅关闭由读取器打开的文件)"""
        if self._owns_file and self._file:
            self._file.close()
        self._file = None

    def __enter__(self) -> 'BdatReader':
        return self

    def __exit__(self, *args) -> None:
        self.close()
