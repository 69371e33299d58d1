#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
BDAT 文件写入器

将 RawTable 序列编码为二进制 BDAT 文件。
"""

import io
import os
import struct
from typing import Any, Iterable, List, Optional, Union

from ..core.binary_io import BinaryWriter
from ..core.types import BdatVersion, ByteOrder, Label, RawTable, ValueType
from ..exceptions import CodecError
from .layout import (
    FileHeader, TableHeader, compute_offsets,
    LABEL_NONE, LABEL_STRING, LABEL_HASH,
)


class BdatWriter:
    """
    BDAT 文件写入器

    使用流程:
    1. 创建 Writer 实例
    2. 调用 add_table() 添加表
    3. 调用 build() 生成文件

    所有内容先在内存中编码，成功后一次性写入文件，编码失败不会留下半个文件。
    """

    def __init__(
        self,
        output_path: Optional[Union[str, os.PathLike]],
        version: BdatVersion = BdatVersion.MODERN,
        byte_order: ByteOrder = ByteOrder.LITTLE
    ):
        """
        初始化写入器

        Args:
            output_path: 输出文件路径 (仅调用 to_bytes() 时可为 None)
            version: 格式版本
            byte_order: 字节序
        """
        self._output_path = output_path
        self._version = version
        self._byte_order = byte_order
        self._tables: List[RawTable] = []

    @property
    def table_count(self) -> int:
        return len(self._tables)

    def add_table(self, table: RawTable) -> None:
        """
        添加表

        Raises:
            CodecError: 表结构无效 (单元格数量或类型与列不一致)
        """
        try:
            table.validate()
        except ValueError as e:
            raise CodecError(str(e), self._describe()) from e
        self._tables.append(table)

    def write_all_tables(self, tables: Iterable[RawTable]) -> int:
        """
        添加所有表并生成文件

        Returns:
            写入的字节数
        """
        for table in tables:
            self.add_table(table)
        return self.build()

    def to_bytes(self) -> bytes:
        """
        编码为字节

        Raises:
            CodecError: 标签或值无法编码
        """
        buffer = io.BytesIO()
        writer = BinaryWriter(buffer, self._byte_order)
        header = FileHeader(
            version=self._version,
            byte_order=self._byte_order,
            table_count=len(self._tables)
        )
        writer.write_bytes(header.pack())

        for table in self._tables:
            try:
                self._write_table(writer, table)
            except (struct.error, ValueError, OverflowError) as e:
                raise CodecError(
                    f"无法编码表 {table.display_name}: {e}", self._describe()
                ) from e

        return buffer.getvalue()

    def build(self) -> int:
        """
        生成文件

        Returns:
            写入的字节数
        """
        if self._output_path is None:
            raise CodecError("未指定输出路径")
        data = self.to_bytes()
        with open(self._output_path, 'wb') as f:
            f.write(data)
        return len(data)

    def _describe(self) -> str:
        return os.fspath(self._output_path) if self._output_path is not None else '<memory>'

    # ==================== 编码细节 ====================

    def _write_label(self, writer: BinaryWriter, label: Optional[Label]) -> None:
        if label is None:
            writer.write_u8(LABEL_NONE)
        elif label.is_hashed:
            if not self._version.are_labels_hashed:
                raise ValueError(f"{self._version.value} 版本不支持 Hash 标签 {label}")
            writer.write_u8(LABEL_HASH)
            writer.write_u32(label.hash)
        else:
            writer.write_u8(LABEL_STRING)
            writer.write_string(label.name)

    def _write_table(self, writer: BinaryWriter, table: RawTable) -> None:
        self._write_label(writer, table.name)
        writer.write_bytes(
            TableHeader(len(table.columns), len(table.rows)).pack(self._byte_order)
        )

        for column, offset in zip(table.columns, compute_offsets(table.columns)):
            self._write_label(writer, column.label)
            writer.write_u8(column.ty.type_code)
            writer.write_u16(offset)

        for row in table.rows:
            writer.write_u32(row.id)
            for column, cell in zip(table.columns, row.cells):
                self._write_cell(writer, column.ty, cell)

    def _write_cell(self, writer: BinaryWriter, ty: ValueType, value: Any) -> None:
        if ty.is_array:
            if len(value) > 0xFFFF:
                raise ValueError(f"数组过长: {len(value)} 个元素")
            writer.write_u16(len(value))
            for item in value:
                self._write_cell(writer, ty.element, item)
        elif ty is ValueType.STRING:
            writer.write_string(value)
        else:
            writer.write_struct(ty.struct_format, value)
