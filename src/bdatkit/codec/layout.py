#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
BDAT 二进制结构定义

定义文件头、表头以及标签编码常量。
"""

import struct
from dataclasses import dataclass
from typing import ClassVar, List

from ..core.types import BdatVersion, ByteOrder, ColumnDef


# ==================== 常量定义 ====================

MAGIC = b'BDAT'

# 文件头中的字节序标志
BYTE_ORDER_FLAGS = {
    ByteOrder.LITTLE: 0,
    ByteOrder.BIG: 1,
}

# 标签类型
LABEL_NONE = 0x00
LABEL_STRING = 0x01
LABEL_HASH = 0x02

# 变长单元格 (字符串、数组) 在行内占用的引用宽度
REFERENCE_SIZE = 4


# ==================== 文件头 ====================

@dataclass
class FileHeader:
    """
    文件头 (12 bytes)

    前 6 字节与字节序无关，用于识别文件和确定后续字段的字节序。
    """
    FORMAT: ClassVar[str] = '4sBBHI'
    SIZE: ClassVar[int] = 12

    magic: bytes = MAGIC
    version: BdatVersion = BdatVersion.MODERN
    byte_order: ByteOrder = ByteOrder.LITTLE
    table_count: int = 0

    def pack(self) -> bytes:
        """序列化为字节"""
        return struct.pack(
            self.byte_order.prefix + self.FORMAT,
            self.magic,
            self.version.code,
            BYTE_ORDER_FLAGS[self.byte_order],
            0,
            self.table_count
        )

    @classmethod
    def unpack(cls, data: bytes) -> 'FileHeader':
        """
        从字节反序列化

        Raises:
            ValueError: 版本号或字节序标志未知
        """
        if len(data) < cls.SIZE:
            raise ValueError(f"文件头长度不足: {len(data)} 字节")
        byte_order = _byte_order_from_flag(data[5])
        values = struct.unpack(byte_order.prefix + cls.FORMAT, data[:cls.SIZE])
        return cls(
            magic=values[0],
            version=BdatVersion.from_code(values[1]),
            byte_order=byte_order,
            table_count=values[4]
        )


def _byte_order_from_flag(flag: int) -> ByteOrder:
    for order, value in BYTE_ORDER_FLAGS.items():
        if value == flag:
            return order
    raise ValueError(f"未知的字节序标志: {flag}")


# ==================== 表头 ====================

@dataclass
class TableHeader:
    """
    表头 (6 bytes)

    紧跟在表名标签之后。
    """
    FORMAT: ClassVar[str] = 'HI'
    SIZE: ClassVar[int] = 6

    column_count: int = 0
    row_count: int = 0

    def pack(self, byte_order: ByteOrder) -> bytes:
        """序列化为字节"""
        return struct.pack(byte_order.prefix + self.FORMAT, self.column_count, self.row_count)

    @classmethod
    def unpack(cls, data: bytes, byte_order: ByteOrder) -> 'TableHeader':
        """从字节反序列化"""
        values = struct.unpack(byte_order.prefix + cls.FORMAT, data)
        return cls(column_count=values[0], row_count=values[1])


def compute_offsets(columns: List[ColumnDef]) -> List[int]:
    """
    计算每一列在行内的偏移

    定长标量按 struct 大小累加，字符串和数组按引用宽度累加。
    """
    offsets = []
    position = 0
    for column in columns:
        offsets.append(position)
        fmt = column.ty.struct_format
        if column.ty.is_array or fmt is None:
            position += REFERENCE_SIZE
        else:
            position += struct.calcsize('<' + fmt)
    return offsets
