#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
二进制 I/O 封装

BinaryWriter / BinaryReader 在二进制流上提供按字节序读写定长整数、
浮点数和 u16 长度前缀字符串的方法，编解码模块不直接接触 struct。
"""

import struct
from typing import BinaryIO, Tuple, Any

from .types import ByteOrder


class BinaryWriter:
    """
    二进制写入器

    字节序在构造时确定，之后所有多字节值都按该字节序写出。
    """

    def __init__(self, file: BinaryIO, byte_order: ByteOrder = ByteOrder.LITTLE):
        """
        Args:
            file: 可写的二进制流 (文件或 BytesIO)
            byte_order: 多字节值的字节序
        """
        self._file = file
        self._prefix = byte_order.prefix

    def write_bytes(self, data: bytes) -> int:
        """原样写入，返回字节数"""
        return self._file.write(data)

    def write_struct(self, fmt: str, *values: Any) -> int:
        """
        打包并写入

        Args:
            fmt: struct 格式，不带字节序前缀
            *values: 待打包的值
        """
        return self.write_bytes(struct.pack(self._prefix + fmt, *values))

    # ==================== 类型化写入 ====================

    def write_u8(self, value: int) -> int:
        return self.write_struct('B', value)

    def write_u16(self, value: int) -> int:
        return self.write_struct('H', value)

    def write_u32(self, value: int) -> int:
        return self.write_struct('I', value)

    def write_f32(self, value: float) -> int:
        return self.write_struct('f', value)

    def write_string(self, s: str) -> int:
        """
        写入字符串: u16 字节长度 + UTF-8 内容

        Raises:
            ValueError: 编码后超过 65535 字节
        """
        encoded = s.encode('utf-8')
        if len(encoded) > 0xFFFF:
            raise ValueError(f"字符串过长: {len(encoded)} 字节")
        return self.write_u16(len(encoded)) + self.write_bytes(encoded)


class BinaryReader:
    """
    二进制读取器

    文件头决定字节序，因此允许在读取文件头之后通过 set_byte_order() 切换。
    """

    def __init__(self, file: BinaryIO, byte_order: ByteOrder = ByteOrder.LITTLE):
        self._file = file
        self._prefix = byte_order.prefix

    def set_byte_order(self, byte_order: ByteOrder) -> None:
        self._prefix = byte_order.prefix

    def read_bytes(self, size: int) -> bytes:
        """
        读取恰好 size 个字节

        Raises:
            EOFError: 流中剩余数据不足
        """
        data = self._file.read(size)
        if len(data) < size:
            raise EOFError(f"数据截断: 需要 {size} 字节，只剩 {len(data)} 字节")
        return data

    def read_struct(self, fmt: str) -> Tuple[Any, ...]:
        """按 struct 格式 (不带字节序前缀) 读取并解包"""
        fmt = self._prefix + fmt
        return struct.unpack(fmt, self.read_bytes(struct.calcsize(fmt)))

    # ==================== 类型化读取 ====================

    def read_u8(self) -> int:
        return self.read_struct('B')[0]

    def read_u16(self) -> int:
        return self.read_struct('H')[0]

    def read_u32(self) -> int:
        return self.read_struct('I')[0]

    def read_f32(self) -> float:
        return self.read_struct('f')[0]

    def read_string(self) -> str:
        """读取 u16 长度前缀的 UTF-8 字符串"""
        return self.read_bytes(self.read_u16()).decode('utf-8')
