#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
BDAT 表数据结构定义

定义 Label、ValueType、ColumnDef、Row、RawTable 等核心数据结构。
单元格不携带自己的类型，类型始终由所在列的 ValueType 决定。
"""

import math
import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, TYPE_CHECKING

from ..utils import murmur3_32, format_hash, parse_hash

if TYPE_CHECKING:
    from ..filter import Filter


# ==================== 版本与字节序 ====================

class BdatVersion(Enum):
    """BDAT 格式版本"""
    LEGACY = "legacy"   # 仅支持明文标签
    MODERN = "modern"   # 支持 Hash 标签

    @property
    def are_labels_hashed(self) -> bool:
        """该版本的标签是否默认使用 Hash"""
        return self is BdatVersion.MODERN

    @property
    def code(self) -> int:
        """文件头中的版本号"""
        return _VERSION_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> 'BdatVersion':
        for version, value in _VERSION_CODES.items():
            if value == code:
                return version
        raise ValueError(f"未知的 BDAT 版本号: {code}")


_VERSION_CODES = {
    BdatVersion.LEGACY: 1,
    BdatVersion.MODERN: 2,
}


class ByteOrder(Enum):
    """字节序"""
    LITTLE = "little"
    BIG = "big"

    @property
    def prefix(self) -> str:
        """struct 格式前缀"""
        return '<' if self is ByteOrder.LITTLE else '>'


# ==================== 标签 ====================

@dataclass(frozen=True)
class Label:
    """
    表名或列名

    三种状态:
    - 明文: 仅 name
    - Hash: 仅 hash (原始名称未知)
    - 已解析的 Hash: name 和 hash 都存在，显示为名称，但仍视为 Hash 标签
    """
    name: Optional[str] = None
    hash: Optional[int] = None

    def __post_init__(self):
        if self.name is None and self.hash is None:
            raise ValueError("Label 至少需要 name 或 hash 之一")
        if self.hash is not None and not 0 <= self.hash <= 0xFFFFFFFF:
            raise ValueError(f"Hash 超出 32-bit 范围: {self.hash}")

    @classmethod
    def unhashed(cls, name: str) -> 'Label':
        return cls(name=name)

    @classmethod
    def hashed(cls, value: int) -> 'Label':
        return cls(hash=value)

    @classmethod
    def parse(cls, text: str, hashed: bool) -> 'Label':
        """
        从文本还原标签

        Args:
            text: 标签文本 (名称、``<a1b2c3d4>`` 或 8 位十六进制)
            hashed: 原始标签是否为 Hash，为 False 时文本原样作为名称

        Returns:
            Label 实例

        Examples:
            >>> Label.parse("id", False)
            Label(name='id', hash=None)
            >>> Label.parse("a1b2c3d4", True)
            Label(name=None, hash=2712847316)
        """
        if not hashed:
            return cls(name=text)
        value = parse_hash(text)
        if value is not None:
            return cls(hash=value)
        return cls(name=text, hash=murmur3_32(text))

    @property
    def is_hashed(self) -> bool:
        return self.hash is not None

    @property
    def is_resolved(self) -> bool:
        """是否可以显示为名称"""
        return self.name is not None

    @property
    def text(self) -> str:
        """不带尖括号的文本形式，用于列键和文件名"""
        if self.name is not None:
            return self.name
        return format_hash(self.hash)

    def resolve(self, name: str) -> 'Label':
        """返回带名称的新标签，保留 Hash"""
        return Label(name=name, hash=self.hash)

    def __str__(self) -> str:
        if self.name is not None:
            return self.name
        return format_hash(self.hash, brackets=True)


# ==================== 值类型 ====================

class ValueType(Enum):
    """
    单元格值类型

    枚举值即文本文档和 Schema 中使用的类型标记。
    """
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    FLOAT32 = "float32"
    STRING = "string"
    HASH = "hash"
    UINT8_ARRAY = "uint8[]"
    UINT16_ARRAY = "uint16[]"
    UINT32_ARRAY = "uint32[]"
    INT8_ARRAY = "int8[]"
    INT16_ARRAY = "int16[]"
    INT32_ARRAY = "int32[]"
    FLOAT32_ARRAY = "float32[]"
    STRING_ARRAY = "string[]"
    HASH_ARRAY = "hash[]"

    @classmethod
    def parse(cls, tag: str) -> 'ValueType':
        """根据类型标记获取 ValueType，未知标记抛出 ValueError"""
        try:
            return cls(tag)
        except ValueError:
            raise ValueError(f"未知的值类型: {tag!r}") from None

    @property
    def is_array(self) -> bool:
        return self.value.endswith("[]")

    @property
    def element(self) -> 'ValueType':
        """数组的元素类型，标量返回自身"""
        if self.is_array:
            return ValueType(self.value[:-2])
        return self

    def array_of(self) -> 'ValueType':
        """标量类型对应的数组类型"""
        if self.is_array:
            raise ValueError(f"{self.value} 已是数组类型")
        return ValueType(self.value + "[]")

    @property
    def is_integer(self) -> bool:
        return self.element in _INT_RANGES

    @property
    def type_code(self) -> int:
        """二进制中的类型 ID，数组为元素 ID | 0x80"""
        code = _TYPE_CODES[self.element]
        return code | 0x80 if self.is_array else code

    @classmethod
    def from_type_code(cls, code: int) -> 'ValueType':
        for ty, value in _TYPE_CODES.items():
            if value == code & 0x7F:
                return ty.array_of() if code & 0x80 else ty
        raise ValueError(f"未知的类型 ID: {code:#04x}")

    @property
    def struct_format(self) -> Optional[str]:
        """定长标量的 struct 格式 (不含字节序)，变长类型返回 None"""
        return _STRUCT_FORMATS.get(self.element)

    def check(self, value: Any) -> Any:
        """
        校验值是否符合该类型

        Args:
            value: Python 值

        Returns:
            原值

        Raises:
            TypeError: 值的 Python 类型不匹配
            ValueError: 值超出类型范围
        """
        if self.is_array:
            if not isinstance(value, list):
                raise TypeError(f"{self.value} 需要列表，实际为 {type(value).__name__}")
            element = self.element
            for item in value:
                element.check(item)
            return value

        if self.is_integer or self is ValueType.HASH:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{self.value} 需要整数，实际为 {type(value).__name__}")
            low, high = _INT_RANGES.get(self, (0, 0xFFFFFFFF))
            if not low <= value <= high:
                raise ValueError(f"{value} 超出 {self.value} 范围 [{low}, {high}]")
            return value

        if self is ValueType.FLOAT32:
            if isinstance(value, bool) or not isinstance(value, float):
                raise TypeError(f"float32 需要浮点数，实际为 {type(value).__name__}")
            if math.isfinite(value) and abs(value) > _FLOAT32_MAX:
                raise ValueError(f"{value} 超出 float32 范围")
            return value

        if not isinstance(value, str):
            raise TypeError(f"string 需要字符串，实际为 {type(value).__name__}")
        return value


_INT_RANGES = {
    ValueType.UINT8: (0, 0xFF),
    ValueType.UINT16: (0, 0xFFFF),
    ValueType.UINT32: (0, 0xFFFFFFFF),
    ValueType.INT8: (-0x80, 0x7F),
    ValueType.INT16: (-0x8000, 0x7FFF),
    ValueType.INT32: (-0x80000000, 0x7FFFFFFF),
}

_TYPE_CODES = {
    ValueType.UINT8: 1,
    ValueType.UINT16: 2,
    ValueType.UINT32: 3,
    ValueType.INT8: 4,
    ValueType.INT16: 5,
    ValueType.INT32: 6,
    ValueType.STRING: 7,
    ValueType.FLOAT32: 8,
    ValueType.HASH: 9,
}

_STRUCT_FORMATS = {
    ValueType.UINT8: 'B',
    ValueType.UINT16: 'H',
    ValueType.UINT32: 'I',
    ValueType.INT8: 'b',
    ValueType.INT16: 'h',
    ValueType.INT32: 'i',
    ValueType.FLOAT32: 'f',
    ValueType.HASH: 'I',
}

_FLOAT32_MAX = struct.unpack('<f', b'\xff\xff\x7f\x7f')[0]


# ==================== 表结构 ====================

@dataclass
class ColumnDef:
    """
    列定义

    offset 仅对二进制编解码有意义，从文本还原时为占位值 0。
    """
    label: Label
    ty: ValueType
    offset: int = 0


@dataclass
class Row:
    """
    表行

    id 是稳定的行标识，与行在表中的位置无关。
    """
    id: int
    cells: List[Any] = field(default_factory=list)


@dataclass
class RawTable:
    """
    BDAT 表

    每一行的 cells 与 columns 按位置一一对应。
    """
    name: Optional[Label]
    columns: List[ColumnDef] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def display_name(self) -> str:
        return str(self.name) if self.name is not None else "<unnamed>"

    def validate(self) -> None:
        """
        校验每一行的单元格数量和类型

        Raises:
            ValueError: 单元格数量与列数不一致，或值不符合列类型
        """
        for row in self.rows:
            if len(row.cells) != len(self.columns):
                raise ValueError(
                    f"表 {self.display_name} 行 {row.id}: "
                    f"期望 {len(self.columns)} 个单元格，实际 {len(row.cells)} 个"
                )
            for column, cell in zip(self.columns, row.cells):
                try:
                    column.ty.check(cell)
                except (TypeError, ValueError) as e:
                    raise ValueError(
                        f"表 {self.display_name} 行 {row.id} 列 {column.label}: {e}"
                    ) from e

    def select_columns(self, column_filter: 'Filter') -> 'RawTable':
        """
        按列过滤器生成新表

        只保留被选中的列以及对应的单元格，原表不变。
        """
        keep = [i for i, c in enumerate(self.columns) if column_filter.contains(c.label)]
        if len(keep) == len(self.columns):
            return self
        return RawTable(
            name=self.name,
            columns=[self.columns[i] for i in keep],
            rows=[Row(row.id, [row.cells[i] for i in keep]) for row in self.rows],
        )
