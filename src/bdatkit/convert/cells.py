#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
单元格文本化规则

按列的 ValueType 在单元格值与 JSON 值 / CSV 文本之间转换。

- 整数、浮点数: 数字
- 字符串: 文本
- Hash 引用: 可解析时为名称字符串，否则为数字 (CSV 中为 ``<a1b2c3d4>``)
- 数组: 元素按上述规则转换后的有序序列 (CSV 中嵌入紧凑 JSON)
"""

import json
from typing import Any, Optional

from ..core.hash_table import HashNameTable
from ..core.types import ValueType
from ..utils import murmur3_32, format_hash, parse_hash


# ==================== JSON ====================

def to_json_value(ty: ValueType, value: Any, hash_table: Optional[HashNameTable] = None) -> Any:
    """单元格值 -> JSON 值"""
    if ty.is_array:
        element = ty.element
        return [to_json_value(element, item, hash_table) for item in value]
    if ty is ValueType.HASH and hash_table is not None:
        name = hash_table.resolve(value)
        if name is not None:
            return name
    return value


def from_json_value(ty: ValueType, raw: Any) -> Any:
    """
    JSON 值 -> 单元格值

    Raises:
        TypeError: JSON 值的类型与列类型不匹配
        ValueError: 值超出范围或无法解析
    """
    if ty.is_array:
        if not isinstance(raw, list):
            raise TypeError(f"{ty.value} 需要数组，实际为 {type(raw).__name__}")
        element = ty.element
        return [from_json_value(element, item) for item in raw]

    if ty is ValueType.HASH and isinstance(raw, str):
        return _hash_from_text(raw)
    if ty is ValueType.FLOAT32 and isinstance(raw, int) and not isinstance(raw, bool):
        raw = float(raw)
    return ty.check(raw)


# ==================== CSV ====================

def to_text(ty: ValueType, value: Any, hash_table: Optional[HashNameTable] = None) -> str:
    """单元格值 -> CSV 文本"""
    if ty.is_array:
        items = [to_json_value(ty.element, item, hash_table) for item in value]
        return json.dumps(items, ensure_ascii=False, separators=(',', ':'))
    if ty is ValueType.STRING:
        return value
    if ty is ValueType.FLOAT32:
        return repr(value)
    if ty is ValueType.HASH:
        name = hash_table.resolve(value) if hash_table is not None else None
        return name if name is not None else format_hash(value, brackets=True)
    return str(value)


def from_text(ty: ValueType, text: str) -> Any:
    """
    CSV 文本 -> 单元格值

    Raises:
        TypeError: 值的类型与列类型不匹配
        ValueError: 文本无法解析
    """
    if ty.is_array:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"无法解析数组 {text!r}: {e}") from e
        return from_json_value(ty, raw)
    if ty is ValueType.STRING:
        return text
    if ty is ValueType.HASH:
        return _hash_from_text(text)
    if ty is ValueType.FLOAT32:
        return ty.check(float(text))
    return ty.check(int(text))


def _hash_from_text(text: str) -> int:
    value = parse_hash(text, allow_bare=False)
    if value is not None:
        return value
    return murmur3_32(text)
