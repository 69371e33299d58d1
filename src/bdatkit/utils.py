#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
bdatkit 工具函数

提供名称 Hash 计算、Hash 文本格式和路径处理等通用功能。
"""

import os
import re
from pathlib import Path
from typing import Iterable, Optional, Union


_HEX_LABEL = re.compile(r'^[0-9a-fA-F]{8}$')
_BRACKET_LABEL = re.compile(r'^<([0-9a-fA-F]{1,8})>$')

_C1 = 0xcc9e2d51
_C2 = 0x1b873593
_MASK = 0xFFFFFFFF


def _rotl32(x: int, r: int) -> int:
    return ((x << r) | (x >> (32 - r))) & _MASK


def murmur3_32(data: Union[str, bytes], seed: int = 0) -> int:
    """
    计算 MurmurHash3 (x86, 32-bit)

    BDAT 中的 Hash 标签和 Hash 引用均使用此算法。

    Args:
        data: 字符串 (按 UTF-8 编码) 或字节
        seed: 种子

    Returns:
        32-bit 无符号整数

    Examples:
        >>> murmur3_32("")
        0
        >>> hex(murmur3_32("hello"))
        '0x248bfa47'
    """
    if isinstance(data, str):
        data = data.encode('utf-8')

    length = len(data)
    h = seed & _MASK
    block_end = length - (length % 4)

    for i in range(0, block_end, 4):
        k = int.from_bytes(data[i:i + 4], 'little')
        k = (k * _C1) & _MASK
        k = _rotl32(k, 15)
        k = (k * _C2) & _MASK

        h ^= k
        h = _rotl32(h, 13)
        h = (h * 5 + 0xe6546b64) & _MASK

    # 尾部不足 4 字节
    tail = data[block_end:]
    k = 0
    if len(tail) >= 3:
        k ^= tail[2] << 16
    if len(tail) >= 2:
        k ^= tail[1] << 8
    if len(tail) >= 1:
        k ^= tail[0]
        k = (k * _C1) & _MASK
        k = _rotl32(k, 15)
        k = (k * _C2) & _MASK
        h ^= k

    # fmix32
    h ^= length
    h ^= h >> 16
    h = (h * 0x85ebca6b) & _MASK
    h ^= h >> 13
    h = (h * 0xc2b2ae35) & _MASK
    h ^= h >> 16
    return h


def format_hash(value: int, brackets: bool = False) -> str:
    """
    格式化 Hash 值为 8 位小写十六进制

    Examples:
        >>> format_hash(0xA1B2C3D4)
        'a1b2c3d4'
        >>> format_hash(255, brackets=True)
        '<000000ff>'
    """
    text = f"{value:08x}"
    return f"<{text}>" if brackets else text


def parse_hash(text: str, allow_bare: bool = True) -> Optional[int]:
    """
    解析 Hash 文本

    支持 ``<a1b2c3d4>`` 形式，以及 (allow_bare 时) 不带尖括号的 8 位十六进制。

    Returns:
        Hash 值，无法识别时返回 None
    """
    match = _BRACKET_LABEL.match(text)
    if match:
        return int(match.group(1), 16)
    if allow_bare and _HEX_LABEL.match(text):
        return int(text, 16)
    return None


def common_root(paths: Iterable[Union[str, Path]]) -> Path:
    """
    计算一组文件的公共父目录

    用于在输出目录中还原输入的目录结构。

    Examples:
        >>> common_root(["/a/b/x.bdat", "/a/c/y.bdat"]).as_posix()
        '/a'
        >>> common_root(["/a/b/x.bdat"]).as_posix()
        '/a/b'
    """
    parents = [os.path.dirname(os.path.abspath(p)) for p in paths]
    if not parents:
        return Path(os.getcwd())
    return Path(os.path.commonpath(parents))
