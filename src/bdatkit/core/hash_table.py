#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
名称 Hash 字典

提供 HashNameTable 类，用于把 Hash 标签还原为可读名称。
"""

import logging
import os
from typing import Dict, Iterable, Iterator, Optional, Union

from ..utils import murmur3_32, format_hash, parse_hash
from .types import Label, RawTable


logger = logging.getLogger(__name__)


class HashNameTable:
    """
    Hash -> 名称 字典

    在批量转换开始前加载一次，之后只读，可被所有工作线程共享。
    找不到对应名称的 Hash 不视为错误，保持原样导出。
    """

    def __init__(self, names: Iterable[str] = ()):
        self._names: Dict[int, str] = {}
        for name in names:
            self.add(name)

    def add(self, name: str) -> int:
        """
        添加名称，返回其 Hash

        如果 Hash 已被另一个名称占用，保留先加入的名称。
        形如 ``a1b2c3d4`` 或 ``<a1b2c3d4>`` 的名称不加入字典: 导出后它们会被当作
        Hash 值读回，而不是名称的 Hash。

        Args:
            name: 原始名称

        Returns:
            名称的 Hash 值
        """
        value = murmur3_32(name)
        if parse_hash(name) is not None:
            logger.debug("忽略形似 Hash 的名称: %s", name)
            return value
        existing = self._names.get(value)
        if existing is None:
            self._names[value] = name
        elif existing != name:
            logger.warning(
                "Hash 冲突: '%s' 与 '%s' 的 Hash 均为 %s，保留前者",
                existing, name, format_hash(value)
            )
        return value

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike]) -> 'HashNameTable':
        """
        从文本文件加载

        每行一个名称，忽略空行和以 # 开头的注释行。

        Args:
            path: 名称列表文件路径

        Returns:
            HashNameTable 实例
        """
        table = cls()
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                name = line.strip()
                if name and not name.startswith('#'):
                    table.add(name)
        logger.debug("从 %s 加载了 %d 个名称", path, len(table))
        return table

    def resolve(self, value: int) -> Optional[str]:
        """根据 Hash 查找名称，未找到返回 None"""
        return self._names.get(value)

    def resolve_label(self, label: Label) -> Label:
        """
        尝试解析标签

        仅对尚未解析的 Hash 标签生效，其余标签原样返回。
        """
        if not label.is_hashed or label.is_resolved:
            return label
        name = self._names.get(label.hash)
        if name is None:
            return label
        return label.resolve(name)

    def rewrite(self, table: RawTable) -> RawTable:
        """
        原地替换表名和列名中可解析的 Hash 标签

        多次调用结果相同。

        Returns:
            传入的表 (便于链式调用)
        """
        if table.name is not None:
            table.name = self.resolve_label(table.name)
        for column in table.columns:
            column.label = self.resolve_label(column.label)
        return table

    def __len__(self) -> int:
        """返回名称数量"""
        return len(self._names)

    def __contains__(self, value: int) -> bool:
        """检查 Hash 是否可解析"""
        return value in self._names

    def __iter__(self) -> Iterator[str]:
        """迭代所有名称"""
        return iter(self._names.values())
