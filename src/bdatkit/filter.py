#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
表名 / 列名过滤器

空过滤器选择全部；否则名称需精确匹配或按 glob 模式匹配其中之一。
"""

import fnmatch
from typing import Iterable, List, Union

from .core.types import Label
from .utils import format_hash


class Filter:
    """
    名称选择过滤器

    表过滤器和列过滤器是相互独立的实例，构造后只读。
    """

    def __init__(self, patterns: Iterable[str] = ()):
        self._patterns: List[str] = [p for p in patterns if p]
        self._exact = frozenset(self._patterns)
        self._globs = [p for p in self._patterns if _is_glob(p)]

    @property
    def patterns(self) -> List[str]:
        return list(self._patterns)

    @property
    def is_empty(self) -> bool:
        return not self._patterns

    def contains(self, name: Union[str, Label]) -> bool:
        """
        判断名称是否被选中

        Label 的任一文本形式 (名称、``a1b2c3d4``、``<a1b2c3d4>``) 匹配即可。

        Examples:
            >>> Filter().contains("anything")
            True
            >>> Filter(["Enemy*"]).contains("EnemyList")
            True
            >>> Filter(["Enemy"]).contains("EnemyList")
            False
        """
        if not self._patterns:
            return True
        return any(self._matches(text) for text in _candidates(name))

    def _matches(self, text: str) -> bool:
        if text in self._exact:
            return True
        return any(fnmatch.fnmatchcase(text, pattern) for pattern in self._globs)

    def __len__(self) -> int:
        return len(self._patterns)

    def __repr__(self) -> str:
        return f"Filter({self._patterns!r})"


def _is_glob(pattern: str) -> bool:
    return any(ch in pattern for ch in '*?[')


def _candidates(name: Union[str, Label]) -> List[str]:
    if isinstance(name, str):
        return [name]
    texts = []
    if name.name is not None:
        texts.append(name.name)
    if name.hash is not None:
        texts.append(format_hash(name.hash))
        texts.append(format_hash(name.hash, brackets=True))
    return texts
