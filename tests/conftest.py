#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
pytest 全局配置

提供共享 fixtures 和测试工具。
"""

from pathlib import Path
from typing import List

import pytest

from bdatkit.codec import BdatWriter
from bdatkit.core.types import BdatVersion, ColumnDef, Label, RawTable, Row, ValueType
from bdatkit.core.hash_table import HashNameTable
from bdatkit.utils import murmur3_32


# ==================== 表构造工具 ====================

def make_table(name, columns, rows) -> RawTable:
    """
    快速构造 RawTable

    Args:
        name: 表名 (str 为明文标签，int 为 Hash 标签，None 为无名表)
        columns: [(列名或 Hash, 类型标记), ...]
        rows: [(id, [单元格...]), ...]
    """
    def label(value):
        if value is None or isinstance(value, Label):
            return value
        if isinstance(value, int):
            return Label.hashed(value)
        return Label.unhashed(value)

    return RawTable(
        name=label(name),
        columns=[ColumnDef(label(c), ValueType.parse(t)) for c, t in columns],
        rows=[Row(row_id, list(cells)) for row_id, cells in rows],
    )


# ==================== 表 Fixtures ====================

@pytest.fixture
def enemy_table() -> RawTable:
    """一个明文列 + 一个 Hash 列的最小表"""
    return make_table(
        "Enemy",
        [("id", "int32"), (0xa1b2c3d4, "string")],
        [(1, [7, "Slime"])],
    )


@pytest.fixture
def all_types_table() -> RawTable:
    """覆盖所有值类型的表"""
    return make_table(
        "AllTypes",
        [
            ("u8", "uint8"),
            ("u16", "uint16"),
            ("u32", "uint32"),
            ("i8", "int8"),
            ("i16", "int16"),
            ("i32", "int32"),
            ("f32", "float32"),
            ("text", "string"),
            ("ref", "hash"),
            ("u8s", "uint8[]"),
            ("f32s", "float32[]"),
            ("texts", "string[]"),
            ("refs", "hash[]"),
        ],
        [
            (1, [255, 65535, 4294967295, -128, -32768, -2147483648, 1.5, "普通文本",
                 murmur3_32("Slime"), [1, 2, 3], [0.25, -2.0], ["a", "b,c"], [0, 0xdeadbeef]]),
            (5, [0, 0, 0, 127, 32767, 2147483647, -0.125, "", 0,
                 [], [], [], []]),
        ],
    )


@pytest.fixture
def hashed_name_table() -> RawTable:
    """表名和列名都是 Hash 的表"""
    return make_table(
        murmur3_32("Item"),
        [(murmur3_32("price"), "uint16"), (murmur3_32("unknown_column"), "hash")],
        [(10, [100, murmur3_32("Slime")]), (11, [250, 0x12345678])],
    )


@pytest.fixture
def sample_tables(enemy_table, all_types_table, hashed_name_table) -> List[RawTable]:
    return [enemy_table, all_types_table, hashed_name_table]


@pytest.fixture
def hash_table() -> HashNameTable:
    """不包含 unknown_column 的名称字典"""
    return HashNameTable(["Item", "price", "Slime"])


# ==================== 文件 Fixtures ====================

@pytest.fixture
def bdat_dir(tmp_path, sample_tables) -> Path:
    """
    创建 BDAT 输入目录

    结构:
        bdat/common.bdat         (三张表)
        bdat/sub/legacy.bdat     (旧版格式，仅明文标签)

    Returns:
        输入目录路径
    """
    root = tmp_path / "bdat"
    (root / "sub").mkdir(parents=True)

    BdatWriter(root / "common.bdat").write_all_tables(sample_tables)

    legacy = make_table("Town", [("name", "string"), ("level", "uint8")],
                        [(1, ["Colony 9", 3]), (2, ["Alcamoth", 40])])
    BdatWriter(root / "sub" / "legacy.bdat", version=BdatVersion.LEGACY).write_all_tables([legacy])
    return root


@pytest.fixture
def bdat_file(bdat_dir) -> Path:
    return bdat_dir / "common.bdat"
