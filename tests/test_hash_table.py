#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
HashNameTable 测试
"""

import logging

from bdatkit.core.hash_table import HashNameTable
from bdatkit.core.types import Label
from bdatkit.utils import murmur3_32


class TestHashNameTable:
    """名称 Hash 字典测试"""

    def test_add_and_resolve(self):
        table = HashNameTable()
        value = table.add("Enemy")
        assert value == murmur3_32("Enemy")
        assert table.resolve(value) == "Enemy"
        assert value in table
        assert len(table) == 1

    def test_unknown_hash(self):
        """未知 Hash 不是错误"""
        assert HashNameTable(["Enemy"]).resolve(0x12345678) is None

    def test_duplicate_name(self):
        table = HashNameTable(["Enemy", "Enemy"])
        assert len(table) == 1

    def test_collision_keeps_first(self, caplog):
        """Hash 冲突时保留先加入的名称"""
        table = HashNameTable(["first"])
        # 伪造冲突
        table._names[murmur3_32("second")] = "first"
        with caplog.at_level(logging.WARNING, logger="bdatkit.core.hash_table"):
            table.add("second")
        assert table.resolve(murmur3_32("second")) == "first"
        assert "Hash 冲突" in caplog.text

    def test_hash_like_names_ignored(self):
        """形似 Hash 文本的名称不参与解析"""
        table = HashNameTable(["deadbeef", "<00000001>", "Enemy"])
        assert len(table) == 1
        assert table.resolve(murmur3_32("deadbeef")) is None
        label = Label.hashed(murmur3_32("deadbeef"))
        assert table.resolve_label(label) == label

    def test_from_file(self, tmp_path):
        path = tmp_path / "names.txt"
        path.write_text("# 注释\nEnemy\n\n  price  \n", encoding="utf-8")
        table = HashNameTable.from_file(path)
        assert sorted(table) == ["Enemy", "price"]


class TestRewrite:
    """rewrite() 测试"""

    def test_resolves_known_labels(self, hashed_name_table, hash_table):
        hash_table.rewrite(hashed_name_table)
        assert str(hashed_name_table.name) == "Item"
        assert hashed_name_table.name.is_hashed
        labels = [c.label for c in hashed_name_table.columns]
        assert str(labels[0]) == "price"
        # 不在字典中的保持原样
        assert labels[1] == Label.hashed(murmur3_32("unknown_column"))

    def test_idempotent(self, hashed_name_table, hash_table):
        first = [c.label for c in hash_table.rewrite(hashed_name_table).columns]
        second = [c.label for c in hash_table.rewrite(hashed_name_table).columns]
        assert first == second

    def test_unhashed_untouched(self, enemy_table):
        """明文标签不会被改写"""
        table = HashNameTable(["id"])
        table.rewrite(enemy_table)
        assert enemy_table.columns[0].label == Label.unhashed("id")

    def test_cells_untouched(self, hashed_name_table, hash_table):
        """Hash 引用单元格的值不变"""
        before = [list(r.cells) for r in hashed_name_table.rows]
        hash_table.rewrite(hashed_name_table)
        assert [r.cells for r in hashed_name_table.rows] == before

    def test_unnamed_table(self, hash_table):
        from conftest import make_table
        table = make_table(None, [(murmur3_32("price"), "uint8")], [])
        hash_table.rewrite(table)
        assert table.name is None
        assert str(table.columns[0].label) == "price"
