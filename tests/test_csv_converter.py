#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
CSV 转换器与单元格规则测试
"""

import io

import pytest

from bdatkit.convert import CsvConverter, FileSchema, get_converter
from bdatkit.convert.cells import from_json_value, from_text, to_json_value, to_text
from bdatkit.core.types import BdatVersion, Label, ValueType
from bdatkit.exceptions import (
    ConfigError,
    DuplicateColumnError,
    MalformedRowError,
    MalformedTableError,
    SchemaMissingError,
)
from bdatkit.utils import murmur3_32

from conftest import make_table


def dump(converter, table) -> str:
    buffer = io.StringIO()
    converter.write_table(table, buffer)
    return buffer.getvalue()


def schema_for(*tables) -> FileSchema:
    schema = FileSchema("test", BdatVersion.MODERN)
    for table in tables:
        schema.feed_table(table)
    return schema


# ==================== 单元格规则测试 ====================

class TestCells:
    """cells 模块测试"""

    @pytest.mark.parametrize("ty,value,text", [
        (ValueType.UINT8, 7, "7"),
        (ValueType.INT32, -5, "-5"),
        (ValueType.FLOAT32, 1.5, "1.5"),
        (ValueType.STRING, "a,b", "a,b"),
        (ValueType.HASH, 0xbeef, "<0000beef>"),
        (ValueType.UINT16_ARRAY, [1, 2], "[1,2]"),
        (ValueType.STRING_ARRAY, ["名称"], '["名称"]'),
        (ValueType.HASH_ARRAY, [0xbeef], "[48879]"),
    ])
    def test_to_text(self, ty, value, text):
        assert to_text(ty, value) == text
        assert from_text(ty, text) == value

    def test_hash_resolution(self, hash_table):
        slime = murmur3_32("Slime")
        assert to_text(ValueType.HASH, slime, hash_table) == "Slime"
        assert to_json_value(ValueType.HASH, slime, hash_table) == "Slime"
        assert to_json_value(ValueType.HASH_ARRAY, [slime, 1], hash_table) == ["Slime", 1]
        assert from_text(ValueType.HASH, "Slime") == slime
        assert from_json_value(ValueType.HASH_ARRAY, ["Slime", 1]) == [slime, 1]

    def test_hash_bare_hex_is_name(self):
        """单元格中不带尖括号的文本按名称计算 Hash"""
        assert from_text(ValueType.HASH, "a1b2c3d4") == murmur3_32("a1b2c3d4")

    def test_float_repr(self):
        """浮点数保留完整精度"""
        value = 0.1
        assert from_text(ValueType.FLOAT32, to_text(ValueType.FLOAT32, value)) == value

    @pytest.mark.parametrize("ty,text", [
        (ValueType.UINT8, "x"),
        (ValueType.UINT8, "256"),
        (ValueType.FLOAT32, "abc"),
        (ValueType.UINT8_ARRAY, "[1,"),
        (ValueType.UINT8_ARRAY, "5"),
    ])
    def test_from_text_invalid(self, ty, text):
        with pytest.raises((TypeError, ValueError)):
            from_text(ty, text)

    def test_from_json_array_type(self):
        with pytest.raises(TypeError):
            from_json_value(ValueType.UINT8_ARRAY, 5)


# ==================== CSV 转换器测试 ====================

class TestCsvConverter:
    """CsvConverter 测试"""

    def test_document(self, enemy_table):
        assert dump(CsvConverter(), enemy_table) == "$id,id,a1b2c3d4\n1,7,Slime\n"

    def test_delimiter(self, enemy_table):
        assert dump(CsvConverter(delimiter=";"), enemy_table) == "$id;id;a1b2c3d4\n1;7;Slime\n"

    def test_invalid_delimiter(self):
        with pytest.raises(ValueError):
            CsvConverter(delimiter=";;")
        with pytest.raises(ConfigError):
            get_converter("csv", csv_delimiter="")

    def test_reserved_id_column(self):
        """名为 $id 的列与行 ID 冲突，导出时拒绝"""
        table = make_table("T", [("$id", "uint8")], [(1, [2])])
        with pytest.raises(DuplicateColumnError, match=r"\$id"):
            dump(CsvConverter(), table)

    def test_roundtrip(self, all_types_table):
        """类型只来自文件 Schema"""
        converter = CsvConverter()
        text = dump(converter, all_types_table)
        table = converter.read_table(
            Label.unhashed("AllTypes"), schema_for(all_types_table), io.StringIO(text)
        )
        assert table == all_types_table

    def test_quoting(self, all_types_table):
        """含分隔符的字符串和数组被正确引用"""
        text = dump(CsvConverter(), all_types_table)
        assert '"[""a"",""b,c""]"' in text

    def test_hashed_labels(self, hashed_name_table, hash_table):
        converter = CsvConverter(hash_table=hash_table)
        hash_table.rewrite(hashed_name_table)
        text = dump(converter, hashed_name_table)
        header = text.splitlines()[0]
        assert header == f"$id,price,{murmur3_32('unknown_column'):08x}"
        assert text.splitlines()[1:] == ["10,100,Slime", "11,250,<12345678>"]

        table = converter.read_table(
            Label.parse("Item", True), schema_for(hashed_name_table), io.StringIO(text)
        )
        assert table.rows == hashed_name_table.rows

    def test_header_column_order(self, enemy_table):
        """表头列顺序可以与 Schema 不同"""
        text = "$id,a1b2c3d4,id\n1,Slime,7\n"
        table = CsvConverter().read_table(
            Label.unhashed("Enemy"), schema_for(enemy_table), io.StringIO(text)
        )
        assert table == enemy_table

    def test_blank_lines_ignored(self, enemy_table):
        text = "$id,id,a1b2c3d4\n1,7,Slime\n\n"
        table = CsvConverter().read_table(
            Label.unhashed("Enemy"), schema_for(enemy_table), io.StringIO(text)
        )
        assert table.row_count == 1

    def test_schema_missing(self):
        with pytest.raises(SchemaMissingError):
            CsvConverter().read_table(Label.unhashed("Enemy"), None, io.StringIO("$id\n"))

    @pytest.mark.parametrize("text", [
        "",
        "id,a1b2c3d4\n",
        "$id,id\n",
        "$id,id,a1b2c3d4,extra\n",
        "$id,id,id,a1b2c3d4\n",
    ])
    def test_bad_header(self, enemy_table, text):
        with pytest.raises(MalformedTableError):
            CsvConverter().read_table(
                Label.unhashed("Enemy"), schema_for(enemy_table), io.StringIO(text)
            )

    def test_row_field_count(self, enemy_table):
        text = "$id,id,a1b2c3d4\n1,7\n"
        with pytest.raises(MalformedRowError) as exc_info:
            CsvConverter().read_table(
                Label.unhashed("Enemy"), schema_for(enemy_table), io.StringIO(text)
            )
        assert exc_info.value.row_id == 1

    def test_row_bad_value(self, enemy_table):
        text = "$id,id,a1b2c3d4\n4,seven,Slime\n"
        with pytest.raises(MalformedRowError) as exc_info:
            CsvConverter().read_table(
                Label.unhashed("Enemy"), schema_for(enemy_table), io.StringIO(text)
            )
        assert exc_info.value.row_id == 4
        assert exc_info.value.column == "id"

    def test_row_bad_id(self, enemy_table):
        text = "$id,id,a1b2c3d4\nx,7,Slime\n"
        with pytest.raises(MalformedRowError) as exc_info:
            CsvConverter().read_table(
                Label.unhashed("Enemy"), schema_for(enemy_table), io.StringIO(text)
            )
        assert exc_info.value.column == "$id"

    def test_file_name(self):
        assert CsvConverter().get_file_name("Enemy") == "Enemy.csv"
        assert CsvConverter().table_extension == "csv"
