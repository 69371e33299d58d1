#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
JSON 格式转换器

表文档格式:
{
    "schema": [{"name": "id", "type": "int32", "hashed": false}, ...],   // 仅 typed 模式
    "rows": [{"$id": 1, "id": 7, ...}, ...]
}
"""

import json
from typing import Any, Dict, List, Optional, TextIO

from ..core.hash_table import HashNameTable
from ..core.types import Label, RawTable, Row
from ..exceptions import MalformedRowError, MalformedTableError
from .base import (
    ID_KEY, BdatSerialize, BdatDeserialize,
    check_unique_columns, require_columns, column_map,
)
from .cells import to_json_value, from_json_value
from .schema import ColumnSchema, FileSchema


_MISSING = object()


class JsonConverter(BdatSerialize, BdatDeserialize):
    """
    JSON 转换器

    untyped 为 False 时在每个表文档中内嵌列 Schema；
    否则类型信息只存在于文件 Schema 中。
    """

    def __init__(
        self,
        untyped: bool = False,
        pretty: bool = False,
        hash_table: Optional[HashNameTable] = None
    ):
        """
        Args:
            untyped: 不在表文档中写入列 Schema
            pretty: 输出带缩进和换行的 JSON
            hash_table: 用于把 Hash 引用单元格显示为名称
        """
        self._untyped = untyped
        self._pretty = pretty
        self._hash_table = hash_table

    # ==================== 序列化 ====================

    def write_table(self, table: RawTable, writer: TextIO) -> None:
        json.dump(
            self.table_to_dict(table),
            writer,
            ensure_ascii=False,
            indent=2 if self._pretty else None,
            separators=None if self._pretty else (',', ':')
        )

    def table_to_dict(self, table: RawTable) -> Dict[str, Any]:
        """把表转换为 JSON 文档对象"""
        check_unique_columns(table)
        doc: Dict[str, Any] = {}
        if not self._untyped:
            doc['schema'] = [ColumnSchema.from_column(c).to_dict() for c in table.columns]

        keys = [c.label.text for c in table.columns]
        rows = []
        for row in table.rows:
            item = {ID_KEY: row.id}
            for key, column, cell in zip(keys, table.columns, row.cells):
                item[key] = to_json_value(column.ty, cell, self._hash_table)
            rows.append(item)
        doc['rows'] = rows
        return doc

    def get_file_name(self, table_name: str) -> str:
        return f"{table_name}.json"

    # ==================== 反序列化 ====================

    def read_table(
        self,
        name: Optional[Label],
        schema: Optional[FileSchema],
        reader: TextIO
    ) -> RawTable:
        table_name = name.text if name is not None else "<unnamed>"
        try:
            doc = json.load(reader)
        except json.JSONDecodeError as e:
            raise MalformedTableError(table_name, f"无效的 JSON ({e})") from e
        return self.table_from_dict(name, schema, doc)

    def table_from_dict(
        self,
        name: Optional[Label],
        schema: Optional[FileSchema],
        doc: Any
    ) -> RawTable:
        """从 JSON 文档对象还原表"""
        table_name = name.text if name is not None else "<unnamed>"
        if not isinstance(doc, dict):
            raise MalformedTableError(table_name, "文档必须是 JSON 对象")

        inline = None
        if doc.get('schema') is not None:
            try:
                if not isinstance(doc['schema'], list):
                    raise ValueError("schema 必须是数组")
                inline = [ColumnSchema.from_dict(c) for c in doc['schema']]
            except ValueError as e:
                raise MalformedTableError(table_name, f"内嵌 Schema 无效 ({e})") from e

        columns = require_columns(name, schema, inline)
        index = column_map(columns)

        raw_rows = doc.get('rows')
        if not isinstance(raw_rows, list):
            raise MalformedTableError(table_name, "rows 必须是数组")

        rows = [self._read_row(table_name, columns, index, raw) for raw in raw_rows]
        return RawTable(
            name=name,
            columns=[c.to_column_def() for c in columns],
            rows=rows
        )

    def _read_row(
        self,
        table_name: str,
        columns: List[ColumnSchema],
        index: Dict[str, int],
        raw: Any
    ) -> Row:
        if not isinstance(raw, dict):
            raise MalformedRowError(table_name, None, None, "行必须是 JSON 对象")

        row_id = raw.get(ID_KEY)
        if isinstance(row_id, bool) or not isinstance(row_id, int) or not 0 <= row_id <= 0xFFFFFFFF:
            raise MalformedRowError(table_name, None, ID_KEY, f"无效的行 ID: {row_id!r}")

        cells = [_MISSING] * len(columns)
        for key, value in raw.items():
            if key == ID_KEY:
                continue
            position = index.get(key)
            if position is None:
                raise MalformedRowError(table_name, row_id, key, "未知的列")
            try:
                cells[position] = from_json_value(columns[position].ty, value)
            except (TypeError, ValueError) as e:
                raise MalformedRowError(table_name, row_id, key, str(e)) from e

        missing = [columns[i].name for i, cell in enumerate(cells) if cell is _MISSING]
        if missing:
            raise MalformedRowError(table_name, row_id, missing[0], f"缺少列: {', '.join(missing)}")

        return Row(id=row_id, cells=cells)

    @property
    def table_extension(self) -> str:
        return "json"
