#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
CSV 格式转换器

第一行为表头 ``$id,<列名>...``，之后每个逻辑行对应一个物理行。
类型信息只存在于文件 Schema 中。
"""

import csv
from typing import Dict, List, Optional, TextIO

from ..core.hash_table import HashNameTable
from ..core.types import Label, RawTable, Row
from ..exceptions import MalformedRowError, MalformedTableError
from .base import (
    ID_KEY, BdatSerialize, BdatDeserialize,
    check_unique_columns, require_columns, column_map,
)
from .cells import to_text, from_text
from .schema import ColumnSchema, FileSchema


class CsvConverter(BdatSerialize, BdatDeserialize):
    """
    CSV 转换器

    数组单元格以紧凑 JSON 文本嵌入，未解析的 Hash 引用写为 ``<a1b2c3d4>``。
    """

    def __init__(self, delimiter: str = ',', hash_table: Optional[HashNameTable] = None):
        """
        Args:
            delimiter: 字段分隔符 (单个字符)
            hash_table: 用于把 Hash 引用单元格显示为名称
        """
        if len(delimiter) != 1:
            raise ValueError(f"分隔符必须是单个字符: {delimiter!r}")
        self._delimiter = delimiter
        self._hash_table = hash_table

    # ==================== 序列化 ====================

    def write_table(self, table: RawTable, writer: TextIO) -> None:
        check_unique_columns(table)
        out = csv.writer(writer, delimiter=self._delimiter, lineterminator='\n')
        out.writerow([ID_KEY] + [c.label.text for c in table.columns])
        for row in table.rows:
            out.writerow([str(row.id)] + [
                to_text(column.ty, cell, self._hash_table)
                for column, cell in zip(table.columns, row.cells)
            ])

    def get_file_name(self, table_name: str) -> str:
        return f"{table_name}.csv"

    # ==================== 反序列化 ====================

    def read_table(
        self,
        name: Optional[Label],
        schema: Optional[FileSchema],
        reader: TextIO
    ) -> RawTable:
        table_name = name.text if name is not None else "<unnamed>"
        columns = require_columns(name, schema)

        try:
            records = list(csv.reader(reader, delimiter=self._delimiter))
        except csv.Error as e:
            raise MalformedTableError(table_name, f"无效的 CSV ({e})") from e
        if not records:
            raise MalformedTableError(table_name, "缺少表头")

        positions = self._read_header(table_name, columns, records[0])
        rows = [
            self._read_row(table_name, columns, positions, record, line)
            for line, record in enumerate(records[1:], start=2)
            if record
        ]
        return RawTable(
            name=name,
            columns=[c.to_column_def() for c in columns],
            rows=rows
        )

    def _read_header(
        self,
        table_name: str,
        columns: List[ColumnSchema],
        header: List[str]
    ) -> List[int]:
        """
        校验表头

        Returns:
            每个 CSV 字段 (除 $id 外) 对应的列索引
        """
        if not header or header[0] != ID_KEY:
            raise MalformedTableError(table_name, f"表头第一列必须是 {ID_KEY}")

        index = column_map(columns)
        positions = []
        seen = set()
        for key in header[1:]:
            position = index.get(key)
            if position is None:
                raise MalformedTableError(table_name, f"表头包含未知的列 '{key}'")
            if position in seen:
                raise MalformedTableError(table_name, f"表头中列 '{key}' 重复")
            seen.add(position)
            positions.append(position)

        missing = [c.name for i, c in enumerate(columns) if i not in seen]
        if missing:
            raise MalformedTableError(table_name, f"表头缺少列: {', '.join(missing)}")
        return positions

    def _read_row(
        self,
        table_name: str,
        columns: List[ColumnSchema],
        positions: List[int],
        record: List[str],
        line: int
    ) -> Row:
        try:
            row_id = int(record[0])
            if not 0 <= row_id <= 0xFFFFFFFF:
                raise ValueError(row_id)
        except ValueError:
            raise MalformedRowError(
                table_name, None, ID_KEY, f"第 {line} 行的行 ID 无效: {record[0]!r}"
            ) from None

        if len(record) != len(positions) + 1:
            raise MalformedRowError(
                table_name, row_id, None,
                f"期望 {len(positions) + 1} 个字段，实际 {len(record)} 个"
            )

        cells: Dict[int, object] = {}
        for position, text in zip(positions, record[1:]):
            column = columns[position]
            try:
                cells[position] = from_text(column.ty, text)
            except (TypeError, ValueError) as e:
                raise MalformedRowError(table_name, row_id, column.name, str(e)) from e

        return Row(id=row_id, cells=[cells[i] for i in range(len(columns))])

    @property
    def table_extension(self) -> str:
        return "csv"
