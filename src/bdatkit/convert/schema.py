#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
文件 Schema (sidecar)

记录一个 BDAT 文件中每张表的列布局和格式版本，
是导出结果能够还原为原始二进制结构的唯一依据。

Schema 文件格式:
{
    "file_name": "enemy",
    "version": "modern",
    "tables": {
        "Enemy": [{"name": "id", "type": "int32", "hashed": false}, ...]
    },
    "hashed_tables": ["Enemy"]
}
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..core.types import BdatVersion, ColumnDef, Label, RawTable, ValueType
from ..exceptions import InvalidSchemaError, MissingTableFileError


logger = logging.getLogger(__name__)

SCHEMA_EXTENSION = "bschema"


@dataclass
class ColumnSchema:
    """单列的 Schema"""
    name: str
    ty: ValueType
    hashed: bool

    @classmethod
    def from_column(cls, column: ColumnDef) -> 'ColumnSchema':
        return cls(name=column.label.text, ty=column.ty, hashed=column.label.is_hashed)

    def to_column_def(self) -> ColumnDef:
        """还原列定义，offset 由编码器重新计算"""
        return ColumnDef(label=Label.parse(self.name, self.hashed), ty=self.ty, offset=0)

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'type': self.ty.value, 'hashed': self.hashed}

    @classmethod
    def from_dict(cls, data: Any) -> 'ColumnSchema':
        """
        Raises:
            ValueError: 字段缺失或类型无效
        """
        if not isinstance(data, dict):
            raise ValueError(f"列描述必须是对象: {data!r}")
        name = data.get('name')
        hashed = data.get('hashed', False)
        if not isinstance(name, str):
            raise ValueError(f"列名必须是字符串: {name!r}")
        if not isinstance(hashed, bool):
            raise ValueError(f"hashed 必须是布尔值: {hashed!r}")
        return cls(name=name, ty=ValueType.parse(data.get('type')), hashed=hashed)


class FileSchema:
    """
    单个 BDAT 文件的 Schema 累加器

    导出时每个源文件新建一个实例，按表出现顺序对每张表调用 feed_table()
    (无论该表是否被过滤器选中)，处理完毕后 write() 一次。
    导入时通过 read() 加载。
    """

    def __init__(
        self,
        file_name: str,
        version: BdatVersion,
        tables: Optional[Dict[str, List[ColumnSchema]]] = None,
        hashed_tables: Optional[List[str]] = None
    ):
        self.file_name = file_name
        self.version = version
        self._tables: Dict[str, List[ColumnSchema]] = dict(tables or {})
        self._hashed_tables = set(hashed_tables or ())

    # ==================== 累加 ====================

    def feed_table(self, table: RawTable) -> None:
        """
        记录表的当前列布局

        应在名称 Hash 解析之后调用，记录的是导出实际使用的标签。
        无名表无法记录，直接忽略。
        """
        if table.name is None:
            return
        name = table.name.text
        self._tables[name] = [ColumnSchema.from_column(c) for c in table.columns]
        if table.name.is_hashed:
            self._hashed_tables.add(name)
        else:
            self._hashed_tables.discard(name)

    # ==================== 查询 ====================

    @property
    def table_count(self) -> int:
        return len(self._tables)

    @property
    def table_names(self) -> List[str]:
        return list(self._tables)

    def get_columns(self, table_name: str) -> Optional[List[ColumnSchema]]:
        """获取表的列 Schema，未记录返回 None"""
        return self._tables.get(table_name)

    def table_label(self, table_name: str) -> Label:
        """根据记录的 Hash 标志还原表名标签"""
        return Label.parse(table_name, table_name in self._hashed_tables)

    @property
    def sidecar_name(self) -> str:
        """Schema 文件名，由源文件名决定"""
        return f"{self.file_name}.{SCHEMA_EXTENSION}"

    # ==================== 持久化 ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            'file_name': self.file_name,
            'version': self.version.value,
            'tables': {
                name: [c.to_dict() for c in columns]
                for name, columns in self._tables.items()
            },
            'hashed_tables': [n for n in self._tables if n in self._hashed_tables],
        }

    @classmethod
    def from_dict(cls, data: Any, path: Optional[str] = None) -> 'FileSchema':
        """
        从字典还原

        Raises:
            InvalidSchemaError: 结构无效
        """
        if not isinstance(data, dict):
            raise InvalidSchemaError("Schema 必须是 JSON 对象", path)
        try:
            file_name = data['file_name']
            if not isinstance(file_name, str) or not file_name:
                raise ValueError(f"file_name 无效: {file_name!r}")
            version = BdatVersion(data['version'])
            raw_tables = data.get('tables', {})
            if not isinstance(raw_tables, dict):
                raise ValueError("tables 必须是对象")
            tables = {
                name: [ColumnSchema.from_dict(c) for c in columns]
                for name, columns in raw_tables.items()
            }
            hashed_tables = data.get('hashed_tables', [])
            if not isinstance(hashed_tables, list):
                raise ValueError("hashed_tables 必须是数组")
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidSchemaError(f"Schema 结构无效 ({e})", path) from e
        return cls(file_name, version, tables, hashed_tables)

    def write(self, out_dir: Union[str, os.PathLike]) -> Path:
        """
        写入 Schema 文件

        Args:
            out_dir: 输出目录 (与表文件目录同级)

        Returns:
            Schema 文件路径
        """
        path = Path(out_dir) / self.sidecar_name
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)
        return path

    @classmethod
    def read(cls, path: Union[str, os.PathLike]) -> 'FileSchema':
        """
        读取 Schema 文件

        Raises:
            InvalidSchemaError: 不是有效的 JSON 或结构无效
        """
        with open(path, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise InvalidSchemaError(f"Schema 不是有效的 JSON ({e})", os.fspath(path)) from e
        return cls.from_dict(data, os.fspath(path))

    def find_table_files(
        self,
        tables_dir: Union[str, os.PathLike],
        extension: str
    ) -> List[Tuple[str, Path]]:
        """
        列出每张表对应的文本文件

        Args:
            tables_dir: 表文件所在目录 (通常为 <schema 所在目录>/<file_name>)
            extension: 表文件扩展名 (不含点号)

        Returns:
            (表名, 文件路径) 列表，顺序与 Schema 中的表顺序一致

        Raises:
            MissingTableFileError: 某张表的文件不存在
        """
        tables_dir = Path(tables_dir)
        found = []
        for name in self._tables:
            path = tables_dir / f"{name}.{extension}"
            if not path.is_file():
                raise MissingTableFileError(name, str(path))
            found.append((name, path))
        return found
