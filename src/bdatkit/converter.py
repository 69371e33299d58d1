#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
批量转换调度

导出: 扫描 .bdat 文件 -> 解码 -> 解析名称 Hash -> 记录 Schema -> 过滤 -> 写出表文件 -> 写出 Schema
导入: 扫描 .bschema 文件 -> 读取 Schema -> 定位表文件 -> 逐表解析 -> 编码为一个 .bdat 文件

每个源文件 (导出) 或 Schema 文件 (导入) 是一个可独立失败的工作单元，
由 WorkerPool 并行执行。
"""

import io
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .codec import BdatReader, BdatWriter
from .convert import FILE_TYPES, SCHEMA_EXTENSION, FileSchema, get_converter
from .core.batch import (
    BatchResult, ErrorPolicy, ProgressCallback, ProgressTracker,
    WorkerPool, scan_files,
)
from .core.hash_table import HashNameTable
from .core.types import ByteOrder, RawTable
from .exceptions import ConfigError
from .filter import Filter
from .utils import common_root


logger = logging.getLogger(__name__)

BDAT_EXTENSION = "bdat"


# ==================== 配置 ====================


@dataclass
class ConvertOptions:
    """
    批量转换选项

    由 CLI 参数映射而来，也可以直接构造后传给 extract_files() / pack_files()。
    """
    out_dir: Union[str, os.PathLike]
    file_type: str = "json"           # 文本格式: json / csv
    untyped: bool = False             # JSON 不内嵌列 Schema
    no_schema: bool = False           # 不写出 Schema 文件
    tables: List[str] = field(default_factory=list)    # 表名过滤 (仅导出)
    columns: List[str] = field(default_factory=list)   # 列名过滤 (仅导出)
    jobs: Optional[int] = None        # 文件级并行数，None 为 CPU 核心数
    pretty: bool = False              # JSON 缩进输出
    csv_delimiter: str = ','
    byte_order: ByteOrder = ByteOrder.LITTLE   # 导入时输出文件的字节序
    on_error: ErrorPolicy = ErrorPolicy.RAISE
    table_jobs: int = 1               # 导入时单个文件内的表级并行数

    def validate(self, is_extracting: bool) -> None:
        """
        在处理任何文件之前校验选项

        Raises:
            ConfigError: 选项无效
        """
        if not os.fspath(self.out_dir):
            raise ConfigError("未指定输出目录")
        if self.file_type.lower() not in FILE_TYPES:
            raise ConfigError(
                f"未知的文件格式: {self.file_type} (可选: {', '.join(FILE_TYPES)})"
            )
        if self.jobs is not None and self.jobs < 1:
            raise ConfigError(f"并行数必须大于 0: {self.jobs}")
        if self.table_jobs < 1:
            raise ConfigError(f"表级并行数必须大于 0: {self.table_jobs}")
        if len(self.csv_delimiter) != 1:
            raise ConfigError(f"CSV 分隔符必须是单个字符: {self.csv_delimiter!r}")
        if not is_extracting and (self.tables or self.columns):
            raise ConfigError("表 / 列过滤器只能用于导出")
        if is_extracting and self.no_schema and (self.untyped or self.file_type.lower() == "csv"):
            logger.warning("未写出 Schema 且表文件不含类型信息，导出结果将无法导入")


# ==================== 导出 ====================


def extract_files(
    inputs: Iterable[Union[str, os.PathLike]],
    options: ConvertOptions,
    hash_table: Optional[HashNameTable] = None,
    progress_callback: Optional[ProgressCallback] = None
) -> BatchResult:
    """
    将 BDAT 文件导出为 JSON / CSV

    输出结构:
        <out_dir>/<相对目录>/<file_name>.bschema
        <out_dir>/<相对目录>/<file_name>/<表名>.<扩展名>

    Args:
        inputs: .bdat 文件或包含它们的目录
        options: 转换选项
        hash_table: 名称 Hash 字典，用于还原 Hash 标签
        progress_callback: 进度回调，分别以 "files" 和 "tables" 报告

    Returns:
        BatchResult，results 为每个文件导出的表数量

    Raises:
        ConfigError: 选项无效
        FileNotFoundError: 输入路径不存在
        UnitOfWorkError: ErrorPolicy.RAISE 下第一个失败的文件
    """
    options.validate(is_extracting=True)
    converter = get_converter(
        options.file_type,
        untyped=options.untyped,
        pretty=options.pretty,
        csv_delimiter=options.csv_delimiter,
        hash_table=hash_table
    )
    table_filter = Filter(options.tables)
    column_filter = Filter(options.columns)

    files = scan_files(inputs, BDAT_EXTENSION)
    if not files:
        logger.warning("没有找到 .%s 文件", BDAT_EXTENSION)
    root = common_root(files)
    out_root = Path(options.out_dir)

    file_tracker = ProgressTracker(len(files), progress_callback, label="files")
    table_tracker = ProgressTracker(0, progress_callback, label="tables")

    def extract_one(path: Path) -> int:
        logger.debug("开始导出: %s", path)
        out_dir = out_root / path.parent.relative_to(root)

        with BdatReader(path) as reader:
            tables = reader.read_tables()
            version = reader.version

        # Schema 必须在过滤之前记录全部表
        schema = FileSchema(path.stem, version)
        selected: List[RawTable] = []
        for table in tables:
            if hash_table is not None:
                hash_table.rewrite(table)
            schema.feed_table(table)
            if table.name is None:
                logger.warning("跳过无名表: %s", path)
                continue
            if table_filter.contains(table.name):
                selected.append(table.select_columns(column_filter))

        table_tracker.add_total(len(selected))
        tables_dir = out_dir / schema.file_name
        os.makedirs(tables_dir if selected else out_dir, exist_ok=True)

        for table in selected:
            # 先在内存中完成序列化，失败时不留下半个文件
            buffer = io.StringIO()
            converter.write_table(table, buffer)
            table_path = tables_dir / converter.get_file_name(table.name.text)
            with open(table_path, 'w', encoding='utf-8', newline='') as f:
                f.write(buffer.getvalue())
            table_tracker.update(f"{schema.file_name}/{table.name.text}")

        if not options.no_schema:
            schema.write(out_dir)

        file_tracker.update(path.name)
        logger.debug("完成导出: %s (%d 张表)", path, len(selected))
        return len(selected)

    pool = WorkerPool(max_workers=options.jobs, on_error=options.on_error)
    result = pool.map(extract_one, files)
    return _finish(result, "导出")


# ==================== 导入 ====================


def pack_files(
    inputs: Iterable[Union[str, os.PathLike]],
    options: ConvertOptions,
    progress_callback: Optional[ProgressCallback] = None
) -> BatchResult:
    """
    根据 Schema 文件把 JSON / CSV 表文件打包为 BDAT 文件

    每个 <file_name>.bschema 读取同级目录 <file_name>/ 下的表文件，
    输出 <out_dir>/<相对目录>/<file_name>.bdat。

    Args:
        inputs: .bschema 文件或包含它们的目录
        options: 转换选项
        progress_callback: 进度回调

    Returns:
        BatchResult，results 为每个文件打包的表数量

    Raises:
        ConfigError: 选项无效
        FileNotFoundError: 输入路径不存在
        UnitOfWorkError: ErrorPolicy.RAISE 下第一个失败的 Schema
    """
    options.validate(is_extracting=False)
    converter = get_converter(options.file_type, csv_delimiter=options.csv_delimiter)

    schema_files = scan_files(inputs, SCHEMA_EXTENSION)
    if not schema_files:
        logger.warning("没有找到 .%s 文件", SCHEMA_EXTENSION)
    root = common_root(schema_files)
    out_root = Path(options.out_dir)

    file_tracker = ProgressTracker(len(schema_files), progress_callback, label="files")
    table_tracker = ProgressTracker(0, progress_callback, label="tables")

    def pack_one(schema_path: Path) -> int:
        logger.debug("开始打包: %s", schema_path)
        schema = FileSchema.read(schema_path)
        table_files = schema.find_table_files(
            schema_path.parent / schema.file_name, converter.table_extension
        )
        table_tracker.add_total(len(table_files))

        def decode(item: Tuple[str, Path]) -> RawTable:
            name, table_path = item
            with open(table_path, 'r', encoding='utf-8', newline='') as f:
                table = converter.read_table(schema.table_label(name), schema, f)
            table_tracker.update(f"{schema.file_name}/{name}")
            return table

        # 同一文件内的表相互独立，全部解析完成后再统一编码
        decoded = WorkerPool(max_workers=options.table_jobs).map(
            decode, table_files, describe=lambda item: str(item[1])
        )

        out_dir = out_root / schema_path.parent.relative_to(root)
        os.makedirs(out_dir, exist_ok=True)
        out_path = out_dir / f"{schema.file_name}.{BDAT_EXTENSION}"
        writer = BdatWriter(out_path, version=schema.version, byte_order=options.byte_order)
        size = writer.write_all_tables(decoded.results)

        file_tracker.update(schema_path.name)
        logger.debug("完成打包: %s (%d 张表, %d 字节)", out_path, len(table_files), size)
        return len(table_files)

    pool = WorkerPool(max_workers=options.jobs, on_error=options.on_error)
    result = pool.map(pack_one, schema_files)
    return _finish(result, "打包")


# ==================== 调度 ====================


def run_conversions(
    inputs: Iterable[Union[str, os.PathLike]],
    options: ConvertOptions,
    is_extracting: bool,
    hash_table: Optional[HashNameTable] = None,
    progress_callback: Optional[ProgressCallback] = None
) -> BatchResult:
    """
    按模式执行导出或导入

    Args:
        inputs: 输入文件或目录
        options: 转换选项
        is_extracting: True 为导出 (BDAT -> 文本)，False 为导入
        hash_table: 名称 Hash 字典 (仅导出使用)
        progress_callback: 进度回调
    """
    if is_extracting:
        return extract_files(inputs, options, hash_table, progress_callback)
    return pack_files(inputs, options, progress_callback)


def _finish(result: BatchResult, action: str) -> BatchResult:
    result.table_count = sum(count for count in result.results if count)
    logger.info(
        "%s完成: 成功 %d, 失败 %d, 跳过 %d (成功率 %.0f%%), 共 %d 张表, 耗时 %.2fs",
        action, result.success_count, result.failed_count, result.skipped_count,
        result.success_rate * 100, result.table_count, result.elapsed_time
    )
    for _, error in result.failed_files:
        logger.error("%s失败: %s", action, error)
    return result
