#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
批量操作与进度回调

提供输入文件扫描、线程池调度、进度回调和错误处理的通用工具。
"""

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Tuple, TypeVar, Union

from ..exceptions import UnitOfWorkError


logger = logging.getLogger(__name__)

T = TypeVar('T')


class ErrorPolicy(Enum):
    """错误处理策略"""
    RAISE = "raise"   # 不再调度新任务，抛出第一个异常
    SKIP = "skip"     # 跳过失败单元，继续处理
    ABORT = "abort"   # 不再调度新任务，保留已完成部分并返回结果


@dataclass
class ProgressInfo:
    """
    进度信息

    传递给进度回调函数的数据结构。
    """
    current: int              # 已处理数量
    total: int                # 总数量
    current_item: str         # 最近完成的条目
    elapsed_time: float       # 已耗时 (秒)
    label: str = "files"      # 计数对象 ("files" / "tables")

    @property
    def progress(self) -> float:
        """进度百分比 (0.0 - 1.0)"""
        if self.total == 0:
            return 0.0
        return self.current / self.total

    @property
    def eta(self) -> float:
        """预计剩余时间 (秒)"""
        if self.current == 0:
            return float('inf')
        return self.elapsed_time / self.current * (self.total - self.current)


@dataclass
class BatchResult:
    """
    批量操作结果

    包含成功/失败统计和详细信息。results 与输入顺序一致，失败或跳过的位置为 None。
    """
    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    table_count: int = 0
    elapsed_time: float = 0.0
    failed_files: List[Tuple[str, Exception]] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)
    results: List[Any] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return self.success_count + self.failed_count + self.skipped_count

    @property
    def success_rate(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.success_count / self.total_count

    @property
    def first_error(self) -> Optional[Exception]:
        if not self.failed_files:
            return None
        return self.failed_files[0][1]


# 进度回调函数类型
ProgressCallback = Callable[[ProgressInfo], None]


class ProgressTracker:
    """
    进度跟踪器

    封装进度计算和回调调用逻辑，可被多个工作线程同时更新。
    """

    def __init__(
        self,
        total: int = 0,
        callback: Optional[ProgressCallback] = None,
        label: str = "files",
        callback_interval: float = 0.1  # 最小回调间隔 (秒)
    ):
        self._total = total
        self._callback = callback
        self._label = label
        self._callback_interval = callback_interval

        self._current = 0
        self._start_time = time.time()
        self._last_callback_time = 0.0
        self._lock = threading.Lock()

    @property
    def current(self) -> int:
        return self._current

    @property
    def total(self) -> int:
        return self._total

    def add_total(self, count: int) -> None:
        """增加总数 (总数事先未知时使用)"""
        with self._lock:
            self._total += count

    def update(self, item: str = "", count: int = 1) -> None:
        """
        更新进度

        Args:
            item: 刚完成的条目
            count: 完成数量
        """
        with self._lock:
            self._current += count
            if not self._callback:
                return
            now = time.time()
            # 限制回调频率，最后一次总会回调
            finished = self._current >= self._total
            if not finished and now - self._last_callback_time < self._callback_interval:
                return
            self._last_callback_time = now
            info = ProgressInfo(
                current=self._current,
                total=self._total,
                current_item=item,
                elapsed_time=now - self._start_time,
                label=self._label
            )
            self._callback(info)


def scan_files(
    inputs: Iterable[Union[str, os.PathLike]],
    extension: str
) -> List[Path]:
    """
    收集指定扩展名的输入文件

    文件按原样接受，目录递归扫描。结果去重并排序。

    Args:
        inputs: 文件或目录路径
        extension: 扩展名 (不含点号)

    Returns:
        文件路径列表

    Raises:
        FileNotFoundError: 输入路径不存在
    """
    suffix = '.' + extension.lstrip('.').lower()
    found = set()
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            for file_path in path.rglob('*'):
                if file_path.is_file() and file_path.suffix.lower() == suffix:
                    found.add(file_path.resolve())
        elif path.is_file():
            found.add(path.resolve())
        else:
            raise FileNotFoundError(f"输入路径不存在: {path}")
    return sorted(found)


class WorkerPool:
    """
    有界线程池

    每个条目是一个可独立失败的工作单元。RAISE/ABORT 策略下，
    观察到第一个失败后不再启动新的单元，已在执行的单元允许自然结束。
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        on_error: ErrorPolicy = ErrorPolicy.RAISE
    ):
        """
        Args:
            max_workers: 最大线程数，None 表示使用 CPU 核心数
            on_error: 错误处理策略
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers 必须大于 0: {max_workers}")
        self._max_workers = max_workers or os.cpu_count() or 1
        self._on_error = on_error

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def map(
        self,
        func: Callable[[T], Any],
        items: Iterable[T],
        describe: Callable[[T], str] = str
    ) -> BatchResult:
        """
        并行执行 func

        Args:
            func: 单元处理函数
            items: 工作单元
            describe: 单元描述 (用于错误归属)

        Returns:
            BatchResult，results 按输入顺序排列

        Raises:
            UnitOfWorkError: RAISE 策略下第一个失败的单元
        """
        items = list(items)
        result = BatchResult(results=[None] * len(items))
        start = time.time()
        stop = threading.Event()
        fail_fast = self._on_error is not ErrorPolicy.SKIP

        def run(index: int):
            if stop.is_set():
                return index, _SKIPPED, None
            try:
                return index, func(items[index]), None
            except Exception as e:
                if fail_fast:
                    stop.set()
                return index, None, e

        if self._max_workers == 1:
            outcomes = (run(i) for i in range(len(items)))
            self._collect(outcomes, items, describe, result)
        else:
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                futures = [executor.submit(run, i) for i in range(len(items))]
                try:
                    self._collect(
                        (f.result() for f in as_completed(futures)),
                        items, describe, result
                    )
                finally:
                    for future in futures:
                        future.cancel()

        result.elapsed_time = time.time() - start
        if self._on_error is ErrorPolicy.RAISE and result.failed_files:
            error = result.first_error
            raise error from error.cause
        return result

    def _collect(self, outcomes, items, describe, result: BatchResult) -> None:
        for index, value, error in outcomes:
            name = describe(items[index])
            if value is _SKIPPED:
                result.skipped_count += 1
                result.skipped_files.append(name)
            elif error is not None:
                if not isinstance(error, UnitOfWorkError):
                    error = UnitOfWorkError(name, error)
                elif error.path != name:
                    # 嵌套池的失败归属到外层单元，内层条目保留在 item 中
                    error = UnitOfWorkError(name, error.cause, item=error.path)
                logger.debug("工作单元失败: %s", name, exc_info=error.cause)
                result.failed_count += 1
                result.failed_files.append((name, error))
            else:
                result.success_count += 1
                result.results[index] = value


_SKIPPED = object()
