#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
批量操作测试

测试文件扫描、线程池调度、进度回调和错误处理策略。
"""

import threading
import time

import pytest

from bdatkit.core.batch import (
    BatchResult,
    ErrorPolicy,
    ProgressInfo,
    ProgressTracker,
    WorkerPool,
    scan_files,
)
from bdatkit.exceptions import UnitOfWorkError


# ==================== ProgressInfo 测试 ====================

class TestProgressInfo:
    """ProgressInfo 数据类测试"""

    def test_progress(self):
        info = ProgressInfo(current=5, total=10, current_item="a", elapsed_time=2.0)
        assert info.progress == 0.5
        assert info.eta == pytest.approx(2.0)
        assert info.label == "files"

    def test_zero_total(self):
        info = ProgressInfo(current=0, total=0, current_item="", elapsed_time=0.0)
        assert info.progress == 0.0
        assert info.eta == float('inf')


# ==================== BatchResult 测试 ====================

class TestBatchResult:
    """BatchResult 测试"""

    def test_counts(self):
        error = ValueError("x")
        result = BatchResult(success_count=3, failed_count=1, skipped_count=1,
                             failed_files=[("a", error)])
        assert result.total_count == 5
        assert result.success_rate == pytest.approx(0.6)
        assert result.first_error is error

    def test_empty(self):
        result = BatchResult()
        assert result.success_rate == 0.0
        assert result.first_error is None


# ==================== ProgressTracker 测试 ====================

class TestProgressTracker:
    """ProgressTracker 测试"""

    def test_callback_on_finish(self):
        """最后一次更新总会回调"""
        infos = []
        tracker = ProgressTracker(total=3, callback=infos.append, label="tables",
                                  callback_interval=3600)
        for item in ("a", "b", "c"):
            tracker.update(item)
        assert tracker.current == 3
        # 第一次 (间隔起点) 和最后一次
        assert infos[-1].current == 3
        assert infos[-1].current_item == "c"
        assert infos[-1].label == "tables"
        assert len(infos) == 2

    def test_add_total(self):
        infos = []
        tracker = ProgressTracker(callback=infos.append, callback_interval=0)
        tracker.add_total(2)
        tracker.update("x")
        tracker.add_total(1)
        tracker.update("y")
        tracker.update("z")
        assert tracker.total == 3
        assert [i.current for i in infos] == [1, 2, 3]
        assert all(i.total == 3 for i in infos[1:])

    def test_concurrent_updates(self):
        """多线程同时更新计数不丢失"""
        tracker = ProgressTracker(total=800)

        def work():
            for _ in range(100):
                tracker.update()

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert tracker.current == 800


# ==================== scan_files 测试 ====================

class TestScanFiles:
    """scan_files 测试"""

    def test_directory_recursive(self, tmp_path):
        (tmp_path / "sub").mkdir()
        for name in ("b.bdat", "a.BDAT", "sub/c.bdat", "note.txt"):
            (tmp_path / name).write_bytes(b"")

        files = scan_files([tmp_path], "bdat")
        assert [f.name for f in files] == ["a.BDAT", "b.bdat", "c.bdat"]

    def test_file_taken_as_given(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"")
        assert scan_files([path], "bdat") == [path.resolve()]

    def test_deduplicated(self, tmp_path):
        path = tmp_path / "a.bdat"
        path.write_bytes(b"")
        assert len(scan_files([path, tmp_path], ".bdat")) == 1

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            scan_files([tmp_path / "nope"], "bdat")


# ==================== WorkerPool 测试 ====================

class TestWorkerPool:
    """WorkerPool 测试"""

    @pytest.mark.parametrize("workers", [1, 4])
    def test_results_in_input_order(self, workers):
        def work(n):
            time.sleep(0.001 * (5 - n))
            return n * n

        result = WorkerPool(max_workers=workers).map(work, range(5))
        assert result.results == [0, 1, 4, 9, 16]
        assert result.success_count == 5
        assert result.failed_count == 0

    def test_invalid_workers(self):
        with pytest.raises(ValueError):
            WorkerPool(max_workers=0)

    def test_default_workers(self):
        assert WorkerPool().max_workers >= 1

    @pytest.mark.parametrize("workers", [1, 3])
    def test_raise_policy(self, workers):
        """RAISE: 第一个失败包装为 UnitOfWorkError 抛出"""
        def work(n):
            if n == 2:
                raise KeyError("boom")
            return n

        with pytest.raises(UnitOfWorkError) as exc_info:
            WorkerPool(max_workers=workers).map(work, range(5), describe=lambda n: f"unit-{n}")
        assert exc_info.value.path == "unit-2"
        assert isinstance(exc_info.value.cause, KeyError)
        assert exc_info.value.__cause__ is exc_info.value.cause

    def test_fail_fast_inline(self):
        """失败后不再启动新的单元"""
        started = []

        def work(n):
            started.append(n)
            if n == 1:
                raise ValueError("bad")
            return n

        result = WorkerPool(max_workers=1, on_error=ErrorPolicy.ABORT).map(work, range(5))
        assert started == [0, 1]
        assert result.success_count == 1
        assert result.failed_count == 1
        assert result.skipped_count == 3
        assert result.results == [0, None, None, None, None]

    def test_fail_fast_parallel(self):
        """并行时在途单元可以完成，但后续单元被跳过"""
        gate = threading.Event()
        started = []
        lock = threading.Lock()

        def work(n):
            with lock:
                started.append(n)
            if n == 0:
                raise ValueError("bad")
            gate.wait(1)
            return n

        pool = WorkerPool(max_workers=2, on_error=ErrorPolicy.ABORT)
        timer = threading.Timer(0.2, gate.set)
        timer.start()
        try:
            result = pool.map(work, range(20))
        finally:
            timer.cancel()
            gate.set()

        assert result.failed_count == 1
        assert result.skipped_count > 0
        assert len(started) < 20
        assert result.total_count == 20

    def test_skip_policy(self):
        """SKIP: 记录失败并继续"""
        def work(n):
            if n % 2:
                raise ValueError(n)
            return n

        result = WorkerPool(max_workers=2, on_error=ErrorPolicy.SKIP).map(work, range(6))
        assert result.success_count == 3
        assert result.failed_count == 3
        assert result.skipped_count == 0
        assert all(isinstance(e, UnitOfWorkError) for _, e in result.failed_files)
        assert result.results == [0, None, 2, None, 4, None]

    def test_unit_error_same_path_kept(self):
        """同一单元的 UnitOfWorkError 保持原样"""
        inner = UnitOfWorkError("1", ValueError("x"))

        def work(n):
            raise inner

        result = WorkerPool(max_workers=1, on_error=ErrorPolicy.SKIP).map(work, [1])
        assert result.failed_files == [("1", inner)]

    def test_nested_error_attributed_to_outer(self):
        """嵌套池的失败归属到外层单元"""
        cause = ValueError("x")

        def fail(item):
            raise cause

        def work(n):
            WorkerPool(max_workers=1).map(fail, ["inner.json"])

        with pytest.raises(UnitOfWorkError) as exc_info:
            WorkerPool(max_workers=1).map(work, ["outer.bschema"])
        error = exc_info.value
        assert error.path == "outer.bschema"
        assert error.item == "inner.json"
        assert error.cause is cause
        assert error.__cause__ is cause
        assert "inner.json" in str(error)

    def test_empty(self):
        result = WorkerPool().map(str, [])
        assert result.total_count == 0
        assert result.results == []
