"""
Async Helpers Tests

非同期ヘルパー機能のテスト。
以下の項目をテスト：
- 並行処理数の制限
- エラーの伝播
"""

import asyncio
from typing import List

import pytest

from rsync_command.utils.async_helpers import Limiter, gather_with_concurrency


class TestLimiter:
    """Limiterのテスト"""

    @pytest.mark.asyncio
    async def test_concurrent_execution(self):
        limiter = Limiter(max_concurrent=2)
        active_count = 0
        max_active = 0

        async def task():
            nonlocal active_count, max_active
            async with limiter:
                active_count += 1
                max_active = max(max_active, active_count)
                await asyncio.sleep(0.05)
                active_count -= 1

        await asyncio.gather(*(task() for _ in range(5)))

        assert max_active == 2  # 最大同時実行数
        assert active_count == 0  # 全て完了

    @pytest.mark.asyncio
    async def test_error_handling(self):
        limiter = Limiter(max_concurrent=2)

        with pytest.raises(ValueError):
            async with limiter:
                raise ValueError("Test error")

        # セマフォが解放されている
        async with limiter:
            async with limiter:
                pass

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            Limiter(max_concurrent=0)


class TestGatherWithConcurrency:
    """gather_with_concurrencyのテスト"""

    @pytest.mark.asyncio
    async def test_concurrent_execution(self):
        active_count = 0
        max_active = 0

        async def task(i: int) -> int:
            nonlocal active_count, max_active
            active_count += 1
            max_active = max(max_active, active_count)
            await asyncio.sleep(0.05)
            active_count -= 1
            return i

        tasks = [lambda i=i: task(i) for i in range(5)]
        results: List[int] = await gather_with_concurrency(2, *tasks)

        assert max_active == 2
        assert results == list(range(5))  # 入力順で返る

    @pytest.mark.asyncio
    async def test_error_propagation(self):
        async def failing_task():
            raise ValueError("Test error")

        with pytest.raises(ValueError):
            await gather_with_concurrency(2, failing_task)

    @pytest.mark.asyncio
    async def test_no_tasks(self):
        assert await gather_with_concurrency(2) == []
