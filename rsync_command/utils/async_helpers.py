"""
Async Utilities

非同期処理のためのユーティリティモジュール。
複数のコマンドを同時実行数を制限して実行するために使用する。
"""

import asyncio
from typing import Any, Awaitable, Callable, List


class Limiter:
    """
    並行処理数を制限するクラス

    使用例:
    ```python
    limiter = Limiter(max_concurrent=3)
    async with limiter:
        await command.execute_async()
    ```
    """

    def __init__(self, max_concurrent: int):
        """
        Args:
            max_concurrent: 最大同時実行数
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.semaphore = asyncio.Semaphore(max_concurrent)

    async def __aenter__(self):
        await self.semaphore.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.semaphore.release()


async def gather_with_concurrency(
    max_concurrent: int,
    *tasks: Callable[[], Awaitable[Any]]
) -> List[Any]:
    """
    並行処理数を制限してタスクを実行

    使用例:
    ```python
    results = await gather_with_concurrency(3, task1, task2, task3, task4)
    ```

    Args:
        max_concurrent: 最大同時実行数
        *tasks: コルーチンを返す引数なしの呼び出し可能オブジェクト

    Returns:
        タスクの実行結果のリスト（入力順）
    """
    limiter = Limiter(max_concurrent)

    async def wrapped_task(task: Callable[[], Awaitable[Any]]) -> Any:
        async with limiter:
            return await task()

    return await asyncio.gather(
        *(wrapped_task(task) for task in tasks)
    )
