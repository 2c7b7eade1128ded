"""在途请求跟踪，支持一次性取消所有调用"""

import asyncio
from contextlib import contextmanager

from loguru import logger


class InflightRequests:
    """记录正在执行SDK调用的任务

    取消会沿调用栈展开，经过 ``RateLimiter.slot`` 与 HTTP 流的 ``async with``，
    名额与连接都会被释放。
    """

    def __init__(self):
        self._tasks: dict[asyncio.Task, str] = {}

    @contextmanager
    def track(self, request_id: str):
        task = asyncio.current_task()
        if task is None or task in self._tasks:
            # 嵌套调用只登记最外层
            yield
            return
        self._tasks[task] = request_id
        try:
            yield
        finally:
            self._tasks.pop(task, None)

    def cancel_all(self) -> int:
        """取消所有在途请求，返回被取消的数量"""
        cancelled = 0
        for task, request_id in list(self._tasks.items()):
            if not task.done():
                task.cancel()
                cancelled += 1
                logger.bind(request_id=request_id).info("请求已取消")
        return cancelled

    def __len__(self) -> int:
        return len(self._tasks)
