"""
Anthropic 限流器

全局与按模型的固定窗口计数器 + 全局并发上限。所有作用域由同一个后台任务
每隔 ``reset_interval`` 秒同时清零（固定窗口，而非滑动窗口）。

计数器只在单个事件循环内、两次 await 之间被修改，因此检查与递增之间不需要锁。
"""

import asyncio
import math
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from loguru import logger

from oneapi.config.settings import ModelRateLimit, RateLimitConfig
from oneapi.core.model_capabilities import base_model_id, is_thinking_model
from oneapi.models.errors import RateLimitExceededError, RequestValidationError

CONCURRENCY_RETRY_AFTER = 1.0
MIN_WAIT = 0.05


class RateLimitInfo:
    """单个作用域（全局或某个模型）的计数器"""

    __slots__ = ("requests", "tokens", "last_reset", "active_requests")

    def __init__(self, last_reset: float):
        self.requests = 0
        self.tokens = 0
        self.last_reset = last_reset
        self.active_requests = 0

    def snapshot(self) -> dict[str, float | int]:
        return {
            "requests": self.requests,
            "tokens": self.tokens,
            "last_reset": self.last_reset,
            "active_requests": self.active_requests,
        }


class RateLimiter:
    """固定窗口限流器

    Args:
        config: 限流配置，模型限额已合并默认值
        clock: 单调时钟，测试时可替换
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._global = RateLimitInfo(clock())
        self._models: dict[str, RateLimitInfo] = {}
        self._reset_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # 生命周期
    # ------------------------------------------------------------------

    def start(self) -> None:
        """启动计数器重置任务，需要在事件循环中调用"""
        if self._reset_task is not None and not self._reset_task.done():
            return
        # 窗口从重置任务启动时开始计时
        now = self._clock()
        for info in (self._global, *self._models.values()):
            info.last_reset = now
        self._reset_task = asyncio.get_running_loop().create_task(self._reset_loop())
        logger.debug(f"限流计数器重置任务已启动 - Interval: {self.config.reset_interval}s")

    def _ensure_started(self) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # 没有运行中的事件循环（同步调用），由首次异步调用启动
            return
        self.start()

    async def close(self) -> None:
        if self._reset_task is None:
            return
        self._reset_task.cancel()
        try:
            await self._reset_task
        except asyncio.CancelledError:
            pass
        self._reset_task = None

    async def _reset_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.reset_interval)
            self.reset_counters()

    def reset_counters(self) -> None:
        """清零所有作用域的请求数与token数，保留并发计数"""
        now = self._clock()
        for info in (self._global, *self._models.values()):
            info.requests = 0
            info.tokens = 0
            info.last_reset = now

    # ------------------------------------------------------------------
    # 限额计算
    # ------------------------------------------------------------------

    def _model_limit(self, model: str) -> ModelRateLimit:
        limit = self.config.model_limits.get(base_model_id(model))
        if limit is None:
            limit = ModelRateLimit(
                requests_per_minute=self.config.requests_per_minute,
                tokens_per_minute=self.config.tokens_per_minute,
            )
        if not is_thinking_model(model):
            return limit
        thinking = self.config.thinking_mode
        return ModelRateLimit(
            requests_per_minute=math.floor(limit.requests_per_minute / thinking.request_multiplier),
            tokens_per_minute=math.floor(limit.tokens_per_minute / thinking.token_multiplier),
        )

    def adjust_tokens(self, model: str, tokens: int) -> int:
        if is_thinking_model(model):
            return math.ceil(tokens * self.config.thinking_mode.token_multiplier)
        return tokens

    def _retry_after(self, info: RateLimitInfo, now: float) -> float:
        return max(0.0, self.config.reset_interval - (now - info.last_reset))

    def check_limits(self, model: str, tokens: int) -> float | None:
        """检查是否允许请求，不修改任何计数器

        Returns:
            允许时返回None，否则返回建议的等待秒数
        """
        now = self._clock()

        if self._global.active_requests >= self.config.max_concurrent_requests:
            return CONCURRENCY_RETRY_AFTER

        adjusted = self.adjust_tokens(model, tokens)

        if (
            self._global.requests >= self.config.requests_per_minute
            or self._global.tokens + adjusted >= self.config.tokens_per_minute
        ):
            return self._retry_after(self._global, now)

        limit = self._model_limit(model)
        info = self._models.get(model)
        requests = info.requests if info else 0
        used_tokens = info.tokens if info else 0
        if (
            requests >= limit.requests_per_minute
            or used_tokens + adjusted >= limit.tokens_per_minute
        ):
            # 尚未有记录的模型与全局窗口同步重置
            return self._retry_after(info or self._global, now)

        return None

    def _check_satisfiable(self, model: str, tokens: int) -> None:
        """单个请求的token估算超过整分钟预算时，等待永远不会成功"""
        adjusted = self.adjust_tokens(model, tokens)
        ceiling = min(self.config.tokens_per_minute, self._model_limit(model).tokens_per_minute)
        if adjusted >= ceiling:
            raise RequestValidationError(
                "Request exceeds rate limit ceiling",
                [f"estimated {adjusted} tokens exceeds per-minute ceiling of {ceiling} for {model}"],
            )

    # ------------------------------------------------------------------
    # acquire / release
    # ------------------------------------------------------------------

    def acquire(self, model: str, tokens: int) -> None:
        """占用一个请求名额

        Raises:
            RateLimitExceededError: 超出限额，此时不修改任何计数器
        """
        self._ensure_started()

        retry_after = self.check_limits(model, tokens)
        if retry_after is not None:
            raise RateLimitExceededError(model, retry_after)

        adjusted = self.adjust_tokens(model, tokens)
        info = self._models.get(model)
        if info is None:
            info = RateLimitInfo(self._global.last_reset)
            self._models[model] = info

        for scope in (self._global, info):
            scope.requests += 1
            scope.tokens += adjusted
            scope.active_requests += 1

    def release(self, model: str) -> None:
        """释放名额，多次释放时并发计数在0处截断"""
        self._global.active_requests = max(0, self._global.active_requests - 1)
        info = self._models.get(model)
        if info is not None:
            info.active_requests = max(0, info.active_requests - 1)

    async def wait_for_capacity(self, model: str, tokens: int) -> None:
        """等待直到限额允许该请求"""
        self._ensure_started()
        self._check_satisfiable(model, tokens)

        while True:
            retry_after = self.check_limits(model, tokens)
            if retry_after is None:
                return
            logger.debug(f"限流等待 - Model: {model}, Tokens: {tokens}, Wait: {retry_after:.3f}s")
            await asyncio.sleep(max(retry_after, MIN_WAIT))

    @asynccontextmanager
    async def slot(self, model: str, tokens: int) -> AsyncIterator[None]:
        """等待容量并占用名额，退出时无论成功、异常还是取消都会释放"""
        await self.wait_for_capacity(model, tokens)
        # wait_for_capacity 返回后没有 await，检查结果依然有效
        self.acquire(model, tokens)
        try:
            yield
        finally:
            self.release(model)

    def get_status(self, model: str | None = None) -> dict[str, float | int]:
        if model is None:
            return self._global.snapshot()
        info = self._models.get(model)
        if info is None:
            return RateLimitInfo(self._global.last_reset).snapshot()
        return info.snapshot()
