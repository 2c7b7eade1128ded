"""
带重试的上游HTTP客户端

基于共享的 ``httpx.AsyncClient``。429、5xx 与网络错误按 ``retry_delay * attempt``
线性退避重试，其余 4xx 立即抛出。流式请求只在收到第一行之前重试。
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import httpx

from oneapi.common.logging import get_logger_with_request_id
from oneapi.models.errors import (
    StreamTransportError,
    UpstreamAPIError,
    UpstreamTimeoutError,
    is_retryable_status,
)

# 网络层失败（连接被拒绝、DNS错误等）没有HTTP状态码
TRANSPORT_ERROR_STATUS = 503


class APIClient:
    """单个提供商的HTTP客户端

    Args:
        provider: 提供商名称，用于错误与日志
        http_client: 共享的 httpx.AsyncClient
        base_url: API基础URL
        headers: 每个请求都携带的请求头（认证等）
        timeout: 单次请求超时（秒）
        max_retries: 最大尝试次数（含首次）
        retry_delay: 重试基础延迟（秒）
        params: 每个请求都携带的查询参数
    """

    def __init__(
        self,
        provider: str,
        http_client: httpx.AsyncClient,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        params: dict[str, str] | None = None,
    ):
        self.provider = provider
        self._client = http_client
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.params = params or {}

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _params(self, params: dict[str, str] | None) -> dict[str, str] | None:
        merged = {**self.params, **(params or {})}
        return merged or None

    def _backoff(self, attempt: int, error: Exception | None = None) -> float:
        delay = self.retry_delay * attempt
        retry_after = getattr(error, "retry_after", None)
        if retry_after is not None:
            delay = max(delay, retry_after)
        return delay

    def _upstream_error(self, response: httpx.Response, body: str) -> UpstreamAPIError:
        retry_after = None
        header = response.headers.get("retry-after")
        if header:
            try:
                retry_after = float(header)
            except ValueError:
                # HTTP-date 格式的 Retry-After 按默认退避处理
                retry_after = None
        return UpstreamAPIError(
            self.provider, response.status_code, body=body, retry_after=retry_after
        )

    def _transport_error(self, exc: httpx.TransportError) -> UpstreamAPIError:
        if isinstance(exc, httpx.TimeoutException):
            return UpstreamTimeoutError(self.provider, self.timeout)
        return UpstreamAPIError(
            self.provider,
            TRANSPORT_ERROR_STATUS,
            message=f"{self.provider} network error: {type(exc).__name__}: {exc}",
        )

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        request_id: str | None = None,
    ) -> Any:
        """发送请求并返回解析后的JSON（非JSON响应返回文本）"""
        bound_logger = get_logger_with_request_id(request_id)
        last_error: UpstreamAPIError | None = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = await self._client.request(
                    method,
                    self._url(path),
                    json=json,
                    data=data,
                    files=files,
                    params=self._params(params),
                    headers=self.headers,
                    timeout=self.timeout,
                )
            except httpx.TransportError as e:
                last_error = self._transport_error(e)
            else:
                if response.is_success:
                    return self._decode(response)
                last_error = self._upstream_error(response, response.text)
                if not is_retryable_status(response.status_code):
                    raise last_error

            if attempt < self.max_retries:
                delay = self._backoff(attempt, last_error)
                bound_logger.warning(
                    f"{self.provider} 请求失败，{delay:.2f}s 后重试 - Path: {path}, "
                    f"Attempt: {attempt}/{self.max_retries}, Status: {last_error.status_code}"
                )
                await asyncio.sleep(delay)

        bound_logger.error(
            f"{self.provider} 请求重试次数耗尽 - Path: {path}, Status: {last_error.status_code}"
        )
        raise last_error

    def _decode(self, response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "json" not in content_type:
            return response.text
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamAPIError(
                self.provider,
                502,
                body=response.text[:2000],
                message=f"{self.provider} 返回了无效的JSON",
            ) from e

    async def stream_lines(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        request_id: str | None = None,
    ) -> AsyncIterator[str]:
        """流式读取响应行

        连接在 ``async with`` 中打开，生成器无论以何种方式结束都会关闭连接。

        Raises:
            UpstreamAPIError: 上游返回非2xx或首行之前重试耗尽
            StreamTransportError: 已经开始输出后连接中断
        """
        bound_logger = get_logger_with_request_id(request_id)
        last_error: UpstreamAPIError | None = None

        for attempt in range(1, self.max_retries + 1):
            delivered = False
            try:
                async with self._client.stream(
                    method,
                    self._url(path),
                    json=json,
                    params=self._params(params),
                    headers=self.headers,
                    timeout=self.timeout,
                ) as response:
                    if not response.is_success:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        last_error = self._upstream_error(response, body)
                        if not is_retryable_status(response.status_code):
                            raise last_error
                    else:
                        async for line in response.aiter_lines():
                            delivered = True
                            yield line
                        return
            except httpx.TransportError as e:
                if delivered:
                    raise StreamTransportError(self.provider, f"{type(e).__name__}: {e}") from e
                last_error = self._transport_error(e)

            if attempt < self.max_retries:
                delay = self._backoff(attempt, last_error)
                bound_logger.warning(
                    f"{self.provider} 流式请求失败，{delay:.2f}s 后重试 - Path: {path}, "
                    f"Attempt: {attempt}/{self.max_retries}, Status: {last_error.status_code}"
                )
                await asyncio.sleep(delay)

        bound_logger.error(
            f"{self.provider} 流式请求重试次数耗尽 - Path: {path}, Status: {last_error.status_code}"
        )
        raise last_error
