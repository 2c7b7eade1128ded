"""标准化错误模型与异常层次"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """错误详细信息"""

    code: str = Field(description="错误代码")
    message: str = Field(description="错误消息")
    param: str | None = Field(None, description="相关参数名称")
    type: str | None = Field(None, description="错误类型")
    details: dict[str, Any] | None = Field(None, description="额外错误详情")
    request_id: str | None = Field(None, description="请求ID用于追踪")


class StandardErrorResponse(BaseModel):
    """标准化错误响应模型"""

    type: str = Field("error", description="响应类型")
    error: ErrorDetail = Field(description="错误详情")


class OneAPIError(Exception):
    """所有SDK异常的基类

    调用方应根据 ``error_type`` 分支处理，而不是错误消息文本。
    """

    status_code: int = 500
    error_type: str = "api_error"
    code: str = "internal_error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_response(self, request_id: str | None = None) -> StandardErrorResponse:
        """转换为标准化错误响应"""
        details = dict(self.details)
        param = details.pop("param", None)
        return StandardErrorResponse(
            error=ErrorDetail(
                code=self.code,
                message=self.message,
                param=param,
                type=self.error_type,
                details=details or None,
                request_id=request_id,
            )
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code}, message={self.message!r})"


class UnsupportedModelError(OneAPIError):
    """严格映射的提供商收到未登记的模型ID"""

    status_code = 400
    error_type = "unsupported_model"
    code = "unsupported_model"

    def __init__(self, model: str, provider: str | None = None):
        super().__init__(
            f"Unsupported model: {model}",
            details={"model": model, "provider": provider, "param": "model"},
        )
        self.model = model
        self.provider = provider


class UnsupportedCapabilityError(OneAPIError):
    """提供商不支持请求的能力（embeddings、图像生成等）"""

    status_code = 400
    error_type = "unsupported_capability"
    code = "unsupported_capability"

    def __init__(self, provider: str, capability: str):
        super().__init__(
            f"Provider {provider} does not support {capability}",
            details={"provider": provider, "capability": capability},
        )
        self.provider = provider
        self.capability = capability


class RequestValidationError(OneAPIError):
    """请求违反提供商的结构或数值约束

    ``errors`` 汇总了所有发现的问题，而不仅是第一个。
    """

    status_code = 400
    error_type = "validation_error"
    code = "validation_error"

    def __init__(self, message: str, errors: list[str]):
        super().__init__(f"{message}: {'; '.join(errors)}", details={"errors": errors})
        self.errors = list(errors)


class ProviderNotConfiguredError(OneAPIError):
    """提供商缺少API密钥"""

    status_code = 401
    error_type = "authentication_error"
    code = "unauthorized"

    def __init__(self, provider: str):
        super().__init__(
            f"No API key configured for provider {provider}",
            details={"provider": provider},
        )
        self.provider = provider


class RateLimitExceededError(OneAPIError):
    """容量检查失败（非等待的 acquire 路径）"""

    status_code = 429
    error_type = "rate_limit_exceeded"
    code = "rate_limit_exceeded"

    def __init__(self, model: str, retry_after: float):
        super().__init__(
            f"Rate limit exceeded for {model}. Retry after {retry_after:.3f}s",
            details={"model": model, "retry_after": retry_after},
        )
        self.model = model
        self.retry_after = retry_after


class UpstreamAPIError(OneAPIError):
    """上游提供商返回非2xx响应，携带原始状态码与响应体"""

    error_type = "upstream_api_error"
    code = "external_service_error"

    def __init__(
        self,
        provider: str,
        status_code: int,
        body: str | None = None,
        message: str | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(
            message or f"{provider} API error: {status_code}",
            status_code=status_code,
            details={"provider": provider, "body": body},
        )
        self.provider = provider
        self.body = body
        # 上游 Retry-After 响应头（秒）
        self.retry_after = retry_after


class UpstreamTimeoutError(UpstreamAPIError):
    """上游请求超时"""

    error_type = "timeout_error"
    code = "timeout"

    def __init__(self, provider: str, timeout: float):
        super().__init__(
            provider,
            408,
            message=f"{provider} request timed out after {timeout}s",
        )
        self.timeout = timeout


class StreamParseError(OneAPIError):
    """单行流式数据格式错误，在本地恢复后继续读取"""

    status_code = 502
    error_type = "stream_parse_error"
    code = "stream_parse_error"

    def __init__(self, line: str, reason: str):
        super().__init__(f"Malformed stream line: {reason}", details={"line": line[:200]})
        self.line = line


class StreamTransportError(OneAPIError):
    """底层连接在流式读取过程中失败"""

    status_code = 502
    error_type = "stream_transport_error"
    code = "stream_transport_error"

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider} stream failed: {message}", details={"provider": provider})
        self.provider = provider


def is_retryable_status(status_code: int) -> bool:
    """429 与 5xx 可重试，其余 4xx 立即抛出"""
    return status_code == 429 or status_code >= 500


def is_client_error(status_code: int) -> bool:
    return 400 <= status_code < 500


def is_server_error(status_code: int) -> bool:
    return 500 <= status_code < 600
