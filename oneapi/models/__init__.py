"""
数据模型模块

- requests / responses: 统一请求与响应形状
- anthropic / openai / gemini: 各厂商原生格式
- errors: 异常层次与标准化错误响应
"""

from .errors import (
    ErrorDetail,
    OneAPIError,
    ProviderNotConfiguredError,
    RateLimitExceededError,
    RequestValidationError,
    StandardErrorResponse,
    StreamParseError,
    StreamTransportError,
    UnsupportedCapabilityError,
    UnsupportedModelError,
    UpstreamAPIError,
    UpstreamTimeoutError,
)
from .requests import (
    ChatMessage,
    CompletionRequest,
    ContentPart,
    EmbeddingRequest,
    ImageContentPart,
    ImageGenerationRequest,
    ImageURL,
    TextContentPart,
    ToolDefinition,
    TranscriptionRequest,
)
from .responses import (
    Choice,
    CompletionChunk,
    CompletionResponse,
    EmbeddingResponse,
    ImageGenerationResponse,
    ResponseMessage,
    TranscriptionResponse,
    Usage,
)

__all__ = [
    # 错误
    "ErrorDetail",
    "StandardErrorResponse",
    "OneAPIError",
    "UnsupportedModelError",
    "UnsupportedCapabilityError",
    "RequestValidationError",
    "ProviderNotConfiguredError",
    "RateLimitExceededError",
    "UpstreamAPIError",
    "UpstreamTimeoutError",
    "StreamParseError",
    "StreamTransportError",
    # 请求
    "ChatMessage",
    "ContentPart",
    "TextContentPart",
    "ImageContentPart",
    "ImageURL",
    "ToolDefinition",
    "CompletionRequest",
    "EmbeddingRequest",
    "ImageGenerationRequest",
    "TranscriptionRequest",
    # 响应
    "Usage",
    "ResponseMessage",
    "Choice",
    "CompletionResponse",
    "CompletionChunk",
    "EmbeddingResponse",
    "ImageGenerationResponse",
    "TranscriptionResponse",
]
