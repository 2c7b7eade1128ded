"""
核心功能模块

- model_mapping: 规范化模型ID与厂商模型名的双向映射
- model_capabilities: Anthropic 模型能力与限额常量
- validation: 分发前的请求校验
- converters: 请求/响应/流式格式转换器
- rate_limiter: Anthropic 限流器
- clients: 带重试的HTTP客户端

rate_limiter 与 clients 依赖配置模块，请直接从子模块导入。
"""

from .converters import (
    AnthropicRequestConverter,
    AnthropicResponseConverter,
    GeminiRequestConverter,
    GeminiResponseConverter,
    OpenAIRequestConverter,
    OpenAIResponseConverter,
)
from .model_mapping import ModelMapper, PassthroughModelMapper

__all__ = [
    "ModelMapper",
    "PassthroughModelMapper",
    "AnthropicRequestConverter",
    "AnthropicResponseConverter",
    "GeminiRequestConverter",
    "GeminiResponseConverter",
    "OpenAIRequestConverter",
    "OpenAIResponseConverter",
]
