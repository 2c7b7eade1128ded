"""
OneAPI SDK

统一的大模型客户端，把 OpenAI、Anthropic、Google Gemini、Mistral、Together
的对话补全、向量嵌入、图像生成与音频转写调用归一化为同一种请求/响应格式，
可以直连各厂商，也可以通过 OpenRouter 聚合网关转发。

主要功能:
- 规范化模型ID（``provider/model``）与厂商模型名的双向映射
- 请求/响应格式转换，支持多模态输入与工具调用
- 流式响应归一化为统一的分片序列
- Anthropic 限流（按模型、按分钟，思考模式倍率）
- 分发前的请求校验
- 请求ID追踪和日志记录
- 配置文件热重载

使用示例:
    from oneapi import OneAPI

    async with OneAPI() as client:
        response = await client.create_chat_completion(
            {"model": "openai/gpt-4o", "messages": [{"role": "user", "content": "Hello"}]}
        )
"""

__version__ = "1.0.0"
__author__ = "OneAPI SDK Team"
__description__ = "Unified LLM client for OpenAI, Anthropic, Gemini, Mistral, Together and OpenRouter"

# 导出主要的公共API
from .common import configure_logging, request_logger
from .config import Config, get_config, reload_config
from .models import (
    CompletionChunk,
    CompletionRequest,
    CompletionResponse,
    EmbeddingRequest,
    EmbeddingResponse,
    OneAPIError,
)
from .sdk import OneAPI

__all__ = [
    "OneAPI",
    "Config",
    "configure_logging",
    "request_logger",
    "get_config",
    "reload_config",
    "CompletionRequest",
    "CompletionResponse",
    "CompletionChunk",
    "EmbeddingRequest",
    "EmbeddingResponse",
    "OneAPIError",
    "__version__",
]
