"""
通用工具模块

主要功能:
- 日志配置和管理
- 请求ID生成和追踪
- Token估算与计数

使用示例:
    from oneapi.common import configure_logging, get_logger_with_request_id

    configure_logging(config.logging)
    bound_logger = get_logger_with_request_id(request_id)
"""

from .logging import (
    RequestLogger,
    configure_logging,
    generate_request_id,
    get_logger_with_request_id,
    request_logger,
)
from .token_cache import PromptTokenCache, prompt_token_cache
from .token_counter import TokenCounter, estimate_tokens, get_model_type, token_counter

__all__ = [
    # 日志功能
    "configure_logging",
    "RequestLogger",
    "request_logger",
    "generate_request_id",
    "get_logger_with_request_id",
    # Token计数
    "TokenCounter",
    "token_counter",
    "estimate_tokens",
    "get_model_type",
    "PromptTokenCache",
    "prompt_token_cache",
]
