"""
提供商适配器

- anthropic: Anthropic Messages API（严格模型映射 + 限流）
- openai: OpenAI（全部能力）
- gemini: Google Gemini generateContent
- mistral / together: OpenAI 兼容协议
- openrouter: 聚合网关，模型ID透传
"""

from .anthropic import AnthropicProvider
from .base import Provider, ProviderCapabilities
from .gemini import GeminiProvider
from .mistral import MistralProvider
from .openai import OpenAIProvider
from .openai_compatible import OpenAICompatibleProvider
from .openrouter import OpenRouterProvider
from .together import TogetherProvider

__all__ = [
    "Provider",
    "ProviderCapabilities",
    "OpenAICompatibleProvider",
    "AnthropicProvider",
    "OpenAIProvider",
    "GeminiProvider",
    "MistralProvider",
    "TogetherProvider",
    "OpenRouterProvider",
]
