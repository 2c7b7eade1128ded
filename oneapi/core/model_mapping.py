"""
模型ID映射

在规范化ID（``provider/model``）与厂商原生模型名之间双向转换。
映射表是不可变常量，通过构造参数注入到各提供商适配器中。
"""

import re
from collections.abc import Mapping
from types import MappingProxyType

from oneapi.models.errors import UnsupportedModelError


def _freeze(table: dict[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(table))


ANTHROPIC_MODEL_MAPPING = _freeze(
    {
        "anthropic/claude-3.7-sonnet": "claude-3.7-sonnet",
        "anthropic/claude-3.7-sonnet:thinking": "claude-3.7-sonnet:thinking",
        "anthropic/claude-3.5-haiku-20241022": "claude-3.5-haiku-20241022",
        "anthropic/claude-3.5-sonnet": "claude-3.5-sonnet",
        "anthropic/claude-2.1": "claude-2.1",
        "anthropic/claude-2.0": "claude-2.0",
        "anthropic/claude-instant-1.2": "claude-instant-1.2",
    }
)

OPENAI_MODEL_MAPPING = _freeze(
    {
        "openai/gpt-4o": "gpt-4o",
        "openai/gpt-4o-mini": "gpt-4o-mini",
        "openai/gpt-4-turbo": "gpt-4-turbo",
        "openai/gpt-4": "gpt-4",
        "openai/gpt-3.5-turbo": "gpt-3.5-turbo",
        "openai/text-embedding-3-small": "text-embedding-3-small",
        "openai/text-embedding-3-large": "text-embedding-3-large",
        "openai/text-embedding-ada-002": "text-embedding-ada-002",
        "openai/dall-e-3": "dall-e-3",
        "openai/dall-e-2": "dall-e-2",
        "openai/whisper-1": "whisper-1",
    }
)

GEMINI_MODEL_MAPPING = _freeze(
    {
        "google/gemini-pro": "gemini-pro",
        "google/gemini-1.5-pro": "gemini-1.5-pro",
        "google/gemini-1.5-flash": "gemini-1.5-flash",
        "google/gemini-2.0-flash": "gemini-2.0-flash",
    }
)

MISTRAL_MODEL_MAPPING = _freeze(
    {
        "mistral/mistral-tiny": "mistral-tiny",
        "mistral/mistral-small": "mistral-small",
        "mistral/mistral-medium": "mistral-medium",
        "mistral/mistral-large": "mistral-large",
        "mistral/mistral-large-2": "mistral-large-2",
        "mistral/mistral-nemo": "mistral-nemo",
        "mistral/codestral": "codestral",
        "mistral/mixtral-8x7b": "mixtral-8x7b-instruct",
        "mistral/saba": "mistral-saba",
        "mistral/skyfall-36b-v2": "thedrummer-skyfall-36b-v2",
        "mistral/mistral-embed": "mistral-embed",
    }
)

TOGETHER_MODEL_MAPPING = _freeze(
    {
        "together/llama-3-70b-instruct": "togethercomputer/llama-3-70b-instruct",
        "together/llama-3-8b-instruct": "togethercomputer/llama-3-8b-instruct",
        "together/qwen-72b-chat": "togethercomputer/qwen-72b-chat",
        "together/codellama-70b-instruct": "togethercomputer/codellama-70b-instruct",
        "together/falcon-180b-chat": "togethercomputer/falcon-180b-chat",
        "together/yi-34b-chat": "togethercomputer/yi-34b-chat",
        "together/llama-2-70b-chat": "togethercomputer/llama-2-70b-chat",
        "together/llama-3.1-tulu-3-405b": "allenai/tulu-3-405b",
        "together/qwen2.5-32b-instruct": "qwen/qwen2.5-32b-instruct",
        "together/qwq-32b": "qwen/qwq-32b",
    }
)

# OpenRouter 本身就以规范化ID作为模型名
OPENROUTER_MODEL_MAPPING = _freeze({})


class ModelMapper:
    """单个提供商的双向模型ID映射

    Args:
        prefix: 规范化ID中的提供商前缀，如 ``anthropic``
        table: 规范化ID到原生模型名的映射
        strict: 为True时未登记的模型抛出 UnsupportedModelError，否则原样透传
    """

    def __init__(self, prefix: str, table: Mapping[str, str], strict: bool = False):
        self.prefix = prefix
        self.table = table if isinstance(table, MappingProxyType) else _freeze(table)
        self.strict = strict
        self._reverse = MappingProxyType({v: k for k, v in self.table.items()})
        self._prefix_re = re.compile(rf"^(?:{re.escape(prefix)}/)+")

    def strip_prefix(self, model: str) -> str:
        """去除任意次重复的 ``prefix/`` 前缀"""
        return self._prefix_re.sub("", model)

    def to_provider_model(self, normalized_id: str) -> str:
        cleaned = self.strip_prefix(normalized_id)
        native = self.table.get(f"{self.prefix}/{cleaned}")
        if native is not None:
            return native
        if self.strict:
            raise UnsupportedModelError(normalized_id, self.prefix)
        return cleaned

    def to_normalized_model(self, provider_model: str) -> str:
        normalized = self._reverse.get(provider_model)
        if normalized is not None:
            return normalized
        if provider_model.startswith(f"{self.prefix}/"):
            return provider_model
        return f"{self.prefix}/{provider_model}"

    def is_supported(self, normalized_id: str) -> bool:
        return f"{self.prefix}/{self.strip_prefix(normalized_id)}" in self.table

    def list_models(self) -> list[str]:
        return list(self.table)


class PassthroughModelMapper(ModelMapper):
    """聚合器使用的映射：规范化ID本身就是上游模型名

    只去除聚合器自身的重复前缀，其他前缀（``anthropic/`` 等）原样保留。
    """

    def __init__(self, prefix: str = "openrouter", table: Mapping[str, str] = OPENROUTER_MODEL_MAPPING):
        super().__init__(prefix, table, strict=False)

    def to_normalized_model(self, provider_model: str) -> str:
        normalized = self._reverse.get(provider_model)
        if normalized is not None:
            return normalized
        return self.strip_prefix(provider_model)
