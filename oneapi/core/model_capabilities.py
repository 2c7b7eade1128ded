"""
Anthropic 模型能力与限额常量

以原生模型名为键；``:thinking`` 后缀表示思考模式变体。
"""

from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

THINKING_SUFFIX = ":thinking"


def is_thinking_model(model: str) -> bool:
    return THINKING_SUFFIX in model


def base_model_id(model: str) -> str:
    """去掉 ``:thinking`` 等变体后缀"""
    return model.split(":")[0]


TOKEN_LIMITS = MappingProxyType(
    {
        "claude-3.7-sonnet": 4096 * 4,
        "claude-3.7-sonnet:thinking": 4096 * 4,
        "claude-3.5-haiku-20241022": 4096 * 2,
        "claude-3.5-sonnet": 4096 * 3,
        "claude-2.1": 4096 * 4,
        "claude-2.0": 4096 * 4,
        "claude-instant-1.2": 4096 * 4,
    }
)

DEFAULT_REQUESTS_PER_MINUTE = 450
DEFAULT_TOKENS_PER_MINUTE = 90000
DEFAULT_MAX_CONCURRENT_REQUESTS = 50

# (requests_per_minute, tokens_per_minute)
MODEL_RATE_LIMITS = MappingProxyType(
    {
        "claude-3.7-sonnet": (400, 85000),
        "claude-3.7-sonnet:thinking": (350, 75000),
        "claude-3.5-haiku-20241022": (450, 90000),
        "claude-3.5-sonnet": (350, 75000),
    }
)


class ModelCapabilities(BaseModel):
    """单个模型的能力描述"""

    model_config = ConfigDict(frozen=True)

    vision: bool = Field(False, description="是否支持图像输入")
    tool_use: bool = Field(False, description="是否支持工具调用")
    thinking: bool = Field(False, description="是否为思考模式")
    structured_output: bool = Field(False, description="是否支持结构化输出")
    max_tokens: int = Field(0, description="最大输出token数")


MODEL_CAPABILITIES = MappingProxyType(
    {
        "claude-3.7-sonnet": ModelCapabilities(
            vision=True,
            tool_use=True,
            structured_output=True,
            max_tokens=TOKEN_LIMITS["claude-3.7-sonnet"],
        ),
        "claude-3.7-sonnet:thinking": ModelCapabilities(
            vision=True,
            tool_use=True,
            thinking=True,
            structured_output=True,
            max_tokens=TOKEN_LIMITS["claude-3.7-sonnet:thinking"],
        ),
        "claude-3.5-haiku-20241022": ModelCapabilities(
            vision=True,
            structured_output=True,
            max_tokens=TOKEN_LIMITS["claude-3.5-haiku-20241022"],
        ),
        "claude-3.5-sonnet": ModelCapabilities(
            vision=True,
            tool_use=True,
            structured_output=True,
            max_tokens=TOKEN_LIMITS["claude-3.5-sonnet"],
        ),
    }
)


def has_capability(model: str, capability: str) -> bool:
    """未登记能力的模型视为不支持"""
    capabilities = MODEL_CAPABILITIES.get(model)
    if capabilities is None:
        return False
    value = getattr(capabilities, capability, None)
    if isinstance(value, bool):
        return value
    return isinstance(value, int) and value > 0
