"""
SDK配置模型与加载

优先级（低到高）：默认值 -> JSON配置文件 -> 环境变量。
"""

import json
import os
from pathlib import Path
from typing import Any

import aiofiles
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from oneapi.core.model_capabilities import (
    DEFAULT_MAX_CONCURRENT_REQUESTS,
    DEFAULT_REQUESTS_PER_MINUTE,
    DEFAULT_TOKENS_PER_MINUTE,
    MODEL_RATE_LIMITS,
)

DEFAULT_CONFIG_PATH = "config/settings.json"

PROVIDER_NAMES = ("openai", "anthropic", "gemini", "mistral", "together", "openrouter")

# 环境变量名，按顺序取第一个非空值
API_KEY_ENV_VARS: dict[str, tuple[str, ...]] = {
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "mistral": ("MISTRAL_API_KEY",),
    "together": ("TOGETHER_API_KEY",),
    "openrouter": ("OPENROUTER_API_KEY",),
}


class ProviderConfig(BaseModel):
    """单个提供商的连接配置"""

    api_key: str | None = Field(None, description="API密钥")
    base_url: str | None = Field(None, description="API基础URL，留空使用默认值")
    timeout: float = Field(30.0, gt=0, description="请求超时时间（秒）")
    max_retries: int = Field(3, ge=1, description="最大尝试次数（含首次请求）")
    retry_delay: float = Field(1.0, ge=0, description="重试基础延迟（秒），按尝试次数线性增长")
    headers: dict[str, str] = Field(default_factory=dict, description="额外请求头")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class AnthropicProviderConfig(ProviderConfig):
    """Anthropic 连接配置"""

    version: str = Field("2023-06-01", description="anthropic-version 请求头")


class OpenRouterProviderConfig(ProviderConfig):
    """OpenRouter 连接配置"""

    referer: str = Field("https://github.com/oneapi", description="HTTP-Referer 请求头")
    title: str = Field("OneAPI SDK", description="X-Title 请求头")


class ModelRateLimit(BaseModel):
    """单个模型的限额"""

    requests_per_minute: int = Field(description="每分钟请求数上限")
    tokens_per_minute: int = Field(description="每分钟token数上限")


class ThinkingModeConfig(BaseModel):
    """思考模式倍率"""

    request_multiplier: float = Field(1.5, gt=0, description="模型请求上限除以该倍率")
    token_multiplier: float = Field(1.3, gt=0, description="token估算乘以该倍率，模型token上限除以该倍率")


def _default_model_limits() -> dict[str, ModelRateLimit]:
    return {
        model: ModelRateLimit(requests_per_minute=rpm, tokens_per_minute=tpm)
        for model, (rpm, tpm) in MODEL_RATE_LIMITS.items()
    }


class RateLimitConfig(BaseModel):
    """限流器配置"""

    requests_per_minute: int = Field(DEFAULT_REQUESTS_PER_MINUTE, description="全局每分钟请求数上限")
    tokens_per_minute: int = Field(DEFAULT_TOKENS_PER_MINUTE, description="全局每分钟token数上限")
    max_concurrent_requests: int = Field(
        DEFAULT_MAX_CONCURRENT_REQUESTS, description="全局并发请求上限"
    )
    model_limits: dict[str, ModelRateLimit] = Field(
        default_factory=_default_model_limits, description="按模型的限额，合并到默认值之上"
    )
    thinking_mode: ThinkingModeConfig = Field(
        default_factory=ThinkingModeConfig, description="思考模式倍率"
    )
    reset_interval: float = Field(60.0, gt=0, description="计数器固定重置周期（秒）")

    @field_validator("model_limits", mode="before")
    @classmethod
    def merge_model_limits(cls, value: Any) -> Any:
        if not value:
            return _default_model_limits()
        merged: dict[str, Any] = dict(_default_model_limits())
        merged.update(value)
        return merged


class LoggingConfig(BaseModel):
    """日志配置"""

    level: str = Field("INFO", description="日志级别")
    file_path: str | None = Field("logs/oneapi.log", description="日志文件路径，为空则只输出到控制台")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"无效的日志级别: {value}")
        return level


class Config(BaseModel):
    """SDK配置"""

    openai: ProviderConfig = Field(default_factory=ProviderConfig, description="OpenAI配置")
    anthropic: AnthropicProviderConfig = Field(
        default_factory=AnthropicProviderConfig, description="Anthropic配置"
    )
    gemini: ProviderConfig = Field(default_factory=ProviderConfig, description="Gemini配置")
    mistral: ProviderConfig = Field(default_factory=ProviderConfig, description="Mistral配置")
    together: ProviderConfig = Field(default_factory=ProviderConfig, description="Together配置")
    openrouter: OpenRouterProviderConfig = Field(
        default_factory=OpenRouterProviderConfig, description="OpenRouter配置"
    )
    rate_limits: RateLimitConfig = Field(
        default_factory=RateLimitConfig, description="Anthropic限流配置"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="日志配置")
    use_openrouter: bool = Field(False, description="是否通过OpenRouter转发所有调用")

    def provider(self, name: str) -> ProviderConfig:
        return getattr(self, name)

    def apply_env_overrides(self, environ: dict[str, str] | None = None) -> "Config":
        """用环境变量覆盖API密钥与基础URL，返回新的配置对象"""
        environ = os.environ if environ is None else environ
        updates: dict[str, Any] = {}

        for name in PROVIDER_NAMES:
            provider_updates = {}
            for var in API_KEY_ENV_VARS[name]:
                if environ.get(var):
                    provider_updates["api_key"] = environ[var]
                    break
            base_url = environ.get(f"{name.upper()}_BASE_URL")
            if base_url:
                provider_updates["base_url"] = base_url
            if provider_updates:
                updates[name] = self.provider(name).model_copy(update=provider_updates)

        if environ.get("ONEAPI_USE_OPENROUTER"):
            updates["use_openrouter"] = environ["ONEAPI_USE_OPENROUTER"].lower() in {"1", "true", "yes"}
        if environ.get("LOG_LEVEL"):
            updates["logging"] = self.logging.model_copy(
                update={"level": environ["LOG_LEVEL"].upper()}
            )

        return self.model_copy(update=updates) if updates else self

    @classmethod
    def _from_text(cls, content: str | None, source: str) -> "Config":
        if content is None:
            logger.info(f"配置文件不存在，使用默认配置: {source}")
            return cls().apply_env_overrides()
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(f"配置文件JSON格式错误: {source}: {e}") from e
        return cls.model_validate(data).apply_env_overrides()

    @classmethod
    async def from_file(cls, config_path: str | None = None) -> "Config":
        """异步从JSON文件加载配置"""
        path = Path(config_path or get_config_file_path())
        content = None
        if path.exists():
            async with aiofiles.open(path, encoding="utf-8") as f:
                content = await f.read()
        return cls._from_text(content, str(path))

    @classmethod
    def from_file_sync(cls, config_path: str | None = None) -> "Config":
        """同步从JSON文件加载配置"""
        path = Path(config_path or get_config_file_path())
        content = path.read_text(encoding="utf-8") if path.exists() else None
        return cls._from_text(content, str(path))


_config: Config | None = None


def get_config_file_path() -> str:
    return os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH)


async def get_config() -> Config:
    """获取全局缓存的配置，首次调用时加载"""
    global _config
    if _config is None:
        _config = await Config.from_file()
    return _config


async def reload_config(config_path: str | None = None) -> Config:
    """重新加载配置并替换全局缓存"""
    global _config
    _config = await Config.from_file(config_path)
    logger.info("配置已重新加载")
    return _config
