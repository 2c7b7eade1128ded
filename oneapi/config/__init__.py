"""
配置管理模块

主要功能:
- 配置文件加载和验证（JSON文件 + 环境变量覆盖）
- 配置热重载监听

使用示例:
    from oneapi.config import get_config

    config = await get_config()
    print(config.anthropic.base_url)
"""

from .settings import (
    AnthropicProviderConfig,
    Config,
    LoggingConfig,
    ModelRateLimit,
    OpenRouterProviderConfig,
    ProviderConfig,
    RateLimitConfig,
    ThinkingModeConfig,
    get_config,
    get_config_file_path,
    reload_config,
)
from .watcher import ConfigFileHandler, ConfigWatcher

__all__ = [
    # 配置管理函数
    "get_config",
    "reload_config",
    "get_config_file_path",
    # 配置模型
    "Config",
    "ProviderConfig",
    "AnthropicProviderConfig",
    "OpenRouterProviderConfig",
    "RateLimitConfig",
    "ModelRateLimit",
    "ThinkingModeConfig",
    "LoggingConfig",
    # 配置监听器
    "ConfigWatcher",
    "ConfigFileHandler",
]
