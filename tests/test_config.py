"""测试配置加载与热重载"""

import json

import pytest

from oneapi.config.settings import (
    Config,
    RateLimitConfig,
    get_config_file_path,
)
from oneapi.config.watcher import ConfigWatcher

ENV_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "MISTRAL_API_KEY",
    "TOGETHER_API_KEY",
    "OPENROUTER_API_KEY",
    "ONEAPI_USE_OPENROUTER",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestConfigModel:
    """测试配置模型"""

    def test_defaults(self):
        config = Config()

        assert config.anthropic.version == "2023-06-01"
        assert config.openai.timeout == 30.0
        assert config.openai.max_retries == 3
        assert config.use_openrouter is False
        assert config.rate_limits.requests_per_minute == 450
        assert config.rate_limits.thinking_mode.token_multiplier == 1.3
        assert not config.openai.is_configured

    def test_model_limits_merge_over_defaults(self):
        limits = RateLimitConfig(
            model_limits={"claude-3.5-sonnet": {"requests_per_minute": 10, "tokens_per_minute": 1000}}
        )

        assert limits.model_limits["claude-3.5-sonnet"].requests_per_minute == 10
        assert limits.model_limits["claude-3.7-sonnet"].requests_per_minute == 400

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            Config.model_validate({"logging": {"level": "LOUD"}})


class TestEnvOverrides:
    """测试环境变量覆盖"""

    def test_api_keys_and_base_url(self):
        config = Config().apply_env_overrides(
            {
                "OPENAI_API_KEY": "sk-env",
                "GOOGLE_API_KEY": "g-env",
                "MISTRAL_BASE_URL": "https://mistral.internal/v1",
            }
        )

        assert config.openai.api_key == "sk-env"
        assert config.gemini.api_key == "g-env"
        assert config.mistral.base_url == "https://mistral.internal/v1"

    def test_gemini_key_takes_precedence_over_google_key(self):
        config = Config().apply_env_overrides({"GEMINI_API_KEY": "gemini", "GOOGLE_API_KEY": "google"})
        assert config.gemini.api_key == "gemini"

    def test_flags(self):
        config = Config().apply_env_overrides({"ONEAPI_USE_OPENROUTER": "true", "LOG_LEVEL": "debug"})

        assert config.use_openrouter is True
        assert config.logging.level == "DEBUG"

    def test_no_overrides_returns_same_object(self):
        config = Config()
        assert config.apply_env_overrides({}) is config


class TestConfigFile:
    """测试配置文件加载"""

    @pytest.mark.asyncio
    async def test_from_file(self, tmp_path, monkeypatch):
        path = tmp_path / "settings.json"
        path.write_text(
            json.dumps({"anthropic": {"api_key": "file-key"}, "use_openrouter": True}),
            encoding="utf-8",
        )
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")

        config = await Config.from_file(str(path))

        assert config.anthropic.api_key == "env-key"
        assert config.use_openrouter is True

    @pytest.mark.asyncio
    async def test_missing_file_uses_defaults(self, tmp_path):
        config = await Config.from_file(str(tmp_path / "absent.json"))
        assert config == Config()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValueError):
            Config.from_file_sync(str(path))

    def test_config_path_env(self, monkeypatch):
        monkeypatch.setenv("CONFIG_PATH", "/etc/oneapi.json")
        assert get_config_file_path() == "/etc/oneapi.json"


class TestConfigWatcher:
    """测试配置文件监听"""

    @pytest.mark.asyncio
    async def test_callbacks_run_on_valid_change(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{}", encoding="utf-8")
        calls = []

        async def async_callback():
            calls.append("async")

        watcher = ConfigWatcher(str(path), debounce=0)
        watcher.add_reload_callback(lambda: calls.append("sync"))
        watcher.add_reload_callback(async_callback)

        await watcher._process_config_change()

        assert calls == ["sync", "async"]

    @pytest.mark.asyncio
    async def test_invalid_file_skips_callbacks(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{broken", encoding="utf-8")
        calls = []

        watcher = ConfigWatcher(str(path), debounce=0)
        watcher.add_reload_callback(lambda: calls.append("sync"))

        await watcher._process_config_change()

        assert calls == []

    @pytest.mark.asyncio
    async def test_missing_file_is_not_watched(self, tmp_path):
        watcher = ConfigWatcher(str(tmp_path / "absent.json"))

        async with watcher:
            assert not watcher.is_running
