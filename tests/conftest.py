"""公共测试夹具"""

import httpx
import pytest

from oneapi.common.token_cache import prompt_token_cache
from oneapi.config.settings import Config, RateLimitConfig
from oneapi.core.rate_limiter import RateLimiter


class FakeClock:
    """可手动推进的单调时钟"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rate_limiter(clock):
    """默认限额的限流器，使用假时钟"""
    return RateLimiter(RateLimitConfig(), clock=clock)


@pytest.fixture
def httpx_client():
    """测试用的 httpx AsyncClient"""
    return httpx.AsyncClient()


@pytest.fixture
def config():
    """所有提供商都配置了测试密钥，重试无延迟"""
    providers = {
        name: {"api_key": f"test-{name}-key", "retry_delay": 0}
        for name in ("openai", "anthropic", "gemini", "mistral", "together", "openrouter")
    }
    return Config.model_validate({**providers, "logging": {"file_path": None}})


@pytest.fixture(autouse=True)
def clear_token_cache():
    yield
    prompt_token_cache.clear()
