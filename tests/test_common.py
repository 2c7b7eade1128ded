"""测试token估算、缓存与日志"""

import sys

from loguru import logger

from oneapi.common.logging import (
    configure_logging,
    generate_request_id,
    get_logger_with_request_id,
)
from oneapi.common.token_cache import PromptTokenCache
from oneapi.common.token_counter import TokenCounter, estimate_tokens, get_model_type
from oneapi.config.settings import LoggingConfig
from oneapi.models.requests import ChatMessage


class TestTokenEstimate:
    """测试启发式token估算"""

    def test_model_type(self):
        assert get_model_type("claude-3.5-sonnet") == "claude-3"
        assert get_model_type("anthropic/claude-2.1") == "claude-2"
        assert get_model_type("claude-instant-1.2") == "claude-2"
        assert get_model_type("gpt-4o") == "default"
        assert get_model_type(None) == "default"

    def test_estimate_tokens(self):
        assert estimate_tokens("a" * 8) == 2
        assert estimate_tokens("a" * 7, "claude-3") == 2
        assert estimate_tokens("Human: hi", "claude-2") == 4

    def test_request_estimate_counts_images(self):
        counter = TokenCounter()
        messages = [
            ChatMessage(
                role="user",
                content=[
                    {"type": "text", "text": "abc"},
                    {"type": "image_url", "image_url": {"url": "https://example.com/a.png"}},
                ],
            )
        ]

        # "abc<image>" = 10 chars / 3.5 -> 3，另加 <image> 特殊token
        assert counter.estimate_request_tokens(messages, "claude-3.5-sonnet") == 4


class TestPromptTokenCache:
    """测试预估token缓存"""

    def test_put_get_pop(self):
        cache = PromptTokenCache()
        cache.put("req_1", 10)

        assert cache.get("req_1") == 10
        assert cache.get("req_1", pop=True) == 10
        assert cache.get("req_1") is None

    def test_ignores_empty_ids_and_non_positive(self):
        cache = PromptTokenCache()
        cache.put(None, 10)
        cache.put("req_1", 0)

        assert len(cache) == 0

    def test_evicts_oldest(self):
        cache = PromptTokenCache(max_entries=2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("c", 3)

        assert cache.get("a") is None
        assert len(cache) == 2


def test_request_id_format():
    request_id = generate_request_id()
    assert request_id.startswith("req_")
    assert len(request_id) == len("req_") + 36


def test_configure_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "oneapi.log"
    configure_logging(LoggingConfig(level="DEBUG", file_path=str(log_file)))
    try:
        get_logger_with_request_id("req_log").info("hello")
        logger.info("no request id")
    finally:
        logger.remove()
        logger.add(sys.stderr)

    content = log_file.read_text(encoding="utf-8")
    assert "req_log" in content
    assert "no request id" in content
