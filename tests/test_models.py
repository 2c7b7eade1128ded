"""测试数据模型与错误类型"""

import pytest

from oneapi.models.errors import (
    ProviderNotConfiguredError,
    RateLimitExceededError,
    RequestValidationError,
    UnsupportedModelError,
    UpstreamAPIError,
    UpstreamTimeoutError,
    is_client_error,
    is_retryable_status,
    is_server_error,
)
from oneapi.models.requests import CompletionRequest
from oneapi.models.responses import CompletionChunk, Choice, ResponseMessage, Usage


class TestErrors:
    """测试错误层次与标准化响应"""

    def test_unsupported_model_response(self):
        response = UnsupportedModelError("anthropic/claude-99", "anthropic").to_response("req_1")

        assert response.type == "error"
        assert response.error.code == "unsupported_model"
        assert response.error.param == "model"
        assert response.error.request_id == "req_1"
        assert response.error.details == {"model": "anthropic/claude-99", "provider": "anthropic"}

    def test_validation_error_lists_every_problem(self):
        error = RequestValidationError("Invalid request", ["a is wrong", "b is wrong"])

        assert error.status_code == 400
        assert error.errors == ["a is wrong", "b is wrong"]
        assert "a is wrong; b is wrong" in str(error)

    def test_status_codes(self):
        assert ProviderNotConfiguredError("openai").status_code == 401
        assert RateLimitExceededError("claude-3.5-sonnet", 1.5).status_code == 429
        assert UpstreamAPIError("mistral", 503).status_code == 503
        assert UpstreamTimeoutError("gemini", 30).status_code == 408

    def test_timeout_is_upstream_error(self):
        assert isinstance(UpstreamTimeoutError("gemini", 30), UpstreamAPIError)

    @pytest.mark.parametrize(
        "status,retryable", [(400, False), (401, False), (408, False), (429, True), (500, True), (529, True)]
    )
    def test_retryable_status(self, status, retryable):
        assert is_retryable_status(status) is retryable

    def test_status_classes(self):
        assert is_client_error(404)
        assert not is_client_error(500)
        assert is_server_error(502)


class TestResponses:
    """测试统一响应模型"""

    def test_usage_total_is_sum(self):
        usage = Usage(prompt_tokens=3, completion_tokens=4, total_tokens=100)
        assert usage.total_tokens == 7

    def test_chunk_terminal_flag(self):
        content = CompletionChunk(
            id="c", model="openai/gpt-4o", choices=[Choice(message=ResponseMessage(content="hi"))]
        )
        terminal = CompletionChunk(
            id="c", model="openai/gpt-4o", choices=[Choice(finish_reason="stop")], usage=Usage()
        )

        assert content.content == "hi"
        assert not content.is_terminal
        assert terminal.is_terminal


class TestRequests:
    """测试统一请求模型"""

    def test_stop_sequences(self):
        request = CompletionRequest(
            model="openai/gpt-4o", messages=[{"role": "user", "content": "hi"}], stop="END"
        )
        assert request.stop_sequences == ["END"]

    def test_content_parts_are_discriminated(self):
        request = CompletionRequest(
            model="openai/gpt-4o",
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "look"},
                        {"type": "image_url", "image_url": {"url": "https://example.com/a.png"}},
                    ],
                }
            ],
        )
        parts = request.messages[0].content
        assert parts[0].text == "look"
        assert parts[1].image_url.url == "https://example.com/a.png"
