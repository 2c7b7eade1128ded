"""测试厂商响应到统一响应的转换"""

import json

import pytest

from oneapi.core.converters.response_converter import (
    AnthropicResponseConverter,
    GeminiResponseConverter,
    OpenAIResponseConverter,
)
from oneapi.models.errors import UpstreamAPIError

from .fixtures import (
    anthropic_message,
    anthropic_tool_message,
    gemini_response,
    openai_completion,
    openai_embedding,
    openai_image,
)


class TestAnthropicResponseConverter:
    """测试 Anthropic 响应转换"""

    def test_text_response(self):
        response = AnthropicResponseConverter.convert(
            anthropic_message(), "anthropic/claude-3.5-sonnet"
        )

        assert response.id == "msg_01XFDUDYJgAACzvnptvVoYEL"
        assert response.model == "anthropic/claude-3.5-sonnet"
        assert response.text == "Hello! How can I help you today?"
        assert response.choices[0].finish_reason == "end_turn"
        assert response.usage.prompt_tokens == 12
        assert response.usage.completion_tokens == 9
        assert response.usage.total_tokens == 21

    def test_missing_stop_reason_defaults_to_stop(self):
        response = AnthropicResponseConverter.convert(
            anthropic_message(stop_reason=None), "anthropic/claude-3.5-sonnet"
        )
        assert response.choices[0].finish_reason == "stop"

    def test_tool_use_block(self):
        response = AnthropicResponseConverter.convert(
            anthropic_tool_message(), "anthropic/claude-3.5-sonnet"
        )

        message = response.choices[0].message
        assert message.content == "Let me check."
        assert message.tool_calls[0]["id"] == "toolu_01"
        assert message.tool_calls[0]["function"]["name"] == "get_weather"
        assert json.loads(message.tool_calls[0]["function"]["arguments"]) == {"location": "Paris"}
        assert response.choices[0].finish_reason == "tool_use"

    def test_invalid_payload_raises_upstream_error(self):
        with pytest.raises(UpstreamAPIError) as exc_info:
            AnthropicResponseConverter.convert({"content": "oops"}, "anthropic/claude-3.5-sonnet")
        assert exc_info.value.status_code == 502


class TestGeminiResponseConverter:
    """测试 Gemini 响应转换"""

    def test_text_response(self):
        response = GeminiResponseConverter.convert(gemini_response(), "google/gemini-1.5-pro")

        assert response.id == "gemini-resp-1"
        assert response.text == "Hello from Gemini"
        assert response.choices[0].finish_reason == "STOP"
        assert response.usage.total_tokens == 10

    def test_blocked_prompt(self):
        response = GeminiResponseConverter.convert(
            {"promptFeedback": {"blockReason": "SAFETY"}}, "google/gemini-1.5-pro"
        )

        assert response.text == ""
        assert response.choices[0].finish_reason == "SAFETY"
        assert response.usage.total_tokens == 0


class TestOpenAIResponseConverter:
    """测试 OpenAI 兼容响应转换"""

    def test_completion(self):
        response = OpenAIResponseConverter.convert(openai_completion(), "openai/gpt-4o")

        assert response.id == "chatcmpl-123"
        assert response.created == 1700000000
        assert response.model == "openai/gpt-4o"
        assert response.text == "Hello! How can I help you today?"
        assert response.usage.total_tokens == 18

    def test_total_is_recomputed(self):
        data = openai_completion()
        data["usage"]["total_tokens"] = 999
        response = OpenAIResponseConverter.convert(data, "openai/gpt-4o")

        assert response.usage.total_tokens == 18

    def test_empty_choices_raise(self):
        data = openai_completion()
        data["choices"] = []
        with pytest.raises(UpstreamAPIError) as exc_info:
            OpenAIResponseConverter.convert(data, "mistral/mistral-large", provider="mistral")

        assert exc_info.value.provider == "mistral"
        assert exc_info.value.status_code == 502

    def test_embedding(self):
        response = OpenAIResponseConverter.convert_embedding(
            openai_embedding([[0.1, 0.2], [0.3, 0.4]]), "openai/text-embedding-3-small"
        )

        assert response.model == "openai/text-embedding-3-small"
        assert [item.index for item in response.data] == [0, 1]
        assert response.data[1].embedding == [0.3, 0.4]
        assert response.usage.prompt_tokens == 5

    def test_image(self):
        response = OpenAIResponseConverter.convert_image(openai_image())

        assert response.created == 1700000000
        assert response.data[0].url == "https://example.com/image.png"

    def test_plain_text_transcription(self):
        response = OpenAIResponseConverter.convert_transcription("hello world\n")
        assert response.text == "hello world\n"

    def test_json_transcription(self):
        response = OpenAIResponseConverter.convert_transcription(
            {"text": "bonjour", "language": "fr", "duration": 1.5}
        )
        assert response.language == "fr"
        assert response.duration == 1.5
