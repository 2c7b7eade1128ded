"""测试分发前的请求校验"""

import pytest

from oneapi.core.validation import (
    image_format,
    parse_data_uri,
    parse_request,
    validate_anthropic_completion_request,
    validate_completion_request,
    validate_embedding_request,
    validate_image_request,
)
from oneapi.models.errors import RequestValidationError
from oneapi.models.requests import (
    CompletionRequest,
    EmbeddingRequest,
    ImageGenerationRequest,
)

from .fixtures import PNG_DATA_URI


def user_request(**kwargs) -> CompletionRequest:
    return CompletionRequest(
        model="anthropic/claude-3.5-sonnet",
        messages=kwargs.pop("messages", [{"role": "user", "content": "Hi"}]),
        **kwargs,
    )


def image_message(*urls: str) -> dict:
    return {
        "role": "user",
        "content": [{"type": "image_url", "image_url": {"url": url}} for url in urls],
    }


class TestDataURI:
    """测试图像数据URI解析"""

    def test_parse_png(self):
        media_type, data = parse_data_uri(PNG_DATA_URI)
        assert media_type == "image/png"
        assert data.startswith("iVBOR")

    def test_parse_rejects_missing_base64_marker(self):
        assert parse_data_uri("data:image/png,abc") is None

    def test_image_format(self):
        assert image_format(PNG_DATA_URI) == "png"
        assert image_format("https://example.com/a/photo.JPEG?size=large") == "jpeg"
        assert image_format("https://example.com/image") is None


class TestAnthropicValidation:
    """测试 Anthropic 专属校验"""

    def test_valid_request(self):
        validate_anthropic_completion_request(
            user_request(temperature=0.5, max_tokens=1000), "claude-3.5-sonnet"
        )

    def test_thinking_temperature_floor(self):
        with pytest.raises(RequestValidationError) as exc_info:
            validate_anthropic_completion_request(
                user_request(temperature=0.3), "claude-3.7-sonnet:thinking"
            )
        assert "thinking mode" in exc_info.value.errors[0]

    def test_thinking_temperature_accepted_at_floor(self):
        validate_anthropic_completion_request(
            user_request(temperature=0.5), "claude-3.7-sonnet:thinking"
        )

    def test_temperature_above_one(self):
        with pytest.raises(RequestValidationError):
            validate_anthropic_completion_request(user_request(temperature=1.2), "claude-3.5-sonnet")

    def test_max_tokens_limit(self):
        with pytest.raises(RequestValidationError) as exc_info:
            validate_anthropic_completion_request(
                user_request(max_tokens=4096 * 3 + 1), "claude-3.5-sonnet"
            )
        assert "cannot exceed 12288" in exc_info.value.errors[0]

    def test_too_many_messages(self):
        messages = [{"role": "user", "content": str(i)} for i in range(51)]
        with pytest.raises(RequestValidationError):
            validate_anthropic_completion_request(
                user_request(messages=messages), "claude-3.5-sonnet"
            )

    def test_too_many_images(self):
        message = image_message(*[f"https://example.com/{i}.png" for i in range(11)])
        with pytest.raises(RequestValidationError) as exc_info:
            validate_anthropic_completion_request(
                user_request(messages=[message]), "claude-3.5-sonnet"
            )
        assert any("Too many images" in error for error in exc_info.value.errors)

    def test_unsupported_image_format(self):
        with pytest.raises(RequestValidationError):
            validate_anthropic_completion_request(
                user_request(messages=[image_message("https://example.com/photo.bmp")]),
                "claude-3.5-sonnet",
            )

    def test_model_without_vision(self):
        with pytest.raises(RequestValidationError) as exc_info:
            validate_anthropic_completion_request(
                user_request(messages=[image_message(PNG_DATA_URI)]), "claude-2.1"
            )
        assert "does not support image input" in exc_info.value.errors[0]

    def test_tools_on_model_without_tool_use(self):
        tool = {"type": "function", "function": {"name": "lookup"}}
        with pytest.raises(RequestValidationError):
            validate_anthropic_completion_request(
                user_request(tools=[tool]), "claude-3.5-haiku-20241022"
            )

    def test_unsupported_response_format(self):
        with pytest.raises(RequestValidationError):
            validate_anthropic_completion_request(
                user_request(response_format={"type": "xml"}), "claude-3.5-sonnet"
            )

    def test_all_errors_are_collected(self):
        """一次报告所有违规项，而不是只报第一个"""
        with pytest.raises(RequestValidationError) as exc_info:
            validate_anthropic_completion_request(
                user_request(
                    messages=[image_message("data:image/png,broken")],
                    temperature=0.1,
                    max_tokens=0,
                    response_format={"type": "xml"},
                ),
                "claude-3.7-sonnet:thinking",
            )
        assert len(exc_info.value.errors) == 4
        assert exc_info.value.status_code == 400


class TestGenericValidation:
    """测试通用校验"""

    def test_temperature_range(self):
        validate_completion_request(user_request(temperature=1.8))
        with pytest.raises(RequestValidationError):
            validate_completion_request(user_request(temperature=2.5))

    def test_malformed_data_uri(self):
        with pytest.raises(RequestValidationError):
            validate_completion_request(user_request(messages=[image_message("data:image/png,xyz")]))

    def test_empty_embedding_input(self):
        with pytest.raises(RequestValidationError):
            validate_embedding_request(EmbeddingRequest(model="openai/text-embedding-3-small", input=[]))

    def test_image_count(self):
        with pytest.raises(RequestValidationError):
            validate_image_request(ImageGenerationRequest(model="openai/dall-e-3", prompt="cat", n=11))


class TestParseRequest:
    """测试字典请求解析"""

    def test_dict_is_parsed(self):
        request = parse_request(
            CompletionRequest,
            {"model": "openai/gpt-4o", "messages": [{"role": "user", "content": "Hi"}]},
        )
        assert isinstance(request, CompletionRequest)

    def test_model_instance_is_returned_unchanged(self):
        request = user_request()
        assert parse_request(CompletionRequest, request) is request

    def test_schema_errors_become_validation_error(self):
        with pytest.raises(RequestValidationError) as exc_info:
            parse_request(CompletionRequest, {"model": "openai/gpt-4o", "messages": []})
        assert any(error.startswith("messages") for error in exc_info.value.errors)
