"""
请求校验

在任何网络调用与限流器状态变更之前执行。每个校验函数汇总所有违规项，
最后一次性抛出 RequestValidationError，而不是遇到第一个问题就停止。
"""

import re
from typing import Any
from urllib.parse import urlparse

from pydantic import ValidationError

from oneapi.core.model_capabilities import TOKEN_LIMITS, has_capability, is_thinking_model
from oneapi.models.errors import RequestValidationError
from oneapi.models.requests import (
    ChatMessage,
    CompletionRequest,
    EmbeddingRequest,
    ImageContentPart,
    ImageGenerationRequest,
    TranscriptionRequest,
)

DATA_URI_PATTERN = re.compile(r"^data:image/(\w+);base64,(.+)$", re.DOTALL)

ANTHROPIC_RULES = {
    "max_messages_per_request": 50,
    "max_image_attachments": 10,
    "max_image_size_mb": 100,
    "supported_image_formats": ("png", "jpg", "jpeg", "gif", "webp"),
    "supported_response_formats": ("json_object",),
    "min_temperature": 0.0,
    "max_temperature": 1.0,
    "thinking_min_temperature": 0.5,
}

GENERIC_MAX_TEMPERATURE = 2.0
MAX_IMAGES_PER_REQUEST = 10


def parse_data_uri(url: str) -> tuple[str, str] | None:
    """解析 ``data:image/<x>;base64,<data>``，返回 (media_type, data)；不匹配返回None"""
    match = DATA_URI_PATTERN.match(url)
    if match is None:
        return None
    return f"image/{match.group(1)}", match.group(2)


def is_data_uri(url: str) -> bool:
    return url.startswith("data:")


def image_format(url: str) -> str | None:
    """data URI 取媒体子类型；普通URL取路径扩展名，没有扩展名时返回None"""
    parsed = parse_data_uri(url)
    if parsed is not None:
        return parsed[0].split("/", 1)[1].lower()
    path = urlparse(url).path
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return None
    return name.rsplit(".", 1)[-1].lower()


def _iter_image_parts(message: ChatMessage):
    if isinstance(message.content, str):
        return
    for part_index, part in enumerate(message.content):
        if isinstance(part, ImageContentPart):
            yield part_index, part


def _check_data_uris(messages: list[ChatMessage]) -> list[str]:
    errors = []
    for index, message in enumerate(messages):
        for part_index, part in _iter_image_parts(message):
            url = part.image_url.url
            if is_data_uri(url) and parse_data_uri(url) is None:
                errors.append(
                    f"message[{index}].content[{part_index}]: malformed base64 image data URI"
                )
    return errors


def _validate_anthropic_message(
    message: ChatMessage, index: int, model: str
) -> list[str]:
    errors = []
    image_count = 0
    supported_formats = ANTHROPIC_RULES["supported_image_formats"]

    for part_index, part in _iter_image_parts(message):
        if not has_capability(model, "vision"):
            errors.append(f"Model {model} does not support image input")
            continue

        image_count += 1
        url = part.image_url.url
        if not url:
            errors.append(f"message[{index}].content[{part_index}]: image_url.url is required")
            continue

        fmt = image_format(url)
        if fmt is not None and fmt not in supported_formats:
            errors.append(
                f"message[{index}].content[{part_index}]: Unsupported image format. "
                f"Supported formats: {', '.join(supported_formats)}"
            )

        parsed = parse_data_uri(url)
        if parsed is not None:
            size_mb = (len(parsed[1]) * 3 / 4) / (1024 * 1024)
            if size_mb > ANTHROPIC_RULES["max_image_size_mb"]:
                errors.append(
                    f"message[{index}].content[{part_index}]: Image size exceeds "
                    f"{ANTHROPIC_RULES['max_image_size_mb']}MB limit"
                )

    if image_count > ANTHROPIC_RULES["max_image_attachments"]:
        errors.append(
            f"message[{index}]: Too many images. Maximum "
            f"{ANTHROPIC_RULES['max_image_attachments']} images allowed per message"
        )
    return errors


def validate_anthropic_completion_request(request: CompletionRequest, model: str) -> None:
    """校验发往 Anthropic 的补全请求

    Args:
        request: 统一补全请求
        model: 已映射的 Anthropic 原生模型名

    Raises:
        RequestValidationError: 存在任意违规项
    """
    errors: list[str] = []

    max_messages = ANTHROPIC_RULES["max_messages_per_request"]
    if len(request.messages) > max_messages:
        errors.append(f"Maximum {max_messages} messages allowed per request")

    for index, message in enumerate(request.messages):
        errors.extend(_validate_anthropic_message(message, index, model))
    errors.extend(_check_data_uris(request.messages))

    if request.temperature is not None:
        if is_thinking_model(model):
            floor = ANTHROPIC_RULES["thinking_min_temperature"]
            if request.temperature < floor:
                errors.append(
                    f"Temperature for thinking mode must be >= {floor} "
                    "to encourage more exploratory responses"
                )
            elif request.temperature > ANTHROPIC_RULES["max_temperature"]:
                errors.append(
                    f"Temperature must be between {floor} and {ANTHROPIC_RULES['max_temperature']}"
                )
        elif not (
            ANTHROPIC_RULES["min_temperature"]
            <= request.temperature
            <= ANTHROPIC_RULES["max_temperature"]
        ):
            errors.append(
                f"Temperature must be between {ANTHROPIC_RULES['min_temperature']} and "
                f"{ANTHROPIC_RULES['max_temperature']}"
            )

    max_tokens = TOKEN_LIMITS.get(model)
    if request.max_tokens is not None:
        if request.max_tokens < 1:
            errors.append("max_tokens must be greater than 0")
        elif max_tokens and request.max_tokens > max_tokens:
            errors.append(f"max_tokens cannot exceed {max_tokens}")

    if request.tools and model in TOKEN_LIMITS and not has_capability(model, "tool_use"):
        errors.append(f"Model {model} does not support tool use")

    if request.response_format is not None:
        supported = ANTHROPIC_RULES["supported_response_formats"]
        if request.response_format.type not in supported:
            errors.append(
                f"Unsupported response format. Supported formats: {', '.join(supported)}"
            )

    if errors:
        raise RequestValidationError("Invalid Anthropic completion request", errors)


def validate_completion_request(request: CompletionRequest) -> None:
    """OpenAI 兼容提供商与 Gemini 的通用校验"""
    errors: list[str] = []

    if request.temperature is not None and not (
        0 <= request.temperature <= GENERIC_MAX_TEMPERATURE
    ):
        errors.append(f"Temperature must be between 0 and {GENERIC_MAX_TEMPERATURE}")
    if request.top_p is not None and not (0 <= request.top_p <= 1):
        errors.append("top_p must be between 0 and 1")
    if request.max_tokens is not None and request.max_tokens < 1:
        errors.append("max_tokens must be greater than 0")
    errors.extend(_check_data_uris(request.messages))

    if errors:
        raise RequestValidationError("Invalid completion request", errors)


def validate_embedding_request(request: EmbeddingRequest) -> None:
    errors: list[str] = []

    if isinstance(request.input, list):
        if not request.input:
            errors.append("input array cannot be empty")
        for index, text in enumerate(request.input):
            if not text.strip():
                errors.append(f"input[{index}] must be a non-empty string")
    elif not request.input.strip():
        errors.append("input must be a non-empty string or array of strings")

    if request.dimensions is not None and request.dimensions < 1:
        errors.append("dimensions must be greater than 0")

    if errors:
        raise RequestValidationError("Invalid embedding request", errors)


def validate_image_request(request: ImageGenerationRequest) -> None:
    errors: list[str] = []

    if not request.prompt.strip():
        errors.append("prompt must be a non-empty string")
    if request.n is not None and not (1 <= request.n <= MAX_IMAGES_PER_REQUEST):
        errors.append(f"n must be between 1 and {MAX_IMAGES_PER_REQUEST}")

    if errors:
        raise RequestValidationError("Invalid image generation request", errors)


def validate_transcription_request(request: TranscriptionRequest) -> None:
    errors: list[str] = []

    if not request.file:
        errors.append("file must not be empty")
    if request.temperature is not None and not (0 <= request.temperature <= 1):
        errors.append("temperature must be between 0 and 1")

    if errors:
        raise RequestValidationError("Invalid transcription request", errors)


def parse_request(model_cls: type, payload: Any):
    """将字典转换为请求模型，pydantic 校验错误汇总为 RequestValidationError"""
    if isinstance(payload, model_cls):
        return payload
    try:
        return model_cls.model_validate(payload)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(loc) for loc in err['loc']) or 'request'}: {err['msg']}"
            for err in e.errors()
        ]
        raise RequestValidationError(f"Invalid {model_cls.__name__}", errors) from e
