"""
请求转换器

将统一的 CompletionRequest 转换为各厂商原生请求体。
默认值（例如 Anthropic 的 max_tokens=1024）只在这里、即分发前一刻应用。
"""

import json
import mimetypes
from typing import Any

from oneapi.common.logging import get_logger_with_request_id
from oneapi.core.validation import is_data_uri, parse_data_uri
from oneapi.models.anthropic import (
    AnthropicBase64Source,
    AnthropicImageBlock,
    AnthropicMessage,
    AnthropicRequest,
    AnthropicTextBlock,
    AnthropicToolDefinition,
    AnthropicURLSource,
)
from oneapi.models.errors import RequestValidationError
from oneapi.models.gemini import (
    GeminiContent,
    GeminiFileData,
    GeminiGenerationConfig,
    GeminiInlineData,
    GeminiPart,
    GeminiRequest,
)
from oneapi.models.openai import OpenAIMessage, OpenAIRequest
from oneapi.models.requests import (
    ChatMessage,
    CompletionRequest,
    EmbeddingRequest,
    ImageContentPart,
    ImageGenerationRequest,
    TranscriptionRequest,
)

ANTHROPIC_DEFAULT_MAX_TOKENS = 1024

EMPTY_SCHEMA = {"type": "object", "properties": {}}


def split_system_message(
    messages: list[ChatMessage],
) -> tuple[str | None, list[ChatMessage]]:
    """提取首条 system 消息作为系统提示

    只处理第一条消息；之后出现的 system 消息保留在对话列表中。
    内容为内容块列表时序列化为JSON字符串。
    """
    if not messages or messages[0].role != "system":
        return None, list(messages)

    content = messages[0].content
    if isinstance(content, str):
        system = content
    else:
        system = json.dumps(
            [part.model_dump(exclude_none=True) for part in content], ensure_ascii=False
        )
    return system, list(messages[1:])


def _decode_image(part: ImageContentPart, index: int) -> tuple[str, str] | None:
    url = part.image_url.url
    if not is_data_uri(url):
        return None
    parsed = parse_data_uri(url)
    if parsed is None:
        raise RequestValidationError(
            "Invalid image content", [f"content[{index}]: malformed base64 image data URI"]
        )
    return parsed


class AnthropicRequestConverter:
    """统一请求 -> Anthropic /messages 请求体"""

    @staticmethod
    def convert(
        request: CompletionRequest,
        model: str,
        stream: bool = False,
        request_id: str | None = None,
    ) -> dict[str, Any]:
        bound_logger = get_logger_with_request_id(request_id)

        system, turns = split_system_message(request.messages)
        messages = [AnthropicRequestConverter._convert_message(msg) for msg in turns]

        if request.response_format is not None:
            bound_logger.debug(
                f"Anthropic 无原生 response_format 参数，忽略: {request.response_format.type}"
            )

        anthropic_request = AnthropicRequest(
            model=model,
            messages=messages,
            max_tokens=request.max_tokens or ANTHROPIC_DEFAULT_MAX_TOKENS,
            system=system,
            temperature=request.temperature,
            top_p=request.top_p,
            top_k=request.top_k,
            stop_sequences=request.stop_sequences,
            tools=AnthropicRequestConverter._convert_tools(request),
            tool_choice=AnthropicRequestConverter._convert_tool_choice(request.tool_choice),
            stream=stream,
        )

        payload = anthropic_request.model_dump(exclude_none=True)
        bound_logger.debug(
            f"Anthropic 请求体: model={model}, messages={len(messages)}, "
            f"has_system={system is not None}, stream={stream}"
        )
        return payload

    @staticmethod
    def _convert_message(message: ChatMessage) -> AnthropicMessage:
        if isinstance(message.content, str):
            return AnthropicMessage(role=message.role, content=message.content)

        blocks = []
        for index, part in enumerate(message.content):
            if isinstance(part, ImageContentPart):
                decoded = _decode_image(part, index)
                if decoded is not None:
                    media_type, data = decoded
                    source = AnthropicBase64Source(media_type=media_type, data=data)
                else:
                    source = AnthropicURLSource(url=part.image_url.url)
                blocks.append(AnthropicImageBlock(source=source))
            else:
                blocks.append(AnthropicTextBlock(text=part.text))
        return AnthropicMessage(role=message.role, content=blocks)

    @staticmethod
    def _convert_tools(request: CompletionRequest) -> list[AnthropicToolDefinition] | None:
        if not request.tools:
            return None
        return [
            AnthropicToolDefinition(
                name=tool.function.name,
                description=tool.function.description,
                input_schema=tool.function.parameters or EMPTY_SCHEMA,
            )
            for tool in request.tools
        ]

    @staticmethod
    def _convert_tool_choice(tool_choice: str | dict[str, Any] | None) -> dict[str, Any] | None:
        if tool_choice is None:
            return None
        if isinstance(tool_choice, str):
            mapping = {"auto": "auto", "required": "any", "any": "any", "none": "none"}
            return {"type": mapping.get(tool_choice, "auto")}
        if tool_choice.get("type") == "function":
            return {"type": "tool", "name": tool_choice.get("function", {}).get("name", "")}
        return tool_choice


class GeminiRequestConverter:
    """统一请求 -> Gemini generateContent 请求体"""

    @staticmethod
    def convert(
        request: CompletionRequest,
        model: str,
        stream: bool = False,
        request_id: str | None = None,
    ) -> dict[str, Any]:
        system, turns = split_system_message(request.messages)

        gemini_request = GeminiRequest(
            contents=[GeminiRequestConverter._convert_message(msg) for msg in turns],
            system_instruction=(
                GeminiContent(parts=[GeminiPart(text=system)]) if system is not None else None
            ),
            generation_config=GeminiRequestConverter._convert_generation_config(request),
            tools=GeminiRequestConverter._convert_tools(request),
        )

        get_logger_with_request_id(request_id).debug(
            f"Gemini 请求体: model={model}, contents={len(gemini_request.contents)}, stream={stream}"
        )
        return gemini_request.model_dump(by_alias=True, exclude_none=True)

    @staticmethod
    def _convert_message(message: ChatMessage) -> GeminiContent:
        # Gemini 只有 user / model 两种角色，透传的 system 消息按 user 处理
        role = "model" if message.role == "assistant" else "user"

        if isinstance(message.content, str):
            return GeminiContent(role=role, parts=[GeminiPart(text=message.content)])

        parts = []
        for index, part in enumerate(message.content):
            if isinstance(part, ImageContentPart):
                decoded = _decode_image(part, index)
                if decoded is not None:
                    media_type, data = decoded
                    parts.append(
                        GeminiPart(inline_data=GeminiInlineData(mime_type=media_type, data=data))
                    )
                else:
                    url = part.image_url.url
                    mime_type, _ = mimetypes.guess_type(url)
                    parts.append(
                        GeminiPart(file_data=GeminiFileData(mime_type=mime_type, file_uri=url))
                    )
            else:
                parts.append(GeminiPart(text=part.text))
        return GeminiContent(role=role, parts=parts)

    @staticmethod
    def _convert_generation_config(request: CompletionRequest) -> GeminiGenerationConfig | None:
        response_mime_type = None
        if request.response_format is not None and request.response_format.type == "json_object":
            response_mime_type = "application/json"

        config = GeminiGenerationConfig(
            temperature=request.temperature,
            top_p=request.top_p,
            top_k=request.top_k,
            max_output_tokens=request.max_tokens,
            stop_sequences=request.stop_sequences,
            response_mime_type=response_mime_type,
        )
        if not config.model_dump(exclude_none=True):
            return None
        return config

    @staticmethod
    def _convert_tools(request: CompletionRequest) -> list[dict[str, Any]] | None:
        if not request.tools:
            return None
        declarations = []
        for tool in request.tools:
            declaration = {"name": tool.function.name}
            if tool.function.description:
                declaration["description"] = tool.function.description
            if tool.function.parameters:
                declaration["parameters"] = tool.function.parameters
            declarations.append(declaration)
        return [{"functionDeclarations": declarations}]


class OpenAIRequestConverter:
    """统一请求 -> OpenAI 兼容请求体（OpenAI、OpenRouter、Mistral、Together）"""

    @staticmethod
    def convert(
        request: CompletionRequest,
        model: str,
        stream: bool = False,
        request_id: str | None = None,
        supports_top_k: bool = False,
    ) -> dict[str, Any]:
        messages = [
            OpenAIMessage(
                role=message.role,
                content=(
                    message.content
                    if isinstance(message.content, str)
                    else [part.model_dump(exclude_none=True) for part in message.content]
                ),
            )
            for message in request.messages
        ]

        openai_request = OpenAIRequest(
            model=model,
            messages=messages,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            top_p=request.top_p,
            top_k=request.top_k if supports_top_k else None,
            stop=request.stop_sequences,
            tools=(
                [tool.model_dump(exclude_none=True) for tool in request.tools]
                if request.tools
                else None
            ),
            tool_choice=request.tool_choice,
            response_format=(
                request.response_format.model_dump() if request.response_format else None
            ),
            stream=stream,
            stream_options={"include_usage": True} if stream else None,
            user=request.user,
        )

        get_logger_with_request_id(request_id).debug(
            f"OpenAI 兼容请求体: model={model}, messages={len(messages)}, stream={stream}"
        )
        return openai_request.model_dump(exclude_none=True)

    @staticmethod
    def convert_embedding(request: EmbeddingRequest, model: str) -> dict[str, Any]:
        return {**request.model_dump(exclude_none=True), "model": model}

    @staticmethod
    def convert_image(request: ImageGenerationRequest, model: str) -> dict[str, Any]:
        return {**request.model_dump(exclude_none=True), "model": model}

    @staticmethod
    def convert_transcription(
        request: TranscriptionRequest, model: str
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        """返回 (表单字段, 文件)，用于 multipart 上传"""
        data = request.model_dump(exclude_none=True, exclude={"file", "filename", "model"})
        data = {key: str(value) for key, value in data.items()}
        data["model"] = model
        files = {"file": (request.filename, request.file)}
        return data, files
