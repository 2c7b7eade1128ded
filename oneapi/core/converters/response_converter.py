"""
响应转换器

将各厂商的非流式响应转换为统一的 CompletionResponse 等模型。
完成原因保留厂商原始值（end_turn、stop、STOP ...），缺失时回退为 "stop"。
"""

import json
import uuid
from typing import Any

from pydantic import ValidationError

from oneapi.models.anthropic import AnthropicContentTypes, AnthropicMessageResponse
from oneapi.models.errors import UpstreamAPIError
from oneapi.models.gemini import GeminiResponse
from oneapi.models.openai import OpenAIResponse
from oneapi.models.responses import (
    Choice,
    CompletionResponse,
    EmbeddingData,
    EmbeddingResponse,
    ImageData,
    ImageGenerationResponse,
    ResponseMessage,
    TranscriptionResponse,
    Usage,
)

DEFAULT_FINISH_REASON = "stop"


def _parse(model_cls, data: dict[str, Any], provider: str):
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise UpstreamAPIError(
            provider,
            502,
            body=json.dumps(data, ensure_ascii=False)[:2000],
            message=f"{provider} 返回了无法解析的响应: {e.error_count()} 个字段错误",
        ) from e


class AnthropicResponseConverter:
    """Anthropic /messages 响应 -> CompletionResponse"""

    @staticmethod
    def convert(data: dict[str, Any], model: str) -> CompletionResponse:
        """
        Args:
            data: Anthropic响应字典
            model: 规范化模型ID

        Returns:
            CompletionResponse: 统一格式响应
        """
        response = _parse(AnthropicMessageResponse, data, "anthropic")

        text_parts = []
        tool_calls = []
        for block in response.content:
            if block.type == AnthropicContentTypes.TEXT and block.text:
                text_parts.append(block.text)
            elif block.type == AnthropicContentTypes.TOOL_USE:
                tool_calls.append(
                    {
                        "id": block.id or "",
                        "type": "function",
                        "function": {
                            "name": block.name or "",
                            "arguments": json.dumps(block.input or {}, ensure_ascii=False),
                        },
                    }
                )

        return CompletionResponse(
            id=response.id or f"msg_{uuid.uuid4().hex}",
            model=model,
            choices=[
                Choice(
                    index=0,
                    message=ResponseMessage(
                        content="".join(text_parts), tool_calls=tool_calls or None
                    ),
                    finish_reason=response.stop_reason or DEFAULT_FINISH_REASON,
                )
            ],
            usage=Usage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
            ),
        )


class GeminiResponseConverter:
    """Gemini generateContent 响应 -> CompletionResponse"""

    @staticmethod
    def convert(data: dict[str, Any], model: str) -> CompletionResponse:
        response = _parse(GeminiResponse, data, "gemini")

        choices = []
        for index, candidate in enumerate(response.candidates):
            parts = candidate.content.parts if candidate.content else []
            text = "".join(part.text for part in parts if part.text)
            choices.append(
                Choice(
                    index=index,
                    message=ResponseMessage(content=text),
                    finish_reason=candidate.finish_reason or DEFAULT_FINISH_REASON,
                )
            )
        if not choices:
            # 被安全策略拦截时没有候选结果
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            choices.append(
                Choice(finish_reason=block_reason or DEFAULT_FINISH_REASON)
            )

        usage = response.usage_metadata
        return CompletionResponse(
            id=data.get("responseId") or f"gemini-{uuid.uuid4().hex}",
            model=model,
            choices=choices,
            usage=Usage(
                prompt_tokens=usage.prompt_token_count if usage else 0,
                completion_tokens=usage.candidates_token_count if usage else 0,
            ),
        )


class OpenAIResponseConverter:
    """OpenAI 兼容响应 -> 统一模型"""

    @staticmethod
    def convert(data: dict[str, Any], model: str, provider: str = "openai") -> CompletionResponse:
        response = _parse(OpenAIResponse, data, provider)
        if not response.choices:
            raise UpstreamAPIError(
                provider,
                502,
                body=json.dumps(data, ensure_ascii=False)[:2000],
                message=f"{provider} 响应没有有效的choices",
            )

        choices = [
            Choice(
                index=choice.index,
                message=ResponseMessage(
                    role=(choice.message.role if choice.message else None) or "assistant",
                    content=(choice.message.content if choice.message else None) or "",
                    tool_calls=choice.message.tool_calls if choice.message else None,
                ),
                finish_reason=choice.finish_reason or DEFAULT_FINISH_REASON,
            )
            for choice in response.choices
        ]

        usage = response.usage
        payload = {
            "id": response.id or f"chatcmpl-{uuid.uuid4().hex}",
            "model": model,
            "choices": choices,
            "usage": Usage(
                prompt_tokens=(usage.prompt_tokens or 0) if usage else 0,
                completion_tokens=(usage.completion_tokens or 0) if usage else 0,
            ),
        }
        if response.created:
            payload["created"] = response.created
        return CompletionResponse(**payload)

    @staticmethod
    def convert_embedding(data: dict[str, Any], model: str) -> EmbeddingResponse:
        usage = data.get("usage") or {}
        return EmbeddingResponse(
            model=model,
            data=[EmbeddingData.model_validate(item) for item in data.get("data", [])],
            usage=Usage(prompt_tokens=usage.get("prompt_tokens") or 0),
        )

    @staticmethod
    def convert_image(data: dict[str, Any]) -> ImageGenerationResponse:
        payload = {"data": [ImageData.model_validate(item) for item in data.get("data", [])]}
        if data.get("created"):
            payload["created"] = data["created"]
        return ImageGenerationResponse(**payload)

    @staticmethod
    def convert_transcription(data: dict[str, Any] | str) -> TranscriptionResponse:
        # text / srt / vtt 格式直接返回纯文本
        if isinstance(data, str):
            return TranscriptionResponse(text=data)
        return TranscriptionResponse(
            text=data.get("text", ""),
            language=data.get("language"),
            duration=data.get("duration"),
        )
