"""
OpenAI 兼容协议适配器基类

OpenAI、OpenRouter、Mistral、Together 共用同一套请求/响应格式，
子类只需声明基础URL、能力表、接口路径与额外请求头。
"""

from typing import Any

from oneapi.common.logging import get_logger_with_request_id
from oneapi.core.converters.request_converter import OpenAIRequestConverter
from oneapi.core.converters.response_converter import OpenAIResponseConverter
from oneapi.core.converters.stream_converters import process_openai_chunk
from oneapi.models.requests import (
    CompletionRequest,
    EmbeddingRequest,
    ImageGenerationRequest,
    TranscriptionRequest,
)
from oneapi.models.responses import (
    CompletionResponse,
    EmbeddingResponse,
    ImageGenerationResponse,
    TranscriptionResponse,
)

from .base import Provider


class OpenAICompatibleProvider(Provider):
    """使用 Bearer 认证与 ``/chat/completions`` 协议的提供商"""

    chat_endpoint = "chat/completions"
    embeddings_endpoint = "embeddings"
    images_endpoint = "images/generations"
    transcriptions_endpoint = "audio/transcriptions"
    supports_top_k = False

    def build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key or ''}",
        }

    def build_chat_payload(
        self, request: CompletionRequest, model: str, stream: bool, request_id: str | None
    ) -> dict[str, Any]:
        return OpenAIRequestConverter.convert(
            request,
            model,
            stream=stream,
            request_id=request_id,
            supports_top_k=self.supports_top_k,
        )

    def chat_path(self, model: str, stream: bool) -> str:
        return self.chat_endpoint

    def parse_chat_response(self, data: dict[str, Any], model: str) -> CompletionResponse:
        return OpenAIResponseConverter.convert(data, model, provider=self.name)

    @property
    def stream_processor(self):
        return process_openai_chunk

    async def _create_embedding(
        self, request: EmbeddingRequest, request_id: str | None
    ) -> EmbeddingResponse:
        model = self.mapper.to_provider_model(request.model)
        get_logger_with_request_id(request_id).debug(
            f"{self.name} 向量嵌入 - Model: {model}"
        )
        data = await self.client.request_json(
            "POST",
            self.embeddings_endpoint,
            json=OpenAIRequestConverter.convert_embedding(request, model),
            request_id=request_id,
        )
        return OpenAIResponseConverter.convert_embedding(
            data, self.mapper.to_normalized_model(model)
        )

    async def _create_image(
        self, request: ImageGenerationRequest, request_id: str | None
    ) -> ImageGenerationResponse:
        model = self.mapper.to_provider_model(request.model)
        data = await self.client.request_json(
            "POST",
            self.images_endpoint,
            json=OpenAIRequestConverter.convert_image(request, model),
            request_id=request_id,
        )
        return OpenAIResponseConverter.convert_image(data)

    async def _create_transcription(
        self, request: TranscriptionRequest, request_id: str | None
    ) -> TranscriptionResponse:
        model = self.mapper.to_provider_model(request.model)
        form, files = OpenAIRequestConverter.convert_transcription(request, model)
        data = await self.client.request_json(
            "POST",
            self.transcriptions_endpoint,
            data=form,
            files=files,
            request_id=request_id,
        )
        return OpenAIResponseConverter.convert_transcription(data)
