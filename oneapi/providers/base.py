"""
提供商适配器基类

每次调用的固定流程：能力检查 -> 密钥检查 -> 模型映射 -> 校验 -> 请求转换
-> 限流（仅配置了限流器的提供商）-> HTTP调用 -> 响应转换 -> 模型ID反向映射。
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import aclosing, asynccontextmanager
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from oneapi.common.logging import get_logger_with_request_id
from oneapi.common.token_cache import prompt_token_cache
from oneapi.common.token_counter import token_counter
from oneapi.config.settings import ProviderConfig
from oneapi.core.clients import APIClient
from oneapi.core.converters.stream_converters import (
    StreamProcessor,
    StreamState,
    convert_stream,
)
from oneapi.core.model_mapping import ModelMapper
from oneapi.core.rate_limiter import RateLimiter
from oneapi.core.validation import (
    validate_completion_request,
    validate_embedding_request,
    validate_image_request,
    validate_transcription_request,
)
from oneapi.models.errors import ProviderNotConfiguredError, UnsupportedCapabilityError
from oneapi.models.requests import (
    CompletionRequest,
    EmbeddingRequest,
    ImageGenerationRequest,
    TranscriptionRequest,
)
from oneapi.models.responses import (
    CompletionChunk,
    CompletionResponse,
    EmbeddingResponse,
    ImageGenerationResponse,
    TranscriptionResponse,
)


class ProviderCapabilities(BaseModel):
    """提供商能力表，不支持的能力在发起任何网络请求前被拒绝"""

    model_config = ConfigDict(frozen=True)

    chat: bool = Field(True, description="对话补全")
    streaming: bool = Field(True, description="流式对话补全")
    embeddings: bool = Field(False, description="向量嵌入")
    image_generation: bool = Field(False, description="图像生成")
    audio_transcription: bool = Field(False, description="音频转写")
    vision: bool = Field(False, description="图像输入")


class Provider(ABC):
    """提供商适配器

    Args:
        config: 连接配置
        http_client: 共享的 httpx.AsyncClient
        mapper: 注入的模型映射
        rate_limiter: 可选的限流器
    """

    name: str = ""
    default_base_url: str = ""
    capabilities = ProviderCapabilities()

    def __init__(
        self,
        config: ProviderConfig,
        http_client: httpx.AsyncClient,
        mapper: ModelMapper,
        rate_limiter: RateLimiter | None = None,
    ):
        self.config = config
        self.mapper = mapper
        self.rate_limiter = rate_limiter
        self.client = APIClient(
            self.name,
            http_client,
            config.base_url or self.default_base_url,
            headers={**self.build_headers(), **config.headers},
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            params=self.build_params(),
        )

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    @abstractmethod
    def build_headers(self) -> dict[str, str]:
        """认证等固定请求头"""

    def build_params(self) -> dict[str, str] | None:
        return None

    def supports(self, capability: str) -> bool:
        return bool(getattr(self.capabilities, capability, False))

    def _require(self, capability: str) -> None:
        if not self.supports(capability):
            raise UnsupportedCapabilityError(self.name, capability)

    def _require_key(self) -> None:
        if not self.is_configured:
            raise ProviderNotConfiguredError(self.name)

    def list_models(self) -> list[str]:
        return self.mapper.list_models()

    # ------------------------------------------------------------------
    # 对话补全
    # ------------------------------------------------------------------

    def validate_completion(self, request: CompletionRequest, model: str) -> None:
        validate_completion_request(request)

    @abstractmethod
    def build_chat_payload(
        self, request: CompletionRequest, model: str, stream: bool, request_id: str | None
    ) -> dict[str, Any]:
        """统一请求 -> 厂商请求体"""

    @abstractmethod
    def chat_path(self, model: str, stream: bool) -> str:
        """对话补全接口路径"""

    def chat_params(self, stream: bool) -> dict[str, str] | None:
        return None

    @abstractmethod
    def parse_chat_response(self, data: dict[str, Any], model: str) -> CompletionResponse:
        """厂商响应 -> CompletionResponse，model 为规范化ID"""

    @property
    @abstractmethod
    def stream_processor(self) -> StreamProcessor:
        """流式事件处理函数"""

    def _prepare_chat(
        self, request: CompletionRequest, stream: bool, request_id: str | None
    ) -> tuple[str, dict[str, Any], int]:
        self._require("streaming" if stream else "chat")
        self._require_key()

        model = self.mapper.to_provider_model(request.model)
        self.validate_completion(request, model)
        payload = self.build_chat_payload(request, model, stream, request_id)
        tokens = token_counter.estimate_request_tokens(request.messages, model, request.tools)
        return model, payload, tokens

    @asynccontextmanager
    async def _capacity(self, model: str, tokens: int, request_id: str | None):
        prompt_token_cache.put(request_id, tokens)
        try:
            if self.rate_limiter is None:
                yield
            else:
                async with self.rate_limiter.slot(model, tokens):
                    yield
        finally:
            prompt_token_cache.discard(request_id)

    async def create_chat_completion(
        self, request: CompletionRequest, request_id: str | None = None
    ) -> CompletionResponse:
        model, payload, tokens = self._prepare_chat(request, False, request_id)
        get_logger_with_request_id(request_id).debug(
            f"{self.name} 对话补全 - Model: {model}, EstimatedTokens: {tokens}"
        )

        async with self._capacity(model, tokens, request_id):
            data = await self.client.request_json(
                "POST",
                self.chat_path(model, False),
                json=payload,
                params=self.chat_params(False),
                request_id=request_id,
            )
        return self.parse_chat_response(data, self.mapper.to_normalized_model(model))

    async def stream_chat_completion(
        self, request: CompletionRequest, request_id: str | None = None
    ) -> AsyncIterator[CompletionChunk]:
        model, payload, tokens = self._prepare_chat(request, True, request_id)
        get_logger_with_request_id(request_id).debug(
            f"{self.name} 流式对话补全 - Model: {model}, EstimatedTokens: {tokens}"
        )

        state = StreamState(
            model=self.mapper.to_normalized_model(model),
            provider=self.name,
            request_id=request_id,
        )
        async with self._capacity(model, tokens, request_id):
            lines = self.client.stream_lines(
                "POST",
                self.chat_path(model, True),
                json=payload,
                params=self.chat_params(True),
                request_id=request_id,
            )
            async with aclosing(lines), aclosing(
                convert_stream(lines, self.stream_processor, state)
            ) as chunks:
                async for chunk in chunks:
                    yield chunk

    # ------------------------------------------------------------------
    # 其他能力，默认不支持
    # ------------------------------------------------------------------

    async def create_embedding(
        self, request: EmbeddingRequest, request_id: str | None = None
    ) -> EmbeddingResponse:
        self._require("embeddings")
        self._require_key()
        validate_embedding_request(request)
        return await self._create_embedding(request, request_id)

    async def create_image(
        self, request: ImageGenerationRequest, request_id: str | None = None
    ) -> ImageGenerationResponse:
        self._require("image_generation")
        self._require_key()
        validate_image_request(request)
        return await self._create_image(request, request_id)

    async def create_transcription(
        self, request: TranscriptionRequest, request_id: str | None = None
    ) -> TranscriptionResponse:
        self._require("audio_transcription")
        self._require_key()
        validate_transcription_request(request)
        return await self._create_transcription(request, request_id)

    async def _create_embedding(
        self, request: EmbeddingRequest, request_id: str | None
    ) -> EmbeddingResponse:
        raise UnsupportedCapabilityError(self.name, "embeddings")

    async def _create_image(
        self, request: ImageGenerationRequest, request_id: str | None
    ) -> ImageGenerationResponse:
        raise UnsupportedCapabilityError(self.name, "image_generation")

    async def _create_transcription(
        self, request: TranscriptionRequest, request_id: str | None
    ) -> TranscriptionResponse:
        raise UnsupportedCapabilityError(self.name, "audio_transcription")
