"""
OneAPI 统一客户端

持有共享的 ``httpx.AsyncClient``、Anthropic 限流器与在途请求表，
按模型前缀把调用分发给对应的提供商适配器。
"""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any

import httpx
from loguru import logger

from oneapi.common.logging import generate_request_id, request_logger
from oneapi.config.settings import Config
from oneapi.config.watcher import ConfigWatcher
from oneapi.core.cancellation import InflightRequests
from oneapi.core.model_mapping import (
    ANTHROPIC_MODEL_MAPPING,
    GEMINI_MODEL_MAPPING,
    MISTRAL_MODEL_MAPPING,
    OPENAI_MODEL_MAPPING,
    TOGETHER_MODEL_MAPPING,
    ModelMapper,
    PassthroughModelMapper,
)
from oneapi.core.rate_limiter import RateLimiter
from oneapi.core.validation import parse_request
from oneapi.models.errors import OneAPIError
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
from oneapi.providers import (
    AnthropicProvider,
    GeminiProvider,
    MistralProvider,
    OpenAIProvider,
    OpenRouterProvider,
    Provider,
    TogetherProvider,
)

# 模型ID前缀 -> 提供商名称，未列出的前缀交给 OpenRouter
MODEL_PREFIX_ROUTES = {
    "openai": "openai",
    "anthropic": "anthropic",
    "google": "gemini",
    "gemini": "gemini",
    "mistral": "mistral",
    "together": "together",
}

# 同一提供商的前缀别名，分发前改写为映射表使用的前缀
PREFIX_ALIASES = {"gemini": "google"}

FALLBACK_PROVIDER = "openrouter"


def build_mapper(name: str) -> ModelMapper:
    """各提供商的模型映射，只有 Anthropic 对未登记模型严格拒绝"""
    if name == "anthropic":
        return ModelMapper("anthropic", ANTHROPIC_MODEL_MAPPING, strict=True)
    if name == "openai":
        return ModelMapper("openai", OPENAI_MODEL_MAPPING)
    if name == "gemini":
        return ModelMapper("google", GEMINI_MODEL_MAPPING)
    if name == "mistral":
        return ModelMapper("mistral", MISTRAL_MODEL_MAPPING)
    if name == "together":
        return ModelMapper("together", TOGETHER_MODEL_MAPPING)
    if name == "openrouter":
        return PassthroughModelMapper()
    raise ValueError(f"未知的提供商: {name}")


PROVIDER_CLASSES: dict[str, type[Provider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
    "mistral": MistralProvider,
    "together": TogetherProvider,
    "openrouter": OpenRouterProvider,
}


class OneAPI:
    """统一的LLM客户端

    Args:
        config: SDK配置，为空时使用默认值 + 环境变量
        http_client: 外部注入的 httpx.AsyncClient，注入时由调用方负责关闭
        rate_limiter: 外部注入的 Anthropic 限流器

    使用示例:
        async with OneAPI() as client:
            response = await client.create_chat_completion(
                {"model": "anthropic/claude-3.5-sonnet", "messages": [{"role": "user", "content": "Hi"}]}
            )
    """

    def __init__(
        self,
        config: Config | None = None,
        http_client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        self.config = config or Config().apply_env_overrides()
        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient()
        self.rate_limiter = rate_limiter or RateLimiter(self.config.rate_limits)
        self.inflight = InflightRequests()
        self.providers = self.build_providers(self.config)
        self._watcher: ConfigWatcher | None = None

    @classmethod
    async def from_config_file(cls, config_path: str | None = None, **kwargs: Any) -> "OneAPI":
        return cls(await Config.from_file(config_path), **kwargs)

    def build_providers(self, config: Config) -> dict[str, Provider]:
        providers = {}
        for name, provider_cls in PROVIDER_CLASSES.items():
            providers[name] = provider_cls(
                config.provider(name),
                self.http_client,
                build_mapper(name),
                rate_limiter=self.rate_limiter if name == "anthropic" else None,
            )
        return providers

    def apply_config(self, config: Config) -> None:
        """替换配置并重建适配器，限流计数器保持不变"""
        self.config = config
        self.rate_limiter.config = config.rate_limits
        self.providers = self.build_providers(config)
        logger.info(f"提供商已重建 - UseOpenRouter: {config.use_openrouter}")

    # ------------------------------------------------------------------
    # 路由
    # ------------------------------------------------------------------

    def resolve_model(self, model: str) -> tuple[str, str]:
        """返回 (提供商名称, 分发用的模型ID)"""
        if self.config.use_openrouter:
            return FALLBACK_PROVIDER, model

        prefix, sep, rest = model.partition("/")
        if not sep or prefix not in MODEL_PREFIX_ROUTES:
            return FALLBACK_PROVIDER, model
        if prefix in PREFIX_ALIASES:
            model = f"{PREFIX_ALIASES[prefix]}/{rest}"
        return MODEL_PREFIX_ROUTES[prefix], model

    def provider_for(self, model: str) -> Provider:
        name, _ = self.resolve_model(model)
        return self.providers[name]

    def _route(self, request):
        name, model = self.resolve_model(request.model)
        if model != request.model:
            request = request.model_copy(update={"model": model})
        return self.providers[name], request

    async def _dispatch(self, method: str, request_cls: type, request: Any, request_id: str | None):
        request = parse_request(request_cls, request)
        request_id = request_id or generate_request_id()
        provider, request = self._route(request)

        start_time = time.perf_counter()
        with self.inflight.track(request_id):
            try:
                response = await getattr(provider, method)(request, request_id)
            except OneAPIError as e:
                request_logger.log_error(
                    e, {"provider": provider.name, "model": request.model}, request_id
                )
                raise
        request_logger.log_response(
            provider.name, request.model, time.perf_counter() - start_time, request_id
        )
        return response

    # ------------------------------------------------------------------
    # 调用
    # ------------------------------------------------------------------

    async def create_chat_completion(
        self, request: CompletionRequest | dict[str, Any], request_id: str | None = None
    ) -> CompletionResponse:
        return await self._dispatch("create_chat_completion", CompletionRequest, request, request_id)

    async def stream_chat_completion(
        self, request: CompletionRequest | dict[str, Any], request_id: str | None = None
    ) -> AsyncIterator[CompletionChunk]:
        """流式对话补全

        提前结束迭代时请调用 ``aclose()``（或使用 ``contextlib.aclosing``），
        以便立即释放限流名额与上游连接。
        """
        request = parse_request(CompletionRequest, request)
        request_id = request_id or generate_request_id()
        provider, request = self._route(request)

        start_time = time.perf_counter()
        with self.inflight.track(request_id):
            try:
                async with aclosing(
                    provider.stream_chat_completion(request, request_id)
                ) as chunks:
                    async for chunk in chunks:
                        yield chunk
            except OneAPIError as e:
                request_logger.log_error(
                    e, {"provider": provider.name, "model": request.model, "stream": True}, request_id
                )
                raise
        request_logger.log_response(
            provider.name, request.model, time.perf_counter() - start_time, request_id, stream=True
        )

    async def create_embedding(
        self, request: EmbeddingRequest | dict[str, Any], request_id: str | None = None
    ) -> EmbeddingResponse:
        return await self._dispatch("create_embedding", EmbeddingRequest, request, request_id)

    async def create_image(
        self, request: ImageGenerationRequest | dict[str, Any], request_id: str | None = None
    ) -> ImageGenerationResponse:
        return await self._dispatch("create_image", ImageGenerationRequest, request, request_id)

    async def create_transcription(
        self, request: TranscriptionRequest | dict[str, Any], request_id: str | None = None
    ) -> TranscriptionResponse:
        return await self._dispatch("create_transcription", TranscriptionRequest, request, request_id)

    async def compare_models(
        self, prompt: str, models: list[str], **params: Any
    ) -> dict[str, CompletionResponse | OneAPIError]:
        """用同一提示词并发调用多个模型，单个模型失败不影响其他模型"""

        async def run(model: str) -> CompletionResponse | OneAPIError:
            try:
                return await self.create_chat_completion(
                    {"model": model, "messages": [{"role": "user", "content": prompt}], **params}
                )
            except OneAPIError as e:
                return e

        results = await asyncio.gather(*(run(model) for model in models))
        return dict(zip(models, results))

    # ------------------------------------------------------------------
    # 状态与生命周期
    # ------------------------------------------------------------------

    def check_status(self) -> dict[str, bool]:
        """各提供商是否已配置API密钥"""
        return {name: provider.is_configured for name, provider in self.providers.items()}

    def list_models(self) -> list[str]:
        models = []
        for provider in self.providers.values():
            models.extend(provider.list_models())
        return models

    def cancel_all(self) -> int:
        """取消所有在途请求，返回被取消的数量"""
        cancelled = self.inflight.cancel_all()
        if cancelled:
            logger.info(f"已取消 {cancelled} 个在途请求")
        return cancelled

    async def watch_config(self, config_path: str | None = None) -> ConfigWatcher:
        """监听配置文件，变化时重新加载并重建适配器"""
        if self._watcher is not None:
            return self._watcher

        watcher = ConfigWatcher(config_path)

        async def reload() -> None:
            self.apply_config(await Config.from_file(str(watcher.config_path)))

        watcher.add_reload_callback(reload)
        await watcher.start_watching()
        self._watcher = watcher
        return watcher

    async def aclose(self) -> None:
        if self._watcher is not None:
            self._watcher.stop_watching()
            self._watcher = None
        await self.rate_limiter.close()
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> "OneAPI":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
