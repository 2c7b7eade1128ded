"""Anthropic Messages API 适配器"""

from typing import Any

from oneapi.config.settings import AnthropicProviderConfig
from oneapi.core.converters.request_converter import AnthropicRequestConverter
from oneapi.core.converters.response_converter import AnthropicResponseConverter
from oneapi.core.converters.stream_converters import process_anthropic_event
from oneapi.core.validation import validate_anthropic_completion_request
from oneapi.models.requests import CompletionRequest
from oneapi.models.responses import CompletionResponse

from .base import Provider, ProviderCapabilities


class AnthropicProvider(Provider):
    """Anthropic 提供商

    使用严格的模型映射，未登记的模型直接拒绝。请求在分发前经过
    Anthropic 专属校验，并在限流器中占用名额直到响应或流结束。
    """

    name = "anthropic"
    default_base_url = "https://api.anthropic.com/v1"
    capabilities = ProviderCapabilities(vision=True)

    config: AnthropicProviderConfig

    def build_headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.config.api_key or "",
            "anthropic-version": self.config.version,
        }

    def validate_completion(self, request: CompletionRequest, model: str) -> None:
        validate_anthropic_completion_request(request, model)

    def build_chat_payload(
        self, request: CompletionRequest, model: str, stream: bool, request_id: str | None
    ) -> dict[str, Any]:
        return AnthropicRequestConverter.convert(request, model, stream=stream, request_id=request_id)

    def chat_path(self, model: str, stream: bool) -> str:
        return "messages"

    def parse_chat_response(self, data: dict[str, Any], model: str) -> CompletionResponse:
        return AnthropicResponseConverter.convert(data, model)

    @property
    def stream_processor(self):
        return process_anthropic_event
