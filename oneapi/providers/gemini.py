"""Google Gemini generateContent 适配器"""

from typing import Any

from oneapi.core.converters.request_converter import GeminiRequestConverter
from oneapi.core.converters.response_converter import GeminiResponseConverter
from oneapi.core.converters.stream_converters import process_gemini_chunk
from oneapi.models.requests import CompletionRequest
from oneapi.models.responses import CompletionResponse

from .base import Provider, ProviderCapabilities


class GeminiProvider(Provider):
    """Gemini 提供商

    API密钥作为 ``key`` 查询参数发送，流式接口使用 ``alt=sse`` 返回SSE格式。
    """

    name = "gemini"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"
    capabilities = ProviderCapabilities(vision=True)

    def build_headers(self) -> dict[str, str]:
        return {}

    def build_params(self) -> dict[str, str] | None:
        return {"key": self.config.api_key} if self.config.api_key else None

    def build_chat_payload(
        self, request: CompletionRequest, model: str, stream: bool, request_id: str | None
    ) -> dict[str, Any]:
        return GeminiRequestConverter.convert(request, model, stream=stream, request_id=request_id)

    def chat_path(self, model: str, stream: bool) -> str:
        action = "streamGenerateContent" if stream else "generateContent"
        return f"models/{model}:{action}"

    def chat_params(self, stream: bool) -> dict[str, str] | None:
        return {"alt": "sse"} if stream else None

    def parse_chat_response(self, data: dict[str, Any], model: str) -> CompletionResponse:
        return GeminiResponseConverter.convert(data, model)

    @property
    def stream_processor(self):
        return process_gemini_chunk
