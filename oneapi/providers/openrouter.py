"""OpenRouter 聚合网关适配器"""

from oneapi.config.settings import OpenRouterProviderConfig

from .base import ProviderCapabilities
from .openai_compatible import OpenAICompatibleProvider


class OpenRouterProvider(OpenAICompatibleProvider):
    """OpenRouter 提供商

    模型ID原样透传（如 ``anthropic/claude-3-5-sonnet``），
    并附带 OpenRouter 用于来源统计的 HTTP-Referer 与 X-Title 请求头。
    """

    name = "openrouter"
    default_base_url = "https://openrouter.ai/api/v1"
    capabilities = ProviderCapabilities(embeddings=True, vision=True)

    config: OpenRouterProviderConfig

    def build_headers(self) -> dict[str, str]:
        headers = super().build_headers()
        referer = self.config.referer
        title = self.config.title
        if referer:
            headers["HTTP-Referer"] = referer
        if title:
            headers["X-Title"] = title
        return headers
