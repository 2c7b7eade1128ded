"""OpenAI 适配器"""

from .base import ProviderCapabilities
from .openai_compatible import OpenAICompatibleProvider


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI 提供商，支持全部能力"""

    name = "openai"
    default_base_url = "https://api.openai.com/v1"
    capabilities = ProviderCapabilities(
        embeddings=True,
        image_generation=True,
        audio_transcription=True,
        vision=True,
    )
