"""Mistral 适配器"""

from .base import ProviderCapabilities
from .openai_compatible import OpenAICompatibleProvider


class MistralProvider(OpenAICompatibleProvider):
    name = "mistral"
    default_base_url = "https://api.mistral.ai/v1"
    capabilities = ProviderCapabilities(embeddings=True)
