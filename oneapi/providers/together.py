"""Together AI 适配器"""

from .base import ProviderCapabilities
from .openai_compatible import OpenAICompatibleProvider


class TogetherProvider(OpenAICompatibleProvider):
    """Together 提供商

    基础URL不含版本号，接口路径带 ``v1/`` 前缀；支持 ``top_k`` 采样参数。
    """

    name = "together"
    default_base_url = "https://api.together.xyz"
    capabilities = ProviderCapabilities(embeddings=True)

    chat_endpoint = "v1/chat/completions"
    embeddings_endpoint = "v1/embeddings"
    supports_top_k = True
