import json
import math
import re
from typing import Any

import tiktoken

# 各模型族的字符/token比例与特殊token加成
TOKENIZER_CONFIGS: dict[str, dict[str, Any]] = {
    "claude-3": {
        "chars_per_token": 3.5,
        "special_tokens": {
            "<s>": 1,
            "</s>": 1,
            "<im_start>": 1,
            "<im_end>": 1,
            "<image>": 1,
        },
    },
    "claude-2": {
        "chars_per_token": 4,
        "special_tokens": {
            "<s>": 1,
            "</s>": 1,
            "Human:": 1,
            "Assistant:": 1,
        },
    },
    "default": {
        "chars_per_token": 4,
        "special_tokens": {},
    },
}

_SPECIAL_TOKEN_PATTERNS = {
    model_type: {
        token: re.compile(re.escape(token)) for token in config["special_tokens"]
    }
    for model_type, config in TOKENIZER_CONFIGS.items()
}

IMAGE_PLACEHOLDER = "<image>"


def get_model_type(model: str | None) -> str:
    """根据模型名推断分词配置"""
    if not model:
        return "default"
    name = model.rsplit("/", 1)[-1]
    if name.startswith("claude-3"):
        return "claude-3"
    if name.startswith("claude-2") or name.startswith("claude-instant"):
        return "claude-2"
    return "default"


def estimate_tokens(text: str, model_type: str = "default") -> int:
    """按字符数启发式估算token数量

    Args:
        text: 待估算文本
        model_type: claude-3、claude-2 或 default

    Returns:
        int: 近似token数量
    """
    config = TOKENIZER_CONFIGS.get(model_type, TOKENIZER_CONFIGS["default"])
    patterns = _SPECIAL_TOKEN_PATTERNS.get(model_type, {})

    count = math.ceil(len(text) / config["chars_per_token"])
    for token, pattern in patterns.items():
        count += len(pattern.findall(text)) * config["special_tokens"][token]
    return count


class TokenCounter:
    """Token计数器

    请求侧使用启发式估算（限流预检只需要近似值），
    响应侧在上游缺失usage时用 tiktoken 精确计算。
    """

    def __init__(self, encoding_name: str = "o200k_base"):
        self.encoding_name = encoding_name
        self._encoder = None

    @property
    def encoder(self):
        # 首次使用时才加载编码表
        if self._encoder is None:
            self._encoder = tiktoken.get_encoding(self.encoding_name)
        return self._encoder

    def _message_text(self, message: Any) -> str:
        content = (
            message.content
            if hasattr(message, "content")
            else message.get("content", "") if isinstance(message, dict) else ""
        )
        if isinstance(content, str):
            return content

        texts = []
        for part in content or []:
            part_type = (
                part.type
                if hasattr(part, "type")
                else part.get("type") if isinstance(part, dict) else None
            )
            if part_type == "text":
                texts.append(
                    part.text if hasattr(part, "text") else str(part.get("text", ""))
                )
            elif part_type == "image_url":
                texts.append(IMAGE_PLACEHOLDER)
        return "".join(texts)

    def estimate_request_tokens(
        self,
        messages: list[Any],
        model: str | None = None,
        tools: list[Any] | None = None,
    ) -> int:
        """估算请求的输入token数，供限流器预检使用"""
        text_parts = [self._message_text(message) for message in messages or []]

        for tool in tools or []:
            if hasattr(tool, "model_dump"):
                tool = tool.model_dump(exclude_none=True)
            text_parts.append(json.dumps(tool, ensure_ascii=False))

        return estimate_tokens("".join(text_parts), get_model_type(model))

    def count_text_tokens(self, text: str) -> int:
        """用 tiktoken 计算文本的token数量"""
        if not text:
            return 0
        return len(self.encoder.encode(text))


# 全局实例
token_counter = TokenCounter()
