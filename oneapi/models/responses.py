"""统一响应数据模型定义"""

import time
from typing import Any

from pydantic import BaseModel, Field, model_validator


class Usage(BaseModel):
    """token使用统计

    ``total_tokens`` 总是由 prompt 与 completion 重新计算，不信任上游给出的总数。
    """

    prompt_tokens: int = Field(0, description="输入token数量")
    completion_tokens: int = Field(0, description="输出token数量")
    total_tokens: int = Field(0, description="总token数量")

    @model_validator(mode="after")
    def _recompute_total(self) -> "Usage":
        self.total_tokens = self.prompt_tokens + self.completion_tokens
        return self


class ResponseMessage(BaseModel):
    """助手消息"""

    role: str = Field("assistant", description="消息角色")
    content: str = Field("", description="文本内容")
    tool_calls: list[dict[str, Any]] | None = Field(None, description="工具调用信息")


class Choice(BaseModel):
    """补全候选项"""

    index: int = Field(0, description="候选索引")
    message: ResponseMessage = Field(
        default_factory=ResponseMessage, description="消息内容"
    )
    finish_reason: str | None = Field(None, description="完成原因，保留厂商原始值")


class CompletionResponse(BaseModel):
    """统一对话补全响应"""

    id: str = Field(description="响应ID")
    object: str = Field("chat.completion", description="对象类型")
    created: int = Field(default_factory=lambda: int(time.time()), description="创建时间戳")
    model: str = Field(description="规范化模型ID")
    choices: list[Choice] = Field(description="候选列表")
    usage: Usage = Field(default_factory=Usage, description="token使用统计")

    @property
    def text(self) -> str:
        return self.choices[0].message.content if self.choices else ""


class CompletionChunk(BaseModel):
    """流式响应片段

    非终止片段只携带新增文本，``finish_reason`` 为空；
    终止片段内容为空，携带 ``finish_reason`` 与 ``usage``。
    """

    id: str = Field(description="响应ID")
    object: str = Field("chat.completion.chunk", description="对象类型")
    created: int = Field(default_factory=lambda: int(time.time()), description="创建时间戳")
    model: str = Field(description="规范化模型ID")
    choices: list[Choice] = Field(description="候选列表")
    usage: Usage | None = Field(None, description="仅在终止片段中出现")

    @property
    def content(self) -> str:
        return self.choices[0].message.content if self.choices else ""

    @property
    def finish_reason(self) -> str | None:
        return self.choices[0].finish_reason if self.choices else None

    @property
    def is_terminal(self) -> bool:
        return self.finish_reason is not None


class EmbeddingData(BaseModel):
    """单条嵌入结果"""

    object: str = Field("embedding", description="对象类型")
    index: int = Field(0, description="输入索引")
    embedding: list[float] | str = Field(description="向量或base64编码的向量")


class EmbeddingResponse(BaseModel):
    """向量嵌入响应"""

    object: str = Field("list", description="对象类型")
    model: str = Field(description="规范化模型ID")
    data: list[EmbeddingData] = Field(description="嵌入结果列表")
    usage: Usage = Field(default_factory=Usage, description="token使用统计")


class ImageData(BaseModel):
    """单张生成图像"""

    url: str | None = Field(None, description="图像URL")
    b64_json: str | None = Field(None, description="base64编码的图像")
    revised_prompt: str | None = Field(None, description="修订后的提示词")


class ImageGenerationResponse(BaseModel):
    """图像生成响应"""

    created: int = Field(default_factory=lambda: int(time.time()), description="创建时间戳")
    data: list[ImageData] = Field(description="图像列表")


class TranscriptionResponse(BaseModel):
    """音频转写响应"""

    text: str = Field(description="转写文本")
    language: str | None = Field(None, description="识别出的语言")
    duration: float | None = Field(None, description="音频时长（秒）")
