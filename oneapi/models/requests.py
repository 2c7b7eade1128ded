"""统一请求数据模型定义

所有提供商共用同一套请求形状（OpenAI风格），在边界处由转换器映射为各厂商原生格式。
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class ImageURL(BaseModel):
    """图像URL配置"""

    url: str = Field(description="图像URL或 data:image/...;base64,... 数据URI")
    detail: Literal["auto", "low", "high"] | None = Field(
        None, description="图像细节级别"
    )


class TextContentPart(BaseModel):
    """文本内容块"""

    type: Literal["text"] = Field("text", description="内容类型")
    text: str = Field(description="文本内容")


class ImageContentPart(BaseModel):
    """图像内容块"""

    type: Literal["image_url"] = Field("image_url", description="内容类型")
    image_url: ImageURL = Field(description="图像URL配置")


ContentPart = Annotated[
    TextContentPart | ImageContentPart, Field(discriminator="type")
]


class ChatMessage(BaseModel):
    """统一消息格式"""

    role: Literal["system", "user", "assistant"] = Field(description="消息角色")
    content: str | list[ContentPart] = Field(description="消息内容")


class ToolFunction(BaseModel):
    """工具函数定义"""

    name: str = Field(description="函数名称")
    description: str | None = Field(None, description="函数描述")
    parameters: dict[str, Any] | None = Field(
        None, description="JSON Schema格式的函数参数"
    )


class ToolDefinition(BaseModel):
    """工具定义"""

    type: Literal["function"] = Field("function", description="工具类型")
    function: ToolFunction = Field(description="函数定义")


class ResponseFormat(BaseModel):
    """响应格式"""

    type: str = Field(description="响应格式类型，如 json_object")


class CompletionRequest(BaseModel):
    """统一对话补全请求"""

    model: str = Field(description="规范化模型ID，如 anthropic/claude-3.5-sonnet")
    messages: list[ChatMessage] = Field(min_length=1, description="消息列表")
    temperature: float | None = Field(None, description="采样温度")
    max_tokens: int | None = Field(None, description="最大生成token数")
    top_p: float | None = Field(None, description="核采样参数")
    top_k: int | None = Field(None, description="Top-K采样参数")
    stop: str | list[str] | None = Field(None, description="停止序列")
    tools: list[ToolDefinition] | None = Field(None, description="可用工具列表")
    tool_choice: str | dict[str, Any] | None = Field(None, description="工具选择策略")
    response_format: ResponseFormat | None = Field(None, description="响应格式")
    stream: bool = Field(False, description="是否流式响应")
    user: str | None = Field(None, description="终端用户标识")

    @property
    def stop_sequences(self) -> list[str] | None:
        if self.stop is None:
            return None
        return [self.stop] if isinstance(self.stop, str) else list(self.stop)


class EmbeddingRequest(BaseModel):
    """向量嵌入请求"""

    model: str = Field(description="规范化模型ID")
    input: str | list[str] = Field(description="待嵌入的文本或文本列表")
    encoding_format: Literal["float", "base64"] | None = Field(
        None, description="返回向量编码格式"
    )
    dimensions: int | None = Field(None, description="输出向量维度")
    user: str | None = Field(None, description="终端用户标识")


class ImageGenerationRequest(BaseModel):
    """图像生成请求"""

    model: str = Field(description="规范化模型ID")
    prompt: str = Field(description="图像描述")
    n: int | None = Field(None, description="生成图像数量")
    size: str | None = Field(None, description="图像尺寸，如 1024x1024")
    quality: str | None = Field(None, description="图像质量")
    style: str | None = Field(None, description="图像风格")
    response_format: Literal["url", "b64_json"] | None = Field(
        None, description="返回格式"
    )
    user: str | None = Field(None, description="终端用户标识")


class TranscriptionRequest(BaseModel):
    """音频转写请求"""

    model: str = Field(description="规范化模型ID")
    file: bytes = Field(description="音频文件内容")
    filename: str = Field("audio.mp3", description="音频文件名")
    language: str | None = Field(None, description="音频语言（ISO-639-1）")
    prompt: str | None = Field(None, description="提示文本")
    response_format: Literal["json", "text", "srt", "verbose_json", "vtt"] | None = (
        Field(None, description="返回格式")
    )
    temperature: float | None = Field(None, description="采样温度")
