"""Anthropic API 数据模型定义"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class AnthropicStreamEventTypes:
    """Anthropic流式响应事件类型常量"""

    # 消息相关事件
    MESSAGE_START = "message_start"
    MESSAGE_DELTA = "message_delta"
    MESSAGE_STOP = "message_stop"

    # 内容块相关事件
    CONTENT_BLOCK_START = "content_block_start"
    CONTENT_BLOCK_DELTA = "content_block_delta"
    CONTENT_BLOCK_STOP = "content_block_stop"

    # 其他事件
    PING = "ping"
    ERROR = "error"


class AnthropicContentTypes:
    """Anthropic内容类型常量"""

    TEXT = "text"
    IMAGE = "image"
    TOOL_USE = "tool_use"
    THINKING = "thinking"

    # 增量类型
    TEXT_DELTA = "text_delta"
    INPUT_JSON_DELTA = "input_json_delta"
    THINKING_DELTA = "thinking_delta"


class AnthropicTextBlock(BaseModel):
    """文本内容块"""

    type: Literal["text"] = Field("text", description="内容类型")
    text: str = Field(description="文本内容")


class AnthropicBase64Source(BaseModel):
    """base64图像源"""

    type: Literal["base64"] = Field("base64", description="源类型")
    media_type: str = Field(description="媒体类型，如 image/png")
    data: str = Field(description="base64编码的图像数据")


class AnthropicURLSource(BaseModel):
    """URL图像源"""

    type: Literal["url"] = Field("url", description="源类型")
    url: str = Field(description="图像URL")


class AnthropicImageBlock(BaseModel):
    """图像内容块"""

    type: Literal["image"] = Field("image", description="内容类型")
    source: AnthropicBase64Source | AnthropicURLSource = Field(
        discriminator="type", description="图像源"
    )


AnthropicContentBlock = AnthropicTextBlock | AnthropicImageBlock


class AnthropicMessage(BaseModel):
    """Anthropic消息

    只有首条 system 消息会被提取到 ``system`` 字段，后续 system 消息原样透传。
    """

    role: Literal["user", "assistant", "system"] = Field(description="消息角色")
    content: str | list[AnthropicContentBlock] = Field(description="消息内容")


class AnthropicToolDefinition(BaseModel):
    """Anthropic工具定义"""

    name: str = Field(description="工具名称")
    description: str | None = Field(None, description="工具描述")
    input_schema: dict[str, Any] = Field(description="工具输入参数的JSON Schema")


class AnthropicRequest(BaseModel):
    """Anthropic /messages 请求体"""

    model: str = Field(description="Anthropic原生模型ID")
    messages: list[AnthropicMessage] = Field(description="消息列表")
    max_tokens: int = Field(description="最大生成token数")
    system: str | None = Field(None, description="系统提示")
    temperature: float | None = Field(None, description="采样温度")
    top_p: float | None = Field(None, description="核采样参数")
    top_k: int | None = Field(None, description="Top-K采样参数")
    stop_sequences: list[str] | None = Field(None, description="停止序列")
    tools: list[AnthropicToolDefinition] | None = Field(None, description="工具定义")
    tool_choice: dict[str, Any] | None = Field(None, description="工具选择策略")
    stream: bool = Field(False, description="是否流式响应")


class AnthropicUsage(BaseModel):
    """Anthropic使用统计"""

    input_tokens: int = Field(0, description="输入token数量")
    output_tokens: int = Field(0, description="输出token数量")


class AnthropicResponseBlock(BaseModel):
    """响应内容块，宽松解析以兼容 tool_use、thinking 等类型"""

    type: str = Field(description="内容类型")
    text: str | None = Field(None, description="文本内容")
    id: str | None = Field(None, description="工具调用ID")
    name: str | None = Field(None, description="工具名称")
    input: dict[str, Any] | None = Field(None, description="工具输入参数")


class AnthropicMessageResponse(BaseModel):
    """Anthropic非流式响应"""

    id: str = Field("", description="消息ID")
    type: str = Field("message", description="对象类型")
    role: str = Field("assistant", description="角色")
    model: str | None = Field(None, description="模型ID")
    content: list[AnthropicResponseBlock] = Field(
        default_factory=list, description="内容块列表"
    )
    stop_reason: str | None = Field(None, description="停止原因")
    stop_sequence: str | None = Field(None, description="触发的停止序列")
    usage: AnthropicUsage = Field(default_factory=AnthropicUsage, description="使用统计")
