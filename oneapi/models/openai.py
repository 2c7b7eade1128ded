"""OpenAI 兼容 API 数据模型定义

OpenAI、OpenRouter、Mistral 与 Together 共用这套请求与响应形状。
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class OpenAIMessage(BaseModel):
    """OpenAI消息格式"""

    role: Literal["system", "user", "assistant", "tool"] = Field(description="消息角色")
    content: str | list[dict[str, Any]] | None = Field(description="消息内容")
    tool_calls: list[dict[str, Any]] | None = Field(
        None, description="工具调用信息（当role为assistant时）"
    )


class OpenAIRequest(BaseModel):
    """OpenAI /chat/completions 请求体"""

    model: str = Field(description="厂商原生模型ID")
    messages: list[OpenAIMessage] = Field(description="消息列表")
    max_tokens: int | None = Field(None, description="最大生成token数")
    temperature: float | None = Field(None, description="采样温度")
    top_p: float | None = Field(None, description="核采样参数")
    top_k: int | None = Field(None, description="Top-K采样参数（部分兼容厂商支持）")
    stop: list[str] | None = Field(None, description="停止序列")
    tools: list[dict[str, Any]] | None = Field(None, description="工具定义")
    tool_choice: str | dict[str, Any] | None = Field(None, description="工具选择策略")
    response_format: dict[str, Any] | None = Field(None, description="响应格式")
    stream: bool = Field(False, description="是否流式响应")
    stream_options: dict[str, Any] | None = Field(None, description="流式选项")
    user: str | None = Field(None, description="终端用户标识")


class OpenAIResponseMessage(BaseModel):
    """响应中的消息"""

    role: str | None = Field("assistant", description="消息角色")
    content: str | None = Field(None, description="文本内容")
    tool_calls: list[dict[str, Any]] | None = Field(None, description="工具调用信息")


class OpenAIChoice(BaseModel):
    """OpenAI选择项"""

    index: int = Field(0, description="选择索引")
    message: OpenAIResponseMessage | None = Field(None, description="消息内容")
    delta: OpenAIResponseMessage | None = Field(None, description="流式增量内容")
    finish_reason: str | None = Field(None, description="完成原因")


class OpenAIUsage(BaseModel):
    """OpenAI使用统计"""

    prompt_tokens: int | None = Field(None, description="输入token数量")
    completion_tokens: int | None = Field(None, description="输出token数量")
    total_tokens: int | None = Field(None, description="总token数量")


class OpenAIResponse(BaseModel):
    """OpenAI响应（非流式与流式片段共用）"""

    id: str = Field("", description="响应ID")
    object: str | None = Field(None, description="对象类型")
    created: int | None = Field(None, description="创建时间戳")
    model: str | None = Field(None, description="使用的模型")
    choices: list[OpenAIChoice] = Field(default_factory=list, description="选择列表")
    usage: OpenAIUsage | None = Field(None, description="使用统计")
