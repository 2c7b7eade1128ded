"""Google Gemini API 数据模型定义"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class GeminiInlineData(BaseModel):
    """内联二进制数据"""

    mime_type: str = Field(description="媒体类型")
    data: str = Field(description="base64编码的数据")


class GeminiFileData(BaseModel):
    """远程文件引用"""

    mime_type: str | None = Field(None, description="媒体类型")
    file_uri: str = Field(description="文件URI")


class GeminiPart(BaseModel):
    """内容片段，三个字段中只出现一个"""

    text: str | None = Field(None, description="文本内容")
    inline_data: GeminiInlineData | None = Field(None, description="内联图像数据")
    file_data: GeminiFileData | None = Field(None, description="远程图像引用")


class GeminiContent(BaseModel):
    """Gemini对话轮次"""

    role: Literal["user", "model"] | None = Field(None, description="角色")
    parts: list[GeminiPart] = Field(default_factory=list, description="内容片段")


class GeminiGenerationConfig(BaseModel):
    """生成参数"""

    model_config = ConfigDict(populate_by_name=True)

    temperature: float | None = Field(None, description="采样温度")
    top_p: float | None = Field(None, alias="topP", description="核采样参数")
    top_k: int | None = Field(None, alias="topK", description="Top-K采样参数")
    max_output_tokens: int | None = Field(
        None, alias="maxOutputTokens", description="最大生成token数"
    )
    stop_sequences: list[str] | None = Field(
        None, alias="stopSequences", description="停止序列"
    )
    response_mime_type: str | None = Field(
        None, alias="responseMimeType", description="响应MIME类型"
    )


class GeminiRequest(BaseModel):
    """generateContent 请求体"""

    model_config = ConfigDict(populate_by_name=True)

    contents: list[GeminiContent] = Field(description="对话内容")
    system_instruction: GeminiContent | None = Field(
        None, alias="systemInstruction", description="系统指令"
    )
    generation_config: GeminiGenerationConfig | None = Field(
        None, alias="generationConfig", description="生成参数"
    )
    tools: list[dict[str, Any]] | None = Field(None, description="工具定义")


class GeminiCandidate(BaseModel):
    """候选结果"""

    model_config = ConfigDict(populate_by_name=True)

    content: GeminiContent | None = Field(None, description="候选内容")
    finish_reason: str | None = Field(None, alias="finishReason", description="完成原因")
    index: int = Field(0, description="候选索引")


class GeminiUsageMetadata(BaseModel):
    """使用统计"""

    model_config = ConfigDict(populate_by_name=True)

    prompt_token_count: int = Field(0, alias="promptTokenCount", description="输入token数量")
    candidates_token_count: int = Field(
        0, alias="candidatesTokenCount", description="输出token数量"
    )


class GeminiResponse(BaseModel):
    """generateContent 响应（流式时每个事件也是同样形状）"""

    model_config = ConfigDict(populate_by_name=True)

    candidates: list[GeminiCandidate] = Field(default_factory=list, description="候选列表")
    usage_metadata: GeminiUsageMetadata | None = Field(
        None, alias="usageMetadata", description="使用统计"
    )
    model_version: str | None = Field(None, alias="modelVersion", description="模型版本")
