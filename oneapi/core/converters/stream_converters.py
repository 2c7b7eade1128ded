"""
流式响应转换

把各厂商的 SSE / JSON-lines 流逐行解析为统一的 CompletionChunk 片段：
非终止片段只包含新增文本，整个流只产生一个终止片段（内容为空，携带完成原因与usage）。
"""

import json
import time
from collections.abc import AsyncIterator, Callable
from typing import Any

from oneapi.common.logging import get_logger_with_request_id
from oneapi.common.token_cache import prompt_token_cache
from oneapi.common.token_counter import token_counter
from oneapi.models.anthropic import AnthropicContentTypes, AnthropicStreamEventTypes
from oneapi.models.errors import StreamParseError, UpstreamAPIError
from oneapi.models.responses import Choice, CompletionChunk, ResponseMessage, Usage

DEFAULT_FINISH_REASON = "stop"

# 流结束标记
DONE = object()


class StreamState:
    """流状态管理类"""

    def __init__(
        self,
        model: str,
        provider: str,
        request_id: str | None = None,
        prompt_tokens: int | None = None,
    ):
        self.message_id = f"chatcmpl-{int(time.time() * 1000)}"
        self.model = model
        self.provider = provider
        self.request_id = request_id
        self.started_at = time.time()

        # 响应结束
        self.has_finished = False
        self.finish_reason: str | None = None

        # 计数器
        self.total_chunks = 0
        self.skipped_lines = 0

        # 累积所有输出内容用于token计算
        self.accumulated_content: list[str] = []

        # 上游给出的usage，缺失时在终止片段中补全
        self.prompt_tokens = prompt_tokens
        self.completion_tokens: int | None = None


StreamProcessor = Callable[[dict[str, Any], StreamState], list[CompletionChunk]]


def parse_stream_line(line: str) -> Any:
    """解析单行流数据

    Returns:
        解析出的字典；空行、注释与 ``event:`` 行返回None；``[DONE]`` 返回 DONE

    Raises:
        StreamParseError: JSON格式错误
    """
    line = line.strip()
    if not line or line.startswith(":") or line.startswith("event:"):
        return None

    payload = line[5:].strip() if line.startswith("data:") else line
    if payload == "[DONE]":
        return DONE

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise StreamParseError(line, str(e)) from e
    if not isinstance(data, dict):
        raise StreamParseError(line, f"expected JSON object, got {type(data).__name__}")
    return data


def make_chunk(
    state: StreamState,
    content: str = "",
    finish_reason: str | None = None,
    usage: Usage | None = None,
) -> CompletionChunk:
    state.total_chunks += 1
    return CompletionChunk(
        id=state.message_id,
        model=state.model,
        choices=[
            Choice(
                index=0,
                message=ResponseMessage(content=content),
                finish_reason=finish_reason,
            )
        ],
        usage=usage,
    )


def process_content_delta(text: str | None, state: StreamState) -> list[CompletionChunk]:
    """处理文本增量"""
    if not text:
        return []
    state.accumulated_content.append(text)
    return [make_chunk(state, content=text)]


def process_finish_event(state: StreamState) -> CompletionChunk:
    """生成唯一的终止片段"""
    state.has_finished = True

    prompt_tokens = state.prompt_tokens
    if not prompt_tokens:
        prompt_tokens = prompt_token_cache.get(state.request_id, pop=True) or 0

    completion_tokens = state.completion_tokens
    # 上游没有返回completion_tokens时自行计算
    if not completion_tokens and state.accumulated_content:
        completion_tokens = token_counter.count_text_tokens(
            "".join(state.accumulated_content)
        )

    return make_chunk(
        state,
        finish_reason=state.finish_reason or DEFAULT_FINISH_REASON,
        usage=Usage(
            prompt_tokens=prompt_tokens or 0,
            completion_tokens=completion_tokens or 0,
        ),
    )


def process_anthropic_event(data: dict[str, Any], state: StreamState) -> list[CompletionChunk]:
    """处理 Anthropic SSE 事件

    只有 content_block_delta 与 message_stop 产生片段，
    message_start / message_delta 只记录ID、usage与停止原因。
    """
    event_type = data.get("type")

    if event_type == AnthropicStreamEventTypes.MESSAGE_START:
        message = data.get("message") or {}
        if message.get("id"):
            state.message_id = message["id"]
        usage = message.get("usage") or {}
        if usage.get("input_tokens"):
            state.prompt_tokens = usage["input_tokens"]
        return []

    if event_type == AnthropicStreamEventTypes.CONTENT_BLOCK_DELTA:
        delta = data.get("delta") or {}
        if delta.get("type", AnthropicContentTypes.TEXT_DELTA) == AnthropicContentTypes.TEXT_DELTA:
            return process_content_delta(delta.get("text"), state)
        return []

    if event_type == AnthropicStreamEventTypes.MESSAGE_DELTA:
        delta = data.get("delta") or {}
        if delta.get("stop_reason"):
            state.finish_reason = delta["stop_reason"]
        usage = data.get("usage") or {}
        if usage.get("output_tokens") is not None:
            state.completion_tokens = usage["output_tokens"]
        return []

    if event_type == AnthropicStreamEventTypes.MESSAGE_STOP:
        return [process_finish_event(state)]

    if event_type == AnthropicStreamEventTypes.ERROR:
        error = data.get("error") or {}
        status_code = 529 if error.get("type") == "overloaded_error" else 500
        raise UpstreamAPIError(
            "anthropic",
            status_code,
            body=json.dumps(data, ensure_ascii=False),
            message=error.get("message") or "Anthropic stream error",
        )

    # ping、content_block_start、content_block_stop 不产生片段
    return []


def process_openai_chunk(data: dict[str, Any], state: StreamState) -> list[CompletionChunk]:
    """处理 OpenAI 兼容流片段，终止片段在 [DONE] 或流结束时生成"""
    if data.get("id"):
        state.message_id = data["id"]

    usage = data.get("usage")
    if usage:
        if usage.get("prompt_tokens"):
            state.prompt_tokens = usage["prompt_tokens"]
        if usage.get("completion_tokens") is not None:
            state.completion_tokens = usage["completion_tokens"]

    if "error" in data:
        error = data.get("error") or {}
        code = error.get("code")
        raise UpstreamAPIError(
            state.provider,
            code if isinstance(code, int) and code >= 400 else 500,
            body=json.dumps(data, ensure_ascii=False),
            message=error.get("message") or f"{state.provider} stream error",
        )

    chunks = []
    for choice in data.get("choices") or []:
        if choice.get("index", 0) != 0:
            continue
        delta = choice.get("delta") or {}
        chunks.extend(process_content_delta(delta.get("content"), state))
        if choice.get("finish_reason"):
            state.finish_reason = choice["finish_reason"]
    return chunks


def process_gemini_chunk(data: dict[str, Any], state: StreamState) -> list[CompletionChunk]:
    """处理 Gemini streamGenerateContent?alt=sse 事件"""
    if data.get("responseId"):
        state.message_id = data["responseId"]

    usage = data.get("usageMetadata") or {}
    if usage.get("promptTokenCount"):
        state.prompt_tokens = usage["promptTokenCount"]
    if usage.get("candidatesTokenCount") is not None:
        state.completion_tokens = usage["candidatesTokenCount"]

    candidates = data.get("candidates") or []
    if not candidates:
        return []

    candidate = candidates[0]
    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts)
    if candidate.get("finishReason"):
        state.finish_reason = candidate["finishReason"]
    return process_content_delta(text, state)


async def convert_stream(
    lines: AsyncIterator[str],
    processor: StreamProcessor,
    state: StreamState,
) -> AsyncIterator[CompletionChunk]:
    """逐行转换上游流为统一片段

    格式错误的行记录日志后跳过，不中断整个流。
    """
    bound_logger = get_logger_with_request_id(state.request_id)

    async for line in lines:
        try:
            data = parse_stream_line(line)
        except StreamParseError as e:
            state.skipped_lines += 1
            bound_logger.warning(f"跳过格式错误的流数据 - Provider: {state.provider}, Error: {e}")
            continue

        if data is None:
            continue
        if data is DONE:
            break

        for chunk in processor(data, state):
            yield chunk
        if state.has_finished:
            break

    if not state.has_finished:
        yield process_finish_event(state)

    log_stream_completion(state)


def log_stream_completion(state: StreamState) -> None:
    """流式响应完成时记录摘要"""
    bound_logger = get_logger_with_request_id(state.request_id)
    elapsed_ms = round((time.time() - state.started_at) * 1000, 2)
    bound_logger.info(
        f"流式响应生成完成 - Provider: {state.provider}, Model: {state.model}, "
        f"Chunks: {state.total_chunks}, Chars: {sum(len(c) for c in state.accumulated_content)}, "
        f"Skipped: {state.skipped_lines}, FinishReason: {state.finish_reason or DEFAULT_FINISH_REASON}, "
        f"Time: {elapsed_ms}ms"
    )
