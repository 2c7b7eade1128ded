"""各厂商响应与SSE流的测试数据"""

import json
from typing import Any


def sse(events: list[Any], event_names: bool = False) -> str:
    """把事件列表编码为SSE文本，字符串原样作为 data 内容"""
    lines = []
    for event in events:
        if event_names and isinstance(event, dict) and "type" in event:
            lines.append(f"event: {event['type']}")
        payload = event if isinstance(event, str) else json.dumps(event)
        lines.append(f"data: {payload}")
        lines.append("")
    return "\n".join(lines) + "\n"


def anthropic_message(
    text: str = "Hello! How can I help you today?",
    stop_reason: str | None = "end_turn",
    input_tokens: int = 12,
    output_tokens: int = 9,
    model: str = "claude-3.5-sonnet",
) -> dict[str, Any]:
    return {
        "id": "msg_01XFDUDYJgAACzvnptvVoYEL",
        "type": "message",
        "role": "assistant",
        "model": model,
        "content": [{"type": "text", "text": text}],
        "stop_reason": stop_reason,
        "stop_sequence": None,
        "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
    }


def anthropic_tool_message() -> dict[str, Any]:
    return {
        "id": "msg_tool",
        "type": "message",
        "role": "assistant",
        "model": "claude-3.5-sonnet",
        "content": [
            {"type": "text", "text": "Let me check."},
            {
                "type": "tool_use",
                "id": "toolu_01",
                "name": "get_weather",
                "input": {"location": "Paris"},
            },
        ],
        "stop_reason": "tool_use",
        "usage": {"input_tokens": 30, "output_tokens": 15},
    }


def anthropic_stream_events(
    deltas: list[str],
    stop_reason: str = "end_turn",
    input_tokens: int = 12,
    output_tokens: int = 7,
) -> list[dict[str, Any]]:
    events: list[dict[str, Any]] = [
        {
            "type": "message_start",
            "message": {
                "id": "msg_stream",
                "type": "message",
                "role": "assistant",
                "content": [],
                "usage": {"input_tokens": input_tokens, "output_tokens": 1},
            },
        },
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
        {"type": "ping"},
    ]
    for text in deltas:
        events.append(
            {
                "type": "content_block_delta",
                "index": 0,
                "delta": {"type": "text_delta", "text": text},
            }
        )
    events.extend(
        [
            {"type": "content_block_stop", "index": 0},
            {
                "type": "message_delta",
                "delta": {"stop_reason": stop_reason, "stop_sequence": None},
                "usage": {"output_tokens": output_tokens},
            },
            {"type": "message_stop"},
        ]
    )
    return events


def openai_completion(
    text: str = "Hello! How can I help you today?",
    model: str = "gpt-4o",
    finish_reason: str = "stop",
    prompt_tokens: int = 10,
    completion_tokens: int = 8,
) -> dict[str, Any]:
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1700000000,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": text},
                "finish_reason": finish_reason,
            }
        ],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }


def openai_stream_chunks(
    deltas: list[str],
    finish_reason: str = "stop",
    usage: dict[str, int] | None = None,
) -> list[Any]:
    base = {"id": "chatcmpl-stream", "object": "chat.completion.chunk", "created": 1700000000, "model": "gpt-4o"}
    chunks: list[Any] = [
        {**base, "choices": [{"index": 0, "delta": {"role": "assistant", "content": ""}, "finish_reason": None}]}
    ]
    for text in deltas:
        chunks.append({**base, "choices": [{"index": 0, "delta": {"content": text}, "finish_reason": None}]})
    chunks.append({**base, "choices": [{"index": 0, "delta": {}, "finish_reason": finish_reason}]})
    if usage is not None:
        chunks.append({**base, "choices": [], "usage": usage})
    chunks.append("[DONE]")
    return chunks


def openai_embedding(vectors: list[list[float]] | None = None, prompt_tokens: int = 5) -> dict[str, Any]:
    vectors = vectors or [[0.1, 0.2, 0.3]]
    return {
        "object": "list",
        "data": [
            {"object": "embedding", "index": index, "embedding": vector}
            for index, vector in enumerate(vectors)
        ],
        "model": "text-embedding-3-small",
        "usage": {"prompt_tokens": prompt_tokens, "total_tokens": prompt_tokens},
    }


def openai_image() -> dict[str, Any]:
    return {
        "created": 1700000000,
        "data": [{"url": "https://example.com/image.png", "revised_prompt": "a red cat"}],
    }


def gemini_response(
    text: str = "Hello from Gemini",
    finish_reason: str = "STOP",
    prompt_tokens: int = 6,
    completion_tokens: int = 4,
) -> dict[str, Any]:
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": finish_reason,
                "index": 0,
            }
        ],
        "usageMetadata": {
            "promptTokenCount": prompt_tokens,
            "candidatesTokenCount": completion_tokens,
            "totalTokenCount": prompt_tokens + completion_tokens,
        },
        "responseId": "gemini-resp-1",
    }


def gemini_stream_chunks(deltas: list[str], prompt_tokens: int = 6, completion_tokens: int = 4) -> list[Any]:
    chunks: list[Any] = [
        {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}, "index": 0}]}
        for text in deltas[:-1]
    ]
    chunks.append(
        {
            "candidates": [
                {
                    "content": {"role": "model", "parts": [{"text": deltas[-1]}]},
                    "finishReason": "STOP",
                    "index": 0,
                }
            ],
            "usageMetadata": {
                "promptTokenCount": prompt_tokens,
                "candidatesTokenCount": completion_tokens,
            },
        }
    )
    return chunks


# 1x1 PNG
PNG_DATA_URI = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
