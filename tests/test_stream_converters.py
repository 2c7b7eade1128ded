"""测试流式响应转换"""

import pytest

from oneapi.common.token_cache import prompt_token_cache
from oneapi.common.token_counter import token_counter
from oneapi.core.converters.stream_converters import (
    DONE,
    StreamState,
    convert_stream,
    parse_stream_line,
    process_anthropic_event,
    process_gemini_chunk,
    process_openai_chunk,
)
from oneapi.models.errors import StreamParseError, UpstreamAPIError

from .fixtures import (
    anthropic_stream_events,
    gemini_stream_chunks,
    openai_stream_chunks,
    sse,
)


async def lines_of(text: str):
    for line in text.split("\n"):
        yield line


async def collect(text, processor, state):
    return [chunk async for chunk in convert_stream(lines_of(text), processor, state)]


class TestParseStreamLine:
    """测试单行解析"""

    def test_data_prefix(self):
        assert parse_stream_line('data: {"a": 1}') == {"a": 1}

    def test_raw_json_line(self):
        assert parse_stream_line('{"a": 1}') == {"a": 1}

    def test_done_sentinel(self):
        assert parse_stream_line("data: [DONE]") is DONE

    @pytest.mark.parametrize("line", ["", "   ", ": keep-alive", "event: message_start"])
    def test_ignored_lines(self, line):
        assert parse_stream_line(line) is None

    def test_malformed_json(self):
        with pytest.raises(StreamParseError):
            parse_stream_line("data: {not json")

    def test_non_object_json(self):
        with pytest.raises(StreamParseError):
            parse_stream_line("data: [1, 2]")


class TestAnthropicStream:
    """测试 Anthropic 流转换"""

    @pytest.mark.asyncio
    async def test_three_deltas_then_stop(self):
        """3个文本增量 + message_stop 产生 3 个内容片段与 1 个终止片段"""
        text = sse(anthropic_stream_events(["Hel", "lo", "!"]), event_names=True)
        state = StreamState("anthropic/claude-3.5-sonnet", "anthropic")

        chunks = await collect(text, process_anthropic_event, state)

        assert len(chunks) == 4
        assert [c.content for c in chunks[:3]] == ["Hel", "lo", "!"]
        assert all(c.finish_reason is None and c.usage is None for c in chunks[:3])

        terminal = chunks[-1]
        assert terminal.content == ""
        assert terminal.finish_reason == "end_turn"
        assert terminal.usage.prompt_tokens == 12
        assert terminal.usage.completion_tokens == 7
        assert all(c.id == "msg_stream" for c in chunks)
        assert all(c.model == "anthropic/claude-3.5-sonnet" for c in chunks)

    @pytest.mark.asyncio
    async def test_malformed_line_is_skipped(self):
        events = anthropic_stream_events(["a", "b"])
        text = sse(events[:4]) + "data: {broken\n\n" + sse(events[4:])
        state = StreamState("anthropic/claude-3.5-sonnet", "anthropic")

        chunks = await collect(text, process_anthropic_event, state)

        assert [c.content for c in chunks] == ["a", "b", ""]
        assert state.skipped_lines == 1

    @pytest.mark.asyncio
    async def test_missing_stop_event_still_terminates(self):
        """流在 message_stop 之前结束时仍然产生唯一的终止片段"""
        events = anthropic_stream_events(["partial"])[:-1]
        state = StreamState("anthropic/claude-3.5-sonnet", "anthropic")

        chunks = await collect(sse(events), process_anthropic_event, state)

        assert [c.is_terminal for c in chunks] == [False, True]

    def test_error_event_raises(self):
        state = StreamState("anthropic/claude-3.5-sonnet", "anthropic")
        with pytest.raises(UpstreamAPIError) as exc_info:
            process_anthropic_event(
                {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}},
                state,
            )
        assert exc_info.value.status_code == 529


class TestOpenAIStream:
    """测试 OpenAI 兼容流转换"""

    @pytest.mark.asyncio
    async def test_deltas_and_usage(self):
        text = sse(
            openai_stream_chunks(
                ["Hello", " world"],
                usage={"prompt_tokens": 9, "completion_tokens": 2, "total_tokens": 11},
            )
        )
        state = StreamState("openai/gpt-4o", "openai")

        chunks = await collect(text, process_openai_chunk, state)

        assert [c.content for c in chunks] == ["Hello", " world", ""]
        assert chunks[-1].finish_reason == "stop"
        assert chunks[-1].usage.total_tokens == 11
        assert sum(1 for c in chunks if c.is_terminal) == 1

    @pytest.mark.asyncio
    async def test_usage_fallback_from_estimate(self, monkeypatch):
        """上游没有返回usage时，用缓存的预估值与本地计数补全"""
        monkeypatch.setattr(token_counter, "count_text_tokens", lambda text: len(text.split()))
        prompt_token_cache.put("req_fallback", 42)
        state = StreamState("openai/gpt-4o", "openai", request_id="req_fallback")

        chunks = await collect(
            sse(openai_stream_chunks(["one two", " three"])), process_openai_chunk, state
        )

        assert chunks[-1].usage.prompt_tokens == 42
        assert chunks[-1].usage.completion_tokens == 3
        assert prompt_token_cache.get("req_fallback") is None

    def test_in_band_error(self):
        state = StreamState("openrouter/some-model", "openrouter")
        with pytest.raises(UpstreamAPIError) as exc_info:
            process_openai_chunk({"error": {"code": 429, "message": "slow down"}}, state)
        assert exc_info.value.status_code == 429


class TestGeminiStream:
    """测试 Gemini 流转换"""

    @pytest.mark.asyncio
    async def test_deltas(self):
        state = StreamState("google/gemini-1.5-pro", "gemini")

        chunks = await collect(sse(gemini_stream_chunks(["Hi", " there"])), process_gemini_chunk, state)

        assert [c.content for c in chunks] == ["Hi", " there", ""]
        assert chunks[-1].finish_reason == "STOP"
        assert chunks[-1].usage.prompt_tokens == 6
        assert chunks[-1].usage.completion_tokens == 4
