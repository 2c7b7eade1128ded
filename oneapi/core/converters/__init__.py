from .request_converter import (
    AnthropicRequestConverter,
    GeminiRequestConverter,
    OpenAIRequestConverter,
    split_system_message,
)
from .response_converter import (
    AnthropicResponseConverter,
    GeminiResponseConverter,
    OpenAIResponseConverter,
)
from .stream_converters import (
    StreamState,
    convert_stream,
    parse_stream_line,
    process_anthropic_event,
    process_gemini_chunk,
    process_openai_chunk,
)

__all__ = [
    "AnthropicRequestConverter",
    "GeminiRequestConverter",
    "OpenAIRequestConverter",
    "split_system_message",
    "AnthropicResponseConverter",
    "GeminiResponseConverter",
    "OpenAIResponseConverter",
    "StreamState",
    "convert_stream",
    "parse_stream_line",
    "process_anthropic_event",
    "process_gemini_chunk",
    "process_openai_chunk",
]
