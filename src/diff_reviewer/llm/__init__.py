"""Text-generation backend clients."""

from diff_reviewer.llm.client import (
    DEFAULT_OPENROUTER_BASE_URL,
    AnthropicChatClient,
    ChatClient,
    OpenAIChatClient,
    create_chat_client,
)
from diff_reviewer.llm.exceptions import BackendConfigError, BackendError
from diff_reviewer.llm.request_log import JsonlRequestLog, NullRequestLog, RequestLogSink

__all__ = [
    "AnthropicChatClient",
    "BackendConfigError",
    "BackendError",
    "ChatClient",
    "DEFAULT_OPENROUTER_BASE_URL",
    "JsonlRequestLog",
    "NullRequestLog",
    "OpenAIChatClient",
    "RequestLogSink",
    "create_chat_client",
]
