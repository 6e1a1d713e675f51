"""Tests for backend chat clients: retry policy, request log, provider selection."""

import json
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest
from tenacity import wait_none

from diff_reviewer.llm.client import (
    AnthropicChatClient,
    OpenAIChatClient,
    create_chat_client,
)
from diff_reviewer.llm.exceptions import BackendConfigError, BackendError
from diff_reviewer.llm.request_log import JsonlRequestLog
from diff_reviewer.models import ChatMessage

MESSAGES = [
    ChatMessage(role="system", content="Be terse."),
    ChatMessage(role="user", content="Review this."),
]


def _status_error(status: int) -> openai.APIStatusError:
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    response = httpx.Response(status, request=request, json={"error": {"message": "x"}})
    return openai.APIStatusError("failure", response=response, body=None)


def _completion(content: str) -> MagicMock:
    response = MagicMock()
    choice = MagicMock()
    choice.message.content = content
    response.choices = [choice]
    return response


def _openai_client(**kwargs) -> OpenAIChatClient:
    client = OpenAIChatClient(api_key="test-key", retry_wait=wait_none(), **kwargs)
    client._client = MagicMock()
    return client


class TestOpenAIChatClient:
    """Tests for the OpenAI-compatible client."""

    def test_returns_trimmed_content(self):
        client = _openai_client()
        client._client.chat.completions.create.return_value = _completion("  {}  \n")

        assert client.complete("m", MESSAGES, 0.2) == "{}"
        kwargs = client._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "m"
        assert kwargs["temperature"] == 0.2
        assert kwargs["messages"][0] == {"role": "system", "content": "Be terse."}

    def test_retries_rate_limit_then_succeeds(self):
        """429 is retried; the third attempt succeeds."""
        client = _openai_client()
        client._client.chat.completions.create.side_effect = [
            _status_error(429),
            _status_error(503),
            _completion('{"comments": []}'),
        ]
        assert client.complete("m", MESSAGES, 0.2) == '{"comments": []}'
        assert client._client.chat.completions.create.call_count == 3

    def test_gives_up_after_max_attempts(self):
        client = _openai_client()
        client._client.chat.completions.create.side_effect = _status_error(500)
        with pytest.raises(BackendError) as exc_info:
            client.complete("m", MESSAGES, 0.2)
        assert exc_info.value.retryable is True
        assert client._client.chat.completions.create.call_count == 3

    def test_client_error_not_retried(self):
        """4xx other than 429 fails on the first attempt."""
        client = _openai_client()
        client._client.chat.completions.create.side_effect = _status_error(400)
        with pytest.raises(BackendError) as exc_info:
            client.complete("m", MESSAGES, 0.2)
        assert exc_info.value.retryable is False
        assert client._client.chat.completions.create.call_count == 1

    def test_connection_error_retried(self):
        client = _openai_client()
        request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
        client._client.chat.completions.create.side_effect = [
            openai.APIConnectionError(request=request),
            _completion("ok"),
        ]
        assert client.complete("m", MESSAGES, 0.2) == "ok"

    @pytest.mark.parametrize("content", ["", "   ", None])
    def test_empty_content_raises(self, content):
        client = _openai_client()
        client._client.chat.completions.create.return_value = _completion(content)
        with pytest.raises(BackendError, match="empty"):
            client.complete("m", MESSAGES, 0.2)

    def test_missing_model_or_messages(self):
        client = _openai_client()
        with pytest.raises(BackendError, match="model"):
            client.complete(" ", MESSAGES, 0.2)
        with pytest.raises(BackendError, match="messages"):
            client.complete("m", [], 0.2)
        client._client.chat.completions.create.assert_not_called()

    def test_missing_api_key(self):
        with pytest.raises(BackendConfigError):
            OpenAIChatClient(api_key="")

    def test_request_log_records_payload(self, tmp_path):
        """Every request is appended to the JSONL sink before sending."""
        log_path = tmp_path / "logs" / "requests.jsonl"
        client = _openai_client(request_log=JsonlRequestLog(str(log_path)))
        client._client.chat.completions.create.return_value = _completion("ok")

        client.complete("m", MESSAGES, 0.2)
        client.complete("m", MESSAGES, 0.2)

        lines = log_path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        entry = json.loads(lines[0])
        assert entry["endpoint"] == "https://openrouter.ai/api/v1/chat/completions"
        assert entry["payload"]["model"] == "m"
        assert entry["payload"]["messages"][1]["content"] == "Review this."
        assert "timestamp" in entry


class TestAnthropicChatClient:
    def test_system_messages_folded(self):
        client = AnthropicChatClient(api_key="test-key", retry_wait=wait_none())
        client._client = MagicMock()
        block = MagicMock()
        block.type = "text"
        block.text = '{"comments": []}'
        client._client.messages.create.return_value = MagicMock(content=[block])

        assert client.complete("claude", MESSAGES, 0.2) == '{"comments": []}'
        kwargs = client._client.messages.create.call_args.kwargs
        assert kwargs["system"] == "Be terse."
        assert kwargs["messages"] == [{"role": "user", "content": "Review this."}]
        assert kwargs["max_tokens"] == 4096


class TestCreateChatClient:
    """Tests for environment-driven provider selection."""

    def test_auto_prefers_openrouter(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "or-key")
        monkeypatch.setenv("OPENAI_API_KEY", "oa-key")
        monkeypatch.delenv("OPENROUTER_BASE_URL", raising=False)
        client = create_chat_client("auto")
        assert isinstance(client, OpenAIChatClient)
        assert client.base_url == "https://openrouter.ai/api/v1"

    def test_auto_falls_back_to_anthropic(self, monkeypatch):
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.setenv("ANTHROPIC_API_KEY", "an-key")
        assert isinstance(create_chat_client("auto"), AnthropicChatClient)

    def test_no_keys(self, monkeypatch):
        for name in ("OPENROUTER_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"):
            monkeypatch.delenv(name, raising=False)
        with pytest.raises(BackendConfigError):
            create_chat_client("auto")

    def test_explicit_provider_without_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(BackendConfigError):
            create_chat_client("anthropic")

    def test_custom_openrouter_base_url(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "or-key")
        monkeypatch.setenv("OPENROUTER_BASE_URL", "https://proxy.example/v1/")
        client = create_chat_client("openrouter")
        assert client.endpoint == "https://proxy.example/v1/chat/completions"
