"""Chat-completion clients for the review backend.

Both clients expose the same `complete(model, messages, temperature)` call
and share the retry policy: up to `max_attempts` tries with exponential
backoff on rate limiting, server errors and transport failures.
"""

import logging
import os
from typing import Any, Literal, Protocol

import anthropic
import openai
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from diff_reviewer.llm.exceptions import BackendConfigError, BackendError
from diff_reviewer.llm.request_log import NullRequestLog, RequestLogSink
from diff_reviewer.models.run_models import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_REQUEST_TIMEOUT = 90.0
DEFAULT_MAX_ATTEMPTS = 3
MAX_RESPONSE_TOKENS = 4096

Provider = Literal["auto", "openrouter", "openai", "anthropic"]


class ChatClient(Protocol):
    def complete(self, model: str, messages: list[ChatMessage], temperature: float) -> str: ...


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, BackendError) and exc.retryable


def _status_error(exc: Any, provider: str) -> BackendError:
    status = exc.status_code
    retryable = status == 429 or status >= 500
    return BackendError(f"{provider} request failed ({status}): {exc.message}", retryable=retryable)


class _RetryingChatClient:
    """Shared validation, request logging and retry around a provider call."""

    provider = "backend"
    endpoint = ""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        request_log: RequestLogSink | None = None,
        retry_wait: wait_base | None = None,
    ) -> None:
        self.max_attempts = max(1, max_attempts)
        self.request_log: RequestLogSink = request_log or NullRequestLog()
        self._retry_wait = (
            retry_wait if retry_wait is not None else wait_exponential(multiplier=0.5, max=4)
        )

    def complete(self, model: str, messages: list[ChatMessage], temperature: float) -> str:
        """Send one chat request and return the trimmed response text.

        Raises:
            BackendError: On invalid input, exhausted retries, a client error
                or an empty response.
        """
        if not model.strip():
            raise BackendError(f"{self.provider} model is required")
        if not messages:
            raise BackendError(f"{self.provider} messages are required")

        self.request_log.record(self.endpoint, {
            "model": model,
            "temperature": temperature,
            "messages": [message.model_dump() for message in messages],
        })
        logger.debug("Sending %d messages to %s model=%s", len(messages), self.provider, model)

        retrying = Retrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=self._retry_wait,
            before_sleep=self._log_retry,
            reraise=True,
        )
        content = retrying(self._send, model, messages, temperature)
        content = (content or "").strip()
        if not content:
            raise BackendError(f"{self.provider} response content is empty")
        return content

    def _log_retry(self, retry_state: Any) -> None:
        logger.warning(
            "%s call failed (attempt %d/%d), retrying: %s",
            self.provider,
            retry_state.attempt_number,
            self.max_attempts,
            retry_state.outcome.exception() if retry_state.outcome else "unknown error",
        )

    def _send(self, model: str, messages: list[ChatMessage], temperature: float) -> str:
        raise NotImplementedError


class OpenAIChatClient(_RetryingChatClient):
    """OpenAI-compatible chat completions (OpenRouter by default)."""

    provider = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        request_log: RequestLogSink | None = None,
        retry_wait: wait_base | None = None,
    ) -> None:
        super().__init__(max_attempts=max_attempts, request_log=request_log, retry_wait=retry_wait)
        if not api_key:
            raise BackendConfigError("API key is missing for the OpenAI-compatible backend")
        self.base_url = (base_url or DEFAULT_OPENROUTER_BASE_URL).rstrip("/")
        self.endpoint = f"{self.base_url}/chat/completions"
        # SDK retries are disabled; the retry policy above owns them
        self._client = openai.OpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=timeout,
            max_retries=0,
        )

    def _send(self, model: str, messages: list[ChatMessage], temperature: float) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=[message.model_dump() for message in messages],
                temperature=temperature,
            )
        except openai.APIStatusError as e:
            raise _status_error(e, self.provider) from e
        except openai.APIConnectionError as e:
            raise BackendError(f"{self.provider} transport error: {e}", retryable=True) from e

        if not response.choices:
            raise BackendError(f"{self.provider} response missing choices")
        return response.choices[0].message.content or ""


class AnthropicChatClient(_RetryingChatClient):
    """Anthropic Messages API. System messages are folded into `system`."""

    provider = "anthropic"
    endpoint = "https://api.anthropic.com/v1/messages"

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        request_log: RequestLogSink | None = None,
        retry_wait: wait_base | None = None,
    ) -> None:
        super().__init__(max_attempts=max_attempts, request_log=request_log, retry_wait=retry_wait)
        if not api_key:
            raise BackendConfigError("ANTHROPIC_API_KEY is missing")
        self._client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)

    def _send(self, model: str, messages: list[ChatMessage], temperature: float) -> str:
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        conversation = [
            {"role": m.role, "content": m.content} for m in messages if m.role != "system"
        ]
        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": MAX_RESPONSE_TOKENS,
            "temperature": temperature,
            "messages": conversation,
        }
        if system:
            kwargs["system"] = system
        try:
            response = self._client.messages.create(**kwargs)
        except anthropic.APIStatusError as e:
            raise _status_error(e, self.provider) from e
        except anthropic.APIConnectionError as e:
            raise BackendError(f"{self.provider} transport error: {e}", retryable=True) from e

        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )


def create_chat_client(
    provider: Provider = "auto",
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    request_log: RequestLogSink | None = None,
) -> ChatClient:
    """Build a chat client from environment credentials.

    auto prefers OPENROUTER_API_KEY, then OPENAI_API_KEY, then ANTHROPIC_API_KEY.

    Raises:
        BackendConfigError: If the provider is unknown or its key is not set.
    """
    openrouter_key = os.getenv("OPENROUTER_API_KEY")
    openai_key = os.getenv("OPENAI_API_KEY")
    anthropic_key = os.getenv("ANTHROPIC_API_KEY")

    if provider == "auto":
        if openrouter_key:
            provider = "openrouter"
        elif openai_key:
            provider = "openai"
        elif anthropic_key:
            provider = "anthropic"
        else:
            raise BackendConfigError(
                "No backend API key found. Set OPENROUTER_API_KEY, OPENAI_API_KEY "
                "or ANTHROPIC_API_KEY."
            )

    if provider == "openrouter":
        return OpenAIChatClient(
            api_key=openrouter_key,
            base_url=os.getenv("OPENROUTER_BASE_URL") or DEFAULT_OPENROUTER_BASE_URL,
            timeout=timeout,
            request_log=request_log,
        )
    if provider == "openai":
        return OpenAIChatClient(
            api_key=openai_key,
            base_url=os.getenv("OPENAI_BASE_URL") or "https://api.openai.com/v1",
            timeout=timeout,
            request_log=request_log,
        )
    if provider == "anthropic":
        return AnthropicChatClient(api_key=anthropic_key, timeout=timeout, request_log=request_log)

    raise BackendConfigError(f"Unsupported provider: {provider}")
