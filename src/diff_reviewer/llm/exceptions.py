"""Exceptions for text-generation backend calls."""


class BackendError(Exception):
    """Raised when a chat-completion call fails.

    retryable is True for rate limiting, server errors and transport
    failures; client errors fail immediately.
    """

    def __init__(self, message: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class BackendConfigError(BackendError):
    """Raised when no usable backend can be configured (missing keys, bad provider)."""
