"""OpenAI API exceptions."""

import openai

from helpcopilot.exceptions import HelpCopilotError


class OpenAIError(HelpCopilotError):
    """Base exception for OpenAI API errors."""

    pass


class OpenAIAuthenticationError(OpenAIError):
    """Exception raised for authentication errors."""

    pass


class OpenAIRunError(OpenAIError):
    """Exception raised when an assistant run fails with a non-retryable error."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error)
        self.code = code


class OpenAIRateLimitError(OpenAIRunError):
    """Exception raised when rate limiting persists past the retry ceiling."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message, code="rate_limit_exceeded")
        self.attempts = attempts


def from_openai_error(action: str, error: Exception) -> OpenAIError:
    """Map an exception raised by the openai SDK onto this package's hierarchy."""
    message = f"{action} failed: {error}"
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return OpenAIAuthenticationError(message, error)
    return OpenAIError(message, error)
