"""Errors raised while talking to the text generation service.

Callers that have a deterministic fallback catch ``LlmError``; the
subclasses say which step failed.
"""


class LlmError(Exception):
    """Base class for text generation failures."""


class LlmAuthError(LlmError):
    """No usable credentials are configured."""


class LlmApiError(LlmError):
    """The service call failed or returned no usable text.

    Attributes:
        status_code: HTTP status of the failed response, 0 for transport errors.
    """

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class LlmTimeoutError(LlmApiError):
    """The call did not finish within its timeout."""


class LlmProcessingError(LlmError):
    """The answer is not exactly one JSON document of the expected shape."""
