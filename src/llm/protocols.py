"""Structural type for text generation clients."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TextGenerationClient(Protocol):
    """Anything that turns a prompt into text.

    Conversation analysis and the semantic topic matcher take a client
    as a constructor argument; tests hand in stubs that return canned
    JSON or raise.
    """

    def generate_content(
        self,
        prompt: str,
        system_instruction: str | None = None,
        *,
        timeout: float | None = None,
    ) -> str:
        """Return the model's answer to ``prompt``.

        Raises:
            LlmApiError: If the call fails.
            LlmTimeoutError: If the call exceeds ``timeout`` seconds.
        """
        ...
