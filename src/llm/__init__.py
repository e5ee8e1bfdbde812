"""Text generation service access.

Provides the client protocol, the Gemini API-key client, strict JSON
parsing of responses and conversation analysis with a keyword fallback.
"""

from src.llm.analysis import ConversationAnalyzer, heuristic_context
from src.llm.errors import (
    LlmApiError,
    LlmAuthError,
    LlmError,
    LlmProcessingError,
    LlmTimeoutError,
)
from src.llm.factory import create_llm_client, create_llm_client_from_settings
from src.llm.protocols import TextGenerationClient


__all__ = [
    "ConversationAnalyzer",
    "LlmApiError",
    "LlmAuthError",
    "LlmError",
    "LlmProcessingError",
    "LlmTimeoutError",
    "TextGenerationClient",
    "create_llm_client",
    "create_llm_client_from_settings",
    "heuristic_context",
]
