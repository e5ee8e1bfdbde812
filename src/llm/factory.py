"""Construction of text generation clients from credentials or settings."""

import structlog

from src.config.constants import COMPONENT_LLM
from src.llm.errors import LlmAuthError
from src.llm.gemini_client import DEFAULT_MODEL, GeminiApiKeyClient
from src.llm.protocols import TextGenerationClient
from src.settings import AppSettings


logger = structlog.get_logger()


def create_llm_client(
    *,
    api_key: str | None = None,
    model: str = DEFAULT_MODEL,
) -> TextGenerationClient:
    """Create a Gemini client for an API key.

    Args:
        api_key: Gemini API key.
        model: Gemini model identifier.

    Returns:
        A ready client.

    Raises:
        LlmAuthError: If no API key is given.
    """
    if not api_key:
        msg = "No Gemini credentials configured (set GEMINI_API_KEY)"
        raise LlmAuthError(msg)

    logger.info("llm_client_created", component=COMPONENT_LLM, model=model)
    return GeminiApiKeyClient(api_key=api_key, model=model)


def create_llm_client_from_settings(settings: AppSettings) -> TextGenerationClient | None:
    """Create a client when the environment carries credentials.

    Returns:
        A client, or None so callers use their keyword fallbacks.
    """
    if not settings.llm_enabled:
        logger.info("llm_client_disabled", component=COMPONENT_LLM, reason="no_api_key")
        return None
    return create_llm_client(api_key=settings.gemini_api_key, model=settings.gemini_model)
