"""Strict JSON parsing for LLM responses.

The whole response (minus an optional markdown code fence) must be one
JSON document matching the expected schema. There is no best-effort
extraction of ``{...}`` or ``[...]`` fragments from surrounding prose:
anything else raises ``LlmProcessingError`` so the caller takes its
deterministic fallback.
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import TypeAdapter, ValidationError

from src.llm.errors import LlmProcessingError


T = TypeVar("T")

_FENCE = "```"


def strip_markdown_fences(text: str) -> str:
    """Strip a single surrounding markdown code fence.

    Args:
        text: Raw text potentially wrapped in code fences.

    Returns:
        Text with the fence (and its language tag) removed.
    """
    text = text.strip()
    if text.startswith(_FENCE):
        first_newline = text.find("\n")
        if first_newline != -1:
            text = text[first_newline + 1 :]
        if text.endswith(_FENCE):
            text = text[: -len(_FENCE)]
        text = text.strip()
    return text


def parse_strict(text: str, adapter: TypeAdapter[T]) -> T:
    """Parse an LLM response against a schema, failing closed.

    Args:
        text: Raw text from the LLM.
        adapter: Pydantic TypeAdapter for the expected shape.

    Returns:
        The validated value.

    Raises:
        LlmProcessingError: If the text is not exactly one valid document.
    """
    payload = strip_markdown_fences(text)
    if not payload:
        msg = "Empty LLM response"
        raise LlmProcessingError(msg)

    try:
        return adapter.validate_json(payload)
    except ValidationError as exc:
        msg = f"LLM response failed schema validation: {exc.error_count()} errors"
        raise LlmProcessingError(msg) from exc
