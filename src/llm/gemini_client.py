"""Gemini text generation over the public REST endpoint."""

import random
import time
from http import HTTPStatus
from typing import Any

import httpx
import structlog

from src.config.constants import COMPONENT_LLM, DEFAULT_GEMINI_MODEL
from src.llm.errors import LlmApiError, LlmTimeoutError


logger = structlog.get_logger()

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"
DEFAULT_MODEL = DEFAULT_GEMINI_MODEL
DEFAULT_TIMEOUT_SECONDS = 30.0

_RETRYABLE = frozenset({HTTPStatus.TOO_MANY_REQUESTS, HTTPStatus.SERVICE_UNAVAILABLE})


class GeminiApiKeyClient:
    """TextGenerationClient backed by ``generateContent`` with an API key.

    Responses are requested as JSON (``responseMimeType``) at a low
    temperature, since every caller parses the answer against a schema.
    Rate-limit and overload responses are retried with jittered
    exponential backoff; every retry adds latency to the request being
    served, so ``max_retries`` stays small.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        *,
        temperature: float = 0.1,
        max_retries: int = 1,
        retry_base_delay: float = 0.25,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Gemini API key, sent as ``x-goog-api-key``.
            model: Gemini model identifier.
            temperature: Sampling temperature.
            max_retries: Retries after a 429 or 503 response.
            retry_base_delay: First backoff delay in seconds.
            http_client: Preconfigured httpx client (tests pass a mock).
        """
        self._api_key = api_key
        self.model = model
        self._temperature = temperature
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._http = http_client or httpx.Client()
        self._log = logger.bind(component=COMPONENT_LLM, subcomponent="gemini", model=model)

    def generate_content(
        self,
        prompt: str,
        system_instruction: str | None = None,
        *,
        timeout: float | None = None,
    ) -> str:
        """Generate a response for one prompt.

        Args:
            prompt: User prompt text.
            system_instruction: Optional system instruction.
            timeout: Per-attempt timeout in seconds.

        Returns:
            Text of the first candidate.

        Raises:
            LlmTimeoutError: If an attempt times out.
            LlmApiError: On transport errors, non-retryable statuses,
                exhausted retries or a response without text.
        """
        response = self._post_with_retries(
            f"{GEMINI_ENDPOINT}/{self.model}:generateContent",
            self._request_body(prompt, system_instruction),
            timeout or DEFAULT_TIMEOUT_SECONDS,
        )
        return self._first_candidate_text(response)

    def _request_body(self, prompt: str, system_instruction: str | None) -> dict[str, Any]:
        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self._temperature,
                "responseMimeType": "application/json",
            },
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        return body

    def _post_with_retries(
        self, url: str, body: dict[str, Any], timeout: float
    ) -> httpx.Response:
        headers = {"x-goog-api-key": self._api_key, "Content-Type": "application/json"}
        attempt = 0
        while True:
            try:
                response = self._http.post(url, headers=headers, json=body, timeout=timeout)
            except httpx.TimeoutException as exc:
                msg = f"Gemini request timed out after {timeout:g}s"
                raise LlmTimeoutError(msg) from exc
            except httpx.HTTPError as exc:
                msg = f"Gemini request failed: {exc}"
                raise LlmApiError(msg) from exc

            status = response.status_code
            if status == HTTPStatus.OK:
                return response
            if status not in _RETRYABLE or attempt >= self._max_retries:
                msg = f"Gemini API returned {status}"
                raise LlmApiError(msg, status_code=status)

            delay = self._retry_base_delay * (2**attempt) + random.uniform(0, 0.05)  # noqa: S311
            self._log.warning(
                "gemini_retrying", status=status, attempt=attempt + 1, delay_s=round(delay, 2)
            )
            time.sleep(delay)
            attempt += 1

    @staticmethod
    def _first_candidate_text(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError as exc:
            msg = "Gemini response body is not JSON"
            raise LlmApiError(msg) from exc

        if not isinstance(data, dict):
            msg = f"Gemini response body is a JSON {type(data).__name__}, not an object"
            raise LlmApiError(msg)

        try:
            candidates = data.get("candidates") or [{}]
            parts = (candidates[0].get("content") or {}).get("parts") or [{}]
            text = parts[0].get("text", "")
        except (AttributeError, IndexError, KeyError, TypeError) as exc:
            msg = "Gemini response has an unexpected shape"
            raise LlmApiError(msg) from exc
        if not isinstance(text, str) or not text:
            msg = "Gemini response contains no text"
            raise LlmApiError(msg)
        return text
