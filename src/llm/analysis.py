"""Conversation analysis producing a RecommendationContext.

The LLM answer must be exactly one JSON object of the expected shape.
When no client is configured, or the call or parse fails, a keyword
heuristic produces the context instead.
"""

from typing import Annotated

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from src.config.constants import COMPONENT_LLM
from src.llm.errors import LlmApiError
from src.llm.json_utils import parse_strict
from src.llm.prompts import CONVERSATION_SYSTEM_INSTRUCTION, build_conversation_prompt
from src.llm.protocols import TextGenerationClient
from src.specialists.models import RecommendationContext, Severity


logger = structlog.get_logger()

DEFAULT_SPECIALTY = "General Physician"
HEURISTIC_CONFIDENCE = 0.7

# First matching row wins
SPECIALTY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Cardiology", ("heart", "chest", "blood pressure")),
    ("Dermatology", ("skin", "rash", "acne")),
    ("Psychiatry", ("mental", "anxiety", "depression")),
    ("Gastroenterology", ("stomach", "digest", "gut")),
    ("Pediatrics", ("child", "baby", "pediatric")),
)
CRITICAL_KEYWORDS = ("emergency", "severe", "critical")
URGENT_KEYWORDS = ("urgent", "pain", "fever")
SYMPTOM_KEYWORDS = ("headache", "fever", "pain", "cough", "rash", "nausea", "dizziness")


class ConversationAnalysis(BaseModel):
    """Analysis object as returned by the LLM."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, str_strip_whitespace=True)

    primary_specialty: Annotated[str, Field(min_length=1, alias="primarySpecialty")]
    severity: Severity
    key_symptoms: list[str] = Field(default_factory=list, alias="keySymptoms")
    health_topics: list[str] = Field(default_factory=list, alias="healthTopics")
    confidence: Annotated[float, Field(ge=0.0, le=1.0)] = HEURISTIC_CONFIDENCE


_ANALYSIS_ADAPTER = TypeAdapter(ConversationAnalysis)


def heuristic_context(conversation: str) -> RecommendationContext:
    """Derive a recommendation context from keywords alone.

    Args:
        conversation: Conversation transcript.

    Returns:
        Context with the fixed heuristic confidence.
    """
    text = conversation.lower()

    specialty = DEFAULT_SPECIALTY
    for candidate, keywords in SPECIALTY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            specialty = candidate
            break

    if any(keyword in text for keyword in CRITICAL_KEYWORDS):
        severity = Severity.CRITICAL
    elif any(keyword in text for keyword in URGENT_KEYWORDS):
        severity = Severity.URGENT
    else:
        severity = Severity.ROUTINE

    return RecommendationContext(
        recommended_specialty=specialty,
        severity=severity,
        key_symptoms=tuple(s for s in SYMPTOM_KEYWORDS if s in text),
        confidence=HEURISTIC_CONFIDENCE,
    )


class ConversationAnalyzer:
    """Extracts specialty, severity and topics from a conversation."""

    def __init__(self, client: TextGenerationClient | None = None) -> None:
        """Initialize the analyzer.

        Args:
            client: Text generation client. Without one only the
                heuristic is used.
        """
        self._client = client
        self._log = logger.bind(component=COMPONENT_LLM, subcomponent="analysis")

    def analyze(self, conversation: str) -> RecommendationContext:
        """Analyze a conversation.

        Args:
            conversation: Conversation transcript.

        Returns:
            RecommendationContext from the LLM, or from the heuristic on
            any failure.
        """
        if self._client is None or not conversation.strip():
            return heuristic_context(conversation)

        try:
            raw = self._client.generate_content(
                build_conversation_prompt(conversation),
                system_instruction=CONVERSATION_SYSTEM_INSTRUCTION,
            )
            analysis = parse_strict(raw, _ANALYSIS_ADAPTER)
            context = RecommendationContext(
                recommended_specialty=analysis.primary_specialty,
                severity=analysis.severity,
                key_symptoms=tuple(analysis.key_symptoms),
                health_topics=tuple(analysis.health_topics),
                confidence=analysis.confidence,
            )
        except LlmApiError as exc:
            self._log.warning(
                "conversation_analysis_api_error",
                error=str(exc),
                status_code=exc.status_code,
            )
            return heuristic_context(conversation)
        except Exception as exc:  # noqa: BLE001
            self._log.warning(
                "conversation_analysis_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return heuristic_context(conversation)

        self._log.info(
            "conversation_analyzed",
            specialty=context.recommended_specialty,
            severity=context.severity.value,
            confidence=context.confidence,
        )
        return context
