"""Data models for specialist matching and ranking."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import Field, field_validator

from src.data_model import StrictBaseModel, WireModel, ensure_utc


class VerificationStatus(str, Enum):
    """Credential verification state of a specialist."""

    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"


class VerificationLevel(str, Enum):
    """Depth of a completed verification."""

    BASIC = "basic"
    ADVANCED = "advanced"
    EXPERT = "expert"


class Severity(str, Enum):
    """Coarse urgency of a consultation request."""

    ROUTINE = "routine"
    URGENT = "urgent"
    CRITICAL = "critical"

    @property
    def is_urgent(self) -> bool:
        """Whether the severity calls for a fast response."""
        return self in (Severity.URGENT, Severity.CRITICAL)


def _lowercase_set(v: Any) -> frozenset[str]:
    return frozenset(str(item).strip().lower() for item in v or () if str(item).strip())


class SpecialistCandidate(WireModel):
    """A specialist as read from the registry.

    Attributes:
        id: Specialist identifier.
        specialty: Primary specialty (e.g. "Cardiology").
        sub_specialty: Optional narrower specialty.
        experience_years: Years in practice.
        rating: Average patient rating, 0..5.
        verification_status: Verification state; None is treated as unverified.
        verification_level: Level of a completed verification.
        verification_date: When verification completed.
        languages: Spoken languages, lowercased.
        consultation_types: Supported channels (video, chat, in-person...).
        response_time_bucket: Typical response time label (e.g. "< 30 mins").
        name: Display name.
        is_active: Whether the specialist accepts consultations.
        is_online: Whether the specialist is currently online.
    """

    id: Annotated[str, Field(min_length=1)]
    specialty: Annotated[str, Field(min_length=1)]
    sub_specialty: str | None = None
    experience_years: Annotated[float, Field(ge=0)] = 0
    rating: Annotated[float, Field(ge=0, le=5)] = 0
    verification_status: VerificationStatus | None = None
    verification_level: VerificationLevel | None = None
    verification_date: datetime | None = None
    languages: frozenset[str] = frozenset()
    consultation_types: frozenset[str] = frozenset()
    response_time_bucket: str = ""
    name: str = ""
    is_active: bool = True
    is_online: bool = False

    @field_validator("specialty", mode="before")
    @classmethod
    def strip_specialty(cls, v: Any) -> Any:
        """Strip surrounding whitespace."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("languages", "consultation_types", mode="before")
    @classmethod
    def lowercase_items(cls, v: Any) -> frozenset[str]:
        """Normalize set members to lowercase."""
        return _lowercase_set(v)

    @field_validator("verification_date", mode="after")
    @classmethod
    def to_utc(cls, v: datetime | None) -> datetime | None:
        """Store timestamps as aware UTC datetimes."""
        return ensure_utc(v) if v is not None else None

    @property
    def is_verified(self) -> bool:
        """Whether verification has completed."""
        return self.verification_status == VerificationStatus.VERIFIED


class RecommendationContext(WireModel):
    """What the analysis step extracted from a patient conversation.

    Attributes:
        recommended_specialty: Specialty to route to.
        severity: Urgency classification.
        key_symptoms: Symptom phrases.
        health_topics: Health topic phrases.
        confidence: Confidence reported by the analysis step.
    """

    recommended_specialty: Annotated[str, Field(min_length=1)] = "General Physician"
    severity: Severity = Severity.ROUTINE
    key_symptoms: tuple[str, ...] = ()
    health_topics: tuple[str, ...] = ()
    confidence: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0

    @field_validator("recommended_specialty", mode="before")
    @classmethod
    def strip_specialty(cls, v: Any) -> Any:
        """Strip surrounding whitespace."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("key_symptoms", "health_topics", mode="before")
    @classmethod
    def clean_phrases(cls, v: Any) -> tuple[str, ...]:
        """Drop blank phrases."""
        return tuple(str(item).strip() for item in v or () if str(item).strip())


class ScoredResult(WireModel):
    """A ranked specialist.

    Attributes:
        candidate_id: Specialist identifier.
        match_score: Intrinsic fit, 0..100.
        verification_boost: Verification adjustment (may be negative).
        total_score: match_score + verification_boost.
        rank: 1-based position after sorting.
        is_verified: Verification annotation for display.
        verification_level: Verification level annotation.
        specialty: Specialty annotation.
        name: Display name annotation.
    """

    candidate_id: str
    match_score: Annotated[int, Field(ge=0, le=100)]
    verification_boost: int
    total_score: int
    rank: Annotated[int, Field(ge=1)]
    is_verified: bool = False
    verification_level: VerificationLevel | None = None
    specialty: str = ""
    name: str = ""


class RecommendationResult(WireModel):
    """Outcome of a recommendation request.

    Attributes:
        results: Ranked specialists.
        no_match: True when neither the specialty nor the general pool had candidates.
        verification_impact: True when verification changed the order.
        fallback_used: True when the general-physician pool was used.
        context: The context the ranking was computed for.
    """

    results: list[ScoredResult] = Field(default_factory=list)
    no_match: bool = False
    verification_impact: bool = False
    fallback_used: bool = False
    context: RecommendationContext
