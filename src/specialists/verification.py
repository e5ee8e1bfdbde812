"""Verification boost policy.

The boost is kept separate from the match score so its effect on
ranking can be audited and tuned on its own. It is deliberately not
clamped: verified specialists may total above 100 and unverified ones
below 0.
"""

from datetime import datetime

from src.config.schemas.scoring import VerificationPolicy
from src.data_model import days_between, utc_now
from src.specialists.models import (
    SpecialistCandidate,
    VerificationLevel,
    VerificationStatus,
)


class VerificationBooster:
    """Applies the verification policy table to a specialist."""

    def __init__(
        self, policy: VerificationPolicy | None = None, now: datetime | None = None
    ) -> None:
        """Initialize the booster.

        Args:
            policy: Boost table. Defaults are used if None.
            now: Reference time for the recency bonus. Defaults to now.
        """
        self._policy = policy or VerificationPolicy()
        self._now = now or utc_now()

    def boost(self, specialist: SpecialistCandidate) -> int:
        """Compute the verification boost.

        Args:
            specialist: Candidate to evaluate.

        Returns:
            Signed integer boost.
        """
        p = self._policy
        status = specialist.verification_status

        if status == VerificationStatus.PENDING:
            return p.pending_boost
        if status != VerificationStatus.VERIFIED:
            return p.unverified_penalty

        total = p.verified_base + self._level_boost(specialist.verification_level)
        if self.is_recently_verified(specialist):
            total += p.recent_bonus
        return total

    def is_recently_verified(self, specialist: SpecialistCandidate) -> bool:
        """Whether verification completed inside the recency window.

        A verification date in the future counts as recent.
        """
        if specialist.verification_date is None:
            return False
        age_days = days_between(specialist.verification_date, self._now)
        return age_days < self._policy.recent_window_days

    def _level_boost(self, level: VerificationLevel | None) -> int:
        if level == VerificationLevel.EXPERT:
            return self._policy.expert_level
        if level == VerificationLevel.ADVANCED:
            return self._policy.advanced_level
        return self._policy.basic_level


def verification_boost(
    specialist: SpecialistCandidate,
    policy: VerificationPolicy | None = None,
    now: datetime | None = None,
) -> int:
    """Pure function API for the verification boost."""
    return VerificationBooster(policy, now).boost(specialist)
