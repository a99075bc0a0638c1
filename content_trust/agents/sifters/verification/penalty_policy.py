"""Shared policy for how fact-check verdicts count against content.

One definition of "confident false" and of the contested (mixed/unknown)
penalty weight, consumed by the value scorer, the policy resolver and the
review consensus resolver so the three never disagree.
"""

from dataclasses import dataclass
from typing import Iterable

from content_trust.config.settings import settings
from content_trust.data_management.schemas import FactCheck, Verdict


@dataclass(frozen=True)
class PenaltyPolicy:
    """
    Attributes:
        false_confidence_threshold: A false verdict counts once its
            confidence is strictly above this value
        contested_penalty_weight: Weight of a mixed/unknown verdict relative
            to a confident false one (0.0 exempts them)
    """

    false_confidence_threshold: float = 0.7
    contested_penalty_weight: float = 0.0

    @classmethod
    def from_settings(cls) -> "PenaltyPolicy":
        return cls(
            false_confidence_threshold=settings.false_confidence_threshold,
            contested_penalty_weight=settings.contested_penalty_weight,
        )

    def is_confident_false(self, fact_check: FactCheck) -> bool:
        return fact_check.is_confident_false(self.false_confidence_threshold)

    def confident_false(self, fact_checks: Iterable[FactCheck]) -> list[FactCheck]:
        return [fc for fc in fact_checks if self.is_confident_false(fc)]

    def weighted_false_count(self, fact_checks: Iterable[FactCheck]) -> float:
        """Confident-false checks count 1, contested checks count the contested weight."""
        total = 0.0
        for fc in fact_checks:
            if self.is_confident_false(fc):
                total += 1.0
            elif fc.verdict in (Verdict.MIXED, Verdict.UNKNOWN):
                total += self.contested_penalty_weight
        return total
