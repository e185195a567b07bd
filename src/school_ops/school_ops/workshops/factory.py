from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .rules.active_rule import ActiveWorkshopRule
from .rules.base import EnrollmentRule
from .rules.capacity_rule import CapacityRule
from .rules.deadline_rule import DeadlineRule
from .rules.duplicate_rule import NotYetEnrolledRule
from .rules.eligibility_rule import GradeSectionRule


@dataclass
class EnrollmentRuleFactory:
    """Factory Pattern: ordered enrollment rule chain; the first failure wins."""

    def for_enroll(self) -> Sequence[EnrollmentRule]:
        return (
            ActiveWorkshopRule(),
            DeadlineRule(),
            GradeSectionRule(),
            NotYetEnrolledRule(),
            CapacityRule(),
        )
