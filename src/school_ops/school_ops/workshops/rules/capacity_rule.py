from __future__ import annotations

from ...core.exceptions import CapacityExceeded
from .base import EnrollmentRequest, EnrollmentRule


class CapacityRule(EnrollmentRule):
    def check(self, request: EnrollmentRequest) -> None:
        if request.workshop.is_full:
            raise CapacityExceeded(f"Workshop is full ({request.workshop.max_participants} seats)")
