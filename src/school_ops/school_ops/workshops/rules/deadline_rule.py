from __future__ import annotations

from ...core.exceptions import DeadlinePassed
from .base import EnrollmentRequest, EnrollmentRule


class DeadlineRule(EnrollmentRule):
    """Enrollment is open up to and including the deadline instant."""

    def check(self, request: EnrollmentRequest) -> None:
        if request.now > request.workshop.enrollment_deadline:
            raise DeadlinePassed("The enrollment deadline has passed")
