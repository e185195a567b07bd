from __future__ import annotations

from ...core.exceptions import AlreadyEnrolled
from .base import EnrollmentRequest, EnrollmentRule


class NotYetEnrolledRule(EnrollmentRule):
    def check(self, request: EnrollmentRequest) -> None:
        if request.workshop.has_participant(request.student.id):
            raise AlreadyEnrolled("Student is already enrolled in this workshop")
