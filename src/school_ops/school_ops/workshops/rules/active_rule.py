from __future__ import annotations

from ...core.exceptions import WorkshopInactive
from .base import EnrollmentRequest, EnrollmentRule


class ActiveWorkshopRule(EnrollmentRule):
    def check(self, request: EnrollmentRequest) -> None:
        if not request.workshop.is_active:
            raise WorkshopInactive("This workshop is not active")
