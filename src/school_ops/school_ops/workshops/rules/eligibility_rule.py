from __future__ import annotations

from typing import Optional, Sequence

from ...common.text import normalize_secret
from ...core.exceptions import IneligibleGradeSection
from .base import EnrollmentRequest, EnrollmentRule


def _allows(allowed: Optional[Sequence[str]], value: Optional[str]) -> bool:
    if not allowed:
        return True
    return normalize_secret(value or "") in {normalize_secret(a) for a in allowed}


class GradeSectionRule(EnrollmentRule):
    def check(self, request: EnrollmentRequest) -> None:
        workshop = request.workshop
        if not workshop.restrict_by_grade_section:
            return
        student = request.student
        if not _allows(workshop.allowed_grades, student.grade):
            raise IneligibleGradeSection(f"Grade {student.grade or '-'} is not allowed in this workshop")
        if not _allows(workshop.allowed_sections, student.section):
            raise IneligibleGradeSection(f"Section {student.section or '-'} is not allowed in this workshop")
