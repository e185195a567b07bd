from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import WorkshopStatus


@dataclass(frozen=True)
class Workshop:
    """Domain entity: a workshop and its roster.

    ``participants`` keeps enrollment order. ``allowed_grades`` /
    ``allowed_sections`` of None or empty mean no restriction on that axis.
    """

    id: str
    title: str
    teacher_id: str
    schedule: str
    max_participants: int
    enrollment_deadline: datetime
    participants: Tuple[str, ...] = field(default_factory=tuple)
    status: WorkshopStatus = WorkshopStatus.ACTIVE
    restrict_by_grade_section: bool = False
    allowed_grades: Optional[Tuple[str, ...]] = None
    allowed_sections: Optional[Tuple[str, ...]] = None
    description: str = ""
    image_url: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == WorkshopStatus.ACTIVE

    @property
    def is_full(self) -> bool:
        return len(self.participants) >= self.max_participants

    @property
    def seats_left(self) -> int:
        return max(self.max_participants - len(self.participants), 0)

    def has_participant(self, student_id: str) -> bool:
        return student_id in self.participants

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "teacherId": self.teacher_id,
            "schedule": self.schedule,
            "maxParticipants": self.max_participants,
            "enrollmentDeadline": self.enrollment_deadline.isoformat(),
            "participants": list(self.participants),
            "status": self.status.value,
            "restrictByGradeSection": self.restrict_by_grade_section,
            "allowedGrades": list(self.allowed_grades) if self.allowed_grades is not None else None,
            "allowedSections": list(self.allowed_sections) if self.allowed_sections is not None else None,
            "imageUrl": self.image_url,
        }
