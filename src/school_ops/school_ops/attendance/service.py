from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_enum
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import DuplicateStudentInBatch, InvalidContext, Unauthorized, UserNotFound, ValidationError
from ..identity.access import require_role, require_student_visibility
from ..identity.repository import UserRepository
from ..workshops.repository import WorkshopRepository
from .model import (
    AttendanceAck,
    AttendanceContext,
    AttendanceEntry,
    AttendanceMark,
    AttendanceStats,
    HistoryItem,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChildrenSummary:
    per_child: Dict[str, AttendanceStats]
    combined: AttendanceStats


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        workshops: WorkshopRepository | None = None,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._workshops = workshops
        self._clock = clock

    def record_attendance(
        self,
        principal,
        work_date: date,
        context: AttendanceContext,
        records: Iterable,
    ) -> AttendanceAck:
        """Write one batch: at most one mark per student, all-or-nothing."""
        require_role(principal, Role.ADMIN, Role.TEACHER)
        context.validate()
        self._check_context_access(principal, context)

        marks = self._parse_marks(records)
        self._attendance.write_batch(work_date=work_date, context=context, marks=marks, written_at=self._clock())
        logger.info(
            "attendance recorded: date=%s context=%s marks=%d by=%s",
            work_date.isoformat(),
            context.key,
            len(marks),
            principal.id,
        )
        return AttendanceAck(date=work_date, context=context, written=len(marks))

    def _check_context_access(self, principal, context: AttendanceContext) -> None:
        if not context.is_workshop or self._workshops is None:
            return
        workshop = self._workshops.get_by_id(context.workshop_id)
        if not workshop:
            raise InvalidContext("Workshop does not exist")
        if principal.role == Role.TEACHER and workshop.teacher_id != principal.id:
            raise Unauthorized("Only the workshop's teacher can take its attendance")

    @staticmethod
    def _parse_marks(records: Iterable) -> List[AttendanceMark]:
        marks: List[AttendanceMark] = []
        seen = set()
        duplicates = []
        if not isinstance(records, (list, tuple)):
            raise ValidationError("Attendance records must be a list")
        for item in records:
            if isinstance(item, AttendanceMark):
                mark = item
            elif not isinstance(item, dict):
                raise ValidationError("Every record must be an object with studentId and status")
            else:
                student_id = str(item.get("studentId") or item.get("student_id") or "").strip()
                if not student_id:
                    raise ValidationError("Every record needs a student id")
                mark = AttendanceMark(
                    student_id=student_id,
                    status=require_enum(item.get("status"), AttendanceStatus, "Status"),
                )
            if mark.student_id in seen:
                duplicates.append(mark.student_id)
            seen.add(mark.student_id)
            marks.append(mark)

        if duplicates:
            raise DuplicateStudentInBatch(f"Students repeated in batch: {', '.join(sorted(set(duplicates)))}")
        if not marks:
            raise ValidationError("Attendance batch has no records")
        return marks

    def get_entry(self, principal, work_date: date, context: AttendanceContext) -> Optional[AttendanceEntry]:
        require_role(principal, Role.ADMIN, Role.TEACHER)
        context.validate()
        return self._attendance.get_entry(work_date, context)

    def get_student_history(self, principal, student_id: str) -> Sequence[HistoryItem]:
        """Newest date first; same date ordered by most recent write."""
        require_student_visibility(principal, student_id, self._users)
        marks = sorted(
            self._attendance.marks_for_student(student_id),
            key=lambda m: (m.date, m.write_seq),
            reverse=True,
        )
        return tuple(HistoryItem(date=m.date, context=m.context, status=m.status) for m in marks)

    def aggregate(self, principal, student_id: str) -> AttendanceStats:
        require_student_visibility(principal, student_id, self._users)
        return AttendanceStats.from_statuses(m.status for m in self._attendance.marks_for_student(student_id))

    def school_summary(self, principal) -> AttendanceStats:
        require_role(principal, Role.ADMIN)
        return AttendanceStats.from_counts(self._attendance.count_by_status())

    def children_summary(self, principal) -> ChildrenSummary:
        require_role(principal, Role.PARENT)
        parent = self._users.get_by_id(principal.id)
        if not parent:
            raise UserNotFound("User not found")

        per_child: Dict[str, AttendanceStats] = {}
        statuses: List[AttendanceStatus] = []
        for child in parent.children:
            child_statuses = [m.status for m in self._attendance.marks_for_student(child.id)]
            per_child[child.id] = AttendanceStats.from_statuses(child_statuses)
            statuses.extend(child_statuses)
        return ChildrenSummary(per_child=per_child, combined=AttendanceStats.from_statuses(statuses))
