from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_datetime, to_local_naive
from ..common.validators import require_enum, require_non_empty, require_positive_int
from ..core.enums import Role, WorkshopStatus
from ..core.exceptions import ConflictError, NotEnrolled, Unauthorized, UserNotFound, ValidationError, WorkshopNotFound
from ..identity.access import require_role, require_student_visibility
from ..identity.model import Principal
from ..identity.repository import UserRepository
from .factory import EnrollmentRuleFactory
from .model import Workshop
from .repository import WorkshopRepository
from .rules.base import EnrollmentRequest

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {
    "title",
    "description",
    "teacher_id",
    "schedule",
    "max_participants",
    "enrollment_deadline",
    "restrict_by_grade_section",
    "allowed_grades",
    "allowed_sections",
    "status",
    "image_url",
}


def _as_deadline(value) -> datetime:
    if isinstance(value, datetime):
        return to_local_naive(value)
    return parse_iso_datetime(value)


def _as_allowed(values) -> Optional[tuple]:
    if values is None:
        return None
    if isinstance(values, str):
        values = values.split(",")
    cleaned = tuple(str(v).strip() for v in values if str(v).strip())
    return cleaned or None


class WorkshopService:
    """Use case: workshop administration and role-scoped listings."""

    def __init__(
        self,
        workshops: WorkshopRepository,
        users: UserRepository,
        *,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ):
        self._workshops = workshops
        self._users = users
        self._new_id = id_factory

    def _require_teacher(self, teacher_id: str) -> str:
        teacher_id = require_non_empty(teacher_id, "Teacher")
        teacher = self._users.get_by_id(teacher_id)
        if not teacher:
            raise UserNotFound("Teacher not found")
        if teacher.role != Role.TEACHER:
            raise ValidationError("Assigned user is not a teacher")
        return teacher_id

    def create_workshop(
        self,
        principal: Principal,
        *,
        title: str,
        teacher_id: str,
        schedule: str,
        max_participants,
        enrollment_deadline,
        description: str = "",
        restrict_by_grade_section: bool = False,
        allowed_grades=None,
        allowed_sections=None,
        status=WorkshopStatus.ACTIVE,
        image_url: Optional[str] = None,
    ) -> Workshop:
        require_role(principal, Role.ADMIN)
        workshop = Workshop(
            id=self._new_id(),
            title=require_non_empty(title, "Title"),
            teacher_id=self._require_teacher(teacher_id),
            schedule=require_non_empty(schedule, "Schedule"),
            max_participants=require_positive_int(max_participants, "Max participants"),
            enrollment_deadline=_as_deadline(enrollment_deadline),
            status=require_enum(status, WorkshopStatus, "Status"),
            restrict_by_grade_section=bool(restrict_by_grade_section),
            allowed_grades=_as_allowed(allowed_grades),
            allowed_sections=_as_allowed(allowed_sections),
            description=(description or "").strip(),
            image_url=image_url or None,
        )
        self._workshops.add(workshop)
        logger.info("workshop created: id=%s teacher=%s seats=%d", workshop.id, workshop.teacher_id, workshop.max_participants)
        return workshop

    def update_workshop(self, principal: Principal, workshop_id: str, **changes) -> Workshop:
        require_role(principal, Role.ADMIN)
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown workshop fields: {', '.join(sorted(unknown))}")

        clean = dict(changes)
        if "title" in clean:
            clean["title"] = require_non_empty(clean["title"], "Title")
        if "schedule" in clean:
            clean["schedule"] = require_non_empty(clean["schedule"], "Schedule")
        if "teacher_id" in clean:
            clean["teacher_id"] = self._require_teacher(clean["teacher_id"])
        if "max_participants" in clean:
            clean["max_participants"] = require_positive_int(clean["max_participants"], "Max participants")
        if "enrollment_deadline" in clean:
            clean["enrollment_deadline"] = _as_deadline(clean["enrollment_deadline"])
        if "status" in clean:
            clean["status"] = require_enum(clean["status"], WorkshopStatus, "Status")
        if "restrict_by_grade_section" in clean:
            clean["restrict_by_grade_section"] = bool(clean["restrict_by_grade_section"])
        for key in ("allowed_grades", "allowed_sections"):
            if key in clean:
                clean[key] = _as_allowed(clean[key])

        def mutate(current: Workshop) -> Workshop:
            updated = replace(current, **clean)
            if len(current.participants) > updated.max_participants:
                raise ConflictError(
                    f"Cannot lower capacity to {updated.max_participants}: "
                    f"{len(current.participants)} students are enrolled"
                )
            return updated

        updated = self._workshops.update(workshop_id, mutate)
        if updated is None:
            raise WorkshopNotFound("Workshop not found")
        logger.info("workshop updated: id=%s fields=%s", workshop_id, ",".join(sorted(clean)))
        return updated

    def set_status(self, principal: Principal, workshop_id: str, status) -> Workshop:
        return self.update_workshop(principal, workshop_id, status=status)

    def delete_workshop(self, principal: Principal, workshop_id: str) -> None:
        require_role(principal, Role.ADMIN)
        if not self._workshops.delete_by_id(workshop_id):
            raise WorkshopNotFound("Workshop not found")
        logger.info("workshop deleted: id=%s by=%s", workshop_id, principal.id)

    def get_workshop(self, workshop_id: str) -> Workshop:
        workshop = self._workshops.get_by_id(workshop_id)
        if not workshop:
            raise WorkshopNotFound("Workshop not found")
        return workshop

    def visible_workshops(self, principal: Principal) -> Sequence[Workshop]:
        workshops = self._workshops.list_all()
        if principal.role == Role.ADMIN:
            return list(workshops)
        if principal.role == Role.TEACHER:
            return [w for w in workshops if w.teacher_id == principal.id]
        if principal.role == Role.STUDENT:
            return [w for w in workshops if w.is_active]

        parent = self._users.get_by_id(principal.id)
        child_ids = {c.id for c in parent.children} if parent else set()
        return [w for w in workshops if child_ids.intersection(w.participants)]

    def roster(self, principal: Principal, workshop_id: str) -> Sequence[str]:
        require_role(principal, Role.ADMIN, Role.TEACHER)
        workshop = self.get_workshop(workshop_id)
        if principal.role == Role.TEACHER and workshop.teacher_id != principal.id:
            raise Unauthorized("Only the workshop's teacher can see its roster")
        return list(workshop.participants)

    def enrolled_workshops(self, principal: Principal, student_id: str) -> Sequence[Workshop]:
        require_student_visibility(principal, student_id, self._users)
        return list(self._workshops.list_for_student(student_id))


class EnrollmentService:
    """Use case: enroll/unenroll a student under capacity, deadline and eligibility."""

    def __init__(
        self,
        workshops: WorkshopRepository,
        users: UserRepository,
        *,
        rule_factory: EnrollmentRuleFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._workshops = workshops
        self._users = users
        self._factory = rule_factory or EnrollmentRuleFactory()
        self._clock = clock

    def enroll(self, principal: Principal, workshop_id: str, student_id: str, *, now: datetime | None = None) -> Workshop:
        if principal.role == Role.STUDENT:
            if principal.id != student_id:
                raise Unauthorized("Students can only enroll themselves")
        else:
            require_role(principal, Role.ADMIN)

        student = self._users.get_by_id(student_id)
        if not student or student.role != Role.STUDENT:
            raise UserNotFound("Student not found")

        now = now or self._clock()
        rules = self._factory.for_enroll()

        def mutate(current: Workshop):
            request = EnrollmentRequest(workshop=current, student=student, now=now)
            for rule in rules:
                rule.check(request)
            return current.participants + (student_id,)

        updated = self._workshops.mutate_participants(workshop_id, mutate)
        if updated is None:
            raise WorkshopNotFound("Workshop not found")
        logger.info(
            "enrolled: workshop=%s student=%s seats=%d/%d",
            workshop_id,
            student_id,
            len(updated.participants),
            updated.max_participants,
        )
        return updated

    def unenroll(self, principal: Principal, workshop_id: str, student_id: str) -> Workshop:
        if principal.role == Role.STUDENT and principal.id != student_id:
            raise Unauthorized("Students can only unenroll themselves")
        if principal.role == Role.PARENT:
            raise Unauthorized("Parents cannot change enrollments")

        def mutate(current: Workshop):
            if principal.role == Role.TEACHER and current.teacher_id != principal.id:
                raise Unauthorized("Only the workshop's teacher can remove students")
            if not current.has_participant(student_id):
                raise NotEnrolled("Student is not enrolled in this workshop")
            return tuple(p for p in current.participants if p != student_id)

        updated = self._workshops.mutate_participants(workshop_id, mutate)
        if updated is None:
            raise WorkshopNotFound("Workshop not found")
        logger.info("unenrolled: workshop=%s student=%s by=%s", workshop_id, student_id, principal.id)
        return updated
