from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from src.school_ops.school_ops.core.enums import WorkshopStatus
from src.school_ops.school_ops.core.exceptions import (
    ConflictError,
    DeadlinePassed,
    Unauthorized,
    UserNotFound,
    ValidationError,
    WorkshopNotFound,
)
from src.school_ops.school_ops.identity.model import ChildLink
from src.school_ops.school_ops.workshops.memory_workshop_repository import InMemoryWorkshopRepository
from src.school_ops.school_ops.workshops.service import EnrollmentService, WorkshopService


@pytest.fixture
def repo():
    return InMemoryWorkshopRepository()


@pytest.fixture
def service(repo, users):
    counter = itertools.count(1)
    return WorkshopService(repo, users, id_factory=lambda: f"ws-{next(counter)}")


@pytest.fixture
def enrollment(repo, users, fixed_clock):
    return EnrollmentService(repo, users, clock=fixed_clock(datetime(2024, 5, 1)))


def _create(service, admin, **overrides):
    fields = dict(
        title="Chess",
        teacher_id="teacher",
        schedule="Wed 16:00",
        max_participants="3",
        enrollment_deadline="2024-05-31",
    )
    fields.update(overrides)
    return service.create_workshop(admin, **fields)


def test_create_workshop_normalizes_fields(service, admin):
    workshop = _create(service, admin, allowed_grades="1ro, 2do ,", restrict_by_grade_section=True)

    assert workshop.id == "ws-1"
    assert workshop.max_participants == 3
    assert workshop.enrollment_deadline == datetime(2024, 5, 31, 23, 59, 59, 999999)
    assert workshop.allowed_grades == ("1ro", "2do")
    assert workshop.allowed_sections is None
    assert workshop.status == WorkshopStatus.ACTIVE


def test_create_requires_admin_and_teacher(service, admin, teacher):
    with pytest.raises(Unauthorized):
        _create(service, teacher)
    with pytest.raises(ValidationError):
        _create(service, admin, teacher_id="parent")
    with pytest.raises(UserNotFound):
        _create(service, admin, teacher_id="nobody")
    with pytest.raises(ValidationError):
        _create(service, admin, max_participants=0)


def test_update_cannot_drop_capacity_below_roster(service, enrollment, admin):
    workshop = _create(service, admin)
    enrollment.enroll(admin, workshop.id, "s1")
    enrollment.enroll(admin, workshop.id, "s2")

    with pytest.raises(ConflictError):
        service.update_workshop(admin, workshop.id, max_participants=1)

    updated = service.update_workshop(admin, workshop.id, max_participants=2, title="Chess club")
    assert updated.title == "Chess club"
    assert updated.participants == ("s1", "s2")


def test_update_rejects_unknown_fields(service, admin):
    workshop = _create(service, admin)

    with pytest.raises(ValidationError):
        service.update_workshop(admin, workshop.id, participants=("s1",))


def test_set_status_and_delete(service, admin):
    workshop = _create(service, admin)

    assert service.set_status(admin, workshop.id, "inactive").status == WorkshopStatus.INACTIVE
    service.delete_workshop(admin, workshop.id)
    with pytest.raises(WorkshopNotFound):
        service.get_workshop(workshop.id)
    with pytest.raises(WorkshopNotFound):
        service.delete_workshop(admin, workshop.id)


def test_visible_workshops_by_role(service, enrollment, admin, teacher, parent, users, principal_of):
    mine = _create(service, admin, title="Art")
    theirs = _create(service, admin, title="Band", teacher_id="other-teacher")
    closed = _create(service, admin, title="Cooking", teacher_id="other-teacher", status="inactive")
    enrollment.enroll(admin, theirs.id, "s2")
    users.add_child("parent", ChildLink(id="s2", name="S2"))
    student = principal_of(users.get_by_id("s1"))

    assert {w.id for w in service.visible_workshops(admin)} == {mine.id, theirs.id, closed.id}
    assert [w.id for w in service.visible_workshops(teacher)] == [mine.id]
    assert {w.id for w in service.visible_workshops(student)} == {mine.id, theirs.id}
    assert [w.id for w in service.visible_workshops(parent)] == [theirs.id]


def test_roster_for_owner_only(service, enrollment, admin, teacher, users, principal_of):
    workshop = _create(service, admin)
    enrollment.enroll(admin, workshop.id, "s1")

    assert service.roster(teacher, workshop.id) == ["s1"]
    with pytest.raises(Unauthorized):
        service.roster(principal_of(users.get_by_id("other-teacher")), workshop.id)


def test_enrolled_workshops(service, enrollment, admin, users, principal_of):
    a = _create(service, admin, title="A")
    _create(service, admin, title="B")
    enrollment.enroll(admin, a.id, "s1")

    assert [w.id for w in service.enrolled_workshops(principal_of(users.get_by_id("s1")), "s1")] == [a.id]
    with pytest.raises(Unauthorized):
        service.enrolled_workshops(principal_of(users.get_by_id("s2")), "s1")


def test_offset_deadline_is_converted_to_local_time(service, admin, repo, users, fixed_clock):
    workshop = _create(service, admin, enrollment_deadline="2024-05-20T12:00:00+02:00")
    expected = datetime(2024, 5, 20, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

    assert workshop.enrollment_deadline == expected

    on_time = EnrollmentService(repo, users, clock=fixed_clock(expected))
    assert on_time.enroll(admin, workshop.id, "s1").participants == ("s1",)

    late = EnrollmentService(repo, users, clock=fixed_clock(expected + timedelta(minutes=1)))
    with pytest.raises(DeadlinePassed):
        late.enroll(admin, workshop.id, "s2")


def test_aware_datetime_deadline_on_update(service, admin):
    workshop = _create(service, admin)
    aware = datetime(2024, 6, 1, 8, 30, tzinfo=timezone(timedelta(hours=-5)))

    updated = service.update_workshop(admin, workshop.id, enrollment_deadline=aware)

    assert updated.enrollment_deadline == aware.astimezone().replace(tzinfo=None)
    assert updated.enrollment_deadline.tzinfo is None


def test_delete_drops_workshop_lock(service, enrollment, admin, repo):
    workshop = _create(service, admin)
    enrollment.enroll(admin, workshop.id, "s1")

    service.delete_workshop(admin, workshop.id)

    assert workshop.id not in repo._workshop_locks
