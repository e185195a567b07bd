from __future__ import annotations

from datetime import datetime

import pytest

from src.school_ops.school_ops.core.enums import AnnouncementType, Audience, Role
from src.school_ops.school_ops.core.exceptions import AnnouncementNotFound, Unauthorized, ValidationError
from src.school_ops.school_ops.notifications.memory_announcement_repository import InMemoryAnnouncementRepository
from src.school_ops.school_ops.notifications.model import Announcement
from src.school_ops.school_ops.notifications.service import NotificationService, audience_for


def _announcement(aid, audience, *, active=None, created_at=None) -> Announcement:
    return Announcement(
        id=aid,
        title=f"Title {aid}",
        message="...",
        type=AnnouncementType.INFO,
        target_audience=audience,
        active=active,
        created_at=created_at,
    )


@pytest.fixture
def repo():
    return InMemoryAnnouncementRepository(
        [
            _announcement("a1", Audience.ALL, created_at=datetime(2024, 5, 1)),
            _announcement("a2", Audience.PARENTS, active=False, created_at=datetime(2024, 5, 2)),
            _announcement("a3", Audience.PARENTS, active=True, created_at=datetime(2024, 5, 3)),
            _announcement("a4", Audience.TEACHERS, created_at=datetime(2024, 5, 4)),
            _announcement("a5", Audience.STUDENTS),
        ]
    )


@pytest.fixture
def service(repo, fixed_clock):
    return NotificationService(repo, id_factory=lambda: "new", clock=fixed_clock(datetime(2024, 5, 10)))


def test_audience_mapping():
    assert audience_for(Role.ADMIN) == Audience.TEACHERS
    assert audience_for(Role.TEACHER) == Audience.TEACHERS
    assert audience_for(Role.PARENT) == Audience.PARENTS
    assert audience_for(Role.STUDENT) == Audience.STUDENTS


def test_inactive_announcement_excluded(service):
    ids = [a.id for a in service.relevant_for(Role.PARENT)]

    assert ids == ["a3", "a1"]
    assert "a2" not in ids


def test_undated_announcements_sort_last(service):
    assert [a.id for a in service.relevant_for(Role.STUDENT)] == ["a1", "a5"]


def test_admin_sees_teacher_feed(service):
    assert [a.id for a in service.relevant_for(Role.ADMIN)] == ["a4", "a1"]


def test_unread_count_matches_relevant(service):
    for role in Role:
        assert service.unread_count(role) == len(service.relevant_for(role))


def test_publish_and_deactivate(service, admin):
    published = service.publish(admin, title="Feria", message="Sabado", target_audience="students")

    assert published.created_at == datetime(2024, 5, 10)
    assert [a.id for a in service.relevant_for(Role.STUDENT)][0] == "new"

    service.set_active(admin, "new", False)
    assert "new" not in [a.id for a in service.relevant_for(Role.STUDENT)]


def test_publish_validation(service, admin, teacher):
    with pytest.raises(Unauthorized):
        service.publish(teacher, title="x", message="y")
    with pytest.raises(ValidationError):
        service.publish(admin, title="", message="y")
    with pytest.raises(ValidationError):
        service.publish(admin, title="x", message="y", target_audience="everyone")


def test_set_active_unknown(service, admin):
    with pytest.raises(AnnouncementNotFound):
        service.set_active(admin, "missing", True)
