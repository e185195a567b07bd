from __future__ import annotations

import itertools

import pytest

from src.school_ops.school_ops.core.enums import Role
from src.school_ops.school_ops.core.exceptions import (
    DuplicateChildLink,
    EmailAlreadyRegistered,
    NotFoundError,
    Unauthorized,
    UserNotFound,
    ValidationError,
)
from src.school_ops.school_ops.identity.model import PasswordCredential, SurnameCredential
from src.school_ops.school_ops.identity.service import SessionResolver, UserService


@pytest.fixture
def service(users, passwords):
    counter = itertools.count(1)
    return UserService(users, passwords, id_factory=lambda: f"u{next(counter)}")


def test_admin_creates_teacher_with_password(service, admin, users):
    user = service.create_account(
        admin,
        first_name="Rosa",
        last_name="Vega",
        email=" Rosa@School.test ",
        role="teacher",
        password="abcdef",
    )

    assert user.id == "u1"
    assert user.email == "rosa@school.test"
    assert isinstance(user.credential, PasswordCredential)
    assert users.get_by_id("u1").role == Role.TEACHER


def test_admin_creates_student_with_surname_credential(service, admin, users, passwords):
    user = service.create_account(
        admin,
        first_name="Luis",
        last_name="",
        email="luis@school.test",
        role=Role.STUDENT,
        grade="3ro",
        section="C",
        paternal_surname="Huaman",
        maternal_surname="Torres",
    )

    assert isinstance(user.credential, SurnameCredential)
    assert user.last_name == "Huaman Torres"
    assert SessionResolver(users, passwords).authenticate("luis@school.test", "huaman").id == user.id


def test_student_requires_grade_and_surnames(service, admin):
    with pytest.raises(ValidationError):
        service.create_account(
            admin,
            first_name="Luis",
            last_name="",
            email="luis@school.test",
            role="student",
            paternal_surname="Huaman",
        )


def test_short_password_rejected(service, admin):
    with pytest.raises(ValidationError):
        service.create_account(
            admin, first_name="A", last_name="B", email="ab@school.test", role="parent", password="123"
        )


def test_duplicate_email_rejected(service, admin):
    with pytest.raises(EmailAlreadyRegistered):
        service.create_account(
            admin, first_name="A", last_name="B", email="TEACHER@school.test", role="admin", password="abcdef"
        )


def test_only_admin_creates_accounts(service, teacher):
    with pytest.raises(Unauthorized):
        service.create_account(
            teacher, first_name="A", last_name="B", email="x@school.test", role="teacher", password="abcdef"
        )


def test_register_parent_is_public(service):
    user = service.register_parent(first_name="Ana", last_name="Ruiz", email="ana@school.test", password="abcdef")

    assert user.role == Role.PARENT


def test_list_users_hides_students_by_default(service, admin):
    roles = {u.role for u in service.list_users(admin)}
    students = service.list_users(admin, role="student")

    assert Role.STUDENT not in roles
    assert {u.id for u in students} == {"s1", "s2", "s3"}


def test_delete_user(service, admin, users):
    service.delete_user(admin, "other-teacher")

    assert users.get_by_id("other-teacher") is None
    with pytest.raises(UserNotFound):
        service.delete_user(admin, "other-teacher")


def test_admin_cannot_delete_self(service, admin):
    with pytest.raises(ValidationError):
        service.delete_user(admin, admin.id)


def test_parent_links_child_by_surnames(service, parent):
    link = service.link_child(
        parent, paternal_surname="quispe", maternal_surname="MAMANI", grade="1ro", section="a"
    )

    assert link.id == "s2"
    assert [c.id for c in service.children_of(parent)] == ["s2"]


def test_link_child_twice_conflicts(service, parent):
    service.link_child(parent, paternal_surname="Garcia", maternal_surname="Lopez", grade="1ro", section="A")

    with pytest.raises(DuplicateChildLink):
        service.link_child(parent, paternal_surname="Garcia", maternal_surname="Lopez", grade="1ro", section="A")


def test_link_unknown_child(service, parent):
    with pytest.raises(UserNotFound):
        service.link_child(parent, paternal_surname="Nadie", maternal_surname="Nunca", grade="1ro", section="A")


def test_unlink_child(service, parent):
    service.link_child(parent, paternal_surname="Garcia", maternal_surname="Lopez", grade="1ro", section="A")
    service.unlink_child(parent, "s1")

    assert service.children_of(parent) == []
    with pytest.raises(NotFoundError):
        service.unlink_child(parent, "s1")


def test_link_child_for_deleted_parent(service, parent, users):
    users.delete_by_id("parent")

    with pytest.raises(UserNotFound):
        service.link_child(parent, paternal_surname="Garcia", maternal_surname="Lopez", grade="1ro", section="A")
