from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from src.school_ops.school_ops.core.enums import Role
from src.school_ops.school_ops.core.exceptions import InvalidCredential, Unauthorized, UserNotFound, ValidationError
from src.school_ops.school_ops.identity.model import PasswordCredential
from src.school_ops.school_ops.identity.service import SessionResolver


class RecordingSink:
    def __init__(self):
        self.events = []

    def publish(self, event) -> None:
        self.events.append(event)


class BrokenSink:
    def publish(self, event) -> None:
        raise RuntimeError("sink down")


@pytest.fixture
def resolver(users, passwords, fixed_clock):
    return SessionResolver(users, passwords, clock=fixed_clock(datetime(2024, 5, 20, 8, 0)))


@pytest.mark.parametrize("secret", ["Garcia", "garcia", "Garcia ", "  GARCIA"])
def test_student_login_normalizes_surname(resolver, secret):
    principal = resolver.authenticate("s1@school.test", secret)

    assert principal.id == "s1"
    assert principal.role == Role.STUDENT


def test_student_login_rejects_wrong_surname(resolver):
    with pytest.raises(InvalidCredential):
        resolver.authenticate("s1@school.test", "Garca")


def test_student_login_ignores_maternal_surname(resolver):
    with pytest.raises(InvalidCredential):
        resolver.authenticate("s1@school.test", "Lopez")


def test_accented_surname_matches_composed_and_decomposed(users, passwords, make_student):
    users.add(make_student("s9", paternal="Nu\u00f1ez", email="s9@school.test"))
    resolver = SessionResolver(users, passwords)

    assert resolver.authenticate("s9@school.test", "NUN\u0303EZ").id == "s9"


def test_staff_login_uses_password_provider(resolver):
    principal = resolver.authenticate("TEACHER@school.test ", "secret123")

    assert principal.id == "teacher"
    assert principal.role == Role.TEACHER
    assert principal.display_name == "Teacher Staff"


def test_staff_login_wrong_password(resolver):
    with pytest.raises(InvalidCredential):
        resolver.authenticate("teacher@school.test", "nope")


def test_unknown_email(resolver):
    with pytest.raises(UserNotFound) as exc:
        resolver.authenticate("ghost@school.test", "whatever")

    assert exc.value.code == "USER_NOT_FOUND"


def test_corrupted_hash_is_a_credential_failure(users, passwords, make_staff):
    broken = make_staff("legacy", Role.PARENT)
    users.add(replace(broken, credential=PasswordCredential("CHANGE_ME")))
    resolver = SessionResolver(users, passwords)

    with pytest.raises(InvalidCredential):
        resolver.authenticate("legacy@school.test", "secret123")


def test_student_with_password_credential_is_unauthorized(users, passwords, make_student):
    student = make_student("odd", email="odd@school.test")
    users.add(replace(student, credential=PasswordCredential("plain$x")))
    resolver = SessionResolver(users, passwords)

    with pytest.raises(Unauthorized):
        resolver.authenticate("odd@school.test", "x")


def test_login_event_published(users, passwords, fixed_clock):
    sink = RecordingSink()
    now = datetime(2024, 5, 20, 8, 0)
    resolver = SessionResolver(users, passwords, events=sink, clock=fixed_clock(now))

    resolver.authenticate("parent@school.test", "secret123")

    assert len(sink.events) == 1
    assert sink.events[0].user_id == "parent"
    assert sink.events[0].occurred_at == now


def test_sink_failure_does_not_block_login(users, passwords):
    resolver = SessionResolver(users, passwords, events=BrokenSink())

    assert resolver.authenticate("admin@school.test", "secret123").role == Role.ADMIN


def test_session_policy_by_role(resolver):
    student = resolver.session_policy(Role.STUDENT)
    staff = resolver.session_policy(Role.TEACHER)

    assert student.lifetime == timedelta(hours=8)
    assert student.persistent is False
    assert staff.lifetime == timedelta(days=7)
    assert staff.persistent is True


@pytest.mark.parametrize("email, secret", [("s1@school.test", 123), ("admin@school.test", None), (None, "Garcia")])
def test_non_text_credentials_rejected(resolver, email, secret):
    with pytest.raises(ValidationError):
        resolver.authenticate(email, secret)
