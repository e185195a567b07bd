from __future__ import annotations

from datetime import datetime

import pytest

from src.school_ops.school_ops.core.enums import Role
from src.school_ops.school_ops.identity.memory_user_repository import InMemoryUserRepository
from src.school_ops.school_ops.identity.model import PasswordCredential, Principal, SurnameCredential, User


class PlainPasswords:
    """Reversible stand-in for the password provider."""

    def hash_password(self, password: str) -> str:
        return f"plain${password}"

    def verify_password(self, password_hash: str, password: str) -> bool:
        if not password_hash.startswith("plain$"):
            raise ValueError("unsupported hash")
        return password_hash == f"plain${password}"


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _staff(user_id: str, role: Role, *, email: str | None = None, password: str = "secret123") -> User:
    return User(
        id=user_id,
        first_name=user_id.title(),
        last_name="Staff",
        email=email or f"{user_id}@school.test",
        role=role,
        credential=PasswordCredential(password_hash=f"plain${password}"),
    )


def _student(
    user_id: str,
    *,
    paternal: str = "Garcia",
    maternal: str = "Lopez",
    grade: str = "1ro",
    section: str = "A",
    email: str | None = None,
) -> User:
    return User(
        id=user_id,
        first_name=user_id.title(),
        last_name=f"{paternal} {maternal}",
        email=email or f"{user_id}@school.test",
        role=Role.STUDENT,
        credential=SurnameCredential(token=paternal.strip().casefold()),
        grade=grade,
        section=section,
        paternal_surname=paternal,
        maternal_surname=maternal,
    )


def _principal(user: User) -> Principal:
    return Principal(id=user.id, role=user.role, display_name=user.display_name)


@pytest.fixture
def make_staff():
    return _staff


@pytest.fixture
def make_student():
    return _student


@pytest.fixture
def principal_of():
    return _principal


@pytest.fixture
def passwords():
    return PlainPasswords()


@pytest.fixture
def fixed_clock():
    return FixedClock


@pytest.fixture
def users():
    return InMemoryUserRepository(
        [
            _staff("admin", Role.ADMIN),
            _staff("teacher", Role.TEACHER),
            _staff("other-teacher", Role.TEACHER),
            _staff("parent", Role.PARENT),
            _student("s1"),
            _student("s2", paternal="Quispe", maternal="Mamani"),
            _student("s3", paternal="Rojas", maternal="Diaz", grade="2do", section="B"),
        ]
    )


@pytest.fixture
def admin(users):
    return _principal(users.get_by_id("admin"))


@pytest.fixture
def teacher(users):
    return _principal(users.get_by_id("teacher"))


@pytest.fixture
def parent(users):
    return _principal(users.get_by_id("parent"))
