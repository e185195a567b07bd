from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Tuple, Union

from ..core.enums import Role


@dataclass(frozen=True)
class PasswordCredential:
    """Hash produced by the password provider (admin/teacher/parent)."""

    password_hash: str


@dataclass(frozen=True)
class SurnameCredential:
    """Normalized paternal surname (students only)."""

    token: str


Credential = Union[PasswordCredential, SurnameCredential]


@dataclass(frozen=True)
class ChildLink:
    id: str
    name: str
    grade: Optional[str] = None
    section: Optional[str] = None


@dataclass(frozen=True)
class User:
    """Domain entity for every account in the identity store.

    Plain data: no storage access here. ``credential`` is a PasswordCredential
    for admin/teacher/parent rows and a SurnameCredential for student rows.
    """

    id: str
    first_name: str
    last_name: str
    email: str
    role: Role
    credential: Credential
    photo_url: Optional[str] = None
    grade: Optional[str] = None
    section: Optional[str] = None
    paternal_surname: Optional[str] = None
    maternal_surname: Optional[str] = None
    children: Tuple[ChildLink, ...] = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email

    def has_child(self, child_id: str) -> bool:
        return any(c.id == child_id for c in self.children)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, passed by value into every domain call."""

    id: str
    role: Role
    display_name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "role": self.role.value, "display_name": self.display_name}

    @classmethod
    def from_dict(cls, data: dict) -> "Principal":
        return cls(id=str(data["id"]), role=Role(data["role"]), display_name=str(data.get("display_name", "")))


@dataclass(frozen=True)
class SessionPolicy:
    lifetime: timedelta
    persistent: bool


@dataclass(frozen=True)
class LoginEvent:
    user_id: str
    role: Role
    occurred_at: datetime
