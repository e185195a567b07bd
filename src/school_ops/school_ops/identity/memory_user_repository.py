from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, Optional, Sequence

from ..common.text import normalize_email, normalize_secret
from ..core.enums import Role
from ..core.exceptions import EmailAlreadyRegistered
from .model import ChildLink, User
from .repository import UserRepository


class InMemoryUserRepository(UserRepository):
    """Process-local identity store (tests, demos, STORAGE_BACKEND=memory)."""

    def __init__(self, users: Sequence[User] = ()):
        self._lock = threading.RLock()
        self._by_id: Dict[str, User] = {}
        for user in users:
            self.add(user)

    def get_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._by_id.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        email = normalize_email(email)
        with self._lock:
            for user in self._by_id.values():
                if user.email == email:
                    return user
        return None

    def add(self, user: User) -> None:
        with self._lock:
            if self.get_by_email(user.email):
                raise EmailAlreadyRegistered("Email is already registered")
            self._by_id[user.id] = user

    def delete_by_id(self, user_id: str) -> bool:
        with self._lock:
            return self._by_id.pop(user_id, None) is not None

    def list_by_role(self, role: Optional[Role] = None) -> Sequence[User]:
        with self._lock:
            users = list(self._by_id.values())
        if role is not None:
            users = [u for u in users if u.role == role]
        return sorted(users, key=lambda u: (u.last_name.lower(), u.first_name.lower()))

    def find_student(
        self,
        *,
        paternal_surname: str,
        maternal_surname: str,
        grade: str,
        section: str,
    ) -> Optional[User]:
        wanted = (
            normalize_secret(paternal_surname),
            normalize_secret(maternal_surname),
            normalize_secret(grade),
            normalize_secret(section),
        )
        with self._lock:
            for user in self._by_id.values():
                if user.role != Role.STUDENT:
                    continue
                got = (
                    normalize_secret(user.paternal_surname or ""),
                    normalize_secret(user.maternal_surname or ""),
                    normalize_secret(user.grade or ""),
                    normalize_secret(user.section or ""),
                )
                if got == wanted:
                    return user
        return None

    def add_child(self, parent_id: str, child: ChildLink) -> bool:
        with self._lock:
            parent = self._by_id.get(parent_id)
            if not parent or parent.has_child(child.id):
                return False
            self._by_id[parent_id] = replace(parent, children=parent.children + (child,))
            return True

    def remove_child(self, parent_id: str, child_id: str) -> bool:
        with self._lock:
            parent = self._by_id.get(parent_id)
            if not parent or not parent.has_child(child_id):
                return False
            kept = tuple(c for c in parent.children if c.id != child_id)
            self._by_id[parent_id] = replace(parent, children=kept)
            return True
