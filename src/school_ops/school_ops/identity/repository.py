from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import ChildLink, User


class UserRepository(Protocol):
    """Identity store contract.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def add(self, user: User) -> None:
        """Persist a new user; raises EmailAlreadyRegistered on a taken email."""

        raise NotImplementedError

    def delete_by_id(self, user_id: str) -> bool:
        raise NotImplementedError

    def list_by_role(self, role: Optional[Role] = None) -> Sequence[User]:
        raise NotImplementedError

    def find_student(
        self,
        *,
        paternal_surname: str,
        maternal_surname: str,
        grade: str,
        section: str,
    ) -> Optional[User]:
        raise NotImplementedError

    def add_child(self, parent_id: str, child: ChildLink) -> bool:
        """Append ``child`` to the parent's links; False if already linked."""

        raise NotImplementedError

    def remove_child(self, parent_id: str, child_id: str) -> bool:
        raise NotImplementedError
