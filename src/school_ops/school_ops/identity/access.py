from __future__ import annotations

from ..core.enums import Role
from ..core.exceptions import Unauthorized
from .model import Principal
from .repository import UserRepository


def require_role(principal: Principal, *roles: Role) -> None:
    if principal is None or principal.role not in roles:
        raise Unauthorized("You do not have permission for this action")


def can_view_student(principal: Principal, student_id: str, users: UserRepository) -> bool:
    """Staff see every student, students see themselves, parents see linked children."""
    if principal.role in (Role.ADMIN, Role.TEACHER):
        return True
    if principal.role == Role.STUDENT:
        return principal.id == student_id
    if principal.role == Role.PARENT:
        parent = users.get_by_id(principal.id)
        return bool(parent and parent.has_child(student_id))
    return False


def require_student_visibility(principal: Principal, student_id: str, users: UserRepository) -> None:
    if not can_view_student(principal, student_id, users):
        raise Unauthorized("You cannot view this student's records")
