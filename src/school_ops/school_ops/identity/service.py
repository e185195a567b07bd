from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol, Sequence

from ..common.datetime_utils import now_local
from ..common.text import full_name, normalize_email, normalize_secret
from ..common.validators import require_enum, require_min_length, require_non_empty
from ..core.constants import DEFAULT_STAFF_SESSION_DAYS, DEFAULT_STUDENT_SESSION_HOURS, MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import (
    DuplicateChildLink,
    EmailAlreadyRegistered,
    InvalidCredential,
    NotFoundError,
    Unauthorized,
    UserNotFound,
    ValidationError,
)
from .access import require_role
from .model import (
    ChildLink,
    LoginEvent,
    PasswordCredential,
    Principal,
    SessionPolicy,
    SurnameCredential,
    User,
)
from .provider import PasswordProvider
from .repository import UserRepository

logger = logging.getLogger(__name__)


class LoginEventSink(Protocol):
    def publish(self, event: LoginEvent) -> None:
        raise NotImplementedError


def _new_id() -> str:
    return uuid.uuid4().hex


class SessionResolver:
    """Use case: authenticate (login) against the scheme the user's role selects.

    Students prove identity with their paternal surname; every other role goes
    through the password provider. Both paths yield the same Principal shape.
    """

    def __init__(
        self,
        users: UserRepository,
        passwords: PasswordProvider,
        *,
        events: Optional[LoginEventSink] = None,
        staff_session_days: int = DEFAULT_STAFF_SESSION_DAYS,
        student_session_hours: int = DEFAULT_STUDENT_SESSION_HOURS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._users = users
        self._passwords = passwords
        self._events = events
        self._staff_lifetime = timedelta(days=int(staff_session_days))
        self._student_lifetime = timedelta(hours=int(student_session_hours))
        self._clock = clock

    def authenticate(self, email: str, secret: str) -> Principal:
        if not isinstance(email, str) or not isinstance(secret, str):
            raise ValidationError("Email and password must be text")
        user = self._users.get_by_email(normalize_email(email))
        if not user:
            logger.warning("login failed: %s", UserNotFound.code)
            raise UserNotFound("Email not found")

        if user.role == Role.STUDENT:
            ok = self._verify_surname(user, secret)
        else:
            ok = self._verify_password(user, secret)

        if not ok:
            logger.warning("login failed: user=%s role=%s code=%s", user.id, user.role.value, InvalidCredential.code)
            raise InvalidCredential("Incorrect email or password")

        principal = Principal(id=user.id, role=user.role, display_name=user.display_name)
        self._emit(LoginEvent(user_id=user.id, role=user.role, occurred_at=self._clock()))
        return principal

    def session_policy(self, role: Role) -> SessionPolicy:
        if role == Role.STUDENT:
            return SessionPolicy(lifetime=self._student_lifetime, persistent=False)
        return SessionPolicy(lifetime=self._staff_lifetime, persistent=True)

    @staticmethod
    def _verify_surname(user: User, secret: str) -> bool:
        credential = user.credential
        if not isinstance(credential, SurnameCredential):
            raise Unauthorized("Student account has no surname credential")
        if not credential.token:
            return False
        return normalize_secret(secret) == normalize_secret(credential.token)

    def _verify_password(self, user: User, secret: str) -> bool:
        credential = user.credential
        if not isinstance(credential, PasswordCredential):
            raise Unauthorized("Account has no password credential")
        try:
            return bool(self._passwords.verify_password(credential.password_hash, secret or ""))
        except Exception:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            logger.warning("password provider rejected stored hash for user=%s", user.id)
            return False

    def _emit(self, event: LoginEvent) -> None:
        logger.info("login ok: user=%s role=%s at=%s", event.user_id, event.role.value, event.occurred_at.isoformat())
        if not self._events:
            return
        try:
            self._events.publish(event)
        except Exception:
            logger.exception("login event sink failed for user=%s", event.user_id)


class UserService:
    """Use case: manage accounts (admin), parent registration and child links."""

    def __init__(
        self,
        users: UserRepository,
        passwords: PasswordProvider,
        *,
        id_factory: Callable[[], str] = _new_id,
    ):
        self._users = users
        self._passwords = passwords
        self._new_id = id_factory

    def create_account(
        self,
        principal: Principal,
        *,
        first_name: str,
        last_name: str,
        email: str,
        role,
        password: Optional[str] = None,
        grade: Optional[str] = None,
        section: Optional[str] = None,
        paternal_surname: Optional[str] = None,
        maternal_surname: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> User:
        require_role(principal, Role.ADMIN)
        role = require_enum(role, Role, "Role")

        if role == Role.STUDENT:
            return self._create_student(
                first_name=first_name,
                email=email,
                grade=grade,
                section=section,
                paternal_surname=paternal_surname,
                maternal_surname=maternal_surname,
                photo_url=photo_url,
            )
        return self._create_password_account(
            first_name=first_name,
            last_name=last_name,
            email=email,
            role=role,
            password=password,
            photo_url=photo_url,
        )

    def register_parent(self, *, first_name: str, last_name: str, email: str, password: str) -> User:
        return self._create_password_account(
            first_name=first_name,
            last_name=last_name,
            email=email,
            role=Role.PARENT,
            password=password,
        )

    def _create_password_account(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        role: Role,
        password: Optional[str],
        photo_url: Optional[str] = None,
    ) -> User:
        first_name = require_non_empty(first_name, "First name")
        last_name = require_non_empty(last_name, "Last name")
        email = self._require_free_email(email)
        require_min_length(password or "", "Password", MIN_PASSWORD_LENGTH)

        user = User(
            id=self._new_id(),
            first_name=first_name,
            last_name=last_name,
            email=email,
            role=role,
            credential=PasswordCredential(password_hash=self._passwords.hash_password(password)),
            photo_url=photo_url,
        )
        self._users.add(user)
        logger.info("account created: user=%s role=%s", user.id, role.value)
        return user

    def _create_student(
        self,
        *,
        first_name: str,
        email: str,
        grade: Optional[str],
        section: Optional[str],
        paternal_surname: Optional[str],
        maternal_surname: Optional[str],
        photo_url: Optional[str],
    ) -> User:
        first_name = require_non_empty(first_name, "First name")
        paternal = require_non_empty(paternal_surname, "Paternal surname")
        maternal = require_non_empty(maternal_surname, "Maternal surname")
        grade = require_non_empty(grade, "Grade")
        section = require_non_empty(section, "Section")
        email = self._require_free_email(email)

        user = User(
            id=self._new_id(),
            first_name=first_name,
            last_name=f"{paternal} {maternal}",
            email=email,
            role=Role.STUDENT,
            credential=SurnameCredential(token=normalize_secret(paternal)),
            photo_url=photo_url,
            grade=grade,
            section=section,
            paternal_surname=paternal,
            maternal_surname=maternal,
        )
        self._users.add(user)
        logger.info("account created: user=%s role=student grade=%s section=%s", user.id, grade, section)
        return user

    def _require_free_email(self, email: str) -> str:
        email = normalize_email(require_non_empty(email, "Email"))
        if "@" not in email:
            raise ValidationError("Email is not valid")
        if self._users.get_by_email(email):
            raise EmailAlreadyRegistered("Email is already registered")
        return email

    def get_user(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise UserNotFound("User not found")
        return user

    def list_users(self, principal: Principal, *, role=None) -> Sequence[User]:
        require_role(principal, Role.ADMIN)
        if role is not None:
            return list(self._users.list_by_role(require_enum(role, Role, "Role")))
        return [u for u in self._users.list_by_role(None) if u.role != Role.STUDENT]

    def delete_user(self, principal: Principal, user_id: str) -> None:
        require_role(principal, Role.ADMIN)
        if principal.id == user_id:
            raise ValidationError("You cannot delete your own account")
        if not self._users.get_by_id(user_id):
            raise UserNotFound("User not found")
        self._users.delete_by_id(user_id)
        logger.info("account deleted: user=%s by=%s", user_id, principal.id)

    def link_child(
        self,
        principal: Principal,
        *,
        paternal_surname: str,
        maternal_surname: str,
        grade: str,
        section: str,
    ) -> ChildLink:
        require_role(principal, Role.PARENT)
        if not self._users.get_by_id(principal.id):
            raise UserNotFound("User not found")
        student = self._users.find_student(
            paternal_surname=require_non_empty(paternal_surname, "Paternal surname"),
            maternal_surname=require_non_empty(maternal_surname, "Maternal surname"),
            grade=require_non_empty(grade, "Grade"),
            section=require_non_empty(section, "Section"),
        )
        if not student:
            raise UserNotFound("No student matches the given surnames, grade and section")

        link = ChildLink(
            id=student.id,
            name=full_name(student.first_name, student.last_name),
            grade=student.grade,
            section=student.section,
        )
        if not self._users.add_child(principal.id, link):
            raise DuplicateChildLink("This student is already linked to your account")
        logger.info("child linked: parent=%s child=%s", principal.id, student.id)
        return link

    def unlink_child(self, principal: Principal, child_id: str) -> None:
        require_role(principal, Role.PARENT)
        if not self._users.remove_child(principal.id, child_id):
            raise NotFoundError("Child is not linked to this account")

    def children_of(self, principal: Principal) -> Sequence[ChildLink]:
        require_role(principal, Role.PARENT)
        parent = self._users.get_by_id(principal.id)
        if not parent:
            raise UserNotFound("User not found")
        return list(parent.children)
