from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector

from ..common.text import normalize_email
from ..core.enums import Role
from ..core.exceptions import EmailAlreadyRegistered
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ChildLink, PasswordCredential, SurnameCredential, User
from .repository import UserRepository

_USER_COLUMNS = """
    user_id, first_name, last_name, email, role, credential_kind, credential_secret,
    photo_url, grade, section, paternal_surname, maternal_surname
"""


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _credential_columns(user: User) -> tuple:
        if isinstance(user.credential, SurnameCredential):
            return "surname", user.credential.token
        return "password", user.credential.password_hash

    @staticmethod
    def _children(cur, user_id: str) -> tuple:
        cur.execute(
            """
            SELECT child_id, child_name, grade, section
            FROM parent_children
            WHERE parent_id=%s
            ORDER BY position
            """,
            (user_id,),
        )
        return tuple(
            ChildLink(id=r["child_id"], name=r["child_name"], grade=r.get("grade"), section=r.get("section"))
            for r in fetchall(cur)
        )

    def _to_user(self, cur, row: dict) -> User:
        if row["credential_kind"] == "surname":
            credential = SurnameCredential(token=row["credential_secret"])
        else:
            credential = PasswordCredential(password_hash=row["credential_secret"])
        role = Role(row["role"])
        return User(
            id=row["user_id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row["email"],
            role=role,
            credential=credential,
            photo_url=row.get("photo_url"),
            grade=row.get("grade"),
            section=row.get("section"),
            paternal_surname=row.get("paternal_surname"),
            maternal_surname=row.get("maternal_surname"),
            children=self._children(cur, row["user_id"]) if role == Role.PARENT else (),
        )

    def get_by_id(self, user_id: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
            return self._to_user(cur, row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE email=%s", (normalize_email(email),))
            row = fetchone(cur)
            return self._to_user(cur, row) if row else None

    def add(self, user: User) -> None:
        kind, secret = self._credential_columns(user)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO users(user_id, first_name, last_name, email, role, credential_kind,
                                      credential_secret, photo_url, grade, section,
                                      paternal_surname, maternal_surname)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        user.id,
                        user.first_name,
                        user.last_name,
                        user.email,
                        user.role.value,
                        kind,
                        secret,
                        user.photo_url,
                        user.grade,
                        user.section,
                        user.paternal_surname,
                        user.maternal_surname,
                    ),
                )
        except mysql.connector.IntegrityError:
            raise EmailAlreadyRegistered("Email is already registered")

    def delete_by_id(self, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM parent_children WHERE child_id=%s", (user_id,))
            cur.execute("DELETE FROM users WHERE user_id=%s", (user_id,))
            return cur.rowcount > 0

    def list_by_role(self, role: Optional[Role] = None) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            if role is None:
                cur.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY last_name, first_name")
            else:
                cur.execute(
                    f"SELECT {_USER_COLUMNS} FROM users WHERE role=%s ORDER BY last_name, first_name",
                    (role.value,),
                )
            rows = fetchall(cur)
            return [self._to_user(cur, r) for r in rows]

    def find_student(
        self,
        *,
        paternal_surname: str,
        maternal_surname: str,
        grade: str,
        section: str,
    ) -> Optional[User]:
        # utf8mb4_unicode_ci comparisons are case-insensitive already.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS} FROM users
                WHERE role='student'
                  AND paternal_surname=%s AND maternal_surname=%s
                  AND grade=%s AND section=%s
                LIMIT 1
                """,
                (paternal_surname.strip(), maternal_surname.strip(), grade.strip(), section.strip()),
            )
            row = fetchone(cur)
            return self._to_user(cur, row) if row else None

    def add_child(self, parent_id: str, child: ChildLink) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id FROM users WHERE user_id=%s FOR UPDATE", (parent_id,))
            if not fetchone(cur):
                return False
            cur.execute(
                "SELECT COALESCE(MAX(position), 0) AS last_pos FROM parent_children WHERE parent_id=%s",
                (parent_id,),
            )
            position = int(fetchone(cur)["last_pos"]) + 1
            cur.execute(
                """
                INSERT IGNORE INTO parent_children(parent_id, child_id, child_name, grade, section, position)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (parent_id, child.id, child.name, child.grade, child.section, position),
            )
            return cur.rowcount > 0

    def remove_child(self, parent_id: str, child_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM parent_children WHERE parent_id=%s AND child_id=%s",
                (parent_id, child_id),
            )
            return cur.rowcount > 0
