from __future__ import annotations

from typing import Callable, Optional, Sequence

from ..core.enums import WorkshopStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_datetime, db_cursor, fetchall, fetchone, join_csv, split_csv
from .model import Workshop
from .repository import ParticipantsMutation, WorkshopRepository

_WORKSHOP_COLUMNS = """
    workshop_id, title, description, teacher_id, schedule, max_participants, enrollment_deadline,
    allowed_grades, allowed_sections, restrict_by_grade_section, status, image_url
"""


class MySQLWorkshopRepository(WorkshopRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _participants(cur, workshop_id: str) -> tuple:
        cur.execute(
            "SELECT student_id FROM workshop_participants WHERE workshop_id=%s ORDER BY position",
            (workshop_id,),
        )
        return tuple(r["student_id"] for r in fetchall(cur))

    def _to_workshop(self, cur, row: dict) -> Workshop:
        return Workshop(
            id=row["workshop_id"],
            title=row["title"],
            description=row.get("description") or "",
            teacher_id=row["teacher_id"],
            schedule=row["schedule"],
            max_participants=int(row["max_participants"]),
            enrollment_deadline=as_datetime(row["enrollment_deadline"]),
            participants=self._participants(cur, row["workshop_id"]),
            status=WorkshopStatus(row["status"]),
            restrict_by_grade_section=bool(row.get("restrict_by_grade_section")),
            allowed_grades=split_csv(row.get("allowed_grades")),
            allowed_sections=split_csv(row.get("allowed_sections")),
            image_url=row.get("image_url"),
        )

    def _select_for_update(self, cur, workshop_id: str) -> Optional[Workshop]:
        cur.execute(f"SELECT {_WORKSHOP_COLUMNS} FROM workshops WHERE workshop_id=%s FOR UPDATE", (workshop_id,))
        row = fetchone(cur)
        return self._to_workshop(cur, row) if row else None

    def get_by_id(self, workshop_id: str) -> Optional[Workshop]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_WORKSHOP_COLUMNS} FROM workshops WHERE workshop_id=%s", (workshop_id,))
            row = fetchone(cur)
            return self._to_workshop(cur, row) if row else None

    def list_all(self) -> Sequence[Workshop]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_WORKSHOP_COLUMNS} FROM workshops ORDER BY title")
            rows = fetchall(cur)
            return [self._to_workshop(cur, r) for r in rows]

    def add(self, workshop: Workshop) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO workshops(workshop_id, title, description, teacher_id, schedule, max_participants,
                                      enrollment_deadline, allowed_grades, allowed_sections,
                                      restrict_by_grade_section, status, image_url)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    workshop.id,
                    workshop.title,
                    workshop.description,
                    workshop.teacher_id,
                    workshop.schedule,
                    workshop.max_participants,
                    workshop.enrollment_deadline,
                    join_csv(workshop.allowed_grades),
                    join_csv(workshop.allowed_sections),
                    int(workshop.restrict_by_grade_section),
                    workshop.status.value,
                    workshop.image_url,
                ),
            )
            self._write_participants(cur, workshop.id, workshop.participants)

    def update(self, workshop_id: str, mutate: Callable[[Workshop], Workshop]) -> Optional[Workshop]:
        with db_cursor(self._conn_factory) as (_, cur):
            current = self._select_for_update(cur, workshop_id)
            if current is None:
                return None
            updated = mutate(current)
            cur.execute(
                """
                UPDATE workshops
                SET title=%s, description=%s, teacher_id=%s, schedule=%s, max_participants=%s,
                    enrollment_deadline=%s, allowed_grades=%s, allowed_sections=%s,
                    restrict_by_grade_section=%s, status=%s, image_url=%s
                WHERE workshop_id=%s
                """,
                (
                    updated.title,
                    updated.description,
                    updated.teacher_id,
                    updated.schedule,
                    updated.max_participants,
                    updated.enrollment_deadline,
                    join_csv(updated.allowed_grades),
                    join_csv(updated.allowed_sections),
                    int(updated.restrict_by_grade_section),
                    updated.status.value,
                    updated.image_url,
                    workshop_id,
                ),
            )
            return self._select_for_update(cur, workshop_id)

    def delete_by_id(self, workshop_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM workshops WHERE workshop_id=%s", (workshop_id,))
            return cur.rowcount > 0

    def mutate_participants(self, workshop_id: str, mutate: ParticipantsMutation) -> Optional[Workshop]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the workshop serialises check-then-write per workshop.
            current = self._select_for_update(cur, workshop_id)
            if current is None:
                return None
            participants = tuple(mutate(current))
            cur.execute("DELETE FROM workshop_participants WHERE workshop_id=%s", (workshop_id,))
            self._write_participants(cur, workshop_id, participants)
            return self._select_for_update(cur, workshop_id)

    @staticmethod
    def _write_participants(cur, workshop_id: str, participants: Sequence[str]) -> None:
        if not participants:
            return
        cur.executemany(
            "INSERT INTO workshop_participants(workshop_id, student_id, position) VALUES(%s,%s,%s)",
            [(workshop_id, student_id, i + 1) for i, student_id in enumerate(participants)],
        )

    def list_for_student(self, student_id: str) -> Sequence[Workshop]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_WORKSHOP_COLUMNS} FROM workshops
                WHERE workshop_id IN (SELECT workshop_id FROM workshop_participants WHERE student_id=%s)
                ORDER BY title
                """,
                (student_id,),
            )
            rows = fetchall(cur)
            return [self._to_workshop(cur, r) for r in rows]
