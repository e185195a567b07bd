from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceContext, AttendanceEntry, AttendanceMark, StoredMark
from .repository import AttendanceRepository


def _context(row: dict) -> AttendanceContext:
    if row.get("workshop_id"):
        return AttendanceContext.for_workshop(row["workshop_id"])
    return AttendanceContext.for_class(row.get("grade"), row.get("section"))


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def write_batch(
        self,
        *,
        work_date: date,
        context: AttendanceContext,
        marks: Sequence[AttendanceMark],
        written_at: datetime,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            # Upserting the header row takes its exclusive lock until commit, so
            # concurrent batches for the same (date, context) run one after another.
            cur.execute(
                """
                INSERT INTO attendance_entries(work_date, context_key, grade, section, workshop_id, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE updated_at=VALUES(updated_at)
                """,
                (work_date, context.key, context.grade, context.section, context.workshop_id, written_at),
            )
            cur.execute(
                "UPDATE attendance_write_seq SET last_seq=LAST_INSERT_ID(last_seq + %s) WHERE id=1",
                (len(marks),),
            )
            cur.execute("SELECT LAST_INSERT_ID() AS last_seq")
            last_seq = int(fetchone(cur)["last_seq"])
            first_seq = last_seq - len(marks) + 1

            cur.executemany(
                """
                INSERT INTO attendance_marks(work_date, context_key, student_id, status, write_seq, written_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE status=VALUES(status), write_seq=VALUES(write_seq),
                                        written_at=VALUES(written_at)
                """,
                [
                    (work_date, context.key, m.student_id, m.status.value, first_seq + i, written_at)
                    for i, m in enumerate(marks)
                ],
            )

    def get_entry(self, work_date: date, context: AttendanceContext) -> Optional[AttendanceEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT grade, section, workshop_id
                FROM attendance_entries
                WHERE work_date=%s AND context_key=%s
                """,
                (work_date, context.key),
            )
            header = fetchone(cur)
            if not header:
                return None
            cur.execute(
                """
                SELECT student_id, status
                FROM attendance_marks
                WHERE work_date=%s AND context_key=%s
                ORDER BY write_seq
                """,
                (work_date, context.key),
            )
            records = tuple(
                AttendanceMark(student_id=r["student_id"], status=AttendanceStatus(r["status"])) for r in fetchall(cur)
            )
            return AttendanceEntry(date=work_date, context=_context(header), records=records)

    def marks_for_student(self, student_id: str) -> Sequence[StoredMark]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT m.work_date, m.student_id, m.status, m.write_seq, m.written_at,
                       e.grade, e.section, e.workshop_id
                FROM attendance_marks m
                JOIN attendance_entries e ON e.work_date = m.work_date AND e.context_key = m.context_key
                WHERE m.student_id=%s
                ORDER BY m.work_date DESC, m.write_seq DESC
                """,
                (student_id,),
            )
            return [
                StoredMark(
                    date=r["work_date"],
                    context=_context(r),
                    student_id=r["student_id"],
                    status=AttendanceStatus(r["status"]),
                    write_seq=int(r["write_seq"]),
                    written_at=r["written_at"],
                )
                for r in fetchall(cur)
            ]

    def count_by_status(self) -> Dict[AttendanceStatus, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status, COUNT(*) AS n FROM attendance_marks GROUP BY status")
            return {AttendanceStatus(r["status"]): int(r["n"]) for r in fetchall(cur)}
