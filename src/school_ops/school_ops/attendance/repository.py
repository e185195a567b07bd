from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceContext, AttendanceEntry, AttendanceMark, StoredMark


class AttendanceRepository(Protocol):
    def write_batch(
        self,
        *,
        work_date: date,
        context: AttendanceContext,
        marks: Sequence[AttendanceMark],
        written_at: datetime,
    ) -> None:
        """Upsert every mark of one batch atomically.

        A batch never interleaves with another batch for the same
        (work_date, context); each mark takes a fresh write sequence number.
        """

        raise NotImplementedError

    def get_entry(self, work_date: date, context: AttendanceContext) -> Optional[AttendanceEntry]:
        raise NotImplementedError

    def marks_for_student(self, student_id: str) -> Sequence[StoredMark]:
        raise NotImplementedError

    def count_by_status(self) -> Dict[AttendanceStatus, int]:
        raise NotImplementedError
