from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Tuple

from ..core.enums import AttendanceStatus
from ..core.exceptions import InvalidContext


@dataclass(frozen=True)
class AttendanceContext:
    """Grouping key of one attendance batch: a class (grade+section) or a workshop."""

    grade: Optional[str] = None
    section: Optional[str] = None
    workshop_id: Optional[str] = None

    @classmethod
    def for_class(cls, grade: str, section: str) -> "AttendanceContext":
        return cls(grade=grade, section=section)

    @classmethod
    def for_workshop(cls, workshop_id: str) -> "AttendanceContext":
        return cls(workshop_id=workshop_id)

    @classmethod
    def from_mapping(cls, data: dict) -> "AttendanceContext":
        ctx = cls(
            grade=(data.get("grade") or None),
            section=(data.get("section") or None),
            workshop_id=(data.get("workshopId") or data.get("workshop_id") or None),
        )
        ctx.validate()
        return ctx

    @property
    def is_workshop(self) -> bool:
        return self.workshop_id is not None

    @property
    def key(self) -> str:
        if self.is_workshop:
            return f"ws:{self.workshop_id}"
        # JSON keeps grade and section apart whatever characters they contain.
        return "gs:" + json.dumps([self.grade, self.section], ensure_ascii=False)

    def validate(self) -> None:
        has_class = bool(self.grade and str(self.grade).strip()) and bool(self.section and str(self.section).strip())
        has_workshop = bool(self.workshop_id and str(self.workshop_id).strip())
        if has_workshop and (self.grade or self.section):
            raise InvalidContext("Context must be either grade/section or a workshop, not both")
        if not has_workshop and not has_class:
            raise InvalidContext("Context needs a grade and section, or a workshop id")

    def to_dict(self) -> dict:
        if self.is_workshop:
            return {"workshopId": self.workshop_id}
        return {"grade": self.grade, "section": self.section}


@dataclass(frozen=True)
class AttendanceMark:
    student_id: str
    status: AttendanceStatus


@dataclass(frozen=True)
class AttendanceEntry:
    date: date
    context: AttendanceContext
    records: Tuple[AttendanceMark, ...]


@dataclass(frozen=True)
class StoredMark:
    """One persisted (date, context, student) observation with its write order."""

    date: date
    context: AttendanceContext
    student_id: str
    status: AttendanceStatus
    write_seq: int
    written_at: datetime


@dataclass(frozen=True)
class HistoryItem:
    date: date
    context: AttendanceContext
    status: AttendanceStatus

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "context": self.context.to_dict(), "status": self.status.value}


@dataclass(frozen=True)
class AttendanceAck:
    date: date
    context: AttendanceContext
    written: int


def attendance_rate(present: int, late: int, total: int) -> int:
    """round(100 * (present + late) / total), halves away from zero; 0 when empty."""
    if total <= 0:
        return 0
    return (200 * (present + late) + total) // (2 * total)


@dataclass(frozen=True)
class AttendanceStats:
    present_count: int = 0
    late_count: int = 0
    absent_count: int = 0
    justified_count: int = 0
    total: int = 0
    attendance_rate: int = 0

    @classmethod
    def from_statuses(cls, statuses: Iterable[AttendanceStatus]) -> "AttendanceStats":
        counts = Counter(statuses)
        return cls.from_counts(counts)

    @classmethod
    def from_counts(cls, counts) -> "AttendanceStats":
        present = int(counts.get(AttendanceStatus.PRESENT, 0))
        late = int(counts.get(AttendanceStatus.LATE, 0))
        total = int(sum(counts.values()))
        return cls(
            present_count=present,
            late_count=late,
            absent_count=int(counts.get(AttendanceStatus.ABSENT, 0)),
            justified_count=int(counts.get(AttendanceStatus.JUSTIFIED, 0)),
            total=total,
            attendance_rate=attendance_rate(present, late, total),
        )

    def to_dict(self) -> dict:
        return {
            "presentCount": self.present_count,
            "lateCount": self.late_count,
            "absentCount": self.absent_count,
            "justifiedCount": self.justified_count,
            "total": self.total,
            "attendanceRate": self.attendance_rate,
        }
