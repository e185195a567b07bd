from __future__ import annotations

import itertools
import threading
import weakref
from collections import Counter
from datetime import date, datetime
from typing import Dict, Optional, Sequence, Tuple

from ..core.enums import AttendanceStatus
from .model import AttendanceContext, AttendanceEntry, AttendanceMark, StoredMark
from .repository import AttendanceRepository

EntryKey = Tuple[date, str]


class InMemoryAttendanceRepository(AttendanceRepository):
    """Attendance ledger kept in process memory.

    Writers to the same (date, context) hold that key's lock for the whole
    batch; the finished batch is swapped in under the store lock so readers
    never observe half of it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        # Entries vanish once no writer holds the lock.
        self._key_locks = weakref.WeakValueDictionary()
        self._entries: Dict[EntryKey, Dict[str, StoredMark]] = {}
        self._contexts: Dict[EntryKey, AttendanceContext] = {}
        self._seq = itertools.count(1)

    def _lock_for(self, key: EntryKey) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def write_batch(
        self,
        *,
        work_date: date,
        context: AttendanceContext,
        marks: Sequence[AttendanceMark],
        written_at: datetime,
    ) -> None:
        key = (work_date, context.key)
        with self._lock_for(key):
            with self._lock:
                current = dict(self._entries.get(key, {}))
                seqs = [next(self._seq) for _ in marks]
            for mark, seq in zip(marks, seqs):
                current[mark.student_id] = StoredMark(
                    date=work_date,
                    context=context,
                    student_id=mark.student_id,
                    status=mark.status,
                    write_seq=seq,
                    written_at=written_at,
                )
            with self._lock:
                self._entries[key] = current
                self._contexts[key] = context

    def get_entry(self, work_date: date, context: AttendanceContext) -> Optional[AttendanceEntry]:
        key = (work_date, context.key)
        with self._lock:
            marks = self._entries.get(key)
            if marks is None:
                return None
            records = tuple(AttendanceMark(student_id=m.student_id, status=m.status) for m in marks.values())
            return AttendanceEntry(date=work_date, context=self._contexts[key], records=records)

    def marks_for_student(self, student_id: str) -> Sequence[StoredMark]:
        with self._lock:
            return [m[student_id] for m in self._entries.values() if student_id in m]

    def count_by_status(self) -> Dict[AttendanceStatus, int]:
        with self._lock:
            return dict(Counter(mark.status for marks in self._entries.values() for mark in marks.values()))
