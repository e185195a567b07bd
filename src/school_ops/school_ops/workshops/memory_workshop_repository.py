from __future__ import annotations

import threading
from dataclasses import replace
from typing import Callable, Dict, Optional, Sequence

from .model import Workshop
from .repository import ParticipantsMutation, WorkshopRepository


class InMemoryWorkshopRepository(WorkshopRepository):
    """Workshops kept in process memory with one mutex per workshop."""

    def __init__(self, workshops: Sequence[Workshop] = ()):
        self._lock = threading.Lock()
        self._workshop_locks: Dict[str, threading.Lock] = {}
        self._by_id: Dict[str, Workshop] = {}
        for workshop in workshops:
            self.add(workshop)

    def _lock_for(self, workshop_id: str) -> threading.Lock:
        with self._lock:
            return self._workshop_locks.setdefault(workshop_id, threading.Lock())

    def get_by_id(self, workshop_id: str) -> Optional[Workshop]:
        with self._lock:
            return self._by_id.get(workshop_id)

    def list_all(self) -> Sequence[Workshop]:
        with self._lock:
            return sorted(self._by_id.values(), key=lambda w: w.title.lower())

    def add(self, workshop: Workshop) -> None:
        with self._lock:
            self._by_id[workshop.id] = workshop

    def update(self, workshop_id: str, mutate: Callable[[Workshop], Workshop]) -> Optional[Workshop]:
        with self._lock_for(workshop_id):
            current = self.get_by_id(workshop_id)
            if current is None:
                return None
            updated = replace(mutate(current), id=current.id, participants=current.participants)
            with self._lock:
                self._by_id[workshop_id] = updated
            return updated

    def delete_by_id(self, workshop_id: str) -> bool:
        with self._lock_for(workshop_id):
            with self._lock:
                self._workshop_locks.pop(workshop_id, None)
                return self._by_id.pop(workshop_id, None) is not None

    def mutate_participants(self, workshop_id: str, mutate: ParticipantsMutation) -> Optional[Workshop]:
        with self._lock_for(workshop_id):
            current = self.get_by_id(workshop_id)
            if current is None:
                return None
            updated = replace(current, participants=tuple(mutate(current)))
            with self._lock:
                self._by_id[workshop_id] = updated
            return updated

    def list_for_student(self, student_id: str) -> Sequence[Workshop]:
        return [w for w in self.list_all() if w.has_participant(student_id)]
