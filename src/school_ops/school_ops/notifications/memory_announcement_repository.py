from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, Optional, Sequence

from .model import Announcement
from .repository import AnnouncementRepository


class InMemoryAnnouncementRepository(AnnouncementRepository):
    def __init__(self, announcements: Sequence[Announcement] = ()):
        self._lock = threading.Lock()
        self._by_id: Dict[str, Announcement] = {a.id: a for a in announcements}

    def list_all(self) -> Sequence[Announcement]:
        with self._lock:
            return list(self._by_id.values())

    def add(self, announcement: Announcement) -> None:
        with self._lock:
            self._by_id[announcement.id] = announcement

    def set_active(self, announcement_id: str, active: bool) -> Optional[Announcement]:
        with self._lock:
            current = self._by_id.get(announcement_id)
            if current is None:
                return None
            updated = replace(current, active=bool(active))
            self._by_id[announcement_id] = updated
            return updated
