from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Announcement


class AnnouncementRepository(Protocol):
    def list_all(self) -> Sequence[Announcement]:
        raise NotImplementedError

    def add(self, announcement: Announcement) -> None:
        raise NotImplementedError

    def set_active(self, announcement_id: str, active: bool) -> Optional[Announcement]:
        raise NotImplementedError
