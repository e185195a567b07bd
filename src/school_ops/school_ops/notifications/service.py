from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_enum, require_non_empty
from ..core.enums import AnnouncementType, Audience, Role
from ..core.exceptions import AnnouncementNotFound
from ..identity.access import require_role
from ..identity.model import Principal
from .model import Announcement
from .repository import AnnouncementRepository

logger = logging.getLogger(__name__)

# Every role also sees Audience.ALL.
_AUDIENCE_BY_ROLE = {
    Role.ADMIN: Audience.TEACHERS,
    Role.TEACHER: Audience.TEACHERS,
    Role.PARENT: Audience.PARENTS,
    Role.STUDENT: Audience.STUDENTS,
}


def audience_for(role: Role) -> Audience:
    return _AUDIENCE_BY_ROLE[Role(role)]


class NotificationService:
    """Filters the shared announcement feed by the audience a role maps to.

    There is no per-user read state: the unread count is simply the number of
    relevant active announcements.
    """

    def __init__(
        self,
        announcements: AnnouncementRepository,
        *,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
        clock: Callable[[], datetime] = now_local,
    ):
        self._announcements = announcements
        self._new_id = id_factory
        self._clock = clock

    def relevant_for(self, role: Role) -> Sequence[Announcement]:
        visible = {Audience.ALL, audience_for(role)}
        items = [a for a in self._announcements.list_all() if a.is_active and a.target_audience in visible]
        # Newest first; undated announcements go last.
        items.sort(key=lambda a: (a.created_at is not None, a.created_at or datetime.min), reverse=True)
        return items

    def unread_count(self, role: Role) -> int:
        return len(self.relevant_for(role))

    def publish(
        self,
        principal: Principal,
        *,
        title: str,
        message: str,
        type=AnnouncementType.INFO,
        target_audience=Audience.ALL,
    ) -> Announcement:
        require_role(principal, Role.ADMIN)
        announcement = Announcement(
            id=self._new_id(),
            title=require_non_empty(title, "Title"),
            message=require_non_empty(message, "Message"),
            type=require_enum(type, AnnouncementType, "Type"),
            target_audience=require_enum(target_audience, Audience, "Audience"),
            active=True,
            created_at=self._clock(),
            created_by=principal.id,
        )
        self._announcements.add(announcement)
        logger.info("announcement published: id=%s audience=%s", announcement.id, announcement.target_audience.value)
        return announcement

    def set_active(self, principal: Principal, announcement_id: str, active: bool) -> Announcement:
        require_role(principal, Role.ADMIN)
        updated = self._announcements.set_active(announcement_id, active)
        if updated is None:
            raise AnnouncementNotFound("Announcement not found")
        return updated
