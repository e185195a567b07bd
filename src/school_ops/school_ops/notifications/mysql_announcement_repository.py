from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import AnnouncementType, Audience
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Announcement
from .repository import AnnouncementRepository


def _to_announcement(row: dict) -> Announcement:
    active = row.get("active")
    return Announcement(
        id=row["announcement_id"],
        title=row["title"],
        message=row["message"],
        type=AnnouncementType(row["type"]),
        target_audience=Audience(row["target_audience"]),
        active=None if active is None else bool(active),
        created_at=row.get("created_at"),
        created_by=row.get("created_by"),
    )


class MySQLAnnouncementRepository(AnnouncementRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT announcement_id, title, message, type, target_audience, active, created_at, created_by
                FROM announcements
                """
            )
            return [_to_announcement(r) for r in fetchall(cur)]

    def add(self, announcement: Announcement) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO announcements(announcement_id, title, message, type, target_audience,
                                          active, created_at, created_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    announcement.id,
                    announcement.title,
                    announcement.message,
                    announcement.type.value,
                    announcement.target_audience.value,
                    None if announcement.active is None else int(announcement.active),
                    announcement.created_at,
                    announcement.created_by,
                ),
            )

    def set_active(self, announcement_id: str, active: bool) -> Optional[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE announcements SET active=%s WHERE announcement_id=%s",
                (int(bool(active)), announcement_id),
            )
            cur.execute(
                """
                SELECT announcement_id, title, message, type, target_audience, active, created_at, created_by
                FROM announcements
                WHERE announcement_id=%s
                """,
                (announcement_id,),
            )
            row = fetchone(cur)
            return _to_announcement(row) if row else None
