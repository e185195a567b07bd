from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.memory_attendance_repository import InMemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_STAFF_SESSION_DAYS, DEFAULT_STUDENT_SESSION_HOURS
from .database.connection import DatabaseConnection, DBConfig
from .identity.memory_user_repository import InMemoryUserRepository
from .identity.mysql_user_repository import MySQLUserRepository
from .identity.provider import PasswordProvider, WerkzeugPasswordProvider
from .identity.repository import UserRepository
from .identity.service import LoginEventSink, SessionResolver, UserService
from .notifications.memory_announcement_repository import InMemoryAnnouncementRepository
from .notifications.mysql_announcement_repository import MySQLAnnouncementRepository
from .notifications.repository import AnnouncementRepository
from .notifications.service import NotificationService
from .workshops.factory import EnrollmentRuleFactory
from .workshops.memory_workshop_repository import InMemoryWorkshopRepository
from .workshops.mysql_workshop_repository import MySQLWorkshopRepository
from .workshops.repository import WorkshopRepository
from .workshops.service import EnrollmentService, WorkshopService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    workshops_repo: WorkshopRepository
    announcements_repo: AnnouncementRepository
    passwords: PasswordProvider

    session_resolver: SessionResolver
    user_service: UserService
    attendance_service: AttendanceService
    workshop_service: WorkshopService
    enrollment_service: EnrollmentService
    notification_service: NotificationService


def build_container(
    *,
    db_config: Optional[dict] = None,
    backend: str = "mysql",
    staff_session_days: int = DEFAULT_STAFF_SESSION_DAYS,
    student_session_hours: int = DEFAULT_STUDENT_SESSION_HOURS,
    login_events: Optional[LoginEventSink] = None,
) -> Container:
    conn: Optional[DatabaseConnection] = None
    if backend == "memory":
        users_repo = InMemoryUserRepository()
        attendance_repo = InMemoryAttendanceRepository()
        workshops_repo = InMemoryWorkshopRepository()
        announcements_repo = InMemoryAnnouncementRepository()
    elif backend == "mysql":
        if not db_config:
            raise ValueError("db_config is required for the mysql backend")
        conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
        users_repo = MySQLUserRepository(conn)
        attendance_repo = MySQLAttendanceRepository(conn)
        workshops_repo = MySQLWorkshopRepository(conn)
        announcements_repo = MySQLAnnouncementRepository(conn)
    else:
        raise ValueError(f"Unknown storage backend: {backend!r}")

    passwords = WerkzeugPasswordProvider()

    session_resolver = SessionResolver(
        users_repo,
        passwords,
        events=login_events,
        staff_session_days=staff_session_days,
        student_session_hours=student_session_hours,
    )
    user_service = UserService(users_repo, passwords)
    attendance_service = AttendanceService(attendance_repo, users_repo, workshops_repo)
    workshop_service = WorkshopService(workshops_repo, users_repo)
    enrollment_service = EnrollmentService(workshops_repo, users_repo, rule_factory=EnrollmentRuleFactory())
    notification_service = NotificationService(announcements_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        workshops_repo=workshops_repo,
        announcements_repo=announcements_repo,
        passwords=passwords,
        session_resolver=session_resolver,
        user_service=user_service,
        attendance_service=attendance_service,
        workshop_service=workshop_service,
        enrollment_service=enrollment_service,
        notification_service=notification_service,
    )
