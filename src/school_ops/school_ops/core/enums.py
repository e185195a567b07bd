from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role. Decides which credential scheme is authoritative."""

    ADMIN = "admin"
    TEACHER = "teacher"
    PARENT = "parent"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """One observation for one student in one attendance batch."""

    PRESENT = "present"
    LATE = "late"
    JUSTIFIED = "justified"
    ABSENT = "absent"
    NONE = "none"


class WorkshopStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Audience(str, Enum):
    """Announcement visibility bucket."""

    ALL = "all"
    STUDENTS = "students"
    PARENTS = "parents"
    TEACHERS = "teachers"


class AnnouncementType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    URGENT = "urgent"
