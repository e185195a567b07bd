"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_STAFF_SESSION_DAYS = 7
DEFAULT_STUDENT_SESSION_HOURS = 8
MIN_PASSWORD_LENGTH = 6
