import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_ops_test"),
}

STORAGE_BACKEND = "memory"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

STAFF_SESSION_DAYS = 7
STUDENT_SESSION_HOURS = 8

AUTO_INIT_DB = False
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
