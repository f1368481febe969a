import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance_test"),
}

STORE_TIMEOUT_SECONDS = 2

CACHE_BACKEND = "memory"
REDIS_URL = None

CACHE_TTLS = {}

NON_ATTENDANCE_WEEKDAYS = {7}

LOG_LEVEL = "WARNING"
DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
