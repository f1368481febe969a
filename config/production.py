import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance"),
}

STORE_TIMEOUT_SECONDS = int(os.getenv("STORE_TIMEOUT_SECONDS", "5"))

CACHE_BACKEND = os.getenv("CACHE_BACKEND", "redis")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# e.g. "dashboard=120,student-statistics=600"
CACHE_TTLS = os.getenv("CACHE_TTLS", "")

NON_ATTENDANCE_WEEKDAYS = os.getenv("NON_ATTENDANCE_WEEKDAYS", "7")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
