import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance"),
}

# Bounded connect/read timeout for MySQL and Redis (seconds)
STORE_TIMEOUT_SECONDS = int(os.getenv("STORE_TIMEOUT_SECONDS", "5"))

# "memory" keeps the cache in-process; "redis" shares it between workers
CACHE_BACKEND = os.getenv("CACHE_BACKEND", "memory")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# TTL overrides in seconds, keyed by TTL class ("dashboard") or region ("daily-summary")
CACHE_TTLS = {}

# ISO weekdays (Monday=1) on which no attendance is taken
NON_ATTENDANCE_WEEKDAYS = os.getenv("NON_ATTENDANCE_WEEKDAYS", "7")

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
DEBUG = True

# If enabled, schema.sql is applied on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
