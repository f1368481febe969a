"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# ISO weekday numbers (Monday=1 .. Sunday=7)
SUNDAY = 7
DEFAULT_NON_ATTENDANCE_WEEKDAYS = frozenset({SUNDAY})

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 500
DEFAULT_QUERY_FETCH_SIZE = 200

DEFAULT_STORE_TIMEOUT_SECONDS = 5

HOLIDAY_NOTE = "Holiday"
MAX_NOTE_LENGTH = 500

# MySQL error numbers translated by the ledger
MYSQL_ER_DUP_ENTRY = 1062
MYSQL_ER_NO_REFERENCED_ROW = 1452
MYSQL_ER_LOCK_WAIT_TIMEOUT = 1205
MYSQL_ER_LOCK_DEADLOCK = 1213
