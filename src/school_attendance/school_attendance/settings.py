from __future__ import annotations

from dataclasses import dataclass, field
from types import ModuleType
from typing import Mapping, Optional

from .core.constants import DEFAULT_NON_ATTENDANCE_WEEKDAYS, DEFAULT_STORE_TIMEOUT_SECONDS
from .core.enums import CacheBackendKind


@dataclass(frozen=True)
class EngineSettings:
    """Typed view over a ``config.*`` settings module."""

    db_config: Mapping[str, object]
    store_timeout_seconds: int = DEFAULT_STORE_TIMEOUT_SECONDS
    cache_backend: CacheBackendKind = CacheBackendKind.MEMORY
    redis_url: Optional[str] = None
    cache_ttls: Mapping[str, int] = field(default_factory=dict)
    non_attendance_weekdays: frozenset[int] = DEFAULT_NON_ATTENDANCE_WEEKDAYS
    log_level: str = "INFO"
    auto_init_db: bool = False
    debug: bool = False

    @classmethod
    def from_module(cls, settings: ModuleType) -> "EngineSettings":
        backend = CacheBackendKind(str(getattr(settings, "CACHE_BACKEND", CacheBackendKind.MEMORY.value)).lower())
        redis_url = getattr(settings, "REDIS_URL", None) or None
        if backend == CacheBackendKind.REDIS and not redis_url:
            raise ValueError("REDIS_URL is required when CACHE_BACKEND is 'redis'")

        return cls(
            db_config=dict(getattr(settings, "DB_CONFIG")),
            store_timeout_seconds=int(getattr(settings, "STORE_TIMEOUT_SECONDS", DEFAULT_STORE_TIMEOUT_SECONDS)),
            cache_backend=backend,
            redis_url=redis_url,
            cache_ttls=_cache_ttls(getattr(settings, "CACHE_TTLS", None)),
            non_attendance_weekdays=_weekdays(getattr(settings, "NON_ATTENDANCE_WEEKDAYS", DEFAULT_NON_ATTENDANCE_WEEKDAYS)),
            log_level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
            auto_init_db=bool(getattr(settings, "AUTO_INIT_DB", False)),
            debug=bool(getattr(settings, "DEBUG", False)),
        )


def parse_weekdays(raw: str) -> frozenset[int]:
    """``"6,7"`` -> ``{6, 7}``; blank means no excluded weekday."""

    return frozenset(int(part) for part in raw.split(",") if part.strip())


def _weekdays(value) -> frozenset[int]:
    if isinstance(value, str):
        return parse_weekdays(value)
    return frozenset(int(d) for d in value)


def _cache_ttls(value) -> dict[str, int]:
    """Accept a mapping or ``"name=seconds,name=seconds"``."""

    if not value:
        return {}
    if isinstance(value, str):
        pairs = (item.split("=", 1) for item in value.split(",") if "=" in item)
        return {name.strip(): int(seconds) for name, seconds in pairs}
    return {str(name): int(seconds) for name, seconds in value.items()}
