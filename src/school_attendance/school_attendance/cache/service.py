from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional, TypeVar

from ..core.exceptions import TransientStoreError
from .backend import CacheBackend
from .keys import CacheKey, field_pattern
from .regions import REGION_POLICIES, CacheConfig, CacheRegion, regions_keyed_by

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    errors: int


class AttendanceCache:
    """Read-through cache of aggregates with explicit invalidation.

    Backend failures never escape: a failed read is a miss, a failed write
    or eviction is logged and skipped, and the caller always falls through
    to the ledger. The cache is never the source of truth.
    """

    def __init__(self, backend: CacheBackend, config: Optional[CacheConfig] = None):
        self._backend = backend
        self._config = config or CacheConfig()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._errors = 0

    @property
    def config(self) -> CacheConfig:
        return self._config

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(hits=self._hits, misses=self._misses, errors=self._errors)

    def _count(self, *, hit: bool = False, miss: bool = False, error: bool = False) -> None:
        with self._lock:
            self._hits += int(hit)
            self._misses += int(miss)
            self._errors += int(error)

    def get_or_compute(self, key: CacheKey, compute: Callable[[], T]) -> T:
        name = key.serialized
        try:
            cached = self._backend.get(name)
        except TransientStoreError as exc:
            logger.warning("Cache GET error for %s - %s", name, exc)
            self._count(error=True)
            cached = None

        if cached is not None:
            self._count(hit=True)
            return cached

        self._count(miss=True)
        logger.debug("Cache miss for %s", name)
        value = compute()
        if value is None:
            return value

        try:
            self._backend.set(name, value, self._config.ttl_for(key.region))
        except TransientStoreError as exc:
            logger.warning("Cache PUT error for %s - %s", name, exc)
            self._count(error=True)
        return value

    def invalidate(self, region: CacheRegion, pattern: str = "*") -> int:
        full_pattern = f"{region.value}:{pattern}"
        try:
            return self._backend.delete_matching(full_pattern)
        except TransientStoreError as exc:
            logger.warning("Cache EVICT error for %s - %s", full_pattern, exc)
            self._count(error=True)
            return 0

    def invalidate_all(self, regions: Optional[Iterable[CacheRegion]] = None) -> None:
        for region in regions if regions is not None else tuple(CacheRegion):
            self.invalidate(region)

    def invalidate_for_write(self, *, student_id: int, work_date: date) -> None:
        """Evict everything a single-fact write can make stale."""

        cleared = self._clear_school_level_regions()
        self._invalidate_field("student", student_id, skip=cleared)
        self._invalidate_field("date", work_date, skip=cleared)
        logger.debug("Invalidated caches for student %s on %s", student_id, work_date)

    def invalidate_for_batch(self, *, dates: Iterable[date]) -> None:
        """Evict after a roster-wide write: student-keyed regions go wholesale."""

        cleared = self._clear_school_level_regions()
        for region in regions_keyed_by("student"):
            if region not in cleared and REGION_POLICIES[region].derived_from_attendance:
                self.invalidate(region)
                cleared.add(region)
        for work_date in sorted(set(dates)):
            self._invalidate_field("date", work_date, skip=cleared)
        logger.info("Invalidated attendance caches after batch write")

    def invalidate_roster(self, school_id: Optional[int] = None) -> None:
        """Evict roster lookups, e.g. after students join or leave a school."""

        roster_regions = (CacheRegion.CLASS_ROSTER, CacheRegion.SCHOOL_CLASSES)
        profile_regions = (CacheRegion.STUDENT_PROFILE, CacheRegion.TEACHER_PROFILE)
        pattern = "*" if school_id is None else field_pattern("school", school_id)
        for region in roster_regions:
            self.invalidate(region, pattern)
        self.invalidate_all(profile_regions)

    def _clear_school_level_regions(self) -> set[CacheRegion]:
        # an overwrite can move a fact away from its previous marking teacher,
        # so teacher aggregates go with the school-level ones
        cleared: set[CacheRegion] = set()
        for region, policy in REGION_POLICIES.items():
            if policy.cleared_on_any_write or (policy.derived_from_attendance and "teacher" in policy.key_fields):
                self.invalidate(region)
                cleared.add(region)
        return cleared

    def _invalidate_field(self, name: str, value, *, skip: set[CacheRegion]) -> None:
        pattern = field_pattern(name, value)
        for region in regions_keyed_by(name):
            if region in skip:
                continue
            if not REGION_POLICIES[region].derived_from_attendance:
                continue
            self.invalidate(region, pattern)
