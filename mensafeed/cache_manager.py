"""
Meal / opening-status cache.

Binds the generic PersistentCache to the two kinds of data this project
keeps:

    meals_<canteen id>_<YYYY-MM-DD>    list of meals,  kept 30 days
    opening_<canteen id>_<YYYY-MM-DD>  open or closed, kept 7 days
"""

from __future__ import annotations

import logging
from typing import List, Optional

from mensafeed.cache import PersistentCache
from mensafeed.model import DateLike, Meal, day_key, meals_from_payload, meals_to_payload

logger = logging.getLogger(__name__)

MEALS_KEY_PREFIX = "meals_"
OPENING_TIMES_KEY_PREFIX = "opening_"

HOUR_MILLIS = 60 * 60 * 1000
# published meal plans rarely change, opening schedules are reviewed weekly
MEAL_CACHE_TTL_MILLIS = 30 * 24 * HOUR_MILLIS
OPENING_TIMES_CACHE_TTL_MILLIS = 7 * 24 * HOUR_MILLIS


def meals_key(canteen_id: int, date: DateLike) -> str:
    return f"{MEALS_KEY_PREFIX}{canteen_id}_{day_key(date)}"


def opening_key(canteen_id: int, date: DateLike) -> str:
    return f"{OPENING_TIMES_KEY_PREFIX}{canteen_id}_{day_key(date)}"


def _as_bool(value: object) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected a bool, got {type(value).__name__}")
    return value


class MensaCacheManager:
    def __init__(self, cache: Optional[PersistentCache] = None) -> None:
        self._cache = cache if cache is not None else PersistentCache()

    @property
    def cache(self) -> PersistentCache:
        return self._cache

    # -- meals --------------------------------------------------------------

    def cache_meals(self, canteen_id: int, date: DateLike, meals: List[Meal]) -> None:
        expires_at = self._cache.now() + MEAL_CACHE_TTL_MILLIS
        self._cache.put(meals_key(canteen_id, date), meals_to_payload(meals), expires_at)

    def get_cached_meals(self, canteen_id: int, date: DateLike) -> Optional[List[Meal]]:
        """Return the cached meals, or None on a miss."""
        meals = self._cache.get(meals_key(canteen_id, date), meals_from_payload)
        logger.debug("meals cache %s for %s/%s", "hit" if meals is not None else "miss", canteen_id, date)
        return meals

    def has_cached_meals(self, canteen_id: int, date: DateLike) -> bool:
        return self._cache.contains(meals_key(canteen_id, date))

    def remove_cached_meals(self, canteen_id: int, date: DateLike) -> bool:
        return self._cache.remove(meals_key(canteen_id, date))

    # -- opening status -----------------------------------------------------

    def cache_opening_times(self, canteen_id: int, date: DateLike, is_open: bool) -> None:
        expires_at = self._cache.now() + OPENING_TIMES_CACHE_TTL_MILLIS
        self._cache.put(opening_key(canteen_id, date), bool(is_open), expires_at)

    def get_cached_opening_times(self, canteen_id: int, date: DateLike) -> Optional[bool]:
        return self._cache.get(opening_key(canteen_id, date), _as_bool)

    def has_cached_opening_times(self, canteen_id: int, date: DateLike) -> bool:
        return self._cache.contains(opening_key(canteen_id, date))

    def remove_cached_opening_times(self, canteen_id: int, date: DateLike) -> bool:
        return self._cache.remove(opening_key(canteen_id, date))

    # -- bulk ---------------------------------------------------------------

    def clear_canteen_cache(self, canteen_id: int) -> int:
        """Drop every entry of one canteen. Returns the number removed."""
        prefixes = (f"{MEALS_KEY_PREFIX}{canteen_id}_", f"{OPENING_TIMES_KEY_PREFIX}{canteen_id}_")
        removed = 0
        for key in self._cache.get_all_keys():
            if key.startswith(prefixes) and self._cache.remove(key):
                removed += 1
        return removed

    def clear_expired(self) -> int:
        return self._cache.clear_expired()

    def clear_all(self) -> None:
        self._cache.clear_all()

    def size(self) -> int:
        return self._cache.size()
