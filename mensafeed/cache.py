"""
Persistent TTL cache.

Entries live in memory for fast access and are mirrored to one JSON file per
key so they survive restarts:

    ~/.mensa4j/cache/<sanitized key>.cache.json

File format:

    {"key": "...", "data": <payload>, "created_at": <ms>, "expires_at": <ms>}

Contract:
- An entry is never returned after its expiration time, evicted or not
- Disk problems never reach the caller; the cache falls back to memory
- A corrupt or half-written file is deleted and treated as a miss
- Values must be JSON-compatible (dicts, lists, str, numbers, bool)
"""

from __future__ import annotations

import json
import logging
import os
import re
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from mensafeed.config import default_cache_dir

logger = logging.getLogger(__name__)

T = TypeVar("T")

CACHE_FILE_SUFFIX = ".cache.json"
DEFAULT_TTL_MILLIS = 24 * 60 * 60 * 1000

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9.-]")


def now_millis() -> int:
    return int(time.time() * 1000)


def sanitize_key(key: str) -> str:
    """Make a cache key safe to use as a file name ('meals_1/x' -> 'meals_1_x')."""
    return _UNSAFE_FILENAME_CHARS.sub("_", key)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    data: Any
    created_at: int
    expires_at: int

    def is_expired(self, now: int) -> bool:
        return now > self.expires_at

    def remaining_millis(self, now: int) -> int:
        return max(0, self.expires_at - now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "data": self.data,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
        }

    @classmethod
    def from_dict(cls, raw: Any, fallback_key: str) -> "CacheEntry":
        """Raises KeyError/TypeError/ValueError if `raw` is not a cache entry."""
        if not isinstance(raw, dict):
            raise TypeError(f"cache entry must be an object, got {type(raw).__name__}")
        key = raw.get("key")
        return cls(
            key=key if isinstance(key, str) and key else fallback_key,
            data=raw["data"],
            created_at=int(raw["created_at"]),
            expires_at=int(raw["expires_at"]),
        )


class PersistentCache:
    """
    Key -> JSON value store with per-entry absolute expiration.

    The memory tier is guarded by a lock so one instance can be shared by
    several threads. Concurrent writers of the same key on disk are not
    coordinated; the last rename wins.
    """

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self._dir = Path(cache_dir) if cache_dir is not None else default_cache_dir()
        self._clock = clock
        self._lock = threading.RLock()
        self._memory: Dict[str, CacheEntry] = {}
        self._disk_enabled = self._create_cache_dir()

        if self._disk_enabled:
            self._load_existing()

    # -- properties ---------------------------------------------------------

    @property
    def cache_dir(self) -> Path:
        return self._dir

    @property
    def disk_enabled(self) -> bool:
        return self._disk_enabled

    def now(self) -> int:
        """Current time of the cache clock in epoch milliseconds."""
        return self._clock()

    # -- disk helpers -------------------------------------------------------

    def _create_cache_dir(self) -> bool:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Cannot create cache directory %s, caching in memory only: %s", self._dir, e)
            return False
        return True

    def _path_for(self, key: str) -> Path:
        return self._dir / f"{sanitize_key(key)}{CACHE_FILE_SUFFIX}"

    def _load_existing(self) -> None:
        try:
            files = sorted(self._dir.glob(f"*{CACHE_FILE_SUFFIX}"))
        except OSError as e:
            logger.warning("Failed to list cache directory %s: %s", self._dir, e)
            return

        now = self._clock()
        loaded = 0
        for path in files:
            entry = self._read_file(path)
            if entry is None:
                continue
            if entry.is_expired(now):
                self._delete_file(path)
                continue
            self._memory[entry.key] = entry
            loaded += 1
        logger.debug("Loaded %d cache entries from %s", loaded, self._dir)

    def _read_file(self, path: Path) -> Optional[CacheEntry]:
        fallback_key = path.name[: -len(CACHE_FILE_SUFFIX)]
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return CacheEntry.from_dict(raw, fallback_key)
        except FileNotFoundError:
            # removed by someone else between listing and reading
            return None
        except (OSError, UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
            logger.warning("Deleting unreadable cache file %s: %s", path, e)
            self._delete_file(path)
            return None

    def _write_file(self, entry: CacheEntry, text: str) -> None:
        if not self._disk_enabled:
            return
        path = self._path_for(entry.key)
        tmp = path.with_name(f"{path.name}.{os.getpid()}.{threading.get_ident()}.tmp")
        try:
            tmp.write_text(text, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            logger.warning("Failed to persist cache entry %r, keeping it in memory only: %s", entry.key, e)
            self._delete_file(tmp)

    def _delete_file(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove cache file %s: %s", path, e)

    def _remove_from_disk(self, key: str) -> None:
        if self._disk_enabled:
            self._delete_file(self._path_for(key))

    # -- public API ---------------------------------------------------------

    def put(self, key: str, value: Any, expires_at: Optional[int] = None) -> None:
        """
        Store `value` under `key` until `expires_at` (epoch milliseconds).

        Without `expires_at` the entry lives for 24 hours. Raises ValueError
        for a missing key/value and TypeError if the value is not
        JSON-serializable.
        """
        if key is None or value is None:
            raise ValueError("Key and value cannot be None")

        now = self._clock()
        if expires_at is None:
            expires_at = now + DEFAULT_TTL_MILLIS

        entry = CacheEntry(key=key, data=value, created_at=now, expires_at=int(expires_at))
        # serialize first: a value that is not JSON never reaches memory
        text = json.dumps(entry.to_dict(), indent=2, ensure_ascii=False)

        with self._lock:
            self._memory[key] = entry
        self._write_file(entry, text)

    def _live_entry(self, key: Optional[str]) -> Optional[CacheEntry]:
        if key is None:
            return None
        with self._lock:
            entry = self._memory.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._evict(key, entry)
            return None
        return entry

    def _evict(self, key: str, entry: CacheEntry) -> None:
        # only drop the entry we looked at, not one a concurrent put just stored
        with self._lock:
            if self._memory.get(key) is not entry:
                return
            del self._memory[key]
        self._remove_from_disk(key)

    def get(self, key: str, shape: Optional[Callable[[Any], T]] = None) -> Optional[T]:
        """
        Return the value stored under `key`, or None if missing or expired.

        `shape` converts the raw JSON value into the type the caller wants
        (e.g. a list of Meal). If the conversion fails the entry is dropped
        and None is returned.
        """
        entry = self._live_entry(key)
        if entry is None:
            return None
        if shape is None:
            return entry.data

        try:
            return shape(entry.data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Dropping cache entry %r that does not decode: %s", key, e)
            self.remove(key)
            return None

    def contains(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def remove(self, key: str) -> bool:
        """Delete `key` from memory and disk. Returns True if it was in memory."""
        if key is None:
            return False
        with self._lock:
            removed = self._memory.pop(key, None)
        self._remove_from_disk(key)
        return removed is not None

    def clear_expired(self) -> int:
        """Evict every expired entry. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._memory.items() if e.is_expired(now)]
            for k in expired:
                del self._memory[k]
        for k in expired:
            self._remove_from_disk(k)
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))
        return len(expired)

    def perform_maintenance(self) -> int:
        return self.clear_expired()

    def clear_all(self) -> None:
        with self._lock:
            keys = list(self._memory)
            self._memory.clear()
        for k in keys:
            self._remove_from_disk(k)
        if not self._disk_enabled:
            return
        # files written by another process are not in our memory tier
        try:
            leftovers = list(self._dir.glob(f"*{CACHE_FILE_SUFFIX}"))
        except OSError as e:
            logger.warning("Failed to list cache directory %s: %s", self._dir, e)
            return
        for path in leftovers:
            self._delete_file(path)

    def get_all_keys(self) -> List[str]:
        """Keys currently in memory, including expired ones not yet evicted."""
        with self._lock:
            return list(self._memory)

    def size(self) -> int:
        with self._lock:
            return len(self._memory)

    def __len__(self) -> int:
        return self.size()
