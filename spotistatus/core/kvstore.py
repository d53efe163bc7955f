"""Key-value stores with optional per-key expiry (in-memory and JSON file)."""
import json
import logging
import math
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from cachetools import TLRUCache  # type: ignore[import-untyped]

from spotistatus.core.errors import StoreError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """get returns None for a missing or expired key; failures raise StoreError."""

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None: ...

    def get(self, key: str) -> Optional[Any]: ...

    def delete(self, key: str) -> None: ...


def _check_ttl(ttl_seconds: Optional[int]) -> None:
    if ttl_seconds is not None and ttl_seconds <= 0:
        raise StoreError(f"ttl must be positive, got {ttl_seconds}")


def _expires_at(now: float, ttl_seconds: Optional[int]) -> Optional[float]:
    _check_ttl(ttl_seconds)
    return None if ttl_seconds is None else now + ttl_seconds


def _ttu(key: str, entry: tuple[Any, Optional[int]], now: float) -> float:
    ttl_seconds = entry[1]
    return math.inf if ttl_seconds is None else now + ttl_seconds


class MemoryKVStore:
    """Thread-safe in-process store on a cachetools TLRUCache.

    Each entry carries its own TTL; expired entries are evicted on every write,
    whether or not they are read again. maxsize bounds memory: once reached the
    least recently used entry is evicted, so size it above the expected user count.
    """

    def __init__(self, clock: Callable[[], float] = time.time, maxsize: int = 100_000) -> None:
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_ttu, timer=clock)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        _check_ttl(ttl_seconds)
        with self._lock:
            self._cache[key] = (value, ttl_seconds)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._cache.get(key)
        return None if entry is None else entry[0]

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)


class JsonFileKVStore:
    """Store persisted as one JSON file: {"entries": {key: {"value", "expires_at"}}}.

    Every write rewrites the whole file under a lock, so each set/delete is
    atomic per key but there are no multi-key transactions.
    """

    def __init__(self, path: Path, clock: Callable[[], float] = time.time) -> None:
        self._path = path
        self._clock = clock
        self._lock = threading.Lock()

    def _load(self) -> dict[str, dict[str, Any]]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            raise StoreError(f"failed to read {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"failed to read {self._path}: expected a JSON object")
        entries = data.get("entries")
        return entries if isinstance(entries, dict) else {}

    def _save(self, entries: dict[str, dict[str, Any]]) -> None:
        tmp = self._path.with_suffix(".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps({"entries": entries}, indent=2))
            tmp.replace(self._path)
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"failed to write {self._path}: {e}") from e

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        expires_at = _expires_at(self._clock(), ttl_seconds)
        with self._lock:
            entries = self._load()
            entries[key] = {"value": value, "expires_at": expires_at}
            self._save(entries)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._load().get(key)
        if not isinstance(entry, dict):
            return None
        if self._expired(key, entry, self._clock()):
            return None
        return entry.get("value")

    def _expired(self, key: str, entry: dict[str, Any], now: float) -> bool:
        expires_at = entry.get("expires_at")
        if expires_at is None:
            return False
        try:
            return now >= float(expires_at)
        except (TypeError, ValueError) as e:
            raise StoreError(f"bad expires_at for {key} in {self._path}: {expires_at!r}") from e

    def delete(self, key: str) -> None:
        with self._lock:
            entries = self._load()
            if entries.pop(key, None) is not None:
                self._save(entries)

    def purge_expired(self) -> int:
        """Drop expired entries from disk. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            entries = self._load()
            expired = [
                k for k, e in entries.items() if isinstance(e, dict) and self._expired(k, e, now)
            ]
            for k in expired:
                del entries[k]
            if expired:
                self._save(entries)
        if expired:
            logger.debug("Purged %d expired keys from %s", len(expired), self._path)
        return len(expired)
