"""Short-lived cache of resolved statuses, readable by any user."""
from typing import Optional

from spotistatus.core.errors import StoreError
from spotistatus.core.kvstore import KeyValueStore
from spotistatus.models.status import Status

# Stored in place of a status to mark an explicit "not connected" entry
_NEGATIVE = {"negative": True}


def status_key(user_id: str) -> str:
    return f"cached-status-{user_id}"


class StatusCache:
    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    def get(self, user_id: str) -> Optional[Status]:
        """Return the cached status, or None on miss/expiry."""
        data = self._kv.get(status_key(user_id))
        if data is None:
            return None
        if data == _NEGATIVE:
            return Status.disconnected()
        if not isinstance(data, dict):
            raise StoreError(f"cached status for {user_id} is corrupt")
        return Status.from_dict(data)

    def put(self, user_id: str, status: Optional[Status], ttl: int) -> None:
        """Cache status for ttl seconds. None stores a negative (disconnected) entry."""
        value = _NEGATIVE if status is None else status.to_dict()
        self._kv.set(status_key(user_id), value, ttl_seconds=ttl)

    def invalidate(self, user_id: str) -> None:
        self._kv.delete(status_key(user_id))
