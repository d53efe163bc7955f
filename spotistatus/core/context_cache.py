"""Display names for playback contexts, cached without expiry."""
from typing import Optional

from spotistatus.core.kvstore import KeyValueStore
from spotistatus.models.status import ContextType


def context_key(type_: ContextType, context_id: str) -> str:
    return f"context-{type_.value}-{context_id}"


class ContextNameCache:
    """(type, id) -> name. Names rarely change, so entries never expire."""

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    def get(self, type_: ContextType, context_id: str) -> Optional[str]:
        name = self._kv.get(context_key(type_, context_id))
        return name or None

    def put(self, type_: ContextType, context_id: str, name: str) -> None:
        if not name:
            return
        self._kv.set(context_key(type_, context_id), name)
