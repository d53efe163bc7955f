"""Shared application state (injected into routes)."""
from typing import Callable, Optional

from spotistatus.config import KV_STORE_PATH, Settings, ensure_data_dir, get_settings
from spotistatus.core.command_service import CommandService
from spotistatus.core.connect_service import ConnectService
from spotistatus.core.context_cache import ContextNameCache
from spotistatus.core.identity_store import IdentityStore
from spotistatus.core.kvstore import JsonFileKVStore, KeyValueStore, MemoryKVStore
from spotistatus.core.spotify_client import SpotifyAuth
from spotistatus.core.status_cache import StatusCache
from spotistatus.core.status_resolver import StatusResolver
from spotistatus.core.token_store import TokenStore


def build_kv_store(settings: Settings) -> KeyValueStore:
    if settings.store == "file":
        ensure_data_dir()
        return JsonFileKVStore(KV_STORE_PATH)
    return MemoryKVStore()


class AppState:
    def __init__(
        self,
        kv: Optional[KeyValueStore] = None,
        settings: Callable[[], Settings] = get_settings,
        auth_factory: Callable[[Settings], SpotifyAuth] = SpotifyAuth,
        **resolver_kwargs,
    ) -> None:
        self.kv = kv if kv is not None else build_kv_store(settings())
        self.tokens = TokenStore(self.kv)
        self.statuses = StatusCache(self.kv)
        self.contexts = ContextNameCache(self.kv)
        self.identities = IdentityStore(self.kv, self.tokens, self.statuses)
        self.resolver = StatusResolver(
            self.tokens,
            self.statuses,
            self.contexts,
            settings=settings,
            auth_factory=auth_factory,
            **resolver_kwargs,
        )
        self.connect = ConnectService(
            self.identities, self.tokens, settings=settings, auth_factory=auth_factory
        )
        self.commands = CommandService(self.identities, self.connect)


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = AppState()
    return _state
