from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from spotistatus.config import Settings
from spotistatus.core.context_cache import ContextNameCache
from spotistatus.core.errors import StoreError, UpstreamError
from spotistatus.core.identity_store import IdentityStore
from spotistatus.core.kvstore import MemoryKVStore
from spotistatus.core.status_cache import StatusCache
from spotistatus.core.status_resolver import StatusResolver
from spotistatus.core.token_store import TokenStore
from spotistatus.models.token import OAuthToken

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

SETTINGS = Settings(client_id="client", client_secret="secret", status_ttl=900, negative_ttl=60)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FailingKV(MemoryKVStore):
    """MemoryKVStore whose set() fails for keys with a given prefix."""

    def __init__(self, fail_prefixes=(), fail_get_prefixes=(), **kwargs):
        super().__init__(**kwargs)
        self.fail_prefixes = tuple(fail_prefixes)
        self.fail_get_prefixes = tuple(fail_get_prefixes)

    def set(self, key, value, ttl_seconds=None):
        if self.fail_prefixes and key.startswith(self.fail_prefixes):
            raise StoreError(f"set {key} failed")
        super().set(key, value, ttl_seconds)

    def get(self, key):
        if self.fail_get_prefixes and key.startswith(self.fail_get_prefixes):
            raise StoreError(f"get {key} failed")
        return super().get(key)


class FakeApi:
    """Stands in for SpotifyApi; responses keyed by method name."""

    def __init__(self, playback=None, errors=None, **responses):
        self.playback = playback
        self.errors = errors or {}
        self.responses = responses
        self.calls: list[tuple[str, str]] = []

    def _respond(self, method: str, arg: str = ""):
        self.calls.append((method, arg))
        if method in self.errors:
            raise self.errors[method]
        return self.responses.get(method)

    def current_playback(self):
        self.calls.append(("current_playback", ""))
        if "current_playback" in self.errors:
            raise self.errors["current_playback"]
        return self.playback

    def artist(self, artist_id):
        return self._respond("artist", artist_id)

    def playlist(self, playlist_id):
        return self._respond("playlist", playlist_id)

    def album(self, album_id):
        return self._respond("album", album_id)

    def show(self, show_id):
        return self._respond("show", show_id)

    def current_user(self):
        return self._respond("current_user")


class FakeAuth:
    """Stands in for SpotifyAuth; records refreshes and hands out FakeApi."""

    def __init__(self, api: FakeApi | None = None, refresh_error: Exception | None = None):
        self.api = api or FakeApi()
        self.refresh_error = refresh_error
        self.refresh_calls = 0
        self.events: list[str] = []
        self.exchanged: list[str] = []
        self.exchange_token = make_token(expires_in=3600, access="exchanged")

    def __call__(self, settings):
        return self

    def authorization_url(self, state):
        return f"https://accounts.spotify.com/authorize?state={state}"

    def exchange_code(self, code):
        self.exchanged.append(code)
        return self.exchange_token

    def refresh(self, token):
        self.refresh_calls += 1
        self.events.append("refresh")
        if self.refresh_error is not None:
            raise self.refresh_error
        return OAuthToken(
            access_token="refreshed",
            refresh_token=token.refresh_token,
            expiry=NOW + timedelta(hours=1),
        )

    def client(self, token):
        self.events.append(f"client:{token.access_token}")
        return self.api


def make_token(expires_in: int = 3600, access: str = "access") -> OAuthToken:
    return OAuthToken(access_token=access, refresh_token="refresh", expiry=NOW + timedelta(seconds=expires_in))


def playing(type_: str, id_: str, url: str = "") -> dict:
    return {
        "is_playing": True,
        "context": {
            "type": type_,
            "uri": f"spotify:{type_}:{id_}",
            "external_urls": {"spotify": url} if url else {},
        },
    }


class Harness:
    def __init__(self, kv=None, auth=None, page_title=None):
        self.clock = FakeClock()
        self.kv = kv if kv is not None else MemoryKVStore(clock=self.clock)
        self.tokens = TokenStore(self.kv)
        self.statuses = StatusCache(self.kv)
        self.contexts = ContextNameCache(self.kv)
        self.identities = IdentityStore(self.kv, self.tokens, self.statuses)
        self.auth = auth or FakeAuth()
        self.page_calls: list[str] = []
        self.page_result = None

        def _page_title(url, timeout=10.0):
            self.page_calls.append(url)
            if isinstance(self.page_result, Exception):
                raise self.page_result
            return self.page_result

        self.resolver = StatusResolver(
            self.tokens,
            self.statuses,
            self.contexts,
            settings=lambda: SETTINGS,
            auth_factory=self.auth,
            page_title=page_title or _page_title,
            clock=lambda: NOW,
        )


@pytest.fixture
def harness():
    return Harness()


@pytest.fixture
def not_found():
    return UpstreamError("get playlist: Resource not found", status_code=404)
