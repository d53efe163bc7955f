"""Resolve a user's listening status: cache, token refresh, Spotify, context name."""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from spotistatus.config import TOKEN_REFRESH_MARGIN_SEC, Settings, get_settings
from spotistatus.core.context_cache import ContextNameCache
from spotistatus.core.errors import (
    ContextResolutionFailedError,
    NotConfiguredError,
    StoreError,
    TokenRefreshFailedError,
    UpstreamError,
    UpstreamUnavailableError,
)
from spotistatus.core.spotify_client import SpotifyApi, SpotifyAuth, fetch_page_title
from spotistatus.core.status_cache import StatusCache
from spotistatus.core.token_store import TokenStore
from spotistatus.models.status import ContextType, PlaybackContextReference, Status
from spotistatus.models.token import OAuthToken

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_context(pb: dict) -> tuple[Optional[PlaybackContextReference], str]:
    """Return (context reference or None, raw context type) from a current_playback() payload.

    The reference is None when there is no context, the URI is malformed, or
    the type is one we cannot name (e.g. "collection" for Liked Songs).
    """
    context = pb.get("context") or {}
    uri = context.get("uri") or ""
    parts = uri.split(":")
    raw_type = (context.get("type") or (parts[1] if len(parts) > 1 else "")).lower()
    if len(parts) < 3 or not parts[2]:
        return None, raw_type
    type_ = ContextType.parse(raw_type)
    if type_ is None:
        return None, raw_type
    external_url = (context.get("external_urls") or {}).get("spotify") or ""
    return PlaybackContextReference(type=type_, context_id=parts[2], external_url=external_url), raw_type


def _album_name(album: dict) -> str:
    name = album.get("name") or ""
    artists = album.get("artists") or []
    if artists and artists[0].get("name"):
        return f"{name} - {artists[0]['name']}"
    return name


class StatusResolver:
    """Produces statuses for the token owner; everyone else only reads the cache.

    resolve_own() is the only path that touches a user's token or calls
    Spotify. read_cached() never resolves, so one user can never cause
    another user's credentials to be used.
    """

    def __init__(
        self,
        tokens: TokenStore,
        statuses: StatusCache,
        contexts: ContextNameCache,
        settings: Callable[[], Settings] = get_settings,
        auth_factory: Callable[[Settings], SpotifyAuth] = SpotifyAuth,
        page_title: Callable[..., Optional[str]] = fetch_page_title,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._tokens = tokens
        self._statuses = statuses
        self._contexts = contexts
        self._settings = settings
        self._auth_factory = auth_factory
        self._page_title = page_title
        self._clock = clock

    # --- entry points ---

    def read_cached(self, user_id: str) -> Optional[Status]:
        """Cached status for any user, or None. Never calls Spotify."""
        try:
            return self._statuses.get(user_id)
        except StoreError as e:
            logger.warning("Status cache read failed for %s: %s", user_id, e)
            return None

    def refresh_own(self, user_id: str) -> Status:
        """Drop the cached status and resolve again."""
        self._statuses.invalidate(user_id)
        return self.resolve_own(user_id)

    def resolve_own(self, user_id: str) -> Status:
        """Return the user's status from cache, or resolve it from Spotify and cache it."""
        settings = self._settings()
        if not settings.configured:
            raise NotConfiguredError("Spotify not configured")

        cached = self.read_cached(user_id)
        if cached is not None:
            return cached

        token = self._tokens.get(user_id)
        if token is None:
            logger.info("No Spotify token for %s, caching disconnected status", user_id)
            self._cache(user_id, None, settings.negative_ttl)
            return Status.disconnected()

        auth = self._auth_factory(settings)
        token = self._ensure_fresh(user_id, token, auth)
        client = auth.client(token)

        try:
            pb = client.current_playback()
        except UpstreamError as e:
            raise UpstreamUnavailableError(f"failed to get player state: {e}") from e

        if not pb or not pb.get("is_playing"):
            status = Status.idle()
            self._cache(user_id, status, settings.status_ttl)
            logger.info("Resolved status for %s: not playing", user_id)
            return status

        status = self._playing_status(client, pb, settings)
        self._cache(user_id, status, settings.status_ttl)
        logger.info(
            "Resolved status for %s: playing %s %r", user_id, status.context_type, status.context_name
        )
        return status

    # --- steps ---

    def _ensure_fresh(self, user_id: str, token: OAuthToken, auth: SpotifyAuth) -> OAuthToken:
        if not token.expires_within(TOKEN_REFRESH_MARGIN_SEC, self._clock()):
            return token
        try:
            new_token = auth.refresh(token)
        except UpstreamError as e:
            logger.warning("Token refresh failed for %s: %s", user_id, e)
            raise TokenRefreshFailedError(f"failed to refresh token: {e}") from e
        self._tokens.put(user_id, new_token)
        logger.info("Refreshed Spotify token for %s", user_id)
        return new_token

    def _playing_status(self, client: SpotifyApi, pb: dict, settings: Settings) -> Status:
        ref, raw_type = parse_context(pb)
        if ref is None:
            return Status(
                is_connected=True,
                is_playing=True,
                context_type=raw_type.capitalize(),
                context_url=((pb.get("context") or {}).get("external_urls") or {}).get("spotify") or "",
            )
        try:
            name = self._context_name(client, ref, settings)
        except ContextResolutionFailedError as e:
            logger.warning("Context name unavailable for %s %s: %s", ref.type.value, ref.context_id, e)
            name = ""
        return Status(
            is_connected=True,
            is_playing=True,
            context_type=ref.type.label,
            context_url=ref.external_url,
            context_name=name,
        )

    def _context_name(self, client: SpotifyApi, ref: PlaybackContextReference, settings: Settings) -> str:
        try:
            cached = self._contexts.get(ref.type, ref.context_id)
        except StoreError as e:
            logger.warning("Context cache read failed for %s %s: %s", ref.type.value, ref.context_id, e)
            cached = None
        if cached:
            return cached

        name = self._fetch_context_name(client, ref, settings)
        if not name:
            raise ContextResolutionFailedError(f"empty name for {ref.type.value} {ref.context_id}")

        try:
            self._contexts.put(ref.type, ref.context_id, name)
        except StoreError as e:
            logger.warning("Failed to cache context name for %s %s: %s", ref.type.value, ref.context_id, e)
        logger.info("Fetched context name for %s %s: %r", ref.type.value, ref.context_id, name)
        return name

    def _fetch_context_name(self, client: SpotifyApi, ref: PlaybackContextReference, settings: Settings) -> str:
        try:
            if ref.type is ContextType.ARTIST:
                return (client.artist(ref.context_id) or {}).get("name") or ""
            if ref.type is ContextType.ALBUM:
                return _album_name(client.album(ref.context_id) or {})
            if ref.type is ContextType.SHOW:
                return (client.show(ref.context_id) or {}).get("name") or ""
            return self._playlist_name(client, ref, settings)
        except UpstreamError as e:
            raise ContextResolutionFailedError(f"failed to get {ref.type.value}: {e}") from e

    def _playlist_name(self, client: SpotifyApi, ref: PlaybackContextReference, settings: Settings) -> str:
        try:
            return (client.playlist(ref.context_id) or {}).get("name") or ""
        except UpstreamError as e:
            if not (e.not_found and ref.external_url):
                raise
            # Access-restricted playlists may still have a public page
            logger.info("Playlist %s not found via API, trying public page", ref.context_id)
            return self._page_title(ref.external_url, timeout=settings.http_timeout) or ""

    def _cache(self, user_id: str, status: Optional[Status], ttl: int) -> None:
        try:
            self._statuses.put(user_id, status, ttl)
        except StoreError as e:
            logger.warning("Failed to cache status for %s: %s", user_id, e)
