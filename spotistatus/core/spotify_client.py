"""Spotify OAuth and Web API access via Spotipy, one user token at a time."""
import html
import logging
import re
from typing import Any, Optional

import requests
from spotipy import Spotify, SpotifyException
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from spotistatus.config import SPOTIFY_PLAYLIST_TITLE_SUFFIX, SPOTIFY_SCOPES, Settings
from spotistatus.core.errors import NotConfiguredError, UpstreamError
from spotistatus.models.token import OAuthToken

logger = logging.getLogger(__name__)

_TITLE_REGEX = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


class SpotifyApi:
    """Spotify Web API client bound to one user's access token."""

    def __init__(self, sp: Spotify) -> None:
        self._sp = sp

    def _call(self, what: str, fn, *args, **kwargs) -> Any:
        try:
            return fn(*args, **kwargs)
        except SpotifyException as e:
            raise UpstreamError(f"{what}: {e.msg}", status_code=e.http_status) from e
        except requests.RequestException as e:
            raise UpstreamError(f"{what}: {e}") from e

    def current_playback(self) -> Optional[dict]:
        """Current playback state, or None when nothing is active (HTTP 204)."""
        return self._call("current playback", self._sp.current_playback)

    def artist(self, artist_id: str) -> dict:
        return self._call("get artist", self._sp.artist, artist_id)

    def playlist(self, playlist_id: str) -> dict:
        return self._call("get playlist", self._sp.playlist, playlist_id, fields="name")

    def album(self, album_id: str) -> dict:
        return self._call("get album", self._sp.album, album_id)

    def show(self, show_id: str) -> dict:
        # Shows are market-restricted; resolve against the user's own market
        return self._call("get show", self._sp.show, show_id, market="from_token")

    def current_user(self) -> dict:
        return self._call("current user", self._sp.current_user)


class SpotifyAuth:
    """Spotify OAuth provider for a given Settings snapshot.

    Spotipy's own token cache is kept in memory and discarded after each call;
    tokens live only in our TokenStore.
    """

    def __init__(self, settings: Settings) -> None:
        if not settings.configured:
            raise NotConfiguredError("Spotify not configured")
        self._settings = settings

    def _oauth(self) -> SpotifyOAuth:
        return SpotifyOAuth(
            client_id=self._settings.client_id,
            client_secret=self._settings.client_secret,
            redirect_uri=self._settings.redirect_uri,
            scope=SPOTIFY_SCOPES,
            cache_handler=MemoryCacheHandler(),
            requests_timeout=self._settings.http_timeout,
            open_browser=False,
        )

    def authorization_url(self, state: str) -> str:
        return self._oauth().get_authorize_url(state=state)

    def exchange_code(self, code: str) -> OAuthToken:
        """Exchange an authorization code for a token."""
        try:
            info = self._oauth().get_access_token(code=code, as_dict=True, check_cache=False)
        except (SpotifyOauthError, SpotifyException, requests.RequestException) as e:
            raise UpstreamError(f"failed to exchange code: {e}") from e
        if not info:
            raise UpstreamError("failed to exchange code: empty token response")
        return OAuthToken.from_token_info(info)

    def refresh(self, token: OAuthToken) -> OAuthToken:
        """Return a new token; keeps the old refresh token if Spotify does not reissue one."""
        if not token.refresh_token:
            raise UpstreamError("token has no refresh token")
        try:
            info = self._oauth().refresh_access_token(token.refresh_token)
        except (SpotifyOauthError, SpotifyException, requests.RequestException) as e:
            raise UpstreamError(f"failed to refresh token: {e}") from e
        if not info:
            raise UpstreamError("failed to refresh token: empty token response")
        return OAuthToken.from_token_info(info, previous_refresh_token=token.refresh_token)

    def client(self, token: OAuthToken) -> SpotifyApi:
        sp = Spotify(
            auth=token.access_token,
            requests_timeout=self._settings.http_timeout,
            retries=0,
            status_retries=0,
        )
        return SpotifyApi(sp)


def parse_page_title(body: str, suffix: str = SPOTIFY_PLAYLIST_TITLE_SUFFIX) -> Optional[str]:
    """Return the <title> text with suffix stripped, or None if there is no title."""
    match = _TITLE_REGEX.search(body or "")
    if not match:
        return None
    title = html.unescape(match.group(1)).strip()
    if suffix and title.endswith(suffix):
        title = title[: -len(suffix)].strip()
    return title or None


def fetch_page_title(url: str, timeout: float = 10.0) -> Optional[str]:
    """Fetch a public Spotify page (no auth) and return its title, or None."""
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise UpstreamError(f"failed to fetch {url}: {e}") from e
    return parse_page_title(resp.text)
