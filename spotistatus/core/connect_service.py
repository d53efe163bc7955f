"""Linking a platform user to Spotify: authorization URL and OAuth callback."""
import logging
from typing import Callable

from spotistatus.config import Settings, get_settings
from spotistatus.core.errors import NotConfiguredError, OAuthStateError, UpstreamError
from spotistatus.core.identity_store import IdentityStore
from spotistatus.core.spotify_client import SpotifyAuth
from spotistatus.core.token_store import TokenStore

logger = logging.getLogger(__name__)


class ConnectService:
    def __init__(
        self,
        identities: IdentityStore,
        tokens: TokenStore,
        settings: Callable[[], Settings] = get_settings,
        auth_factory: Callable[[Settings], SpotifyAuth] = SpotifyAuth,
    ) -> None:
        self._identities = identities
        self._tokens = tokens
        self._settings = settings
        self._auth_factory = auth_factory

    def _auth(self) -> tuple[Settings, SpotifyAuth]:
        settings = self._settings()
        if not settings.configured:
            raise NotConfiguredError("Spotify not configured")
        return settings, self._auth_factory(settings)

    def authorization_url(self) -> str:
        settings, auth = self._auth()
        return auth.authorization_url(settings.oauth_state)

    def complete_oauth(self, state: str, code: str) -> str:
        """Exchange code, check the Spotify account's email is registered, store the token.

        Returns the platform user id the token was stored for.
        """
        settings, auth = self._auth()
        if state != settings.oauth_state:
            logger.error("OAuth state mismatch: %r", state)
            raise OAuthStateError("state mismatch")
        if not code:
            raise OAuthStateError("missing authorization code")

        token = auth.exchange_code(code)
        try:
            email = (auth.client(token).current_user() or {}).get("email") or ""
        except UpstreamError as e:
            logger.error("Failed to get current Spotify user: %s", e)
            raise
        user_id = self._identities.verify(email)
        self._tokens.put(user_id, token)
        logger.info("Successfully handled Spotify callback for user %s", user_id)
        return user_id
