"""Persist and load per-user OAuth tokens."""
from typing import Optional

from spotistatus.core.errors import InvalidTokenError, StoreError
from spotistatus.core.kvstore import KeyValueStore
from spotistatus.models.token import OAuthToken


def token_key(user_id: str) -> str:
    return f"token-{user_id}"


class TokenStore:
    """One token per platform user. Refreshing is the resolver's job, not ours."""

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    def put(self, user_id: str, token: Optional[OAuthToken]) -> None:
        """Store (overwrite) the user's token."""
        if not isinstance(token, OAuthToken) or not token.access_token:
            raise InvalidTokenError("cannot store missing or malformed token")
        self._kv.set(token_key(user_id), token.to_dict())

    def get(self, user_id: str) -> Optional[OAuthToken]:
        """Return the user's token, or None if they never connected Spotify."""
        data = self._kv.get(token_key(user_id))
        if data is None:
            return None
        try:
            return OAuthToken.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"stored token for {user_id} is corrupt: {e}") from e

    def delete(self, user_id: str) -> None:
        self._kv.delete(token_key(user_id))
