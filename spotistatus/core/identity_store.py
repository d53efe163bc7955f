"""Bidirectional mapping between platform user ids and Spotify emails."""
import logging
from typing import Optional

from spotistatus.core.errors import (
    InvalidMappingError,
    NoRegistrationError,
    NotFoundError,
    PartialMappingError,
    StoreError,
)
from spotistatus.core.kvstore import KeyValueStore
from spotistatus.core.status_cache import StatusCache
from spotistatus.core.token_store import TokenStore

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip()


def email_key(email: str) -> str:
    return f"email-{normalize_email(email)}"


def uid_key(user_id: str) -> str:
    return f"uid-{user_id}"


class IdentityStore:
    """Owns the email <-> user id mapping; clear() also removes the user's token and status."""

    def __init__(self, kv: KeyValueStore, tokens: TokenStore, statuses: StatusCache) -> None:
        self._kv = kv
        self._tokens = tokens
        self._statuses = statuses

    def register(self, user_id: str, email: str) -> None:
        """Write email -> user id, then user id -> email.

        The two writes are not transactional. If the second fails the first is
        left in place and PartialMappingError names it; callers should report
        the failure and the user can re-run enable (writes are overwrites).
        """
        email = normalize_email(email)
        if not user_id or not email:
            raise ValueError("user_id and email are required")
        self._kv.set(email_key(email), user_id)
        try:
            self._kv.set(uid_key(user_id), email)
        except StoreError as e:
            logger.error("Identity mapping half-written: %s set, %s failed", email_key(email), uid_key(user_id))
            raise PartialMappingError(f"failed to store user id mapping: {e}", email_key(email)) from e
        logger.info("Registered Spotify email for user %s", user_id)

    def lookup_user_by_email(self, email: str) -> str:
        email = normalize_email(email)
        user_id = self._kv.get(email_key(email))
        if not user_id:
            raise NotFoundError(f"no user id found for email {email}")
        return user_id

    def lookup_email_by_user(self, user_id: str) -> str:
        email = self._kv.get(uid_key(user_id))
        if not email:
            raise NotFoundError(f"no email found for user {user_id}")
        return email

    def verify(self, email: str) -> str:
        """Return the user registered for email, checking both directions agree."""
        email = normalize_email(email)
        try:
            user_id = self.lookup_user_by_email(email)
        except NotFoundError as e:
            raise NoRegistrationError(f"no registration found for {email}") from e
        try:
            mapped_email = self.lookup_email_by_user(user_id)
        except NotFoundError:
            mapped_email = None
        if mapped_email != email:
            logger.error(
                "Invalid user mapping: email %s -> user %s -> email %s", email, user_id, mapped_email
            )
            raise InvalidMappingError("invalid user mapping")
        return user_id

    def clear(self, user_id: str) -> None:
        """Remove both mapping directions, the token and the cached status."""
        email: Optional[str]
        try:
            email = self.lookup_email_by_user(user_id)
        except NotFoundError:
            email = None

        deletes = []
        if email:
            deletes.append((email_key(email), lambda: self._kv.delete(email_key(email))))
        deletes.append((uid_key(user_id), lambda: self._kv.delete(uid_key(user_id))))
        deletes.append(("token", lambda: self._tokens.delete(user_id)))
        deletes.append(("cached status", lambda: self._statuses.invalidate(user_id)))

        first_error: Optional[StoreError] = None
        for what, delete in deletes:
            try:
                delete()
            except StoreError as e:
                logger.warning("Clear user %s: failed to delete %s: %s", user_id, what, e)
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
        logger.info("Cleared Spotify data for user %s", user_id)
