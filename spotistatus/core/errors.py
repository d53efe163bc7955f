"""Error types raised by the stores, the Spotify wrappers and the resolver."""
from typing import Optional


class SpotistatusError(Exception):
    """Base class for all errors raised by this package."""


class StoreError(SpotistatusError):
    """The key-value store failed (not the same as a missing key)."""


class PartialMappingError(StoreError):
    """One direction of the identity mapping was written, the other was not."""

    def __init__(self, message: str, dangling_key: str) -> None:
        super().__init__(message)
        self.dangling_key = dangling_key


class NotFoundError(SpotistatusError):
    """A lookup key has no value."""


class InvalidTokenError(SpotistatusError):
    """Token is missing or malformed."""


class NotConfiguredError(SpotistatusError):
    """Spotify client credentials are not configured."""


class NoRegistrationError(SpotistatusError):
    """The Spotify email has no mapped platform user."""


class InvalidMappingError(SpotistatusError):
    """The email -> user and user -> email mappings disagree."""


class OAuthStateError(SpotistatusError):
    """OAuth callback state parameter did not match."""


class UpstreamError(SpotistatusError):
    """A call to Spotify failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


class TokenRefreshFailedError(SpotistatusError):
    """Refreshing a near-expiry token failed; the resolution is aborted."""


class UpstreamUnavailableError(SpotistatusError):
    """Spotify playback state could not be fetched."""


class ContextResolutionFailedError(SpotistatusError):
    """No display name could be resolved for a playback context."""
