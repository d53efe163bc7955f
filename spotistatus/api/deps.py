"""Request identity and error mapping shared by routes."""
from typing import Optional

from fastapi import Header, HTTPException

from spotistatus.core.errors import (
    InvalidMappingError,
    NoRegistrationError,
    NotConfiguredError,
    OAuthStateError,
    SpotistatusError,
    StoreError,
    TokenRefreshFailedError,
    UpstreamError,
    UpstreamUnavailableError,
)

USER_ID_HEADER = "Mattermost-User-ID"


def require_user_id(
    mattermost_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER),
) -> str:
    """The host platform sets this header on authenticated requests."""
    if not mattermost_user_id:
        raise HTTPException(status_code=401, detail="Not authorized")
    return mattermost_user_id


_STATUS_CODES = [
    (NotConfiguredError, 503),
    ((NoRegistrationError, InvalidMappingError, OAuthStateError), 403),
    ((TokenRefreshFailedError, UpstreamUnavailableError, UpstreamError), 502),
    (StoreError, 500),
]


def to_http_error(e: SpotistatusError) -> HTTPException:
    for types, code in _STATUS_CODES:
        if isinstance(e, types):
            return HTTPException(status_code=code, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))
