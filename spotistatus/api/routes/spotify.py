"""Spotify OAuth: auth URL and callback."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from spotistatus.api.deps import require_user_id, to_http_error
from spotistatus.api.state import AppState, get_state
from spotistatus.core.errors import SpotistatusError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/callback", response_class=PlainTextResponse)
def spotify_callback(
    state: str | None = None,
    code: str | None = None,
    app_state: AppState = Depends(get_state),
):
    """Exchange code for a token and store it for the registered user owning the Spotify email."""
    if not state or not code:
        raise HTTPException(status_code=400, detail="Missing state or authorization code")
    try:
        app_state.connect.complete_oauth(state, code)
    except SpotistatusError as e:
        logger.error("Spotify callback failed: %s", e)
        raise to_http_error(e)
    return "Successfully connected to Spotify! You can close this window."


@router.get("/api/v1/auth-url")
def get_auth_url(
    user_id: str = Depends(require_user_id),
    app_state: AppState = Depends(get_state),
):
    """Return the Spotify OAuth authorization URL."""
    try:
        return {"auth_url": app_state.connect.authorization_url()}
    except SpotistatusError as e:
        raise to_http_error(e)
