"""Listening status: own (resolved) and other users' (cache only)."""
import logging

from fastapi import APIRouter, Depends

from spotistatus.api.deps import require_user_id, to_http_error
from spotistatus.api.state import AppState, get_state
from spotistatus.core.errors import SpotistatusError
from spotistatus.models.status import Status

router = APIRouter()
logger = logging.getLogger(__name__)


def _resolve_own(state: AppState, user_id: str, refresh: bool = False) -> dict:
    try:
        if refresh:
            status = state.resolver.refresh_own(user_id)
        else:
            status = state.resolver.resolve_own(user_id)
    except SpotistatusError as e:
        logger.error("Failed to fetch status for %s: %s", user_id, e)
        raise to_http_error(e)
    return status.to_wire()


@router.get("/me")
def get_my_status(
    user_id: str = Depends(require_user_id),
    state: AppState = Depends(get_state),
):
    """Return the requesting user's status, resolving from Spotify on cache miss."""
    return _resolve_own(state, user_id)


@router.post("/status/refresh")
def refresh_my_status(
    user_id: str = Depends(require_user_id),
    state: AppState = Depends(get_state),
):
    """Drop the requesting user's cached status and resolve it again."""
    return _resolve_own(state, user_id, refresh=True)


@router.get("/status/{target_user_id}")
def get_status(
    target_user_id: str,
    user_id: str = Depends(require_user_id),
    state: AppState = Depends(get_state),
):
    """Own id resolves; any other id only reads the cache (empty status when nothing cached)."""
    if target_user_id == user_id:
        return _resolve_own(state, user_id)
    status = state.resolver.read_cached(target_user_id)
    return (status or Status.disconnected()).to_wire()
