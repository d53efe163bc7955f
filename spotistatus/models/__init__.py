"""Data models for status, playback context, and OAuth tokens."""
from spotistatus.models.status import ContextType, PlaybackContextReference, Status
from spotistatus.models.token import OAuthToken

__all__ = [
    "ContextType",
    "OAuthToken",
    "PlaybackContextReference",
    "Status",
]
