"""Playback status shown to other users, and the context it refers to."""
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Optional


class ContextType(str, Enum):
    """Kinds of playback context we know how to name."""
    ARTIST = "artist"
    PLAYLIST = "playlist"
    ALBUM = "album"
    SHOW = "show"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["ContextType"]:
        try:
            return cls((raw or "").lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class PlaybackContextReference:
    """Context parsed from a current_playback() response. Not persisted."""
    type: ContextType
    context_id: str
    external_url: str = ""


@dataclass
class Status:
    """Display-ready playback status for one user. Carries no secrets."""
    is_connected: bool = False
    is_playing: bool = False
    context_type: str = ""
    context_url: str = ""
    context_name: str = ""

    @classmethod
    def disconnected(cls) -> "Status":
        return cls(is_connected=False, is_playing=False)

    @classmethod
    def idle(cls) -> "Status":
        return cls(is_connected=True, is_playing=False)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Status":
        return cls(
            is_connected=bool(data.get("is_connected", False)),
            is_playing=bool(data.get("is_playing", False)),
            context_type=data.get("context_type") or "",
            context_url=data.get("context_url") or "",
            context_name=data.get("context_name") or "",
        )

    def to_wire(self) -> dict[str, Any]:
        """Shape read by the webapp status indicator."""
        return {
            "IsConnected": self.is_connected,
            "IsPlaying": self.is_playing,
            "PlaybackType": self.context_type,
            "PlaybackURL": self.context_url,
            "PlaybackName": self.context_name,
        }
