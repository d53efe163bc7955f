"""OAuth token owned by exactly one platform user."""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class OAuthToken:
    """Access/refresh token pair with an absolute expiry (UTC)."""
    access_token: str
    refresh_token: str
    expiry: datetime
    token_type: str = "Bearer"
    scope: str = ""

    def __repr__(self) -> str:
        # Never print secrets
        return f"OAuthToken(expiry={self.expiry.isoformat()}, scope={self.scope!r})"

    def expires_within(self, seconds: float, now: datetime) -> bool:
        return (self.expiry - now).total_seconds() < seconds

    @classmethod
    def from_token_info(cls, info: dict[str, Any], previous_refresh_token: str = "") -> "OAuthToken":
        """Build from a spotipy token_info dict (expires_at is epoch seconds)."""
        return cls(
            access_token=info["access_token"],
            refresh_token=info.get("refresh_token") or previous_refresh_token,
            expiry=datetime.fromtimestamp(int(info["expires_at"]), tz=timezone.utc),
            token_type=info.get("token_type") or "Bearer",
            scope=info.get("scope") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expiry": self.expiry.isoformat(),
            "token_type": self.token_type,
            "scope": self.scope,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OAuthToken":
        expiry = datetime.fromisoformat(data["expiry"])
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or "",
            expiry=expiry,
            token_type=data.get("token_type") or "Bearer",
            scope=data.get("scope") or "",
        )
