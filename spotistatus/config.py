"""Configuration: env, data paths, Spotify credentials, cache TTLs."""
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of spotistatus package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so SPOTIFY_CLIENT_ID etc. are set
load_dotenv(BASE_DIR / ".env")

DATA_DIR = Path(os.getenv("SPOTISTATUS_DATA_DIR", str(BASE_DIR / "data")))
KV_STORE_PATH = DATA_DIR / "kvstore.json"

# API
API_HOST = os.getenv("SPOTISTATUS_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("SPOTISTATUS_API_PORT", "8000"))

# Spotify (OAuth; one token per platform user, kept in the KV store)
SPOTIFY_SCOPES = "user-read-private user-read-email user-read-playback-state"
SPOTIFY_PLAYLIST_TITLE_SUFFIX = " | Spotify Playlist"

# Tokens expiring sooner than this are refreshed before calling Spotify
TOKEN_REFRESH_MARGIN_SEC = 5 * 60 + 30


@dataclass(frozen=True)
class Settings:
    """Immutable configuration snapshot. Replace wholesale, never mutate."""
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:8000/callback"
    oauth_state: str = "spotistatus"
    status_ttl: int = 900
    negative_ttl: int = 900
    store: str = "memory"  # "memory" | "file"
    http_timeout: float = 10.0

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


def load_settings() -> Settings:
    """Build a Settings snapshot from the environment."""
    return Settings(
        client_id=os.getenv("SPOTIFY_CLIENT_ID", ""),
        client_secret=os.getenv("SPOTIFY_CLIENT_SECRET", ""),
        redirect_uri=os.getenv("SPOTIFY_REDIRECT_URI", "http://localhost:8000/callback"),
        oauth_state=os.getenv("SPOTISTATUS_OAUTH_STATE", "spotistatus"),
        status_ttl=int(os.getenv("SPOTISTATUS_STATUS_TTL", "900")),
        negative_ttl=int(os.getenv("SPOTISTATUS_NEGATIVE_TTL", "900")),
        store=os.getenv("SPOTISTATUS_STORE", "memory").lower(),
        http_timeout=float(os.getenv("SPOTISTATUS_HTTP_TIMEOUT", "10")),
    )


_settings = load_settings()


def get_settings() -> Settings:
    """Return the current snapshot. Callers keep the returned object for one operation."""
    return _settings


def set_settings(settings: Settings) -> None:
    """Swap in a new snapshot (e.g. after a configuration reload)."""
    global _settings
    _settings = settings


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
