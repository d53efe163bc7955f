"""Core services: stores, Spotify access, status resolution, commands."""
from spotistatus.core.identity_store import IdentityStore
from spotistatus.core.status_resolver import StatusResolver

__all__ = ["IdentityStore", "StatusResolver"]
