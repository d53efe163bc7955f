"""The /spotify enable|disable command."""
import logging
from dataclasses import dataclass
from typing import Optional

from spotistatus.core.connect_service import ConnectService
from spotistatus.core.errors import SpotistatusError
from spotistatus.core.identity_store import IdentityStore

logger = logging.getLogger(__name__)

COMMAND_TRIGGER = "spotify"

USAGE = (
    "Only enable/disable commands are supported!\n"
    "Usage:\n"
    "  /spotify enable your@spotifyemail.com\n"
    "  /spotify disable"
)


@dataclass
class CommandResponse:
    text: str
    goto_location: Optional[str] = None


class CommandService:
    def __init__(self, identities: IdentityStore, connect: ConnectService) -> None:
        self._identities = identities
        self._connect = connect

    def execute(self, user_id: str, command: str) -> CommandResponse:
        parts = (command or "").split()
        if not parts or parts[0].lstrip("/") != COMMAND_TRIGGER:
            return CommandResponse(f"Unknown command: {command}")
        if len(parts) < 2:
            return CommandResponse(USAGE)

        action = parts[1].lower()
        if action == "enable":
            if len(parts) != 3:
                return CommandResponse("Syntax: /spotify enable your@spotifyemail.com")
            return self._enable(user_id, parts[2])
        if action == "disable":
            return self._disable(user_id)
        return CommandResponse(USAGE)

    def _enable(self, user_id: str, email: str) -> CommandResponse:
        try:
            self._identities.register(user_id, email)
        except (SpotistatusError, ValueError) as e:
            logger.warning("Enable for %s failed: %s", user_id, e)
            return CommandResponse(f"Failed to store email: {e}")
        try:
            url = self._connect.authorization_url()
        except SpotistatusError as e:
            return CommandResponse(f"Failed to generate auth URL: {e}")
        return CommandResponse(
            "Complete the authorization process in the new window to authorize with Spotify!",
            goto_location=url,
        )

    def _disable(self, user_id: str) -> CommandResponse:
        try:
            self._identities.clear(user_id)
        except SpotistatusError as e:
            logger.warning("Disable for %s failed: %s", user_id, e)
            return CommandResponse(f"Failed to disable: {e}")
        return CommandResponse("Disabled Spotify integration!")
