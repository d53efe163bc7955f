"""Slash command endpoint: /spotify enable|disable."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from spotistatus.api.deps import require_user_id
from spotistatus.api.state import AppState, get_state

router = APIRouter()


class CommandBody(BaseModel):
    command: str


@router.post("")
def execute_command(
    body: CommandBody,
    user_id: str = Depends(require_user_id),
    state: AppState = Depends(get_state),
):
    response = state.commands.execute(user_id, body.command)
    return {"text": response.text, "goto_location": response.goto_location}
