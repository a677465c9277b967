"""
Bot Message Endpoints

Webhooks for the standup agent and the team-registry agent. Each call
returns the activities the agent sent while handling the incoming one.
"""
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from ...agents.standup_coordinator import StandupCoordinator
from ...config import Settings
from ...core.auth import verify_bot_token
from ...handlers.card_actions import handle_card_action
from ...handlers.dialog import handle_dialog_open, handle_dialog_submit
from ...handlers.message import handle_message
from ...handlers.team_message import handle_team_message
from ...models.activity import ChatActivity
from ...services.team_commands import TeamCommands
from ...utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

INSTALL_GREETING = "Hello! I am a Standup Agent. I can help you manage your standups."


class MessagesResponse(BaseModel):
    """Outgoing activities, plus the invoke response for invoke activities"""
    activities: List[Dict[str, Any]] = Field(default_factory=list)
    invoke_response: Optional[Dict[str, Any]] = None


class ReplyCollector:
    """Stands in for the chat transport: records what the agent sends"""

    def __init__(self):
        self.activities: List[Dict[str, Any]] = []

    async def send(self, message: Any) -> Dict[str, Any]:
        if isinstance(message, str):
            activity = {"type": "message", "text": message}
        else:
            activity = dict(message)
        # An id means an update to an earlier activity
        activity.setdefault("id", str(uuid.uuid4()))
        self.activities.append(activity)
        return activity


def get_coordinator(request: Request) -> StandupCoordinator:
    return request.app.state.coordinator


def get_team_commands(request: Request) -> TeamCommands:
    return request.app.state.team_commands


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _bot_was_added(activity: ChatActivity) -> bool:
    if activity.type == "installationUpdate":
        return True
    if activity.type == "conversationUpdate" and activity.members_added and activity.recipient:
        return any(member.id == activity.recipient.id for member in activity.members_added)
    return False


@router.post("/messages", response_model=MessagesResponse)
async def standup_messages(
    activity: ChatActivity,
    coordinator: StandupCoordinator = Depends(get_coordinator),
    config: Settings = Depends(get_app_settings),
    _token: Optional[Dict[str, Any]] = Depends(verify_bot_token),
):
    """Standup agent webhook: messages, card actions and dialogs"""
    replies = ReplyCollector()
    invoke_response = None

    try:
        if activity.type == "message" and activity.value and not activity.text:
            # Action.Submit posts a message activity carrying only the card data
            invoke_response = await handle_card_action(activity, replies.send, coordinator)
        elif activity.type == "message":
            await handle_message(
                activity,
                replies.send,
                coordinator,
                coordinator.llm,
                max_iterations=config.max_tool_iterations,
            )
        elif activity.type == "invoke" and activity.name == "task/fetch":
            invoke_response = await handle_dialog_open(activity, coordinator)
        elif activity.type == "invoke" and activity.name == "task/submit":
            invoke_response = await handle_dialog_submit(activity, replies.send, coordinator)
        elif activity.type == "invoke":
            invoke_response = await handle_card_action(activity, replies.send, coordinator)
        elif _bot_was_added(activity):
            await replies.send(INSTALL_GREETING)
        else:
            logger.info(f"Ignoring activity of type {activity.type}")
    except Exception as e:
        logger.error(f"Error handling activity: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to handle activity: {str(e)}")

    return MessagesResponse(activities=replies.activities, invoke_response=invoke_response)


@router.post("/teams/messages", response_model=MessagesResponse)
async def team_messages(
    activity: ChatActivity,
    team_commands: TeamCommands = Depends(get_team_commands),
    coordinator: StandupCoordinator = Depends(get_coordinator),
    config: Settings = Depends(get_app_settings),
    _token: Optional[Dict[str, Any]] = Depends(verify_bot_token),
):
    """Team-registry agent webhook"""
    replies = ReplyCollector()
    if activity.type != "message" or not activity.text:
        return MessagesResponse()

    reply = await handle_team_message(
        activity,
        team_commands,
        coordinator.llm,
        max_iterations=config.max_tool_iterations,
    )
    await replies.send(reply)
    return MessagesResponse(activities=replies.activities)
