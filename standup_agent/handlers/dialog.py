from typing import Any, Dict, Optional

from ..agents.standup_coordinator import StandupCoordinator
from ..models.activity import ChatActivity
from ..models.cards import card_attachment, create_task_module
from ..models.types import SendFn, StandupResponse, result_message

NO_ACTIVE_STANDUP = "No standup is currently active. You can still add parking lot items for the next standup."


def _task_message(value: str) -> Dict[str, Any]:
    return {"task": {"type": "message", "value": value}}


async def handle_dialog_open(activity: ChatActivity, coordinator: StandupCoordinator) -> Dict[str, Any]:
    """task/fetch: the standup form, prefilled with the user's current answer"""
    existing: Optional[StandupResponse] = None
    group = await coordinator.validate_group(activity.conversation.id, activity.tenant_id)
    if group is not None:
        existing = next((r for r in group.active_responses if r.user_id == activity.from_.id), None)

    return {
        "task": {
            "type": "continue",
            "value": {
                "title": "Standup Input",
                "card": card_attachment(create_task_module(activity.user, existing)),
            },
        }
    }


async def handle_dialog_submit(
    activity: ChatActivity,
    send: SendFn,
    coordinator: StandupCoordinator,
) -> Dict[str, Any]:
    """task/submit: records the answer, or keeps only the parking-lot item when idle"""
    value = activity.value or {}
    data = value.get("data") or {}

    def field(name: str) -> str:
        return (data.get(name) or "").replace("\n", " \n")

    response = StandupResponse(
        user_id=activity.from_.id,
        completed_work=field("completedWork"),
        planned_work=field("plannedWork"),
        parking_lot=field("parkingLot") or None,
    )

    conversation_id = activity.conversation.id
    group = await coordinator.validate_group(conversation_id, activity.tenant_id)
    if group is None:
        return _task_message("")

    if group.is_standup_active:
        result = await coordinator.submit_response(conversation_id, response, activity.tenant_id, send)
        return _task_message(result_message(result))

    if response.parking_lot:
        result = await coordinator.add_parking_lot_item(
            conversation_id, activity.tenant_id, response.user_id, response.parking_lot
        )
        return _task_message(result_message(result))

    return _task_message(NO_ACTIVE_STANDUP)
