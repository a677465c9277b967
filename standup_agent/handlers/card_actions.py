from typing import Any, Dict, List, Optional

from ..agents.standup_coordinator import StandupCoordinator
from ..models.activity import ChatActivity
from ..models.cards import FROM_PREVIOUS_PARKING_LOT, NOT_DISCUSSED_PREFIX, card_message
from ..models.types import Failure, SendFn, StandupResponse, result_message
from ..utils.logging import get_logger

logger = get_logger(__name__)

INVOKE_RESPONSE_TYPE = "application/vnd.microsoft.activity.message"


def _invoke_response(value: str, status_code: int = 200) -> Dict[str, Any]:
    return {"statusCode": status_code, "type": INVOKE_RESPONSE_TYPE, "value": value}


def _action_data(activity: ChatActivity) -> Optional[Dict[str, Any]]:
    value = activity.value or {}
    action = value.get("action")
    if isinstance(action, dict):
        return action.get("data")
    return value or None


def not_discussed_items(data: Dict[str, Any]) -> List[str]:
    """Parking-lot toggles left unchecked on the progress view"""
    items = []
    for key, value in data.items():
        if key.startswith("parking_lot_") and isinstance(value, str) and value.startswith(NOT_DISCUSSED_PREFIX):
            item = value[len(NOT_DISCUSSED_PREFIX):]
            if FROM_PREVIOUS_PARKING_LOT not in item:
                item = f"{item} {FROM_PREVIOUS_PARKING_LOT}"
            items.append(item)
    return items


async def handle_card_action(
    activity: ChatActivity,
    send: SendFn,
    coordinator: StandupCoordinator,
) -> Dict[str, Any]:
    conversation_id = activity.conversation.id
    tenant_id = activity.tenant_id
    data = _action_data(activity)

    if not data:
        return _invoke_response("No data provided.")

    action = data.get("action")
    logger.info(f"Card action {action} in {conversation_id}")

    if action == "submit_standup":
        response = StandupResponse(
            user_id=activity.from_.id,
            completed_work=data.get("completedWork", ""),
            planned_work=data.get("plannedWork", ""),
        )
        result = await coordinator.submit_response(conversation_id, response, tenant_id, send)
        message = result_message(result)
        await send(message)
        return _invoke_response(message)

    if action == "close_standup":
        carried = not_discussed_items(data)
        if carried:
            group = await coordinator.validate_group(conversation_id, tenant_id)
            if group is not None and group.users:
                first_user = group.users[0]
                await coordinator.add_parking_lot_item(
                    conversation_id, tenant_id, first_user.id, "\n".join(carried)
                )

        result = await coordinator.close_standup(conversation_id, tenant_id, send=send)
        message = result_message(result)
        if not isinstance(result, Failure) and result.data.get("summary"):
            await send(card_message(result.data["summary"]))
        return _invoke_response(message)

    return _invoke_response("Unknown action", status_code=400)
